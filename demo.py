"""
Demo script to watch the chaser and fleer learn in real time.

The target wanders on its own, or follow the keyboard with --keyboard
(WASD / arrow keys). Keys 1-0 and F1-F6 change learning parameters and
reward values while the demo runs.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from training.config import load_config
from training.train_q import train, print_summary


def run_demo(config_path: str = None, n_ticks: int = 50000, keyboard: bool = False, seed: int = None):
    """
    Run a rendered training session.

    Args:
        config_path: Path to configuration file (None for defaults)
        n_ticks: Maximum number of ticks
        keyboard: Steer the target with the keyboard
        seed: Random seed
    """
    config = load_config(config_path)

    print("\nInitializing arena with chaser (red) and fleer (blue)...")
    if keyboard:
        print("Steer the target (green) with WASD or the arrow keys.")
    print("Close the window to stop the demo.\n")

    session = train(config, n_ticks=n_ticks, seed=seed, render=True, keyboard_target=keyboard)
    session.close()

    print_summary(session.summary())
    print("\nDemo complete!")


def main():
    """Main demo function."""
    import argparse

    parser = argparse.ArgumentParser(description="Demo script for watching Q-learning agents")
    parser.add_argument(
        "--config",
        type=str,
        default="configs/config.yaml",
        help="Path to config file",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=50000,
        help="Maximum number of ticks to run",
    )
    parser.add_argument(
        "--keyboard",
        action="store_true",
        help="Steer the target with the keyboard",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed",
    )

    args = parser.parse_args()

    print("=" * 80)
    print("CHASE / FLEE Q-LEARNING DEMO")
    print("=" * 80)

    config_path = args.config if Path(args.config).exists() else None
    if config_path is None:
        print(f"\nConfig file {args.config} not found, using defaults")

    run_demo(
        config_path=config_path,
        n_ticks=args.ticks,
        keyboard=args.keyboard,
        seed=args.seed,
    )


if __name__ == "__main__":
    main()
