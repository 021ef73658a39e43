"""
Training Script for Chase/Flee Q-Learning

Spawns one chaser and one fleer in the arena and runs the tick loop:
    loop.tick(dt)  -> every agent chooses, moves and learns
    arena.step()   -> target moves, contacts are delivered to the loop

Usage:
    # Headless training (fast)
    python training/train_q.py --ticks 200000

    # Watch it learn (steer the target with WASD / arrow keys)
    python training/train_q.py --render --keyboard

    # Coarser time step
    python training/train_q.py --ticks 50000 --dt 0.05

    # Reproducible run with plots
    python training/train_q.py --ticks 100000 --seed 7 --plot results/figures
"""

import sys
import argparse
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from tqdm import tqdm

from agents.policy import EpsilonGreedyPolicy
from agents.rewards import BehaviorType
from environments import make_arena
from training.config import TrainingConfig, load_config, print_config
from training.training_loop import TrainingLoop
from utils.telemetry import ConsoleTelemetry, TelemetryHistory

AGENT_SETUP = (
    ("chaser", BehaviorType.CHASE),
    ("fleer", BehaviorType.FLEE),
)


class TrainingSession:
    """Arena, loop and telemetry wired together for one run."""

    def __init__(
        self,
        config: dict,
        seed: Optional[int] = None,
        render_mode: Optional[str] = None,
        keyboard_target: bool = False,
        log_every: int = 0,
    ):
        self.config = config
        self.arena = make_arena(config, render_mode=render_mode, keyboard_target=keyboard_target)
        self.arena.reset(seed=seed)

        self.history = TelemetryHistory(next_sink=ConsoleTelemetry(every=log_every))
        self.training_config = TrainingConfig.from_dict(config)
        self.loop = TrainingLoop(
            self.training_config,
            positions=self.arena,
            actuator=self.arena,
            spawner=self.arena,
            policy=EpsilonGreedyPolicy(self.training_config.n_actions, rng=seed),
            telemetry=self.history,
        )

        for agent_id, behavior in AGENT_SETUP:
            self.arena.add_agent(agent_id, behavior)
            self.loop.register_agent(agent_id, behavior)

        self.arena.collision_callback = self.on_collision
        self.collision_listeners = []

    def on_collision(self, agent_id, tag: str):
        """Forward an arena contact to the learner and record it."""
        reward = self.loop.handle_collision(agent_id, tag)
        if reward is None:
            return

        behavior = self.loop.runtime_state(agent_id).behavior
        self.history.record_collision(self.loop.tick_count, agent_id, behavior, tag, reward)
        for listener in self.collision_listeners:
            listener(tag)

    def step(self):
        """One tick of learning followed by one physics step."""
        dt = self.arena.dt
        self.loop.tick(dt)
        self.arena.step()

    def summary(self) -> dict:
        history = self.history.to_dataframe()
        collisions = self.history.collisions_dataframe()

        stats = {
            "ticks": self.loop.tick_count,
            "exploration_rate": self.loop.exploration_rate,
            "chase_states": len(self.loop.q_tables[BehaviorType.CHASE]),
            "flee_states": len(self.loop.q_tables[BehaviorType.FLEE]),
        }
        for behavior in ("chase", "flee"):
            rewards = history.loc[history["behavior"] == behavior, "reward"]
            stats[f"{behavior}_mean_reward"] = float(rewards.mean()) if len(rewards) else 0.0
            events = collisions[collisions["behavior"] == behavior]
            stats[f"{behavior}_target_contacts"] = int((events["tag"] == "target").sum())
            stats[f"{behavior}_wall_contacts"] = int((events["tag"] != "target").sum())
        return stats

    def close(self):
        self.arena.close()


def train(
    config: dict,
    n_ticks: int = 100000,
    seed: Optional[int] = None,
    render: bool = False,
    keyboard_target: bool = False,
    log_every: int = 0,
) -> TrainingSession:
    """
    Run a training session.

    Args:
        config: Configuration dictionary (see training.config.get_config)
        n_ticks: Number of ticks to run (rendered runs stop early when the window closes)
        seed: Random seed for arena and policy
        render: Open a pygame window
        keyboard_target: Steer the target with the keyboard (requires render)
        log_every: Print a snapshot every N ticks (0 to disable)

    Returns:
        The finished TrainingSession
    """
    print(f"\n{'='*60}")
    print("TRAINING: CHASER + FLEER vs TARGET")
    print(f"{'='*60}")
    print(f"Ticks: {n_ticks}")
    print(f"Seed: {seed}")
    print(f"Rendering: {render}")
    print()

    session = TrainingSession(
        config,
        seed=seed,
        render_mode="human" if render else None,
        keyboard_target=keyboard_target,
        log_every=log_every,
    )

    if render:
        from utils.hud_renderer import HUDRenderer

        hud = HUDRenderer(session.loop)
        session.collision_listeners.append(hud.count_collision)
        for _ in range(n_ticks):
            session.step()
            hud.update(session.arena)
            if session.arena.quit_requested:
                print("\nWindow closed, stopping training.")
                break
    else:
        for _ in tqdm(range(n_ticks), desc="Training", unit="tick"):
            session.step()

    return session


def print_summary(stats: dict):
    print("\n" + "=" * 60)
    print("TRAINING SUMMARY")
    print("=" * 60)
    print(f"  Ticks: {stats['ticks']}")
    print(f"  Exploration Rate: {stats['exploration_rate']:.4f}")
    print(f"  States Visited: chase={stats['chase_states']}, flee={stats['flee_states']}")
    for behavior in ("chase", "flee"):
        print(f"  {behavior.capitalize()}:")
        print(f"    Mean Step Reward: {stats[f'{behavior}_mean_reward']:.3f}")
        print(f"    Target Contacts: {stats[f'{behavior}_target_contacts']}")
        print(f"    Wall Contacts: {stats[f'{behavior}_wall_contacts']}")
    print("=" * 60)


def main():
    parser = argparse.ArgumentParser(description="Train chase/flee agents with tabular Q-learning")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config (default: built-in)")
    parser.add_argument("--ticks", type=int, default=100000, help="Number of ticks to run")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--dt", type=float, default=None, help="Simulated seconds per tick (default: from config)")
    parser.add_argument("--render", action="store_true", help="Render the arena")
    parser.add_argument("--keyboard", action="store_true", help="Steer the target with WASD/arrows")
    parser.add_argument("--log-every", type=int, default=0, help="Print a snapshot every N ticks")
    parser.add_argument("--plot", type=str, default=None, help="Directory to save training plots")

    args = parser.parse_args()

    config = load_config(args.config)
    if args.dt is not None:
        config["arena"]["dt"] = args.dt
    print_config(config)

    session = train(
        config,
        n_ticks=args.ticks,
        seed=args.seed,
        render=args.render,
        keyboard_target=args.keyboard,
        log_every=args.log_every,
    )
    session.close()
    print_summary(session.summary())

    if args.plot:
        from utils.visualization import generate_all_plots

        generate_all_plots(
            session.history.to_dataframe(),
            session.history.collisions_dataframe(),
            output_dir=args.plot,
        )


if __name__ == "__main__":
    main()
