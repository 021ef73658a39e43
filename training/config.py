"""
Configuration for Chase/Flee Q-Learning

Default parameters live in the module-level dictionaries below. A YAML file
(configs/config.yaml) can override any of them; `TrainingConfig` is the live
object handed to the training loop and may be modified while training runs.
"""

import copy
import yaml
from typing import Any, Dict, Optional

from agents.learner import check_unit_interval
from agents.q_table import NUM_ACTIONS

# Learning Configuration
TRAINING_CONFIG = {
    "learning_rate": 0.1,
    "discount_factor": 0.99,
    "exploration_rate": 1.0,        # Initial epsilon
    "exploration_decay": 0.001,     # Epsilon decrease per simulated second
    "min_exploration_rate": 0.01,
    "grid_size": 1.0,               # State grid cell size in world units
    "n_actions": NUM_ACTIONS,       # Up, down, left, right, stay
}

# Rewards
REWARD_CONFIG = {
    "touch_target": 10.0,
    "wall_collision": -5.0,
    "move_closer": 1.0,
    "move_away": -0.5,
    "time_penalty": -0.1,
}

# Arena Configuration
ARENA_CONFIG = {
    "width": 20.0,
    "height": 12.0,
    "spawn_padding": 1.0,
    "agent_speed": 3.0,
    "target_speed": 5.0,
    "agent_radius": 0.5,
    "target_radius": 0.5,
    "wander_interval": 2.0,         # Seconds between target heading changes
    "dt": 0.02,                     # Fixed physics time step
}

# Rendering Configuration
RENDER_CONFIG = {
    "fps": 50,
    "screen_size": (1000, 600),
    "pixels_per_unit": 35,
    "panel_width": 300,
}

SECTIONS = {
    "training": TRAINING_CONFIG,
    "rewards": REWARD_CONFIG,
    "arena": ARENA_CONFIG,
    "render": RENDER_CONFIG,
}


def get_config() -> Dict[str, Dict[str, Any]]:
    """Get complete default configuration dictionary."""
    return copy.deepcopy(SECTIONS)


def load_config(config_path: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load configuration from YAML file, merged over the defaults.

    Args:
        config_path: Path to YAML file (None for defaults only)

    Returns:
        Nested configuration dictionary
    """
    config = get_config()
    if config_path is None:
        return config

    with open(config_path, "r") as f:
        overrides = yaml.safe_load(f) or {}

    if not isinstance(overrides, dict):
        raise ValueError(f"Config file must contain a mapping of sections: {config_path}")

    for section, values in overrides.items():
        if section not in config:
            raise ValueError(
                f"Unknown config section: {section}. Choose from: {', '.join(config)}"
            )
        if values is None:
            values = {}
        if not isinstance(values, dict):
            raise ValueError(f"Config section '{section}' must be a mapping, got {type(values).__name__}")
        unknown = set(values) - set(config[section])
        if unknown:
            raise ValueError(f"Unknown keys in section '{section}': {sorted(unknown)}")
        config[section].update(values)

    return config


class TrainingConfig:
    """
    Live learning parameters.

    Every value is read by the training loop at the moment it is needed, so
    assignments take effect on the next tick or collision. Setters validate
    their input and raise ValueError for out-of-range values.
    """

    def __init__(
        self,
        learning_rate: float = 0.1,
        discount_factor: float = 0.99,
        exploration_rate: float = 1.0,
        exploration_decay: float = 0.001,
        min_exploration_rate: float = 0.01,
        grid_size: float = 1.0,
        n_actions: int = NUM_ACTIONS,
        touch_target_reward: float = 10.0,
        wall_collision_reward: float = -5.0,
        move_closer_reward: float = 1.0,
        move_away_reward: float = -0.5,
        time_penalty: float = -0.1,
    ):
        if n_actions != NUM_ACTIONS:
            raise ValueError(f"n_actions is fixed at {NUM_ACTIONS}, got {n_actions}")
        self.n_actions = n_actions

        self.learning_rate = learning_rate
        self.discount_factor = discount_factor
        self.exploration_rate = exploration_rate
        self.exploration_decay = exploration_decay
        self.min_exploration_rate = min_exploration_rate
        self.grid_size = grid_size

        # Rewards are free-valued
        self.touch_target_reward = touch_target_reward
        self.wall_collision_reward = wall_collision_reward
        self.move_closer_reward = move_closer_reward
        self.move_away_reward = move_away_reward
        self.time_penalty = time_penalty

    @classmethod
    def from_dict(cls, config: Dict[str, Dict[str, Any]]) -> "TrainingConfig":
        """Build from a nested config dictionary (see get_config)."""
        training = config.get("training", {})
        rewards = config.get("rewards", {})
        return cls(
            learning_rate=training.get("learning_rate", 0.1),
            discount_factor=training.get("discount_factor", 0.99),
            exploration_rate=training.get("exploration_rate", 1.0),
            exploration_decay=training.get("exploration_decay", 0.001),
            min_exploration_rate=training.get("min_exploration_rate", 0.01),
            grid_size=training.get("grid_size", 1.0),
            n_actions=training.get("n_actions", NUM_ACTIONS),
            touch_target_reward=rewards.get("touch_target", 10.0),
            wall_collision_reward=rewards.get("wall_collision", -5.0),
            move_closer_reward=rewards.get("move_closer", 1.0),
            move_away_reward=rewards.get("move_away", -0.5),
            time_penalty=rewards.get("time_penalty", -0.1),
        )

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    @learning_rate.setter
    def learning_rate(self, value: float):
        check_unit_interval("learning_rate", value)
        self._learning_rate = float(value)

    @property
    def discount_factor(self) -> float:
        return self._discount_factor

    @discount_factor.setter
    def discount_factor(self, value: float):
        check_unit_interval("discount_factor", value)
        self._discount_factor = float(value)

    @property
    def exploration_rate(self) -> float:
        return self._exploration_rate

    @exploration_rate.setter
    def exploration_rate(self, value: float):
        check_unit_interval("exploration_rate", value)
        self._exploration_rate = float(value)

    @property
    def exploration_decay(self) -> float:
        return self._exploration_decay

    @exploration_decay.setter
    def exploration_decay(self, value: float):
        if value < 0:
            raise ValueError(f"exploration_decay must be non-negative, got {value}")
        self._exploration_decay = float(value)

    @property
    def min_exploration_rate(self) -> float:
        return self._min_exploration_rate

    @min_exploration_rate.setter
    def min_exploration_rate(self, value: float):
        check_unit_interval("min_exploration_rate", value)
        self._min_exploration_rate = float(value)

    @property
    def grid_size(self) -> float:
        return self._grid_size

    @grid_size.setter
    def grid_size(self, value: float):
        if value <= 0:
            raise ValueError(f"grid_size must be positive, got {value}")
        self._grid_size = float(value)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Nested dictionary in the same layout as get_config()."""
        return {
            "training": {
                "learning_rate": self.learning_rate,
                "discount_factor": self.discount_factor,
                "exploration_rate": self.exploration_rate,
                "exploration_decay": self.exploration_decay,
                "min_exploration_rate": self.min_exploration_rate,
                "grid_size": self.grid_size,
                "n_actions": self.n_actions,
            },
            "rewards": {
                "touch_target": self.touch_target_reward,
                "wall_collision": self.wall_collision_reward,
                "move_closer": self.move_closer_reward,
                "move_away": self.move_away_reward,
                "time_penalty": self.time_penalty,
            },
        }


def print_config(config: Optional[Dict[str, Dict[str, Any]]] = None):
    """Print configuration summary."""
    config = config or get_config()

    print("=" * 70)
    print("CHASE / FLEE Q-LEARNING CONFIGURATION")
    print("=" * 70)
    print()

    print("Learning:")
    print(f"  Learning Rate: {config['training']['learning_rate']}")
    print(f"  Discount Factor: {config['training']['discount_factor']}")
    print(f"  Exploration: {config['training']['exploration_rate']} "
          f"(decay {config['training']['exploration_decay']}/s, "
          f"min {config['training']['min_exploration_rate']})")
    print(f"  Grid Size: {config['training']['grid_size']}")
    print()

    print("Rewards:")
    for name, value in config["rewards"].items():
        print(f"  {name}: {value}")
    print()

    print("Arena:")
    print(f"  Size: {config['arena']['width']} x {config['arena']['height']}")
    print(f"  Agent Speed: {config['arena']['agent_speed']}")
    print(f"  Time Step: {config['arena']['dt']}")
    print()
    print("=" * 70)


if __name__ == "__main__":
    print_config()
