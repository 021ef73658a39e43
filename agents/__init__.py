"""Agents package for tabular Q-learning."""

from agents.state_encoder import encode_state, discretize_direction, angle_to_bucket
from agents.q_table import QTable, NUM_ACTIONS, ACTION_NAMES
from agents.policy import EpsilonGreedyPolicy
from agents.rewards import BehaviorType, calculate_reward, collision_reward
from agents.learner import q_update

__all__ = [
    "encode_state",
    "discretize_direction",
    "angle_to_bucket",
    "QTable",
    "NUM_ACTIONS",
    "ACTION_NAMES",
    "EpsilonGreedyPolicy",
    "BehaviorType",
    "calculate_reward",
    "collision_reward",
    "q_update",
]
