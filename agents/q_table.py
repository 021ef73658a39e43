"""
Sparse Q-table for tabular Q-learning.

Stores one action-value vector per visited state. States that have never
been seen read as all zeros; every read or write of an unseen state inserts
a zero row, so later writes never need a separate initialization step.
"""

import numpy as np
from typing import Dict, Iterator

from agents.state_encoder import StateKey

# Action indices
UP, DOWN, LEFT, RIGHT, STAY = range(5)
ACTION_NAMES = ("U", "D", "L", "R", "S")
NUM_ACTIONS = len(ACTION_NAMES)


class QTable:
    """
    Mapping from state key to a fixed-length vector of action values.

    One instance is kept per behavior type (chase, flee). Rows are numpy
    float64 arrays of length n_actions.
    """

    def __init__(self, n_actions: int = NUM_ACTIONS):
        if n_actions <= 0:
            raise ValueError(f"n_actions must be positive, got {n_actions}")
        self.n_actions = n_actions
        self.table: Dict[StateKey, np.ndarray] = {}

    def _check_action(self, action: int):
        if isinstance(action, bool) or not isinstance(action, (int, np.integer)):
            raise ValueError(f"Action index must be an integer, got {action!r}")
        if not 0 <= action < self.n_actions:
            raise ValueError(
                f"Invalid action index {action}. Expected 0 <= action < {self.n_actions}"
            )

    def _ensure_state(self, state: StateKey) -> np.ndarray:
        row = self.table.get(state)
        if row is None:
            row = np.zeros(self.n_actions, dtype=np.float64)
            self.table[state] = row
        return row

    def get_value(self, state: StateKey, action: int) -> float:
        """Get Q(state, action), creating a zero row for unseen states."""
        self._check_action(action)
        return float(self._ensure_state(state)[action])

    def set_value(self, state: StateKey, action: int, value: float):
        """Set Q(state, action), creating the row if needed."""
        self._check_action(action)
        self._ensure_state(state)[action] = value

    def get_best_action(self, state: StateKey) -> int:
        """
        Get the action with the highest Q-value.

        Ties go to the lowest action index, so an unseen state returns 0.
        """
        return int(np.argmax(self._ensure_state(state)))

    def get_max_q_value(self, state: StateKey) -> float:
        """Get max_a Q(state, a), used as the bootstrap target."""
        return float(np.max(self._ensure_state(state)))

    def peek(self, state: StateKey) -> np.ndarray:
        """Copy of the action values for a state without inserting it."""
        row = self.table.get(state)
        if row is None:
            return np.zeros(self.n_actions, dtype=np.float64)
        return row.copy()

    def __contains__(self, state: StateKey) -> bool:
        return state in self.table

    def __len__(self) -> int:
        return len(self.table)

    def __iter__(self) -> Iterator[StateKey]:
        return iter(self.table)
