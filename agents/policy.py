"""
Epsilon-greedy action selection over a Q-table.
"""

import numpy as np
from typing import Optional, Union

from agents.q_table import QTable, NUM_ACTIONS
from agents.state_encoder import StateKey


class EpsilonGreedyPolicy:
    """
    Epsilon-greedy policy.

    With probability `exploration_rate` a uniformly random action is taken,
    otherwise the best known action from the Q-table. The random source is a
    numpy Generator so runs can be reproduced from a seed.
    """

    def __init__(
        self,
        n_actions: int = NUM_ACTIONS,
        rng: Optional[Union[int, np.random.Generator]] = None,
    ):
        """
        Initialize policy.

        Args:
            n_actions: Number of discrete actions
            rng: Seed or numpy Generator (None for fresh OS entropy)
        """
        self.n_actions = n_actions
        self.rng = np.random.default_rng(rng)

    def choose_action(
        self,
        state: StateKey,
        q_table: QTable,
        exploration_rate: float,
    ) -> int:
        """
        Choose an action for a state.

        Args:
            state: Current state key
            q_table: Q-table of the agent's behavior type
            exploration_rate: Probability of taking a random action

        Returns:
            Action index in [0, n_actions)
        """
        if self.rng.random() < exploration_rate:
            return int(self.rng.integers(0, self.n_actions))
        return q_table.get_best_action(state)
