"""
One-step Q-learning update.

    Q(s, a) <- Q(s, a) + alpha * (r + gamma * max_a' Q(s', a') - Q(s, a))
"""

from agents.q_table import QTable
from agents.state_encoder import StateKey


def check_unit_interval(name: str, value: float):
    """Raise ValueError unless 0 <= value <= 1."""
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def q_update(
    q_table: QTable,
    old_state: StateKey,
    action: int,
    reward: float,
    new_state: StateKey,
    learning_rate: float,
    discount_factor: float,
) -> float:
    """
    Apply the Q-learning backup to (old_state, action).

    Args:
        q_table: Q-table to update
        old_state: State the action was taken in
        action: Action index
        reward: Observed reward
        new_state: Resulting state (bootstrap target)
        learning_rate: Step size alpha in [0, 1]
        discount_factor: Discount gamma in [0, 1]

    Returns:
        The new Q-value stored at (old_state, action)
    """
    check_unit_interval("learning_rate", learning_rate)
    check_unit_interval("discount_factor", discount_factor)

    old_q = q_table.get_value(old_state, action)
    future_max_q = q_table.get_max_q_value(new_state)
    new_q = old_q + learning_rate * (reward + discount_factor * future_max_q - old_q)
    q_table.set_value(old_state, action, new_q)
    return new_q
