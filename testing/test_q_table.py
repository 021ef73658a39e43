"""
Tests for the sparse Q-table.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest

from agents.q_table import NUM_ACTIONS, QTable


def test_unseen_state_reads_as_zero_and_is_inserted():
    table = QTable()
    for action in range(NUM_ACTIONS):
        assert table.get_value("1_2_3", action) == 0.0
    assert "1_2_3" in table
    assert len(table) == 1


def test_unseen_state_best_action_is_zero():
    table = QTable()
    assert table.get_best_action("fresh") == 0
    assert table.get_max_q_value("other") == 0.0
    assert len(table) == 2


def test_set_value_creates_row():
    table = QTable()
    table.set_value("s", 3, 1.5)
    np.testing.assert_array_equal(table.table["s"], [0.0, 0.0, 0.0, 1.5, 0.0])
    assert table.get_value("s", 3) == 1.5


def test_best_action_tie_goes_to_lowest_index():
    table = QTable()
    for action, value in enumerate([1.0, 3.0, 3.0, 0.0, 3.0]):
        table.set_value("s", action, value)
    assert table.get_best_action("s") == 1


def test_max_q_value_with_negative_values():
    table = QTable()
    for action in range(NUM_ACTIONS):
        table.set_value("all_negative", action, -1.0 - action)
    assert table.get_max_q_value("all_negative") == -1.0
    assert table.get_best_action("all_negative") == 0

    table.set_value("one_negative", 0, -2.0)
    assert table.get_max_q_value("one_negative") == 0.0
    assert table.get_best_action("one_negative") == 1


@pytest.mark.parametrize("action", [-1, NUM_ACTIONS, 100])
def test_invalid_action_raises(action):
    table = QTable()
    with pytest.raises(ValueError):
        table.get_value("s", action)
    with pytest.raises(ValueError):
        table.set_value("s", action, 1.0)
    assert "s" not in table


def test_peek_does_not_insert():
    table = QTable()
    values = table.peek("never_seen")
    np.testing.assert_array_equal(values, np.zeros(NUM_ACTIONS))
    assert "never_seen" not in table

    table.set_value("seen", 2, 4.0)
    copy = table.peek("seen")
    copy[2] = 99.0
    assert table.get_value("seen", 2) == 4.0


def test_rows_have_fixed_length():
    table = QTable(n_actions=3)
    table.get_best_action("a")
    table.set_value("b", 2, 1.0)
    assert all(len(table.table[state]) == 3 for state in table)
    with pytest.raises(ValueError):
        table.get_value("a", 3)


def test_invalid_action_count():
    with pytest.raises(ValueError):
        QTable(n_actions=0)


@pytest.mark.parametrize("action", [2.5, 1.0, True, "1", None])
def test_non_integer_action_raises(action):
    table = QTable()
    with pytest.raises(ValueError):
        table.get_value("s", action)
    with pytest.raises(ValueError):
        table.set_value("s", action, 1.0)
    assert "s" not in table


def test_numpy_integer_action_accepted():
    table = QTable()
    table.set_value("s", np.int64(2), 3.0)
    assert table.get_value("s", np.int32(2)) == 3.0
