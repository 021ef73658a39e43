"""
Telemetry sinks for the training loop.

A sink receives one TelemetrySnapshot per tick. Sinks only read the
snapshot; Q-table rows in a snapshot are copies.
"""

import pandas as pd
from typing import List, Optional

from agents.q_table import ACTION_NAMES
from agents.rewards import BehaviorType


def format_q_values(values) -> str:
    """Format an action-value vector as 'Q(U):0.00 D:0.00 L:0.00 R:0.00 S:0.00'."""
    parts = [f"Q({ACTION_NAMES[0]}):{values[0]:.2f}"]
    parts += [f"{name}:{value:.2f}" for name, value in zip(ACTION_NAMES[1:], values[1:])]
    return " ".join(parts)


def format_snapshot(snapshot) -> List[str]:
    """
    Turn a snapshot into display lines.

    Returns:
        Lines with the exploration rate, then state and Q-values per behavior
    """
    lines = [f"Exploration Rate: {snapshot.exploration_rate:.4f}", ""]

    labels = {BehaviorType.CHASE: "-- CHASER --", BehaviorType.FLEE: "-- FLEER --"}
    for behavior in BehaviorType:
        if behavior not in snapshot.behaviors:
            continue
        state, values = snapshot.behaviors[behavior]
        lines.append(labels[behavior])
        lines.append(f"State: {state}")
        lines.append(format_q_values(values))
        lines.append(f"States visited: {snapshot.table_sizes.get(behavior, 0)}")
        lines.append("")

    return lines


class ConsoleTelemetry:
    """Print the snapshot every `every` ticks."""

    def __init__(self, every: int = 500):
        self.every = every

    def record(self, snapshot):
        if self.every <= 0 or snapshot.tick % self.every != 0:
            return
        print(f"\n--- Tick {snapshot.tick} ---")
        for line in format_snapshot(snapshot):
            if line:
                print(f"  {line}")


class TelemetryHistory:
    """
    Collect one row per agent per tick for later analysis.

    Columns: tick, exploration_rate, agent_id, behavior, state, action,
    reward, q_value, distance. Collisions can be added with
    `record_collision`.
    """

    def __init__(self, next_sink: Optional[object] = None):
        self.rows = []
        self.collisions = []
        self.next_sink = next_sink

    def record(self, snapshot):
        for transition in snapshot.transitions:
            self.rows.append({
                "tick": snapshot.tick,
                "exploration_rate": snapshot.exploration_rate,
                "agent_id": transition.agent_id,
                "behavior": transition.behavior.name.lower(),
                "state": transition.new_state,
                "action": transition.action,
                "reward": transition.reward,
                "q_value": transition.q_value,
                "distance": transition.distance,
            })

        if self.next_sink is not None:
            self.next_sink.record(snapshot)

    def record_collision(self, tick: int, agent_id, behavior: BehaviorType, tag: str, reward: float):
        self.collisions.append({
            "tick": tick,
            "agent_id": agent_id,
            "behavior": behavior.name.lower(),
            "tag": tag,
            "reward": reward,
        })

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.rows,
            columns=[
                "tick", "exploration_rate", "agent_id", "behavior", "state",
                "action", "reward", "q_value", "distance",
            ],
        )

    def collisions_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.collisions,
            columns=["tick", "agent_id", "behavior", "tag", "reward"],
        )
