"""
Collaborator interfaces used by the training loop.

The loop never moves agents or detects contacts itself. Whatever simulates
the world (see environments.chase_arena.ChaseArena) implements these.
"""

from typing import Hashable, Protocol, Tuple

AgentId = Hashable
Position = Tuple[float, float]


class PositionSource(Protocol):
    """Current positions of agents and the target."""

    def agent_position(self, agent_id: AgentId) -> Position:
        """Position of an agent; raises KeyError for unknown agents."""
        ...

    def target_position(self) -> Position:
        ...


class Actuator(Protocol):
    """Turns an action index into motion before positions are re-read."""

    def move(self, agent_id: AgentId, action: int):
        """Apply an action; raises ValueError for an invalid action index."""
        ...


class SpawnProvider(Protocol):
    """Relocates an agent after a terminal collision."""

    def respawn(self, agent_id: AgentId) -> Position:
        """Move the agent to a new valid position and return it."""
        ...


class TelemetrySink(Protocol):
    """Consumes one read-only snapshot per tick."""

    def record(self, snapshot) -> None:
        ...
