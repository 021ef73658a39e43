"""
Tick-driven Q-learning loop for chase and flee agents.

Per tick, for every registered agent (in registration order):
    1. Encode the current state and distance to target
    2. Choose an action (epsilon-greedy on the behavior's Q-table)
    3. Hand the action to the actuator
    4. Re-encode the state after the motion
    5. Compute the step reward from the change in distance
    6. Apply the Q-learning update
    7. Remember state, action and distance for collision updates

After all agents, the exploration rate decays by `exploration_decay * dt`
(floored at `min_exploration_rate`).

Collisions arrive between ticks through `handle_collision` and are applied
immediately as a self-transition on the agent's last recorded state/action.
"""

import numpy as np
from typing import Dict, List, Optional

from agents.learner import q_update
from agents.policy import EpsilonGreedyPolicy
from agents.q_table import STAY, QTable
from agents.rewards import BehaviorType, calculate_reward, collision_reward
from agents.state_encoder import StateKey, encode_state
from training.config import TrainingConfig
from training.interfaces import (
    Actuator,
    AgentId,
    PositionSource,
    SpawnProvider,
    TelemetrySink,
)

class UnknownAgentError(KeyError):
    """Raised when an operation names an agent the loop does not know."""


class AgentRuntimeState:
    """Per-agent bookkeeping that ties one tick to the next."""

    def __init__(
        self,
        behavior: BehaviorType,
        last_state: StateKey,
        last_action: int,
        last_distance: float,
    ):
        self.behavior = behavior
        self.last_state = last_state
        self.last_action = last_action
        self.last_distance = last_distance

    def __repr__(self):
        return (
            f"AgentRuntimeState(behavior={self.behavior.name}, state={self.last_state!r}, "
            f"action={self.last_action}, distance={self.last_distance:.3f})"
        )


class Transition:
    """One learning step of one agent."""

    def __init__(
        self,
        agent_id: AgentId,
        behavior: BehaviorType,
        old_state: StateKey,
        action: int,
        reward: float,
        new_state: StateKey,
        q_value: float,
        distance: float,
    ):
        self.agent_id = agent_id
        self.behavior = behavior
        self.old_state = old_state
        self.action = action
        self.reward = reward
        self.new_state = new_state
        self.q_value = q_value
        self.distance = distance


class TelemetrySnapshot:
    """
    Read-only view of the learner after a tick.

    Attributes:
        tick: Number of completed ticks
        exploration_rate: Current epsilon
        behaviors: {BehaviorType: (state key, action values)} for the first
            registered agent of each behavior type
        agents: {agent_id: (behavior, state key, action, distance)}
        transitions: Transitions applied during the tick
        table_sizes: {BehaviorType: number of visited states}
    """

    def __init__(self, tick, exploration_rate, behaviors, agents, transitions, table_sizes):
        self.tick = tick
        self.exploration_rate = exploration_rate
        self.behaviors = behaviors
        self.agents = agents
        self.transitions = transitions
        self.table_sizes = table_sizes


class TrainingLoop:
    """
    Owns both Q-tables and the per-agent records.

    The configuration object is read fresh on every tick and collision, so
    it can be changed while training runs. The current exploration rate is
    `config.exploration_rate` itself; the loop decays it in place.
    """

    def __init__(
        self,
        config: TrainingConfig,
        positions: PositionSource,
        actuator: Actuator,
        spawner: SpawnProvider,
        policy: Optional[EpsilonGreedyPolicy] = None,
        telemetry: Optional[TelemetrySink] = None,
    ):
        """
        Initialize training loop.

        Args:
            config: Live learning parameters and rewards
            positions: Source of agent and target positions
            actuator: Applies chosen actions
            spawner: Relocates agents after terminal collisions
            policy: Action selector (default: unseeded epsilon-greedy)
            telemetry: Optional sink receiving a snapshot every tick
        """
        self.config = config
        self.positions = positions
        self.actuator = actuator
        self.spawner = spawner
        self.policy = policy or EpsilonGreedyPolicy(config.n_actions)
        self.telemetry = telemetry

        self.q_tables: Dict[BehaviorType, QTable] = {
            BehaviorType.CHASE: QTable(config.n_actions),
            BehaviorType.FLEE: QTable(config.n_actions),
        }
        self.agents: Dict[AgentId, AgentRuntimeState] = {}
        self.tick_count = 0

    # ------------------------------------------------------------------
    # Exploration
    # ------------------------------------------------------------------
    @property
    def exploration_rate(self) -> float:
        return self.config.exploration_rate

    @exploration_rate.setter
    def exploration_rate(self, value: float):
        self.config.exploration_rate = value

    def decay_exploration(self, dt: float):
        """Decrease epsilon by decay * dt, never below the configured floor."""
        config = self.config
        floor = config.min_exploration_rate
        if config.exploration_rate > floor:
            decayed = config.exploration_rate - config.exploration_decay * dt
            config.exploration_rate = max(floor, decayed)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_agent(self, agent_id: AgentId, behavior: BehaviorType) -> AgentRuntimeState:
        """Start tracking an agent; its behavior is fixed from here on."""
        if agent_id in self.agents:
            raise ValueError(f"Agent already registered: {agent_id!r}")
        if not isinstance(behavior, BehaviorType):
            raise ValueError(f"Unknown behavior: {behavior!r}")

        state, distance = self._observe(agent_id)
        runtime = AgentRuntimeState(behavior, state, STAY, distance)
        self.agents[agent_id] = runtime
        return runtime

    def deregister_agent(self, agent_id: AgentId) -> AgentRuntimeState:
        """Stop tracking an agent and drop its runtime record."""
        runtime = self.agents.pop(agent_id, None)
        if runtime is None:
            raise UnknownAgentError(f"Agent not registered: {agent_id!r}")
        return runtime

    def runtime_state(self, agent_id: AgentId) -> AgentRuntimeState:
        try:
            return self.agents[agent_id]
        except KeyError:
            raise UnknownAgentError(f"Agent not registered: {agent_id!r}") from None

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------
    def _observe(self, agent_id: AgentId):
        try:
            agent_pos = self.positions.agent_position(agent_id)
        except KeyError:
            raise UnknownAgentError(f"No position for agent: {agent_id!r}") from None

        target_pos = self.positions.target_position()
        state = encode_state(agent_pos, target_pos, self.config.grid_size)
        distance = float(np.hypot(target_pos[0] - agent_pos[0], target_pos[1] - agent_pos[1]))
        return state, distance

    def step_agent(self, agent_id: AgentId) -> Transition:
        """Run steps 1-7 of a tick for a single agent."""
        runtime = self.runtime_state(agent_id)
        config = self.config
        q_table = self.q_tables[runtime.behavior]

        old_state, old_distance = self._observe(agent_id)
        action = self.policy.choose_action(old_state, q_table, self.exploration_rate)

        self.actuator.move(agent_id, action)

        new_state, new_distance = self._observe(agent_id)
        reward = calculate_reward(
            runtime.behavior,
            old_distance,
            new_distance,
            config.time_penalty,
            config.move_closer_reward,
            config.move_away_reward,
        )
        q_value = q_update(
            q_table,
            old_state,
            action,
            reward,
            new_state,
            config.learning_rate,
            config.discount_factor,
        )

        runtime.last_state = new_state
        runtime.last_action = action
        runtime.last_distance = new_distance

        return Transition(
            agent_id, runtime.behavior, old_state, action, reward, new_state, q_value, new_distance
        )

    def tick(self, dt: float) -> List[Transition]:
        """
        Run one full pass over all agents, then decay exploration.

        Args:
            dt: Simulated time elapsed since the previous tick

        Returns:
            Transitions in registration order
        """
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        # Every agent must be locatable before anyone moves or learns
        for agent_id in self.agents:
            self._observe(agent_id)

        transitions = [self.step_agent(agent_id) for agent_id in list(self.agents)]
        self.decay_exploration(dt)
        self.tick_count += 1

        if self.telemetry is not None:
            self.telemetry.record(self.snapshot(transitions))

        return transitions

    def handle_collision(self, agent_id: AgentId, tag: str) -> Optional[float]:
        """
        Apply a terminal update for a collision and respawn the agent.

        Args:
            agent_id: Agent that collided
            tag: What it collided with ("target", "obstacle"/"wall"; others ignored)

        Returns:
            The override reward, or None if the tag is ignored
        """
        runtime = self.runtime_state(agent_id)
        config = self.config

        reward = collision_reward(
            runtime.behavior,
            tag,
            config.touch_target_reward,
            config.wall_collision_reward,
        )
        if reward is None:
            return None

        state = runtime.last_state
        q_update(
            self.q_tables[runtime.behavior],
            state,
            runtime.last_action,
            reward,
            state,
            config.learning_rate,
            config.discount_factor,
        )

        self.spawner.respawn(agent_id)
        _, runtime.last_distance = self._observe(agent_id)
        return reward

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------
    def snapshot(self, transitions: Optional[List[Transition]] = None) -> TelemetrySnapshot:
        """Build a snapshot without inserting anything into the Q-tables."""
        behaviors = {}
        agents = {}
        for agent_id, runtime in self.agents.items():
            agents[agent_id] = (
                runtime.behavior,
                runtime.last_state,
                runtime.last_action,
                runtime.last_distance,
            )
            if runtime.behavior not in behaviors:
                values = self.q_tables[runtime.behavior].peek(runtime.last_state)
                behaviors[runtime.behavior] = (runtime.last_state, values)

        return TelemetrySnapshot(
            tick=self.tick_count,
            exploration_rate=self.exploration_rate,
            behaviors=behaviors,
            agents=agents,
            transitions=list(transitions or []),
            table_sizes={behavior: len(table) for behavior, table in self.q_tables.items()},
        )
