"""
2D Arena for Chase/Flee Q-Learning

This environment hosts the agents the training loop learns for:
- Agents move in 4 directions (or stay) at a constant speed
- The target either wanders around or is steered with the keyboard
- Touching the target or a wall is reported as a collision event
- Agents are respawned at random positions inside the padded floor

The arena implements the collaborator interfaces of training.interfaces:
positions, actuator, spawn provider and (through `collision_callback`)
collision notifier.
"""

import numpy as np
import gymnasium as gym
from gymnasium import spaces
import pygame
from typing import Callable, Dict, Hashable, List, Optional, Tuple, Any

from agents.q_table import DOWN, LEFT, NUM_ACTIONS, RIGHT, STAY, UP
from agents.rewards import BehaviorType, OBSTACLE_TAGS, TARGET_TAG

# Unit motion per action index
ACTION_DIRECTIONS = np.zeros((NUM_ACTIONS, 2), dtype=np.float64)
ACTION_DIRECTIONS[UP] = (0.0, 1.0)
ACTION_DIRECTIONS[DOWN] = (0.0, -1.0)
ACTION_DIRECTIONS[LEFT] = (-1.0, 0.0)
ACTION_DIRECTIONS[RIGHT] = (1.0, 0.0)
ACTION_DIRECTIONS[STAY] = (0.0, 0.0)

OBSTACLE_TAG = OBSTACLE_TAGS[0]

AGENT_COLORS = {
    BehaviorType.CHASE: (220, 50, 50),    # Red
    BehaviorType.FLEE: (60, 90, 230),     # Blue
}


class ArenaAgent:
    """Physical state of one agent in the arena."""

    def __init__(self, position: np.ndarray, behavior: Optional[BehaviorType] = None):
        self.position = position.astype(np.float64)
        self.velocity = np.zeros(2, dtype=np.float64)
        self.behavior = behavior
        self.touching_wall = False


class ChaseArena(gym.Env):
    """
    Rectangular arena with walls, a moving target and any number of agents.

    Coordinates are world units with the origin at the floor center and y
    pointing up.

    Action Space:
        Discrete(5) - 0 up, 1 down, 2 left, 3 right, 4 stay

    Observation:
        Dict of positions {agent_id: [x, y], ..., "target": [x, y]}

    Step:
        Advances the target by one physics step and reports contacts through
        `collision_callback(agent_id, tag)`. Rewards are computed by the
        learner, so the returned reward is always 0.0.
    """

    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 50}

    def __init__(
        self,
        width: float = 20.0,
        height: float = 12.0,
        spawn_padding: float = 1.0,
        agent_speed: float = 3.0,
        target_speed: float = 5.0,
        agent_radius: float = 0.5,
        target_radius: float = 0.5,
        wander_interval: float = 2.0,
        dt: float = 0.02,
        keyboard_target: bool = False,
        render_mode: Optional[str] = None,
        screen_size: Tuple[int, int] = (1000, 600),
        pixels_per_unit: int = 35,
        panel_width: int = 300,
        fps: Optional[int] = None,
    ):
        super().__init__()

        if width <= 2 * spawn_padding or height <= 2 * spawn_padding:
            raise ValueError("Arena is too small for the requested spawn padding")
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(f"Unknown render mode: {render_mode}")

        # Arena parameters
        self.width = width
        self.height = height
        self.spawn_padding = spawn_padding
        self.agent_speed = agent_speed
        self.target_speed = target_speed
        self.agent_radius = agent_radius
        self.target_radius = target_radius
        self.wander_interval = wander_interval
        self.dt = dt
        self.keyboard_target = keyboard_target
        self.render_mode = render_mode

        self.half_extents = np.array([width / 2, height / 2], dtype=np.float64)

        self.action_space = spaces.Discrete(len(ACTION_DIRECTIONS))

        # State
        self.agents: Dict[Hashable, ArenaAgent] = {}
        self.target_pos = np.zeros(2, dtype=np.float64)
        self.target_vel = np.zeros(2, dtype=np.float64)
        self.wander_timer = 0.0
        self.step_count = 0
        self.collision_callback: Optional[Callable[[Hashable, str], Any]] = None

        # Rendering
        self.screen_size = screen_size
        self.pixels_per_unit = pixels_per_unit
        self.panel_width = panel_width
        self.fps = fps or self.metadata["render_fps"]
        self.window = None
        self.clock = None
        self.font = None
        self.events: List[pygame.event.Event] = []
        self.quit_requested = False

    # ------------------------------------------------------------------
    # Gymnasium API
    # ------------------------------------------------------------------
    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[Hashable, np.ndarray], Dict[str, Any]]:
        """Reset target to the center and respawn every agent."""
        super().reset(seed=seed)

        self.target_pos = np.zeros(2, dtype=np.float64)
        self.target_vel = np.zeros(2, dtype=np.float64)
        self.wander_timer = 0.0
        self.step_count = 0

        for agent_id in self.agents:
            self.respawn(agent_id)

        return self._get_observation(), self._get_info()

    def step(
        self, action: Optional[Dict[Hashable, int]] = None
    ) -> Tuple[Dict[Hashable, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Advance the world by one physics step.

        Args:
            action: Optional {agent_id: action} applied before the target moves

        Returns:
            observation, reward (0.0), terminated, truncated, info
        """
        for agent_id, agent_action in (action or {}).items():
            self.move(agent_id, agent_action)

        self._move_target()
        contacts = self._detect_contacts()

        self.step_count += 1

        if self.collision_callback is not None:
            for agent_id, tag in contacts:
                self.collision_callback(agent_id, tag)

        info = self._get_info()
        info["contacts"] = contacts
        return self._get_observation(), 0.0, False, False, info

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------
    def add_agent(
        self,
        agent_id: Hashable,
        behavior: Optional[BehaviorType] = None,
        position: Optional[Tuple[float, float]] = None,
    ) -> Tuple[float, float]:
        """Place a new agent, at a random spawn position unless one is given."""
        if agent_id in self.agents:
            raise ValueError(f"Agent already in arena: {agent_id!r}")

        if position is None:
            start = self._random_spawn_position()
        else:
            start = np.asarray(position, dtype=np.float64)
        self.agents[agent_id] = ArenaAgent(start, behavior)
        return self.agent_position(agent_id)

    def agent_position(self, agent_id: Hashable) -> Tuple[float, float]:
        agent = self.agents[agent_id]
        return float(agent.position[0]), float(agent.position[1])

    def target_position(self) -> Tuple[float, float]:
        return float(self.target_pos[0]), float(self.target_pos[1])

    def set_target_position(self, position: Tuple[float, float]):
        self.target_pos = np.clip(
            np.asarray(position, dtype=np.float64),
            -self.half_extents + self.target_radius,
            self.half_extents - self.target_radius,
        )

    def move(self, agent_id: Hashable, action: int):
        """
        Apply an action to an agent for one time step.

        Raises:
            ValueError: If the action index is not in [0, 5)
            KeyError: If the agent is not in the arena
        """
        if isinstance(action, bool) or not self.action_space.contains(action):
            raise ValueError(
                f"Invalid action index {action}. Expected 0 <= action < {self.action_space.n}"
            )
        agent = self.agents[agent_id]

        agent.velocity = ACTION_DIRECTIONS[int(action)] * self.agent_speed
        new_position = agent.position + agent.velocity * self.dt

        limit = self.half_extents - self.agent_radius
        clipped = np.clip(new_position, -limit, limit)
        agent.touching_wall = bool(np.any(clipped != new_position))
        agent.position = clipped

    def respawn(self, agent_id: Hashable) -> Tuple[float, float]:
        """Move an agent to a random position inside the padded floor."""
        agent = self.agents[agent_id]
        agent.position = self._random_spawn_position()
        agent.velocity = np.zeros(2, dtype=np.float64)
        agent.touching_wall = False
        return self.agent_position(agent_id)

    def _random_spawn_position(self) -> np.ndarray:
        low = -self.half_extents + self.spawn_padding
        high = self.half_extents - self.spawn_padding
        return self.np_random.uniform(low, high).astype(np.float64)

    # ------------------------------------------------------------------
    # Physics
    # ------------------------------------------------------------------
    def _move_target(self):
        if self.keyboard_target and self.window is not None:
            self.target_vel = self._keyboard_velocity()
        else:
            self.wander_timer -= self.dt
            if self.wander_timer <= 0.0 or not np.any(self.target_vel):
                heading = self.np_random.uniform(0.0, 2 * np.pi)
                self.target_vel = self.target_speed * np.array([np.cos(heading), np.sin(heading)])
                self.wander_timer = self.wander_interval

        new_position = self.target_pos + self.target_vel * self.dt

        # Bounce off walls
        limit = self.half_extents - self.target_radius
        for axis in range(2):
            if abs(new_position[axis]) > limit[axis]:
                new_position[axis] = np.clip(new_position[axis], -limit[axis], limit[axis])
                self.target_vel[axis] = -self.target_vel[axis]

        self.target_pos = new_position

    def _keyboard_velocity(self) -> np.ndarray:
        """WASD / arrow keys, normalized so diagonals are not faster."""
        keys = pygame.key.get_pressed()
        move_x = float(keys[pygame.K_d] or keys[pygame.K_RIGHT]) - float(keys[pygame.K_a] or keys[pygame.K_LEFT])
        move_y = float(keys[pygame.K_w] or keys[pygame.K_UP]) - float(keys[pygame.K_s] or keys[pygame.K_DOWN])

        direction = np.array([move_x, move_y])
        norm = np.linalg.norm(direction)
        if norm > 0:
            direction = direction / norm
        return direction * self.target_speed

    def _detect_contacts(self) -> List[Tuple[Hashable, str]]:
        """
        Collect at most one contact per agent.

        Target contact takes priority over a wall contact in the same step.
        """
        contacts = []
        touch_distance = self.agent_radius + self.target_radius

        for agent_id, agent in self.agents.items():
            distance = np.linalg.norm(self.target_pos - agent.position)
            if distance <= touch_distance:
                contacts.append((agent_id, TARGET_TAG))
            elif agent.touching_wall:
                contacts.append((agent_id, OBSTACLE_TAG))
            agent.touching_wall = False

        return contacts

    def _get_observation(self) -> Dict[Hashable, np.ndarray]:
        obs = {agent_id: agent.position.copy() for agent_id, agent in self.agents.items()}
        obs["target"] = self.target_pos.copy()
        return obs

    def _get_info(self) -> Dict[str, Any]:
        """Return auxiliary information."""
        return {
            "target_pos": self.target_pos.copy(),
            "target_vel": self.target_vel.copy(),
            "distances": {
                agent_id: float(np.linalg.norm(self.target_pos - agent.position))
                for agent_id, agent in self.agents.items()
            },
            "step": self.step_count,
        }

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _to_screen(self, position: np.ndarray) -> Tuple[int, int]:
        floor_px = self.screen_size[0] - self.panel_width
        center_x = floor_px // 2
        center_y = self.screen_size[1] // 2
        return (
            int(center_x + position[0] * self.pixels_per_unit),
            int(center_y - position[1] * self.pixels_per_unit),  # Flip Y
        )

    def render(self, panel_lines: Optional[List[str]] = None):
        """
        Render the arena.

        Args:
            panel_lines: Optional text lines for the side panel

        Returns:
            RGB array in "rgb_array" mode, otherwise None
        """
        if self.render_mode is None:
            return None

        if self.window is None and self.render_mode == "human":
            pygame.init()
            pygame.display.init()
            self.window = pygame.display.set_mode(self.screen_size)
            pygame.display.set_caption("Chase / Flee Q-Learning")

        if self.clock is None and self.render_mode == "human":
            self.clock = pygame.time.Clock()

        if self.font is None:
            pygame.font.init()
            self.font = pygame.font.Font(None, 22)

        canvas = pygame.Surface(self.screen_size)
        canvas.fill((25, 25, 30))

        # Floor and walls
        top_left = self._to_screen(np.array([-self.width / 2, self.height / 2]))
        floor_rect = pygame.Rect(
            top_left[0],
            top_left[1],
            int(self.width * self.pixels_per_unit),
            int(self.height * self.pixels_per_unit),
        )
        pygame.draw.rect(canvas, (60, 60, 70), floor_rect)
        pygame.draw.rect(canvas, (200, 200, 200), floor_rect, 3)

        # Target (green)
        pygame.draw.circle(
            canvas,
            (0, 220, 0),
            self._to_screen(self.target_pos),
            max(int(self.target_radius * self.pixels_per_unit), 2),
        )

        # Agents
        for agent in self.agents.values():
            color = AGENT_COLORS.get(agent.behavior, (220, 220, 220))
            screen_pos = self._to_screen(agent.position)
            pygame.draw.circle(
                canvas,
                color,
                screen_pos,
                max(int(self.agent_radius * self.pixels_per_unit), 2),
            )
            if np.linalg.norm(agent.velocity) > 0.1:
                vel_end = self._to_screen(agent.position + agent.velocity * 0.3)
                pygame.draw.line(canvas, color, screen_pos, vel_end, 2)

        # Side panel
        panel_x = self.screen_size[0] - self.panel_width + 10
        y = 10
        for line in panel_lines or []:
            text = self.font.render(line, True, (230, 230, 230))
            canvas.blit(text, (panel_x, y))
            y += 22

        if self.render_mode == "human":
            self.events = pygame.event.get()
            for event in self.events:
                if event.type == pygame.QUIT:
                    self.quit_requested = True
            self.window.blit(canvas, canvas.get_rect())
            pygame.display.update()
            self.clock.tick(self.fps)
        else:  # rgb_array
            return np.transpose(
                np.array(pygame.surfarray.pixels3d(canvas)), axes=(1, 0, 2)
            )

    def close(self):
        """Clean up resources."""
        if self.window is not None:
            pygame.display.quit()
            pygame.quit()
            self.window = None
            self.clock = None
            self.font = None
