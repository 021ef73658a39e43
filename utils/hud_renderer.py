"""
HUD panel and live parameter controls for the rendered arena.

Key bindings (applied on key press):
    1 / 2    learning rate        -/+ 0.05
    3 / 4    discount factor      -/+ 0.01
    5 / 6    exploration decay    -/+ 0.001
    7 / 8    touch target reward  -/+ 1.0
    9 / 0    wall collision       -/+ 1.0
    F1 / F2  move closer reward   -/+ 0.1
    F3 / F4  move away reward     -/+ 0.1
    F5 / F6  time penalty         -/+ 0.01

Learning parameters are clamped to their valid ranges; rewards are
unbounded. Values are written to the training config, so the loop picks
them up on the next tick.
"""

import numpy as np
import pygame
from typing import List

from utils.telemetry import format_snapshot


class ParameterControls:
    """Map key presses to changes of the live training config."""

    # key: (attribute, step, low, high); None bounds leave the value unclamped
    BINDINGS = {
        pygame.K_2: ("learning_rate", 0.05, 0.0, 1.0),
        pygame.K_1: ("learning_rate", -0.05, 0.0, 1.0),
        pygame.K_4: ("discount_factor", 0.01, 0.0, 1.0),
        pygame.K_3: ("discount_factor", -0.01, 0.0, 1.0),
        pygame.K_6: ("exploration_decay", 0.001, 0.0, 1.0),
        pygame.K_5: ("exploration_decay", -0.001, 0.0, 1.0),
        pygame.K_8: ("touch_target_reward", 1.0, None, None),
        pygame.K_7: ("touch_target_reward", -1.0, None, None),
        pygame.K_0: ("wall_collision_reward", 1.0, None, None),
        pygame.K_9: ("wall_collision_reward", -1.0, None, None),
        pygame.K_F2: ("move_closer_reward", 0.1, None, None),
        pygame.K_F1: ("move_closer_reward", -0.1, None, None),
        pygame.K_F4: ("move_away_reward", 0.1, None, None),
        pygame.K_F3: ("move_away_reward", -0.1, None, None),
        pygame.K_F6: ("time_penalty", 0.01, None, None),
        pygame.K_F5: ("time_penalty", -0.01, None, None),
    }

    def __init__(self, loop):
        self.loop = loop

    def handle_key(self, key: int) -> bool:
        """
        Apply one key press.

        Returns:
            True if the key changed a parameter
        """
        config = self.loop.config
        binding = self.BINDINGS.get(key)
        if binding is None:
            return False

        attribute, step, low, high = binding
        value = getattr(config, attribute) + step
        if low is not None:
            value = float(np.clip(value, low, high))
        setattr(config, attribute, round(value, 6))
        return True

    def handle_events(self, events) -> int:
        """Apply all KEYDOWN events, returning how many changed something."""
        changed = 0
        for event in events:
            if event.type == pygame.KEYDOWN and self.handle_key(event.key):
                changed += 1
        return changed

    def panel_lines(self) -> List[str]:
        config = self.loop.config
        return [
            f"Learning Rate: {config.learning_rate:.2f}  [1/2]",
            f"Discount Factor: {config.discount_factor:.2f}  [3/4]",
            f"Exploration Decay: {config.exploration_decay:.3f}  [5/6]",
            "",
            f"Touch Target: {config.touch_target_reward:.2f}  [7/8]",
            f"Wall Collision: {config.wall_collision_reward:.2f}  [9/0]",
            f"Move Closer: {config.move_closer_reward:.2f}  [F1/F2]",
            f"Move Away: {config.move_away_reward:.2f}  [F3/F4]",
            f"Time Penalty: {config.time_penalty:.2f}  [F5/F6]",
        ]


class HUDRenderer:
    """Compose the side panel from the latest snapshot and the controls."""

    def __init__(self, loop, controls: ParameterControls = None):
        self.loop = loop
        self.controls = controls or ParameterControls(loop)
        self.collision_counts = {}

    def count_collision(self, tag: str):
        self.collision_counts[tag] = self.collision_counts.get(tag, 0) + 1

    def panel_lines(self) -> List[str]:
        snapshot = self.loop.snapshot()
        lines = [f"Tick: {snapshot.tick}"]
        lines += format_snapshot(snapshot)
        for tag, count in sorted(self.collision_counts.items()):
            lines.append(f"Contacts ({tag}): {count}")
        lines.append("")
        lines += self.controls.panel_lines()
        return lines

    def update(self, arena):
        """Process the arena's pending input events and redraw it."""
        self.controls.handle_events(arena.events)
        arena.events = []
        arena.render(panel_lines=self.panel_lines())
