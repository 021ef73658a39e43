"""Environments package for the chase/flee arena."""

from typing import Optional

from environments.chase_arena import ChaseArena, ACTION_DIRECTIONS


def make_arena(config: dict, render_mode: Optional[str] = None, keyboard_target: bool = False):
    """
    Create and configure the chase/flee arena.

    Args:
        config: Dictionary containing "arena" and "render" sections
        render_mode: Rendering mode ('human', 'rgb_array', or None)
        keyboard_target: Steer the target with WASD/arrow keys (human mode)

    Returns:
        ChaseArena instance
    """
    arena_config = config.get("arena", {})
    render_config = config.get("render", {})

    return ChaseArena(
        width=arena_config.get("width", 20.0),
        height=arena_config.get("height", 12.0),
        spawn_padding=arena_config.get("spawn_padding", 1.0),
        agent_speed=arena_config.get("agent_speed", 3.0),
        target_speed=arena_config.get("target_speed", 5.0),
        agent_radius=arena_config.get("agent_radius", 0.5),
        target_radius=arena_config.get("target_radius", 0.5),
        wander_interval=arena_config.get("wander_interval", 2.0),
        dt=arena_config.get("dt", 0.02),
        keyboard_target=keyboard_target,
        render_mode=render_mode,
        screen_size=tuple(render_config.get("screen_size", (1000, 600))),
        pixels_per_unit=render_config.get("pixels_per_unit", 35),
        panel_width=render_config.get("panel_width", 300),
        fps=render_config.get("fps", 50),
    )


__all__ = ["ChaseArena", "ACTION_DIRECTIONS", "make_arena"]
