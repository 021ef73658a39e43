"""
Reward model for chase and flee behaviors.

Step reward:
    r = time_penalty + (move_closer_reward if the agent did the right thing
                        else move_away_reward)

"The right thing" is shrinking the distance for a chaser and growing it for
a fleer, so the single move_closer_reward magnitude serves both behaviors.

Collision reward overrides the step reward:
    target contact:   +touch_target_reward (chase), -touch_target_reward (flee)
    obstacle contact: wall_collision_reward (both)
"""

from enum import Enum
from typing import Optional

TARGET_TAG = "target"
OBSTACLE_TAGS = ("obstacle", "wall")


class BehaviorType(Enum):
    """Fixed role of an agent, selecting its reward logic and Q-table."""

    CHASE = 0
    FLEE = 1


def calculate_reward(
    behavior: BehaviorType,
    old_distance: float,
    new_distance: float,
    time_penalty: float,
    move_closer_reward: float,
    move_away_reward: float,
) -> float:
    """
    Compute the per-step reward from the change in distance to the target.

    Args:
        behavior: Agent behavior type
        old_distance: Distance to target before moving
        new_distance: Distance to target after moving
        time_penalty: Constant added every step (usually negative)
        move_closer_reward: Reward for moving in the desired direction
        move_away_reward: Reward otherwise (including no change)

    Returns:
        Scalar reward
    """
    reward = time_penalty

    if behavior is BehaviorType.CHASE:
        improved = new_distance < old_distance
    elif behavior is BehaviorType.FLEE:
        improved = new_distance > old_distance
    else:
        raise ValueError(f"Unknown behavior: {behavior}")

    reward += move_closer_reward if improved else move_away_reward
    return reward


def collision_reward(
    behavior: BehaviorType,
    tag: str,
    touch_target_reward: float,
    wall_collision_reward: float,
) -> Optional[float]:
    """
    Compute the terminal reward for a collision event.

    Returns:
        Override reward, or None if the collision tag is ignored
    """
    if tag == TARGET_TAG:
        if behavior is BehaviorType.CHASE:
            return touch_target_reward
        return -touch_target_reward

    if tag in OBSTACLE_TAGS:
        return wall_collision_reward

    return None
