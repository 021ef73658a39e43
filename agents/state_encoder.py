"""
State discretization for tabular Q-learning.

Maps continuous agent/target positions into a discrete state key:
- Agent position quantized to a grid (round half to even)
- Direction to the target discretized into 8 compass buckets of 45 degrees

Buckets are counted counter-clockwise from due east:
    0: E, 1: NE, 2: N, 3: NW, 4: W, 5: SW, 6: S, 7: SE
Each bucket is centered on its compass direction; a boundary angle
(22.5, 67.5, ...) belongs to the higher bucket.
"""

import math
import numpy as np
from typing import Sequence

StateKey = str

NUM_DIRECTIONS = 8
BUCKET_WIDTH = 360.0 / NUM_DIRECTIONS
SEPARATOR = "_"


def angle_to_bucket(angle_deg: float) -> int:
    """
    Convert an angle in degrees into a compass bucket.

    Args:
        angle_deg: Angle measured counter-clockwise from due east (any range)

    Returns:
        Bucket index in [0, 8)
    """
    angle = angle_deg % 360.0
    return int(math.floor((angle + BUCKET_WIDTH / 2) / BUCKET_WIDTH)) % NUM_DIRECTIONS


def discretize_direction(direction: Sequence[float]) -> int:
    """
    Discretize a 2D direction vector into a compass bucket.

    A zero-length vector (agent on top of the target) resolves to bucket 0.
    """
    vector = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        return 0

    unit = vector / norm
    angle = math.degrees(math.atan2(unit[1], unit[0]))
    return angle_to_bucket(angle)


def quantize_position(position: Sequence[float], grid_size: float = 1.0):
    """Round a position onto the grid, returning integer cell coordinates."""
    if grid_size <= 0:
        raise ValueError(f"grid_size must be positive, got {grid_size}")

    x = int(np.rint(position[0] / grid_size))
    y = int(np.rint(position[1] / grid_size))
    return x, y


def encode_state(
    agent_position: Sequence[float],
    target_position: Sequence[float],
    grid_size: float = 1.0,
) -> StateKey:
    """
    Encode agent and target positions into a state key.

    Args:
        agent_position: Agent position [x, y]
        target_position: Target position [x, y]
        grid_size: Grid cell size in world units (must be positive)

    Returns:
        State key of the form "x_y_direction", e.g. "3_-2_5"
    """
    x, y = quantize_position(agent_position, grid_size)
    to_target = (
        float(target_position[0]) - float(agent_position[0]),
        float(target_position[1]) - float(agent_position[1]),
    )
    bucket = discretize_direction(to_target)
    return SEPARATOR.join((str(x), str(y), str(bucket)))


def decode_state(state: StateKey):
    """Split a state key back into (x, y, direction bucket)."""
    x, y, bucket = state.split(SEPARATOR)
    return int(x), int(y), int(bucket)
