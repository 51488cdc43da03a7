# arena_server/utils/helpers.py
"""Utility functions and helpers."""

import math
import random
from typing import Iterable, Tuple

from ..models.entities import Obstacle


def within_bounds(
    x: float, y: float, radius: float, width: float, height: float
) -> bool:
    """Check that a player centred at (x, y) stays inside the map."""
    return radius <= x <= width - radius and radius <= y <= height - radius


def overlaps_obstacle(x: float, y: float, radius: float, obstacle: Obstacle) -> bool:
    """Check if the square footprint of side 2*radius overlaps an obstacle."""
    return (
        x + radius > obstacle.x
        and x - radius < obstacle.x + obstacle.width
        and y + radius > obstacle.y
        and y - radius < obstacle.y + obstacle.height
    )


def collides_with_terrain(
    x: float, y: float, radius: float, obstacles: Iterable[Obstacle]
) -> bool:
    """Check a position against every obstacle."""
    return any(overlaps_obstacle(x, y, radius, obstacle) for obstacle in obstacles)


def is_valid_position(
    x: float,
    y: float,
    radius: float,
    width: float,
    height: float,
    obstacles: Iterable[Obstacle],
) -> bool:
    """Check map bounds and terrain for a proposed player position."""
    return within_bounds(x, y, radius, width, height) and not collides_with_terrain(
        x, y, radius, obstacles
    )


def find_spawn_position(
    obstacles: Iterable[Obstacle],
    width: float,
    height: float,
    radius: float,
    rng: random.Random,
    max_attempts: int,
) -> Tuple[float, float]:
    """Pick a random position clear of terrain, falling back to the map centre."""
    obstacles = list(obstacles)
    for _ in range(max_attempts):
        x = rng.uniform(radius, width - radius)
        y = rng.uniform(radius, height - radius)
        if not collides_with_terrain(x, y, radius, obstacles):
            return x, y

    # May itself sit inside terrain on a fully blocked map
    return width / 2, height / 2


def normalize_vector(x: float, y: float) -> Tuple[float, float]:
    """Scale (x, y) to unit length."""
    length = math.hypot(x, y)
    if length == 0:
        raise ValueError("cannot normalize a zero-length vector")
    return x / length, y / length
