# arena_server/models/entities.py
"""Game entity models and data classes."""

from dataclasses import dataclass


@dataclass
class Player:
    """Represents a live combatant in the arena."""

    id: str
    x: float
    y: float
    letter: str
    kills: int = 0


@dataclass(frozen=True)
class Obstacle:
    """Axis-aligned rectangle of static terrain."""

    x: float
    y: float
    width: float
    height: float
    type: str  # only used by clients to pick a texture


@dataclass
class Projectile:
    """Represents a bullet in flight."""

    id: str
    x: float
    y: float
    dx: float
    dy: float
    owner: str
    createdAt: int  # ms since epoch
