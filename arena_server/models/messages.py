# arena_server/models/messages.py
"""Client message schemas and outbound event names.

Every client->server frame is validated against one of the tagged models
below before it reaches the game service. Anything that does not match
raises ``pydantic.ValidationError``.
"""

import math
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

# Outbound event types
MAP_DATA = "map_data"
CURRENT_PLAYERS = "current_players"
NEW_PLAYER = "new_player"
PLAYER_MOVED = "player_moved"
PROJECTILE_FIRED = "projectile_fired"
PLAYER_KILLED = "player_killed"
ELIMINATED = "eliminated"
PLAYER_REMOVED = "player_removed"

Coordinate = Annotated[float, Field(strict=True, allow_inf_nan=False)]
Identifier = Annotated[str, Field(strict=True, min_length=1, max_length=128)]


class Direction(BaseModel):
    """Unit direction vector of a shot."""

    x: Coordinate
    y: Coordinate


class MoveRequest(BaseModel):
    """Proposed absolute position for the sender's player."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["move"]
    x: Coordinate
    y: Coordinate


class ShootRequest(BaseModel):
    """Request to fire a projectile from (x, y)."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["shoot"]
    x: Coordinate
    y: Coordinate
    direction: Direction

    @model_validator(mode="after")
    def normalize_direction(self):
        length = math.hypot(self.direction.x, self.direction.y)
        if length == 0 or not math.isfinite(length):
            raise ValueError("direction must be a non-zero finite vector")
        self.direction = Direction(
            x=self.direction.x / length, y=self.direction.y / length
        )
        return self


class HitReport(BaseModel):
    """Client claim that a projectile struck a player."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Literal["hit"]
    projectile_id: Identifier = Field(alias="projectileId")
    target_id: Identifier = Field(alias="targetId")


ClientMessage = Annotated[
    Union[MoveRequest, ShootRequest, HitReport], Field(discriminator="type")
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data) -> Union[MoveRequest, ShootRequest, HitReport]:
    """Validate a decoded JSON payload into a client message."""
    return _client_message_adapter.validate_python(data)
