# arena_server/services/game_service.py
"""Core game logic and state management."""

import logging
import random
import time
import uuid
from dataclasses import asdict
from typing import Dict, Iterable, List, Optional

from ..models.entities import Obstacle, Player, Projectile
from ..config.settings import (
    MAP_WIDTH,
    MAP_HEIGHT,
    OBSTACLES,
    PLAYER_RADIUS,
    PROJECTILE_TTL_MS,
    SPAWN_MAX_ATTEMPTS,
    START_KILLS,
)
from ..utils.helpers import find_spawn_position, is_valid_position, normalize_vector

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class GameService:
    """Authoritative world state: players, projectiles and static terrain.

    Every method runs to completion without awaiting, so callers on a single
    event loop always see a consistent world. Methods that reject an action
    return ``None`` and leave the state untouched.
    """

    def __init__(
        self,
        obstacles: Optional[Iterable[Obstacle]] = None,
        width: float = MAP_WIDTH,
        height: float = MAP_HEIGHT,
        rng: Optional[random.Random] = None,
        projectile_ttl_ms: int = PROJECTILE_TTL_MS,
    ):
        if obstacles is None:
            obstacles = [Obstacle(**data) for data in OBSTACLES]
        self.obstacles = tuple(obstacles)
        self.width = width
        self.height = height
        self.rng = rng or random.Random()
        self.projectile_ttl_ms = projectile_ttl_ms

        self.players: Dict[str, Player] = {}
        self.projectiles: List[Projectile] = []

        # Open sessions and the epoch each was opened under
        self.sessions: Dict[str, int] = {}
        # Kill counts of eliminated players waiting to respawn
        self.retained_kills: Dict[str, int] = {}

        # ID generators
        self.next_epoch = 0
        self.next_projectile_id = 0

    # Session lifecycle
    def open_session(self) -> Player:
        """Register a brand-new session and spawn its player."""
        session_id = uuid.uuid4().hex
        self.sessions[session_id] = self.next_epoch
        self.next_epoch += 1
        return self._spawn_player(session_id, START_KILLS)

    def close_session(self, session_id: str) -> bool:
        """Forget a session, its player and its projectiles."""
        if session_id not in self.sessions:
            return False

        del self.sessions[session_id]
        self.players.pop(session_id, None)
        self.retained_kills.pop(session_id, None)
        self.projectiles = [p for p in self.projectiles if p.owner != session_id]
        return True

    def session_epoch(self, session_id: str) -> Optional[int]:
        return self.sessions.get(session_id)

    def spawn_position(self):
        """Allocate a terrain-free spawn point."""
        return find_spawn_position(
            self.obstacles,
            self.width,
            self.height,
            PLAYER_RADIUS,
            self.rng,
            SPAWN_MAX_ATTEMPTS,
        )

    def _spawn_player(self, session_id: str, kills: int) -> Player:
        x, y = self.spawn_position()
        player = Player(
            id=session_id,
            x=x,
            y=y,
            letter=session_id[:1].upper(),
            kills=kills,
        )
        self.players[session_id] = player
        return player

    # Movement
    def is_valid_position(self, x: float, y: float) -> bool:
        return is_valid_position(
            x, y, PLAYER_RADIUS, self.width, self.height, self.obstacles
        )

    def move_player(self, player_id: str, x: float, y: float) -> Optional[dict]:
        """Commit a proposed position if it is inside the map and clear of terrain."""
        player = self.players.get(player_id)
        if player is None or not self.is_valid_position(x, y):
            return None

        player.x = x
        player.y = y
        return {"id": player.id, "x": player.x, "y": player.y}

    # Combat
    def create_projectile(
        self, owner_id: str, x: float, y: float, dx: float, dy: float
    ) -> Optional[Projectile]:
        """Create a projectile owned by a live player."""
        if owner_id not in self.players:
            return None

        dx, dy = normalize_vector(dx, dy)
        projectile = Projectile(
            id=f"{owner_id}_{self.next_projectile_id}",
            x=x,
            y=y,
            dx=dx,
            dy=dy,
            owner=owner_id,
            createdAt=_now_ms(),
        )
        self.next_projectile_id += 1
        self.projectiles.append(projectile)
        return projectile

    def remove_projectile(self, projectile_id: str) -> bool:
        for index, projectile in enumerate(self.projectiles):
            if projectile.id == projectile_id:
                del self.projectiles[index]
                return True
        return False

    def resolve_hit(
        self, reporter_id: str, projectile_id: str, target_id: str
    ) -> Optional[dict]:
        """Honor a client's hit report.

        The claim is trusted as-is: no geometry is re-checked. The named
        projectile is always discarded. A kill is only recorded when both
        reporter and target are alive and distinct.
        """
        self.remove_projectile(projectile_id)

        reporter = self.players.get(reporter_id)
        if reporter is None or target_id == reporter_id:
            return None
        victim = self.players.pop(target_id, None)
        if victim is None:
            return None

        reporter.kills += 1
        self.retained_kills[target_id] = victim.kills
        logger.info(
            "Player %s eliminated %s (%d kills)", reporter_id, target_id, reporter.kills
        )
        return {"killer": reporter_id, "victim": target_id, "kills": reporter.kills}

    def respawn_player(self, session_id: str, epoch: int) -> Optional[Player]:
        """Bring an eliminated player back if its session is still the same one."""
        if self.sessions.get(session_id) != epoch or session_id in self.players:
            return None

        kills = self.retained_kills.pop(session_id, START_KILLS)
        return self._spawn_player(session_id, kills)

    def prune_projectiles(self, now_ms: Optional[int] = None) -> List[str]:
        """Drop projectiles older than the configured lifetime."""
        if now_ms is None:
            now_ms = _now_ms()
        expired = [
            p.id for p in self.projectiles if now_ms - p.createdAt >= self.projectile_ttl_ms
        ]
        if expired:
            self.projectiles = [
                p for p in self.projectiles if now_ms - p.createdAt < self.projectile_ttl_ms
            ]
        return expired

    # Getter methods for game state
    def get_all_players(self) -> Dict[str, dict]:
        """Get the roster keyed by player id."""
        return {pid: asdict(player) for pid, player in self.players.items()}

    def get_all_obstacles(self) -> List[dict]:
        """Get all obstacles as dictionaries."""
        return [asdict(obstacle) for obstacle in self.obstacles]

    def get_all_projectiles(self) -> List[dict]:
        """Get all projectiles in flight as dictionaries."""
        return [asdict(projectile) for projectile in self.projectiles]

    def get_stats(self) -> dict:
        return {
            "totalPlayers": len(self.players),
            "totalSessions": len(self.sessions),
            "pendingRespawns": len(self.sessions) - len(self.players),
            "totalProjectiles": len(self.projectiles),
        }
