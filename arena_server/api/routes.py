# arena_server/api/routes.py
"""API routes for the game server."""

from fastapi import APIRouter

from ..config.settings import get_game_config
from ..services.game_service import GameService


class GameAPI:
    """Read-only API routes for game-related endpoints."""

    def __init__(self, game_service: GameService, respawn_delay_ms: int = None):
        self.game_service = game_service
        self.respawn_delay_ms = respawn_delay_ms
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Set up all API routes."""

        @self.router.get("/")
        async def root():
            """Root endpoint."""
            return {"message": "Arena Server Running"}

        @self.router.get("/api/game/config")
        async def get_game_config_endpoint():
            """Get game configuration including map size and respawn delay."""
            return get_game_config(respawn_delay_ms=self.respawn_delay_ms)

        @self.router.get("/api/game/map")
        async def get_map():
            """Get the static obstacle list."""
            return {"obstacles": self.game_service.get_all_obstacles()}

        @self.router.get("/api/game/players")
        async def get_players():
            """Get all live players and projectiles in flight."""
            return {
                "players": self.game_service.get_all_players(),
                "projectiles": self.game_service.get_all_projectiles(),
            }

        @self.router.get("/api/game/stats")
        async def get_game_stats():
            """Get game statistics."""
            return self.game_service.get_stats()
