# arena_server/config/settings.py
"""Game configuration constants and settings."""

import os

# Map settings
MAP_WIDTH = 1600
MAP_HEIGHT = 1200

# Static terrain, loaded once at startup
OBSTACLES = [
    {"x": 400, "y": 150, "width": 715, "height": 338, "type": "bigHome"},
    {"x": 100, "y": 1000, "width": 360, "height": 259, "type": "home"},
    {"x": 1050, "y": 750, "width": 409, "height": 406, "type": "pond"},
]

# Player settings
PLAYER_RADIUS = 20
START_KILLS = 0

# Spawn settings
SPAWN_MAX_ATTEMPTS = 100

# Combat settings
RESPAWN_DELAY_MS = int(os.environ.get("RESPAWN_DELAY_MS", 5000))
PROJECTILE_TTL_MS = 5000  # client bullets leave the map well before this
PROJECTILE_PRUNE_INTERVAL = 1.0  # seconds

# Server settings
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 3000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
MAX_MESSAGE_SIZE = 4096  # bytes


def get_game_config(respawn_delay_ms=None):
    """Get the public game configuration as a dictionary."""
    if respawn_delay_ms is None:
        respawn_delay_ms = RESPAWN_DELAY_MS
    return {
        "mapWidth": MAP_WIDTH,
        "mapHeight": MAP_HEIGHT,
        "playerRadius": PLAYER_RADIUS,
        "respawnDelay": respawn_delay_ms,
        "projectileTtl": PROJECTILE_TTL_MS,
    }
