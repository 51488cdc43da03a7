# arena_server/services/websocket_service.py
"""WebSocket connection management and message handling."""

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .broadcast_service import BroadcastService
from .game_service import GameService
from ..config.settings import (
    MAX_MESSAGE_SIZE,
    PROJECTILE_PRUNE_INTERVAL,
    RESPAWN_DELAY_MS,
    get_game_config,
)
from ..models.messages import (
    CURRENT_PLAYERS,
    ELIMINATED,
    MAP_DATA,
    NEW_PLAYER,
    PLAYER_KILLED,
    PLAYER_MOVED,
    PLAYER_REMOVED,
    PROJECTILE_FIRED,
    HitReport,
    MoveRequest,
    ShootRequest,
    parse_client_message,
)

logger = logging.getLogger(__name__)


class WebSocketService:
    """Manages WebSocket connections and message routing."""

    def __init__(
        self,
        game_service: GameService,
        broadcaster: Optional[BroadcastService] = None,
        respawn_delay: float = RESPAWN_DELAY_MS / 1000,
    ):
        self.game_service = game_service
        self.broadcaster = broadcaster or BroadcastService()
        self.respawn_delay = respawn_delay
        self._prune_task = None
        self._respawn_tasks: Set[asyncio.Task] = set()

    def start_background_tasks(self):
        """Start background tasks like projectile pruning."""
        if not self._prune_task:
            self._prune_task = asyncio.create_task(self._projectile_prune_loop())

    async def shutdown(self):
        """Cancel background work, including respawns that have not fired."""
        tasks = list(self._respawn_tasks)
        if self._prune_task:
            tasks.append(self._prune_task)
            self._prune_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _projectile_prune_loop(self):
        """Background task to drop projectiles nobody reported a hit for."""
        while True:
            await asyncio.sleep(PROJECTILE_PRUNE_INTERVAL)
            expired = self.game_service.prune_projectiles()
            if expired:
                logger.debug("Pruned %d expired projectiles", len(expired))

    async def handle_connection(self, websocket: WebSocket):
        """Handle a new WebSocket connection."""
        await websocket.accept()

        player = self.game_service.open_session()
        session_id = player.id
        self.broadcaster.register(session_id, websocket)
        logger.info("Player %s connected from %s", session_id, websocket.client)

        try:
            # Send initial game state
            await self._send_initial_state(session_id)

            # Notify other players about new player
            await self.broadcaster.broadcast(
                {"type": NEW_PLAYER, "player": asdict(player)}, exclude=session_id
            )

            # Handle messages from client
            await self._handle_client_messages(websocket, session_id)

        except WebSocketDisconnect:
            pass
        except Exception:
            logger.exception("WebSocket error for player %s", session_id)
        finally:
            await self._handle_disconnect(session_id)

    async def _send_initial_state(self, session_id: str):
        """Send map and roster to a newly connected player."""
        config = get_game_config(respawn_delay_ms=int(self.respawn_delay * 1000))
        await self.broadcaster.send_to(
            session_id,
            {
                "type": MAP_DATA,
                "obstacles": self.game_service.get_all_obstacles(),
                "config": config,
            },
        )
        await self._send_roster(session_id)

    async def _send_roster(self, session_id: str):
        await self.broadcaster.send_to(
            session_id,
            {
                "type": CURRENT_PLAYERS,
                "playerId": session_id,
                "players": self.game_service.get_all_players(),
            },
        )

    async def _handle_client_messages(self, websocket: WebSocket, session_id: str):
        """Handle incoming messages from a client."""
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))

            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes") or b""
            message = self._decode_message(session_id, raw)
            if message is not None:
                await self._process_message(session_id, message)

    def _decode_message(self, session_id: str, raw):
        """Parse and validate one frame; malformed frames yield None."""
        size = len(raw.encode() if isinstance(raw, str) else raw)
        if size > MAX_MESSAGE_SIZE:
            logger.warning("Dropping %d byte message from %s", size, session_id)
            return None

        try:
            return parse_client_message(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
            logger.warning("Invalid JSON from %s: %s", session_id, e)
        except ValidationError as e:
            logger.warning(
                "Rejected message from %s: %d validation errors",
                session_id,
                e.error_count(),
            )
        return None

    async def _process_message(self, session_id: str, message):
        """Process a single validated message from a client."""
        logger.debug("Message from %s: %r", session_id, message)

        if isinstance(message, MoveRequest):
            await self._handle_move(session_id, message)
        elif isinstance(message, ShootRequest):
            await self._handle_shoot(session_id, message)
        elif isinstance(message, HitReport):
            await self._handle_hit(session_id, message)

    async def _handle_move(self, session_id: str, message: MoveRequest):
        """Handle a proposed position; rejections are silent."""
        delta = self.game_service.move_player(session_id, message.x, message.y)
        if delta:
            await self.broadcaster.broadcast(
                {"type": PLAYER_MOVED, **delta}, exclude=session_id
            )

    async def _handle_shoot(self, session_id: str, message: ShootRequest):
        """Handle a shot, announcing the projectile to everyone."""
        projectile = self.game_service.create_projectile(
            session_id,
            message.x,
            message.y,
            message.direction.x,
            message.direction.y,
        )
        if projectile:
            await self.broadcaster.broadcast(
                {"type": PROJECTILE_FIRED, "projectile": asdict(projectile)}
            )

    async def _handle_hit(self, session_id: str, message: HitReport):
        """Handle a hit report and start the victim's respawn timer."""
        result = self.game_service.resolve_hit(
            session_id, message.projectile_id, message.target_id
        )
        if not result:
            return

        victim_id = result["victim"]
        epoch = self.game_service.session_epoch(victim_id)

        await self.broadcaster.broadcast({"type": PLAYER_KILLED, **result})
        await self.broadcaster.send_to(victim_id, {"type": ELIMINATED})
        await self.broadcaster.broadcast({"type": PLAYER_REMOVED, "playerId": victim_id})

        # Scheduled last so new_player can never overtake the removal
        if epoch is not None:
            self._schedule_respawn(victim_id, epoch)

    def _schedule_respawn(self, session_id: str, epoch: int):
        task = asyncio.create_task(self._respawn_after(session_id, epoch))
        self._respawn_tasks.add(task)
        task.add_done_callback(self._respawn_tasks.discard)

    async def _respawn_after(self, session_id: str, epoch: int):
        """Respawn an eliminated player once the delay has elapsed."""
        await asyncio.sleep(self.respawn_delay)

        player = self.game_service.respawn_player(session_id, epoch)
        if player is None:
            logger.info("Dropping stale respawn for %s", session_id)
            return

        logger.info("Player %s respawned at (%.0f, %.0f)", session_id, player.x, player.y)
        await self.broadcaster.broadcast({"type": NEW_PLAYER, "player": asdict(player)})
        await self._send_roster(session_id)

    async def _handle_disconnect(self, session_id: str):
        """Handle client disconnection."""
        self.broadcaster.unregister(session_id)
        was_alive = session_id in self.game_service.players
        if not self.game_service.close_session(session_id):
            return
        logger.info("Player %s disconnected", session_id)

        # An eliminated player was already announced as removed
        if was_alive:
            await self.broadcaster.broadcast(
                {"type": PLAYER_REMOVED, "playerId": session_id}
            )
