# arena_server/main.py
"""Application factory and command line entry point."""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import GameAPI
from .config.settings import HOST, LOG_LEVEL, PORT, RESPAWN_DELAY_MS
from .services.game_service import GameService
from .services.websocket_service import WebSocketService

logger = logging.getLogger(__name__)


def create_app(
    game_service: Optional[GameService] = None,
    respawn_delay: Optional[float] = None,
) -> FastAPI:
    """Wire the game, websocket and HTTP services into a FastAPI app."""
    game_service = game_service or GameService()
    if respawn_delay is None:
        respawn_delay = RESPAWN_DELAY_MS / 1000
    websocket_service = WebSocketService(game_service, respawn_delay=respawn_delay)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        websocket_service.start_background_tasks()
        yield
        await websocket_service.shutdown()

    app = FastAPI(title="Arena Server", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(
        GameAPI(game_service, respawn_delay_ms=int(respawn_delay * 1000)).router
    )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket_service.handle_connection(websocket)

    app.state.game_service = game_service
    app.state.websocket_service = websocket_service
    return app


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Arena shooter game server")
    parser.add_argument("--host", default=HOST, help="Bind address for the server")
    parser.add_argument("--port", type=int, default=PORT, help="Port for the server")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    return parser.parse_args()


def main():
    import uvicorn

    args = parse_args()
    logging.basicConfig(
        level=args.log_level.upper(), format="[%(asctime)s] %(levelname)s %(message)s"
    )
    logger.info("Server is running on %s:%s", args.host, args.port)
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
