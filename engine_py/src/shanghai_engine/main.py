"""FastAPI main application for the Shanghai game backend"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .rules import RuleConfig, rules_from_env
from .websocket_server import GameWebSocketManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(rules: Optional[RuleConfig] = None, seed: Optional[int] = None) -> FastAPI:
    game_manager = GameWebSocketManager(rules=rules, seed=seed)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await game_manager.shutdown()

    app = FastAPI(title="Shanghai Rummy API", version="1.0.0", lifespan=lifespan)
    app.state.game_manager = game_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Shanghai Rummy API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "rooms": len(game_manager.engine.rooms),
            "connections": len(game_manager.connection_manager.active_connections),
        }

    @app.get("/rooms/{room_code}")
    async def room_info(room_code: str):
        result = game_manager.engine.get_public_info(room_code.upper())
        if not result.success:
            raise HTTPException(status_code=404, detail=result.message)
        return result.payload

    @app.websocket("/ws/{client_id}")
    async def websocket_endpoint(websocket: WebSocket, client_id: str):
        await game_manager.handle_websocket(websocket, client_id)

    @app.websocket("/ws")
    async def websocket_endpoint_anonymous(websocket: WebSocket):
        await game_manager.handle_websocket(websocket)

    logger.info(f"Shanghai app created (players {game_manager.engine.rules.min_players}-{game_manager.engine.rules.max_players})")
    return app


app = create_app(rules_from_env())
