"""WebSocket server for real-time multiplayer communication"""

import logging
import uuid
from typing import Awaitable, Callable, Dict, Optional, Set, Tuple

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from .automation import GameAutomation
from .engine import ShanghaiEngine
from .errors import INTERNAL_ERROR, INVALID_INPUT, PLAYER_NOT_FOUND
from .models import ActionResult
from .rules import RuleConfig
from .scheduler import RoomScheduler
from .ws.events import (
    EventType, create_error_event, create_game_event, create_join_success_event,
    create_state_full_event, parse_inbound_event,
)

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks sockets by client id and which room/player each one is seated as."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.room_connections: Dict[str, Set[str]] = {}
        self.client_seats: Dict[str, Tuple[str, str]] = {}

    async def connect(self, websocket: WebSocket, client_id: str):
        await websocket.accept()
        self.active_connections[client_id] = websocket
        logger.info(f"Client {client_id} connected")

    def disconnect(self, client_id: str) -> Optional[Tuple[str, str]]:
        """Forget a client; returns the (room, player) it was seated as, if any."""
        self.active_connections.pop(client_id, None)
        seat = self.client_seats.pop(client_id, None)
        if seat is not None:
            room_code = seat[0]
            clients = self.room_connections.get(room_code)
            if clients is not None:
                clients.discard(client_id)
                if not clients:
                    del self.room_connections[room_code]
        logger.info(f"Client {client_id} disconnected")
        return seat

    def add_to_room(self, client_id: str, room_code: str, player_name: str):
        self.room_connections.setdefault(room_code, set()).add(client_id)
        self.client_seats[client_id] = (room_code, player_name)

    def seat_of(self, client_id: str) -> Optional[Tuple[str, str]]:
        return self.client_seats.get(client_id)

    def clients_in(self, room_code: str) -> Set[str]:
        return set(self.room_connections.get(room_code, ()))

    async def send_personal_message(self, message: BaseModel, client_id: str):
        websocket = self.active_connections.get(client_id)
        if websocket is None:
            return
        try:
            await websocket.send_text(message.model_dump_json())
        except Exception as e:
            logger.error(f"Error sending message to {client_id}: {e}")


class GameWebSocketManager:
    """
    Glue between sockets and the engine: parses inbound events, applies them,
    lets the automation schedule bots and buy deadlines, and pushes each
    client its own view of the room.
    """

    def __init__(self, rules: Optional[RuleConfig] = None, seed: Optional[int] = None):
        self.engine = ShanghaiEngine(rules=rules, seed=seed)
        self.scheduler = RoomScheduler()
        self.automation = GameAutomation(self.engine, self.scheduler, on_change=self.broadcast_room)
        self.connection_manager = ConnectionManager()
        self.handlers: Dict[EventType, Callable[[str, object], Awaitable[None]]] = {
            EventType.JOIN: self.join_room,
            EventType.START: self.start_game,
            EventType.DRAW: self.draw,
            EventType.PICK_UP_DISCARD: self.pick_up_discard,
            EventType.BUY: self.buy,
            EventType.DISCARD: self.discard,
            EventType.MELD: self.meld,
            EventType.LAY_OFF: self.lay_off,
            EventType.REORDER: self.reorder,
            EventType.REQUEST_STATE: self.send_game_state,
        }

    async def handle_websocket(self, websocket: WebSocket, client_id: Optional[str] = None):
        if not client_id:
            client_id = str(uuid.uuid4())[:8]

        await self.connection_manager.connect(websocket, client_id)
        try:
            while True:
                raw = await websocket.receive_text()
                await self.handle_message(raw, client_id)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for client {client_id}")
        except Exception as e:
            logger.error(f"WebSocket error for client {client_id}: {e}")
        finally:
            await self.handle_disconnect(client_id)

    async def handle_message(self, raw: str, client_id: str):
        try:
            event = parse_inbound_event(orjson.loads(raw))
        except ValueError as e:
            # orjson.JSONDecodeError is a ValueError too
            await self.send_error(client_id, INVALID_INPUT, str(e))
            return

        try:
            await self.handlers[event.type](client_id, event)
        except Exception as e:
            logger.error(f"Error handling {event.type.value} from {client_id}: {e}", exc_info=True)
            await self.send_error(client_id, INTERNAL_ERROR, "Internal server error")

    async def handle_disconnect(self, client_id: str):
        seat = self.connection_manager.disconnect(client_id)
        if seat is None:
            return
        room_code, player_name = seat
        result = self.engine.leave_room(room_code, player_name)
        if not result.success:
            return
        if result.payload['room_closed']:
            self.automation.forget_room(room_code)
            return
        self.automation.after_action(room_code)
        await self.broadcast_room(room_code)

    # -- lobby -----------------------------------------------------------

    async def join_room(self, client_id: str, event):
        if self.connection_manager.seat_of(client_id) is not None:
            await self.send_error(client_id, INVALID_INPUT, "Already seated in a room")
            return

        result = self.engine.create_or_join_room(event.name, event.room_id, event.ai_count)
        if not result.success:
            await self.send_error(client_id, result.code, result.message)
            return

        payload = result.payload
        player_name = event.name.strip()
        self.connection_manager.add_to_room(client_id, payload['room_code'], player_name)
        await self.connection_manager.send_personal_message(
            create_join_success_event(payload['room_code'], player_name, payload['is_host'], payload['ai_players']),
            client_id
        )
        await self.broadcast_room(payload['room_code'])

    async def start_game(self, client_id: str, event):
        await self._seated_action(client_id, self.engine.start_room)

    # -- turn actions ----------------------------------------------------

    async def draw(self, client_id: str, event):
        await self._seated_action(client_id, self.engine.draw)

    async def pick_up_discard(self, client_id: str, event):
        await self._seated_action(client_id, self.engine.pick_up_discard)

    async def buy(self, client_id: str, event):
        await self._seated_action(client_id, lambda room, name: self.engine.buy_discard(room, name, event.wants))

    async def discard(self, client_id: str, event):
        await self._seated_action(client_id, lambda room, name: self.engine.discard(room, name, event.card_index))

    async def meld(self, client_id: str, event):
        await self._seated_action(
            client_id,
            lambda room, name: self.engine.make_meld(room, name, event.card_indices, event.meld_type.value)
        )

    async def lay_off(self, client_id: str, event):
        await self._seated_action(
            client_id,
            lambda room, name: self.engine.lay_off(room, name, event.card_index, event.target_player, event.meld_index)
        )

    async def reorder(self, client_id: str, event):
        await self._seated_action(client_id, lambda room, name: self.engine.reorder_hand(room, name, event.order))

    # -- state -----------------------------------------------------------

    async def send_game_state(self, client_id: str, event=None):
        seat = self.connection_manager.seat_of(client_id)
        if seat is None:
            await self.send_error(client_id, PLAYER_NOT_FOUND, "Join a room first")
            return
        room_code, player_name = seat
        snapshot = self.engine.get_snapshot(room_code, player_name)
        if snapshot.success:
            await self.connection_manager.send_personal_message(create_state_full_event(snapshot.payload), client_id)

    async def broadcast_room(self, room_code: str):
        """Push pending lifecycle events, then each client's own view of the room."""
        clients = self.connection_manager.clients_in(room_code)
        events = self.engine.drain_events(room_code)
        if not clients:
            return

        for game_event in events:
            message = create_game_event(game_event.type, game_event.data)
            for client_id in clients:
                await self.connection_manager.send_personal_message(message, client_id)

        for client_id in clients:
            seat = self.connection_manager.seat_of(client_id)
            if seat is None:
                continue
            snapshot = self.engine.get_snapshot(room_code, seat[1])
            if snapshot.success:
                await self.connection_manager.send_personal_message(create_state_full_event(snapshot.payload), client_id)

    async def send_error(self, client_id: str, code: str, message: str):
        await self.connection_manager.send_personal_message(create_error_event(code, message), client_id)

    async def shutdown(self):
        await self.scheduler.shutdown()

    async def _seated_action(self, client_id: str, action: Callable[[str, str], ActionResult]):
        seat = self.connection_manager.seat_of(client_id)
        if seat is None:
            await self.send_error(client_id, PLAYER_NOT_FOUND, "Join a room first")
            return
        room_code, player_name = seat
        result = action(room_code, player_name)
        if not result.success:
            await self.send_error(client_id, result.code, result.message)
            return
        self.automation.after_action(room_code)
        await self.broadcast_room(room_code)
