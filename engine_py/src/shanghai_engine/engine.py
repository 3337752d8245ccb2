"""Room manager: owns every Game by room code and exposes the action API"""

import logging
import random
import string
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence

from .constants import ROOM_CODE_LENGTH
from .errors import GameError, INVALID_INPUT, ROOM_NOT_FOUND
from .game import Game
from .models import ActionResult, GameEvent
from .rules import RuleConfig, default_rules
from .serialization import get_public_room_info, sanitize_state

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


class ShanghaiEngine:
    """
    Registry of live rooms. All mutations of a room run under that room's
    lock, so no two actions ever touch the same Game at once.

    Every public action returns an ActionResult; GameError raised by the
    state machine is turned into a failed result here.
    """

    def __init__(self, rules: Optional[RuleConfig] = None, seed: Optional[int] = None):
        self.rules = rules or default_rules
        self.rooms: Dict[str, Game] = {}
        self.room_locks = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()
        self._rng = random.Random(seed)

    def get_room(self, room_code: str) -> Optional[Game]:
        return self.rooms.get(room_code)

    # -- lobby -----------------------------------------------------------

    def create_or_join_room(
        self,
        player_name: str,
        room_code: Optional[str] = None,
        ai_count: int = 0
    ) -> ActionResult:
        """
        Join room_code, or create a new room when no code (or an unknown code)
        is given. The creator becomes host and brings ai_count bots.
        """
        name = (player_name or "").strip() if isinstance(player_name, str) else ""
        if not name:
            return ActionResult.error(INVALID_INPUT, "Name required")
        if isinstance(ai_count, bool) or not isinstance(ai_count, int) or ai_count < 0:
            return ActionResult.error(INVALID_INPUT, "AI opponent count must be a non-negative integer")
        room_code = room_code.strip().upper() if isinstance(room_code, str) else None

        with self._registry_lock:
            game = self.rooms.get(room_code) if room_code else None
            if game is None:
                room_code = self._new_room_code()
                game = Game(room_code, name, rules=self.rules, rng=random.Random(self._rng.random()))
                self.rooms[room_code] = game
                created = True
                logger.info(f"Room {room_code} created by {name}")
            else:
                created = False

        def join(g: Game) -> Dict[str, Any]:
            g.add_player(name)
            if created and ai_count:
                g.add_bots(ai_count)
            return {
                'room_code': g.code,
                'is_host': name == g.host_name,
                'roster': list(g.players),
                'ai_players': g.bot_names,
            }

        result = self._run(room_code, join)
        if not result.success and created:
            self.close_room(room_code)
        return result

    def start_room(self, room_code: str, requester: str) -> ActionResult:
        def start(g: Game) -> Dict[str, Any]:
            g.start(requester)
            return {'round': g.current_round, 'current_player': g.current_player}
        return self._run(room_code, start)

    def leave_room(self, room_code: str, player_name: str) -> ActionResult:
        """Remove a player; the room is torn down once no human remains."""
        def leave(g: Game) -> Dict[str, Any]:
            g.remove_player(player_name)
            return {'remaining': list(g.players)}

        result = self._run(room_code, leave)
        if not result.success:
            return result
        game = self.get_room(room_code)
        room_closed = game is not None and not game.human_names
        if room_closed:
            self.close_room(room_code)
        result.payload['room_closed'] = room_closed
        return result

    def close_room(self, room_code: str):
        with self._registry_lock:
            self.rooms.pop(room_code, None)
            self.room_locks.pop(room_code, None)
        logger.info(f"Room {room_code} closed")

    # -- turn actions ----------------------------------------------------

    def draw(self, room_code: str, player_name: str) -> ActionResult:
        return self._run(room_code, lambda g: {'card': g.draw_card(player_name).to_dict()})

    def pick_up_discard(self, room_code: str, player_name: str) -> ActionResult:
        return self._run(room_code, lambda g: {'card': g.pick_up_discard(player_name).to_dict()})

    def buy_discard(self, room_code: str, player_name: str, wants: bool = True) -> ActionResult:
        def buy(g: Game) -> Dict[str, Any]:
            g.request_buy(player_name, wants)
            return {
                'wants': bool(wants),
                'window_id': g.buy_phase.window_id,
                'all_responded': g.buy_phase.all_responded(),
            }
        return self._run(room_code, buy)

    def resolve_buy_window(self, room_code: str, window_id: Optional[int] = None) -> ActionResult:
        """Close the buy window; a stale window_id is a no-op success."""
        def resolve(g: Game) -> Dict[str, Any]:
            if window_id is not None and (not g.buy_phase.active or g.buy_phase.window_id != window_id):
                return {'buyer': None, 'stale': True}
            return {'buyer': g.resolve_buy_phase(), 'stale': False}
        return self._run(room_code, resolve)

    def discard(self, room_code: str, player_name: str, card_index: int) -> ActionResult:
        def discard(g: Game) -> Dict[str, Any]:
            outcome = g.discard_card(player_name, card_index)
            return {
                'card': outcome['card'].to_dict(),
                'round_result': _round_result(outcome['round_result']),
            }
        return self._run(room_code, discard)

    def make_meld(self, room_code: str, player_name: str, card_indices: Sequence[int], meld_type: str) -> ActionResult:
        if not isinstance(card_indices, (list, tuple)):
            return ActionResult.error(INVALID_INPUT, "Card indices must be a list")

        def meld(g: Game) -> Dict[str, Any]:
            outcome = g.make_meld(player_name, card_indices, meld_type)
            return {
                'meld': outcome['meld'].to_dict(),
                'round_result': _round_result(outcome['round_result']),
            }
        return self._run(room_code, meld)

    def lay_off(
        self,
        room_code: str,
        player_name: str,
        card_index: int,
        target_player: str,
        target_meld_index: int
    ) -> ActionResult:
        def lay_off(g: Game) -> Dict[str, Any]:
            outcome = g.lay_off(player_name, card_index, target_player, target_meld_index)
            return {
                'card': outcome['card'].to_dict(),
                'round_result': _round_result(outcome['round_result']),
            }
        return self._run(room_code, lay_off)

    def reorder_hand(self, room_code: str, player_name: str, order: Sequence[int]) -> ActionResult:
        if not isinstance(order, (list, tuple)):
            return ActionResult.error(INVALID_INPUT, "Order must be a list of card indices")

        def reorder(g: Game) -> Dict[str, Any]:
            g.reorder_hand(player_name, order)
            return {}
        return self._run(room_code, reorder)

    # -- views -----------------------------------------------------------

    def get_snapshot(self, room_code: str, player_name: Optional[str] = None) -> ActionResult:
        return self._run(room_code, lambda g: sanitize_state(g, player_name), mutates=False)

    def get_public_info(self, room_code: str) -> ActionResult:
        return self._run(room_code, get_public_room_info, mutates=False)

    def drain_events(self, room_code: str) -> List[GameEvent]:
        """Hand pending lifecycle events to the transport (each is returned once)."""
        game = self.get_room(room_code)
        if game is None:
            return []
        with self.room_locks[room_code]:
            return game.pop_events()

    # -- internals -------------------------------------------------------

    def _run(self, room_code: str, action: Callable[[Game], Dict[str, Any]], mutates: bool = True) -> ActionResult:
        game = self.get_room(room_code) if room_code else None
        if game is None:
            return ActionResult.error(ROOM_NOT_FOUND, "Room not found")
        with self.room_locks[room_code]:
            try:
                payload = action(game)
            except GameError as e:
                logger.debug(f"Room {room_code}: rejected action: {e}")
                return ActionResult.error(e.code, e.message)
            if mutates:
                game.version += 1
            return ActionResult.ok(payload)

    def _new_room_code(self) -> str:
        while True:
            code = ''.join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code


def _round_result(result) -> Optional[Dict[str, Any]]:
    return result.to_dict() if result is not None else None
