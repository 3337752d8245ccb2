"""Drives bot turns and buy-window deadlines for every room"""

import logging
import random
from typing import Awaitable, Callable, Dict, Optional, Tuple

from .bots import BaseBot, BotAction, PlayerView, create_bot
from .constants import PHASE_PLAY
from .engine import ShanghaiEngine
from .game import Game
from .models import ActionResult
from .scheduler import RoomScheduler

logger = logging.getLogger(__name__)


class GameAutomation:
    """
    Watches rooms after every change and schedules what happens without a
    human: bot turns (draw, then melds and lay-offs, then discard, each after
    a thinking delay) and the closing of buy windows.

    Every scheduled step re-checks that the room is still on the same turn or
    window before acting, because humans, disconnects and other timers may
    have changed the room while it waited.
    """

    def __init__(
        self,
        engine: ShanghaiEngine,
        scheduler: Optional[RoomScheduler] = None,
        on_change: Optional[Callable[[str], Awaitable[None]]] = None,
        rng: Optional[random.Random] = None
    ):
        self.engine = engine
        self.scheduler = scheduler or RoomScheduler()
        self.on_change = on_change
        self.rng = rng or random.Random()
        self._bots: Dict[Tuple[str, str], BaseBot] = {}
        self._scheduled_turns: Dict[str, int] = {}
        self._scheduled_windows: Dict[str, int] = {}

    def after_action(self, room_code: str):
        """Schedule whatever the room needs next. Safe to call after any change."""
        game = self.engine.get_room(room_code)
        if game is None or game.phase != PHASE_PLAY:
            return
        if game.buy_phase.active:
            self._handle_buy_window(room_code, game)
        else:
            self._schedule_bot_turn(room_code, game)

    def forget_room(self, room_code: str):
        """Cancel timers and drop bot state for a room that has been closed."""
        self.scheduler.cancel_room(room_code)
        self._scheduled_turns.pop(room_code, None)
        self._scheduled_windows.pop(room_code, None)
        for key in [k for k in self._bots if k[0] == room_code]:
            del self._bots[key]

    # -- buy windows -----------------------------------------------------

    def _handle_buy_window(self, room_code: str, game: Game):
        window_id = game.buy_phase.window_id
        if self._scheduled_windows.get(room_code) != window_id:
            self._scheduled_windows[room_code] = window_id
            card = game.buy_phase.card
            # Bots answer on the spot
            for name in list(game.buy_phase.eligible):
                if game.is_bot(name):
                    wants = self._bot(room_code, game, name).should_buy(card, PlayerView.from_game(game, name))
                    self.engine.buy_discard(room_code, name, wants)
            if not game.buy_phase.all_responded():
                self.scheduler.schedule(
                    room_code, self.engine.rules.buy_window_seconds,
                    self._on_window_deadline, room_code, window_id
                )
        if game.buy_phase.active and game.buy_phase.all_responded():
            self._resolve_window(room_code, window_id)

    async def _on_window_deadline(self, room_code: str, window_id: int):
        if self._resolve_window(room_code, window_id):
            await self._notify(room_code)

    def _resolve_window(self, room_code: str, window_id: int) -> bool:
        result = self.engine.resolve_buy_window(room_code, window_id)
        if not result.success or result.payload.get('stale'):
            return False
        if result.payload.get('buyer'):
            logger.debug(f"Room {room_code}: {result.payload['buyer']} bought the discard")
        self.after_action(room_code)
        return True

    # -- bot turns -------------------------------------------------------

    def _schedule_bot_turn(self, room_code: str, game: Game):
        name = game.current_player
        if name is None or not game.is_bot(name):
            return
        turn_id = game.turn_id
        if self._scheduled_turns.get(room_code) == turn_id:
            return
        self._scheduled_turns[room_code] = turn_id
        delay = self._bot(room_code, game, name).get_delay(self.rng) * self.engine.rules.ai_delay_scale
        self.scheduler.schedule(room_code, delay, self._bot_draw, room_code, name, turn_id)

    def _still_their_turn(self, room_code: str, name: str, turn_id: int) -> Optional[Game]:
        game = self.engine.get_room(room_code)
        if game is None or game.phase != PHASE_PLAY or game.buy_phase.active:
            return None
        if game.turn_id != turn_id or game.current_player != name:
            return None
        return game

    async def _bot_draw(self, room_code: str, name: str, turn_id: int):
        game = self._still_their_turn(room_code, name, turn_id)
        if game is None or game.turn_state.has_drawn:
            logger.debug(f"Room {room_code}: skipping stale draw for {name}")
            return
        action = self._bot(room_code, game, name).choose_draw(PlayerView.from_game(game, name))
        from_discard = bool(action.data.get('from_discard'))
        result = None
        if from_discard:
            result = self.engine.pick_up_discard(room_code, name)
        if result is None or not result.success:
            result = self.engine.draw(room_code, name)
        if not result.success and not from_discard:
            # Stock and recyclable pile both exhausted; the top discard is still legal
            result = self.engine.pick_up_discard(room_code, name)
        if not result.success:
            logger.warning(f"Room {room_code}: bot {name} could not draw: {result.message}")
            return
        await self._notify(room_code)
        self.scheduler.schedule(
            room_code, self.engine.rules.meld_step_delay * self.engine.rules.ai_delay_scale,
            self._bot_meld, room_code, name, turn_id
        )

    async def _bot_meld(self, room_code: str, name: str, turn_id: int):
        game = self._still_their_turn(room_code, name, turn_id)
        if game is None or not game.turn_state.has_drawn:
            return
        bot = self._bot(room_code, game, name)
        changed = False
        try_melds = True
        while True:
            view = PlayerView.from_game(game, name)
            action = (bot.choose_meld(view) if try_melds else None) or bot.choose_lay_off(view)
            if action is None:
                break
            result = self._apply(room_code, name, action)
            if not result.success:
                logger.debug(f"Room {room_code}: bot {name} {action.type} rejected: {result.message}")
                if action.type == 'meld':
                    # Lay-offs only from here on
                    try_melds = False
                    continue
                break
            changed = True
            if result.payload.get('round_result'):
                # Went out; the next round is already dealt
                self.after_action(room_code)
                await self._notify(room_code)
                return
        if changed:
            await self._notify(room_code)
        self.scheduler.schedule(
            room_code, self.engine.rules.discard_step_delay * self.engine.rules.ai_delay_scale,
            self._bot_discard, room_code, name, turn_id
        )

    async def _bot_discard(self, room_code: str, name: str, turn_id: int):
        game = self._still_their_turn(room_code, name, turn_id)
        if game is None or not game.turn_state.has_drawn:
            return
        action = self._bot(room_code, game, name).choose_discard(PlayerView.from_game(game, name))
        result = self.engine.discard(room_code, name, action.data['index'])
        if not result.success:
            # Any other card that may legally go
            for index in range(len(game.player_data[name].hand)):
                result = self.engine.discard(room_code, name, index)
                if result.success:
                    break
        if not result.success:
            logger.warning(f"Room {room_code}: bot {name} could not discard: {result.message}")
            return
        self.after_action(room_code)
        await self._notify(room_code)

    def _apply(self, room_code: str, name: str, action: BotAction) -> ActionResult:
        if action.type == 'meld':
            return self.engine.make_meld(room_code, name, action.data['indices'], action.data['meld_type'])
        if action.type == 'lay_off':
            return self.engine.lay_off(
                room_code, name, action.data['card_index'],
                action.data['target_player'], action.data['meld_index']
            )
        raise ValueError(f"Unexpected bot action during meld step: {action!r}")

    def _bot(self, room_code: str, game: Game, name: str) -> BaseBot:
        key = (room_code, name)
        if key not in self._bots:
            self._bots[key] = create_bot(name, game.player_data[name].difficulty)
        return self._bots[key]

    async def _notify(self, room_code: str):
        if self.on_change is not None:
            await self.on_change(room_code)
