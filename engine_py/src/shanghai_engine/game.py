"""Round and turn state machine for a single Shanghai room"""

import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from .constants import (
    AI_NAMES, DIFFICULTIES, MELD_RUN, MELD_SET,
    PHASE_LOBBY, PHASE_PLAY, PHASE_ROUND_COMPLETE, PHASE_FINISHED,
    TURN_AWAITING_DRAW, TURN_AWAITING_MELD_OR_DISCARD, TURN_AWAITING_BUY_WINDOW,
    EVENT_PLAYER_JOINED, EVENT_PLAYER_LEFT, EVENT_ROUND_STARTED, EVENT_TURN_ADVANCED,
    EVENT_CARD_MELDED, EVENT_CARD_LAID_OFF, EVENT_BUY_WINDOW_OPENED, EVENT_CARD_BOUGHT,
    EVENT_ROUND_ENDED, EVENT_GAME_COMPLETED,
)
from .deck import Deck
from .errors import (
    GameError, raise_error,
    ROOM_FULL, ROOM_ALREADY_STARTED, NAME_TAKEN, NOT_HOST, INSUFFICIENT_PLAYERS,
    PLAYER_NOT_FOUND, GAME_NOT_IN_PROGRESS, NOT_YOUR_TURN, ALREADY_DRAWN,
    MUST_DRAW_FIRST, NO_CARDS_AVAILABLE, DISCARD_EMPTY, INVALID_CARD_INDEX,
    INVALID_MELD, MUST_KEEP_DISCARD, INSUFFICIENT_MELD_REQUIREMENT, NOT_GONE_DOWN,
    INVALID_LAY_OFF_TARGET, INVALID_LAY_OFF, BUY_WINDOW_OPEN, NO_BUY_WINDOW,
    NOT_ELIGIBLE_TO_BUY, NO_BUYS_LEFT, INVALID_INPUT,
)
from .models import (
    BuyPhase, Card, GameEvent, Meld, PlayerRoundState, RoundResult, TurnState,
)
from .rules import RoundRequirement, RuleConfig, TOTAL_ROUNDS, default_rules, get_requirement
from .scoring import final_standings, score_round
from .validate import (
    lay_off_position, meets_requirement, unmet_requirement_message,
    validate_indices, validate_meld,
)

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 200


class Game:
    """
    One Shanghai room: players, their per-round state, the stock, the discard
    pile and the turn/round state machine.

    Every action validates before it mutates, or reverts what it changed, and
    signals a rejected action by raising GameError. The room manager owns the
    locking; a Game instance is not thread-safe on its own.
    """

    def __init__(
        self,
        code: str,
        host_name: str,
        rules: Optional[RuleConfig] = None,
        rng: Optional[random.Random] = None
    ):
        self.code = code
        self.host_name = host_name
        self.rules = rules or default_rules
        self.rng = rng or random.Random()
        self.players: List[str] = []  # turn order
        self.player_data: Dict[str, PlayerRoundState] = {}
        self.deck: Optional[Deck] = None
        self.discard_pile: List[Card] = []
        self.current_round = 1
        self.current_player_index = 0
        self.turn_state = TurnState()
        self.buy_phase = BuyPhase()
        self.phase = PHASE_LOBBY
        self.version = 0
        self.turn_id = 0  # bumps whenever the active player or round changes
        self.round_winners: List[str] = []
        self.final_results: Optional[Dict[str, Any]] = None
        self.game_log: List[str] = []
        self.events: List[GameEvent] = []
        self._next_seat = 0

    # -- queries ---------------------------------------------------------

    @property
    def requirement(self) -> RoundRequirement:
        return get_requirement(self.current_round)

    @property
    def current_player(self) -> Optional[str]:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def turn_phase(self) -> Optional[str]:
        if self.phase != PHASE_PLAY:
            return None
        if self.buy_phase.active:
            return TURN_AWAITING_BUY_WINDOW
        if self.turn_state.has_drawn:
            return TURN_AWAITING_MELD_OR_DISCARD
        return TURN_AWAITING_DRAW

    @property
    def bot_names(self) -> List[str]:
        return [name for name in self.players if self.player_data[name].is_bot]

    @property
    def human_names(self) -> List[str]:
        return [name for name in self.players if not self.player_data[name].is_bot]

    def is_bot(self, name: str) -> bool:
        data = self.player_data.get(name)
        return bool(data and data.is_bot)

    def discard_top(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    def pop_events(self) -> List[GameEvent]:
        events, self.events = self.events, []
        return events

    # -- lobby -----------------------------------------------------------

    def add_player(self, name: str, is_bot: bool = False, difficulty: Optional[str] = None) -> PlayerRoundState:
        if self.phase != PHASE_LOBBY:
            raise_error(ROOM_ALREADY_STARTED, "Game already started")
        name = (name or "").strip()
        if not name:
            raise_error(INVALID_INPUT, "Name required")
        if name in self.player_data:
            raise_error(NAME_TAKEN, f"Name {name} is already taken in this room")
        if len(self.players) >= self.rules.max_players:
            raise_error(ROOM_FULL, "Room is full")

        data = PlayerRoundState(
            name=name,
            seat=self._next_seat,
            is_bot=is_bot,
            difficulty=difficulty,
            buys=self.rules.starting_buys,
        )
        self._next_seat += 1
        self.players.append(name)
        self.player_data[name] = data
        self._emit(EVENT_PLAYER_JOINED, player=name, is_bot=is_bot, roster=list(self.players))
        self._log(f"{name} joined the game")
        return data

    def add_bots(self, count: int) -> List[str]:
        """Seat up to count AI opponents, stopping when the room is full."""
        added = []
        for i in range(count):
            if len(self.players) >= self.rules.max_players:
                break
            base = f"{AI_NAMES[i % len(AI_NAMES)]}{i + 1 if i >= len(AI_NAMES) else ''}"
            name = base
            suffix = 2
            while name in self.player_data:
                name = f"{base} {suffix}"
                suffix += 1
            difficulty = self.rng.choice(DIFFICULTIES)
            self.add_player(name, is_bot=True, difficulty=difficulty)
            added.append(name)
        return added

    def start(self, requester: str):
        if self.phase != PHASE_LOBBY:
            raise_error(ROOM_ALREADY_STARTED, "Game already started")
        if requester != self.host_name:
            raise_error(NOT_HOST, "Only the host can start the game")
        if len(self.players) < self.rules.min_players:
            raise_error(INSUFFICIENT_PLAYERS, f"Need at least {self.rules.min_players} players")
        logger.info(f"Room {self.code}: starting game with {len(self.players)} players")
        self.deal_round()

    # -- round lifecycle -------------------------------------------------

    def deal_round(self):
        self.deck = Deck(rng=self.rng)
        self.discard_pile = [self.deck.deal()]
        hand_size = self.rules.hand_size(self.current_round)

        for name in self.players:
            data = self.player_data[name]
            data.hand = [self.deck.deal() for _ in range(hand_size)]
            data.melds = []
            data.buys = self.rules.starting_buys
            data.gone_down = False

        # A different player leads each round
        self.current_player_index = (self.current_round - 1) % len(self.players)
        self.turn_state = TurnState()
        self.buy_phase = BuyPhase(window_id=self.buy_phase.window_id)
        self.phase = PHASE_PLAY
        self.turn_id += 1

        requirement = self.requirement
        self._emit(
            EVENT_ROUND_STARTED,
            round=self.current_round,
            requirement=requirement.to_dict(),
            hand_size=hand_size,
            starting_player=self.current_player,
        )
        self._log(f"Round {self.current_round} starting! Contract: {requirement.description}")
        logger.info(f"Room {self.code}: round {self.current_round} dealt, {self.current_player} leads")

    def end_round(self, winner: str) -> RoundResult:
        round_number = self.current_round
        self.phase = PHASE_ROUND_COMPLETE
        self.buy_phase = BuyPhase(window_id=self.buy_phase.window_id)

        round_scores = score_round(
            [self.player_data[name] for name in self.players], winner, round_number
        )
        self.round_winners.append(winner)
        self._emit(EVENT_ROUND_ENDED, round=round_number, winner=winner, round_scores=round_scores)
        self._log(f"{winner} went out and won round {round_number}!")
        logger.info(f"Room {self.code}: round {round_number} won by {winner}")

        if round_number >= TOTAL_ROUNDS:
            final = self.end_game()
            return RoundResult(round_number, winner, round_scores, game_over=True, final_results=final)

        self.current_round += 1
        self.deal_round()
        return RoundResult(round_number, winner, round_scores, next_round=self.current_round)

    def end_game(self) -> Dict[str, Any]:
        standings = final_standings(
            [self.player_data[name] for name in self.players], self.round_winners
        )
        self.phase = PHASE_FINISHED
        self.turn_state = TurnState()
        self.buy_phase = BuyPhase(window_id=self.buy_phase.window_id)
        self.turn_id += 1
        self.final_results = {
            'winner': standings[0]['name'] if standings else None,
            'winner_score': standings[0]['total'] if standings else None,
            'final_standings': standings,
            'game_complete': True,
        }
        self._emit(EVENT_GAME_COMPLETED, **self.final_results)
        self._log("Game finished!")
        for entry in standings:
            self._log(f"{entry['place']}. {entry['name']} - {entry['total']} points")
        logger.info(f"Room {self.code}: game complete, winner {self.final_results['winner']}")
        return self.final_results

    # -- turn actions ----------------------------------------------------

    def draw_card(self, player: str) -> Card:
        data = self._require_turn(player)
        if self.turn_state.has_drawn:
            raise_error(ALREADY_DRAWN, "You have already drawn this turn")
        card = self._draw_from_stock()
        data.hand.append(card)
        self.turn_state.has_drawn = True
        self._log(f"{player} drew a card")
        return card

    def pick_up_discard(self, player: str) -> Card:
        data = self._require_turn(player)
        if self.turn_state.has_drawn:
            raise_error(ALREADY_DRAWN, "You have already drawn this turn")
        if not self.discard_pile:
            raise_error(DISCARD_EMPTY, "The discard pile is empty")
        card = self.discard_pile.pop()
        data.hand.append(card)
        self.turn_state.has_drawn = True
        self._log(f"{player} picked up {card.display}")
        return card

    def make_meld(self, player: str, indices: Sequence[int], meld_type: str) -> Dict[str, Any]:
        data = self._require_drawn(player)
        if meld_type not in (MELD_SET, MELD_RUN):
            raise_error(INVALID_MELD, f"Unknown meld type: {meld_type!r}")
        indices = self._check_indices(indices, len(data.hand))
        if not indices:
            raise_error(INVALID_MELD, "Select the cards to meld")
        taken = [(i, data.hand[i]) for i in sorted(indices)]
        cards = [card for _, card in taken]
        if not validate_meld(cards, meld_type):
            raise_error(INVALID_MELD, f"Those cards do not form a valid {meld_type}")

        requirement = self.requirement
        projected = data.melds + [Meld(meld_type, cards)]
        if len(data.hand) - len(cards) == 1 and not meets_requirement(projected, requirement):
            # The last card could never be discarded without going out
            raise_error(
                MUST_KEEP_DISCARD,
                "That meld would leave one card you cannot discard. "
                + unmet_requirement_message(projected, requirement)
            )

        for i, _ in reversed(taken):
            data.hand.pop(i)
        if meld_type == MELD_RUN:
            cards = sorted(cards, key=lambda c: c.value)
        meld = Meld(meld_type, cards)
        data.melds.append(meld)
        was_down = data.gone_down

        if not data.hand and not meets_requirement(data.melds, requirement):
            data.melds.pop()
            for i, card in taken:
                data.hand.insert(i, card)
            raise_error(INSUFFICIENT_MELD_REQUIREMENT, unmet_requirement_message(data.melds, requirement))

        if not data.gone_down and meets_requirement(data.melds, requirement):
            data.gone_down = True
            self._log(f"{player} has gone down!")

        self._emit(
            EVENT_CARD_MELDED,
            player=player,
            type=meld_type,
            cards=[c.to_dict() for c in cards],
            meld_index=len(data.melds) - 1,
            gone_down=data.gone_down,
            went_down_now=data.gone_down and not was_down,
        )
        self._log(f"{player} made a {meld_type}")

        round_result = self.end_round(player) if not data.hand else None
        return {'meld': meld, 'round_result': round_result}

    def lay_off(self, player: str, card_index: int, target_player: str, meld_index: int) -> Dict[str, Any]:
        data = self._require_drawn(player)
        if not data.gone_down:
            raise_error(NOT_GONE_DOWN, "You must go down before laying off cards")
        card_index = self._check_indices([card_index], len(data.hand))[0]

        target = self.player_data.get(target_player)
        if target is None:
            raise_error(INVALID_LAY_OFF_TARGET, f"No player named {target_player}")
        if isinstance(meld_index, bool) or not isinstance(meld_index, int) \
                or not 0 <= meld_index < len(target.melds):
            raise_error(INVALID_LAY_OFF_TARGET, f"{target_player} has no meld {meld_index!r}")
        meld = target.melds[meld_index]

        card = data.hand[card_index]
        position = lay_off_position(card, meld)
        if position < 0:
            raise_error(INVALID_LAY_OFF, f"{card.display} does not extend that {meld.type}")

        data.hand.pop(card_index)
        meld.cards.insert(position, card)
        if not data.hand and not meets_requirement(data.melds, self.requirement):
            meld.cards.pop(position)
            data.hand.insert(card_index, card)
            raise_error(INSUFFICIENT_MELD_REQUIREMENT, unmet_requirement_message(data.melds, self.requirement))

        self._emit(
            EVENT_CARD_LAID_OFF,
            player=player,
            target_player=target_player,
            meld_index=meld_index,
            card=card.to_dict(),
        )
        self._log(f"{player} laid off {card.display} on {target_player}'s {meld.type}")

        round_result = self.end_round(player) if not data.hand else None
        return {'card': card, 'round_result': round_result}

    def discard_card(self, player: str, index: int) -> Dict[str, Any]:
        data = self._require_turn(player)
        if not self.turn_state.has_drawn:
            raise_error(MUST_DRAW_FIRST, "Draw a card before discarding")
        index = self._check_indices([index], len(data.hand))[0]

        card = data.hand.pop(index)
        self.discard_pile.append(card)

        if not data.hand:
            if not meets_requirement(data.melds, self.requirement):
                self.discard_pile.pop()
                data.hand.insert(index, card)
                raise_error(INSUFFICIENT_MELD_REQUIREMENT, unmet_requirement_message(data.melds, self.requirement))
            self._log(f"{player} discarded {card.display}")
            return {'card': card, 'round_result': self.end_round(player)}

        self._log(f"{player} discarded {card.display}")
        self._open_buy_window(player, card)
        return {'card': card, 'round_result': None}

    def reorder_hand(self, player: str, order: Sequence[int]):
        """Rearrange a hand; order lists the current indices in their new order."""
        if self.phase != PHASE_PLAY:
            raise_error(GAME_NOT_IN_PROGRESS, "Game is not in progress")
        data = self._get_player(player)
        order = self._check_indices(order, len(data.hand))
        if len(order) != len(data.hand):
            raise_error(INVALID_CARD_INDEX, "Order must include every card in your hand exactly once")
        data.hand = [data.hand[i] for i in order]

    # -- buying ----------------------------------------------------------

    def request_buy(self, player: str, wants: bool = True):
        if self.phase != PHASE_PLAY:
            raise_error(GAME_NOT_IN_PROGRESS, "Game is not in progress")
        data = self._get_player(player)
        if not self.buy_phase.active:
            raise_error(NO_BUY_WINDOW, "There is no card to buy right now")
        if player == self.buy_phase.discarder:
            raise_error(NOT_ELIGIBLE_TO_BUY, "You cannot buy your own discard")
        if player not in self.buy_phase.eligible:
            if data.buys <= 0:
                raise_error(NO_BUYS_LEFT, "You have no buys left this round")
            raise_error(NOT_ELIGIBLE_TO_BUY, "You are not eligible to buy this card")
        self.buy_phase.requests[player] = bool(wants)
        logger.debug(f"Room {self.code}: {player} buy response {bool(wants)}")

    def resolve_buy_phase(self) -> Optional[str]:
        """Close the buy window, hand the card to the first requester, advance the turn."""
        if not self.buy_phase.active:
            raise_error(NO_BUY_WINDOW, "There is no buy window to resolve")

        buyer = next(
            (name for name in self.buy_phase.eligible
             if self.buy_phase.requests.get(name) and name in self.player_data),
            None
        )
        if buyer and self.discard_pile and self.discard_pile[-1] is self.buy_phase.card:
            data = self.player_data[buyer]
            card = self.discard_pile.pop()
            data.hand.append(card)
            penalty = None
            try:
                penalty = self._draw_from_stock()
            except GameError:
                logger.info(f"Room {self.code}: no penalty card left for {buyer}'s buy")
            if penalty is not None:
                data.hand.append(penalty)
            data.buys -= 1
            self._emit(EVENT_CARD_BOUGHT, player=buyer, card=card.to_dict(), penalty=penalty is not None)
            self._log(f"{buyer} bought {card.display}")
        else:
            buyer = None

        self.buy_phase = BuyPhase(window_id=self.buy_phase.window_id)
        self._advance_turn()
        return buyer

    def _open_buy_window(self, discarder: str, card: Card):
        eligible = [
            name for name in self._turn_order_after(discarder)
            if self.player_data[name].buys > 0
        ]
        self.buy_phase = BuyPhase(
            active=True,
            card=card,
            discarder=discarder,
            eligible=eligible,
            requests={},
            window_id=self.buy_phase.window_id + 1,
        )
        if not eligible:
            self.resolve_buy_phase()
            return
        self._emit(
            EVENT_BUY_WINDOW_OPENED,
            card=card.to_dict(),
            discarder=discarder,
            eligible=list(eligible),
            window_id=self.buy_phase.window_id,
            time_limit=self.rules.buy_window_seconds,
        )

    # -- membership ------------------------------------------------------

    def remove_player(self, name: str):
        """
        Drop a player (leave or disconnect).

        Their hand and meld cards go to the bottom of the stock so no card is
        lost. Mid-game, fewer than two remaining players finishes the game.
        """
        self._get_player(name)
        index = self.players.index(name)
        data = self.player_data.pop(name)
        self.players.pop(index)
        self._emit(EVENT_PLAYER_LEFT, player=name, roster=list(self.players))
        self._log(f"{name} left the game")

        if name == self.host_name and self.human_names:
            self.host_name = self.human_names[0]

        if self.phase not in (PHASE_PLAY, PHASE_ROUND_COMPLETE):
            return

        returned = list(data.hand) + [card for meld in data.melds for card in meld.cards]
        if self.deck is not None:
            self.deck.cards[0:0] = returned

        if not self.players:
            self.end_game()
            return

        was_current = index == self.current_player_index
        if index < self.current_player_index:
            self.current_player_index -= 1
        self.current_player_index %= len(self.players)

        if self.buy_phase.active:
            if name == self.buy_phase.discarder:
                # The discarder's turn is over; the next seat is now current.
                self.buy_phase = BuyPhase(window_id=self.buy_phase.window_id)
                self._start_turn()
            else:
                self.buy_phase.eligible = [n for n in self.buy_phase.eligible if n != name]
                self.buy_phase.requests.pop(name, None)
        elif was_current:
            self._start_turn()

        if len(self.players) < 2:
            self.end_game()

    # -- internals -------------------------------------------------------

    def _get_player(self, player: str) -> PlayerRoundState:
        data = self.player_data.get(player)
        if data is None:
            raise_error(PLAYER_NOT_FOUND, f"Player {player} is not in this game")
        return data

    def _require_turn(self, player: str) -> PlayerRoundState:
        if self.phase != PHASE_PLAY:
            raise_error(GAME_NOT_IN_PROGRESS, "Game is not in progress")
        data = self._get_player(player)
        if self.buy_phase.active:
            raise_error(BUY_WINDOW_OPEN, "Wait for the buy window to close")
        if self.current_player != player:
            raise_error(NOT_YOUR_TURN, f"It's not your turn (current turn: {self.current_player})")
        return data

    def _require_drawn(self, player: str) -> PlayerRoundState:
        data = self._require_turn(player)
        if not self.turn_state.has_drawn:
            raise_error(MUST_DRAW_FIRST, "Draw a card first")
        return data

    def _check_indices(self, indices: Sequence[object], hand_size: int) -> List[int]:
        try:
            return validate_indices(indices, hand_size)
        except ValueError as e:
            raise GameError(INVALID_CARD_INDEX, str(e))

    def _draw_from_stock(self) -> Card:
        if self.deck.is_empty():
            # Recycle everything under the top discard
            if len(self.discard_pile) <= 1:
                raise_error(NO_CARDS_AVAILABLE, "No cards available")
            top = self.discard_pile.pop()
            self.deck.reset(self.discard_pile)
            self.discard_pile = [top]
            logger.debug(f"Room {self.code}: stock recycled from discard pile ({len(self.deck)} cards)")
            self._log("The discard pile was shuffled into a new stock")
        return self.deck.deal()

    def _turn_order_after(self, name: str) -> List[str]:
        start = self.players.index(name)
        n = len(self.players)
        return [self.players[(start + offset) % n] for offset in range(1, n)]

    def _advance_turn(self):
        self.current_player_index = (self.current_player_index + 1) % len(self.players)
        self._start_turn()

    def _start_turn(self):
        self.turn_state = TurnState()
        self.turn_id += 1
        self._emit(EVENT_TURN_ADVANCED, player=self.current_player, round=self.current_round)

    def _emit(self, event_type: str, **data):
        self.events.append(GameEvent(event_type, data))

    def _log(self, message: str):
        self.game_log.append(message)
        if len(self.game_log) > MAX_LOG_ENTRIES:
            del self.game_log[:-MAX_LOG_ENTRIES]
        logger.debug(f"Room {self.code}: {message}")
