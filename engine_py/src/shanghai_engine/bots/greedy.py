"""
Greedy bot implementation with basic heuristics.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from .base import BaseBot, BotAction, PlayerView
from ..constants import (
    DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD, MELD_RUN, MELD_SET,
    MIN_RUN_SIZE, MIN_SET_SIZE,
)
from ..models import Card, Meld
from ..validate import can_lay_off, meets_requirement

# Usefulness a discard must exceed before the bot pays a buy for it
BUY_THRESHOLDS = {DIFFICULTY_EASY: 7, DIFFICULTY_MEDIUM: 5, DIFFICULTY_HARD: 4}
# Usefulness a discard must exceed before the bot takes it instead of drawing
PICKUP_THRESHOLDS = {DIFFICULTY_EASY: 9, DIFFICULTY_MEDIUM: 7, DIFFICULTY_HARD: 6}
BASE_DELAYS = {DIFFICULTY_EASY: 3.0, DIFFICULTY_MEDIUM: 2.0, DIFFICULTY_HARD: 1.0}


def evaluate_card(card: Card, hand: List[Card]) -> int:
    """
    Estimate how useful card is alongside hand.

    Each other card of the same rank is worth 3 (set potential); a same-suit
    card one step away is worth 4 and two steps away 2 (run potential).
    """
    value = 0
    for other in hand:
        if other is card:
            continue
        if other.rank == card.rank:
            value += 3
        if other.suit == card.suit:
            diff = abs(other.value - card.value)
            if diff == 1:
                value += 4
            elif diff == 2:
                value += 2
    return value


def find_sets(hand: List[Card]) -> List[List[int]]:
    groups: Dict[str, List[int]] = defaultdict(list)
    for idx, card in enumerate(hand):
        groups[card.rank].append(idx)
    return [group[:MIN_SET_SIZE] for group in groups.values() if len(group) >= MIN_SET_SIZE]


def find_runs(hand: List[Card]) -> List[List[int]]:
    """Four consecutive same-suit values, one card per value."""
    by_suit: Dict[str, Dict[int, int]] = defaultdict(dict)
    for idx, card in enumerate(hand):
        by_suit[card.suit].setdefault(card.value, idx)

    runs = []
    for values in by_suit.values():
        ordered = sorted(values)
        streak: List[int] = []
        for value in ordered:
            if streak and value != streak[-1] + 1:
                streak = []
            streak.append(value)
            if len(streak) == MIN_RUN_SIZE:
                runs.append([values[v] for v in streak])
                streak = []
    return runs


def find_melds(hand: List[Card]) -> List[Tuple[str, List[int]]]:
    return [(MELD_SET, s) for s in find_sets(hand)] + [(MELD_RUN, r) for r in find_runs(hand)]


class GreedyBot(BaseBot):
    """
    Greedy bot that plays the first meld it can see.

    Strategy:
    - Pick up the discard when it completes a meld or fits the hand well
    - Meld the contract's missing types first, anything once gone down
    - Lay off wherever possible after going down
    - Discard the card least connected to the rest of the hand
    - Buy discards that fit well, more eagerly on harder settings
    """

    def choose_draw(self, view: PlayerView) -> BotAction:
        top = view.discard_top
        if top is None:
            return BotAction.draw(from_discard=False)
        extended = view.hand + [top]
        top_index = len(view.hand)
        if any(top_index in indices for _, indices in find_melds(extended)):
            return BotAction.draw(from_discard=True)
        if evaluate_card(top, view.hand) > PICKUP_THRESHOLDS[self.difficulty]:
            return BotAction.draw(from_discard=True)
        return BotAction.draw(from_discard=False)

    def choose_meld(self, view: PlayerView) -> Optional[BotAction]:
        candidates = find_melds(view.hand)
        if not candidates:
            return None

        needed = view.still_needed()
        if view.gone_down:
            ordered = candidates
        else:
            ordered = [c for c in candidates if needed[c[0]] > 0]
            # Prefer whichever type is further from done
            ordered.sort(key=lambda c: -needed[c[0]])

        for meld_type, indices in ordered:
            cards = [view.hand[i] for i in indices]
            remaining = len(view.hand) - len(indices)
            projected = view.melds + [Meld(meld_type, cards)]
            # Keep a card to discard unless this meld takes us down
            if remaining < 2 and not meets_requirement(projected, view.requirement):
                continue
            return BotAction.meld(indices, meld_type)
        return None

    def choose_lay_off(self, view: PlayerView) -> Optional[BotAction]:
        if not view.gone_down:
            return None
        for card_index, card in enumerate(view.hand):
            for owner, melds in view.table_melds.items():
                for meld_index, meld in enumerate(melds):
                    if can_lay_off(card, meld):
                        return BotAction.lay_off(card_index, owner, meld_index)
        return None

    def choose_discard(self, view: PlayerView) -> BotAction:
        best_index = 0
        best_key = None
        for idx, card in enumerate(view.hand):
            # Least useful first; among equals shed the most penalty points
            key = (evaluate_card(card, view.hand), -card.score_value)
            if best_key is None or key < best_key:
                best_key = key
                best_index = idx
        return BotAction.discard(best_index)

    def should_buy(self, card: Card, view: PlayerView) -> bool:
        if view.buys <= 0:
            return False
        return evaluate_card(card, view.hand) > BUY_THRESHOLDS[self.difficulty]

    def get_delay(self, rng) -> float:
        return BASE_DELAYS[self.difficulty] + rng.random()
