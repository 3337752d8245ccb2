"""
Card shoe (stock) creation, shuffling and dealing.
"""

import random
from typing import List, Optional

from .constants import DECKS_IN_SHOE, RANKS, SUITS
from .models import Card


def create_shoe(decks: int = DECKS_IN_SHOE) -> List[Card]:
    """Create the unshuffled shoe in fixed order: deck x suit x rank."""
    cards = []
    for _ in range(decks):
        for suit in SUITS:
            for rank in RANKS:
                cards.append(Card(suit, rank))
    return cards


def fisher_yates(cards: List[Card], rng: random.Random) -> None:
    """Shuffle in place with a uniform random permutation."""
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]


class Deck:
    """The shared stock. The top of the stock is the last element."""

    def __init__(self, rng: Optional[random.Random] = None, cards: Optional[List[Card]] = None):
        self.rng = rng or random.Random()
        if cards is None:
            self.cards: List[Card] = []
            self.initialize()
            self.shuffle()
        else:
            self.cards = list(cards)

    def initialize(self):
        self.cards = create_shoe()

    def shuffle(self):
        fisher_yates(self.cards, self.rng)

    def deal(self) -> Card:
        """Pop the top card. Callers check is_empty() first."""
        return self.cards.pop()

    def is_empty(self) -> bool:
        return len(self.cards) == 0

    def reset(self, pile: List[Card]) -> bool:
        """Replace the stock with a shuffled copy of pile; False if pile is empty."""
        if not pile:
            return False
        self.cards = list(pile)
        self.shuffle()
        return True

    def __len__(self) -> int:
        return len(self.cards)
