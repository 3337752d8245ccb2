"""
Tests for the two-deck shoe.
"""

import random
from collections import Counter

from shanghai_engine.constants import RANKS, SUITS
from shanghai_engine.deck import Deck, create_shoe, fisher_yates

from helpers import cards


def test_shoe_has_two_of_every_card():
    shoe = create_shoe()
    assert len(shoe) == 104
    counts = Counter((c.suit, c.rank) for c in shoe)
    assert len(counts) == len(SUITS) * len(RANKS)
    assert set(counts.values()) == {2}


def test_shoe_cards_are_distinct_objects():
    shoe = create_shoe()
    assert len({id(c) for c in shoe}) == 104
    # Identical suit and rank from the two decks are still different cards
    first, second = [c for c in shoe if c.suit == 'hearts' and c.rank == '7']
    assert first != second


def test_seeded_shuffle_is_reproducible():
    a = Deck(rng=random.Random(42))
    b = Deck(rng=random.Random(42))
    assert [(c.suit, c.rank) for c in a.cards] == [(c.suit, c.rank) for c in b.cards]
    assert [(c.suit, c.rank) for c in a.cards] != [(c.suit, c.rank) for c in create_shoe()]


def test_fisher_yates_is_a_permutation():
    pile = create_shoe()
    before = list(pile)
    fisher_yates(pile, random.Random(3))
    assert len(pile) == len(before)
    assert {id(c) for c in pile} == {id(c) for c in before}


def test_deal_takes_from_the_top():
    deck = Deck(rng=random.Random(1))
    top = deck.cards[-1]
    assert deck.deal() is top
    assert len(deck) == 103


def test_reset_with_empty_pile_keeps_stock():
    deck = Deck(cards=[])
    assert deck.is_empty()
    assert deck.reset([]) is False
    assert deck.is_empty()


def test_reset_copies_and_shuffles_pile():
    pile = cards('2h', '3h', '4h', '5h', '6h')
    original = list(pile)
    deck = Deck(rng=random.Random(5), cards=[])
    assert deck.reset(pile) is True
    assert len(deck) == 5
    assert {id(c) for c in deck.cards} == {id(c) for c in original}
    # The caller's list is left alone
    assert pile == original
