"""Builders shared by the engine tests."""

import random

from shanghai_engine.game import Game
from shanghai_engine.models import Card, Meld
from shanghai_engine.rules import create_rules

SUIT_CODES = {'h': 'hearts', 'd': 'diamonds', 'c': 'clubs', 's': 'spades'}


def card(code: str) -> Card:
    """'7h' -> seven of hearts, '10s' -> ten of spades."""
    return Card(SUIT_CODES[code[-1]], code[:-1])


def cards(*codes: str):
    return [card(code) for code in codes]


def meld(meld_type: str, *codes: str) -> Meld:
    return Meld(meld_type, cards(*codes))


def new_game(names=('Alice', 'Bob'), seed=7, start=True, **overrides) -> Game:
    game = Game('TEST01', names[0], rules=create_rules(**overrides), rng=random.Random(seed))
    for name in names:
        game.add_player(name)
    if start:
        game.start(names[0])
    game.pop_events()
    return game


def all_cards(game: Game):
    """Every card the room holds: stock, discard pile, hands and melds."""
    result = list(game.deck.cards) + list(game.discard_pile)
    for data in game.player_data.values():
        result.extend(data.hand)
        for m in data.melds:
            result.extend(m.cards)
    return result


def ready_to_act(game: Game, name: str, hand_codes, melds=None, gone_down=False):
    """Put name on turn, already drawn, holding exactly hand_codes."""
    data = game.player_data[name]
    data.hand = cards(*hand_codes)
    data.melds = list(melds or [])
    data.gone_down = gone_down
    game.current_player_index = game.players.index(name)
    game.turn_state.has_drawn = True
    return data
