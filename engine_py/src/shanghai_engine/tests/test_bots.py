"""
Tests for the greedy bot policy.
"""

import random

import pytest

from shanghai_engine.bots import BotAction, GreedyBot, PlayerView, create_bot
from shanghai_engine.bots.greedy import evaluate_card, find_melds, find_runs, find_sets
from shanghai_engine.constants import DIFFICULTY_EASY, DIFFICULTY_HARD, DIFFICULTY_MEDIUM, MELD_RUN, MELD_SET
from shanghai_engine.rules import get_requirement

from helpers import card, cards, meld, new_game


def view(hand_codes, round_number=1, melds=None, gone_down=False, discard_top=None,
         buys=3, has_drawn=True, table=None):
    own = list(melds or [])
    table_melds = {'Bot': own}
    table_melds.update(table or {})
    return PlayerView(
        name='Bot',
        hand=cards(*hand_codes),
        requirement=get_requirement(round_number),
        gone_down=gone_down,
        melds=own,
        table_melds=table_melds,
        discard_top=card(discard_top) if discard_top else None,
        buys=buys,
        has_drawn=has_drawn,
    )


def test_evaluate_card_scores_neighbours():
    hand = cards('7h', '7s', '8h', '9h', 'Kc')
    # 7s same rank (3), 8h one away (4), 9h two away (2)
    assert evaluate_card(hand[0], hand) == 9
    assert evaluate_card(hand[4], hand) == 0


def test_find_sets_and_runs():
    hand = cards('7h', '7s', '7d', '7c', '4h', '5h', '6h', 'Kc', '8h')
    assert find_sets(hand) == [[0, 1, 2]]
    assert find_runs(hand) == [[4, 5, 6, 0]]
    assert len(find_melds(hand)) == 2


def test_runs_use_one_card_per_value():
    hand = cards('4h', '4h', '5h', '6h', '7h')
    assert find_runs(hand) == [[0, 2, 3, 4]]


class TestMeldChoice:
    def test_only_needed_types_before_going_down(self):
        bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
        # Round 1 wants sets; the run is ignored
        only_run = view(['4h', '5h', '6h', '7h', 'Kc', '2d'])
        assert bot.choose_meld(only_run) is None

        with_set = view(['4h', '5h', '6h', '7h', '9c', '9d', '9s', '2d'])
        action = bot.choose_meld(with_set)
        assert action.type == 'meld'
        assert action.data == {'indices': [4, 5, 6], 'meld_type': MELD_SET}

    def test_anything_goes_once_down(self):
        bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
        down = view(
            ['4h', '5h', '6h', '7h', 'Kc', '2d'],
            melds=[meld(MELD_SET, '9c', '9d', '9s'), meld(MELD_SET, 'Jc', 'Jd', 'Js')],
            gone_down=True,
        )
        action = bot.choose_meld(down)
        assert action.data['meld_type'] == MELD_RUN

    def test_keeps_a_card_to_discard(self):
        bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
        assert bot.choose_meld(view(['9c', '9d', '9s', '2d'])) is None

    def test_melds_down_to_one_card_when_that_completes_contract(self):
        bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
        v = view(['9c', '9d', '9s', '2d'], melds=[meld(MELD_SET, 'Jc', 'Jd', 'Js')])
        assert bot.choose_meld(v).data['indices'] == [0, 1, 2]


class TestLayOff:
    def test_not_before_going_down(self):
        bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
        v = view(['9h', '2d'], table={'Alice': [meld(MELD_SET, '9c', '9d', '9s')]})
        assert bot.choose_lay_off(v) is None

    def test_finds_target(self):
        bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
        v = view(
            ['2d', '8h'],
            melds=[meld(MELD_SET, '9c', '9d', '9s'), meld(MELD_SET, 'Jc', 'Jd', 'Js')],
            gone_down=True,
            table={'Alice': [meld(MELD_RUN, '4h', '5h', '6h', '7h')]},
        )
        action = bot.choose_lay_off(v)
        assert action.data == {'card_index': 1, 'target_player': 'Alice', 'meld_index': 0}


def test_discards_least_useful_card():
    bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
    action = bot.choose_discard(view(['7h', '7s', '8h', 'Kc', '3d']))
    # Kc and 3d are both unconnected; Kc carries more penalty points
    assert action.data == {'index': 3}


def test_draw_choice():
    bot = GreedyBot('Bot', DIFFICULTY_MEDIUM)
    completes_set = view(['9c', '9d', 'Kc', '2d'], discard_top='9s', has_drawn=False)
    assert bot.choose_draw(completes_set).data == {'from_discard': True}

    useless = view(['9c', '9d', 'Kc', '2d'], discard_top='5s', has_drawn=False)
    assert bot.choose_draw(useless).data == {'from_discard': False}

    empty = view(['9c'], has_drawn=False)
    assert bot.choose_draw(empty).data == {'from_discard': False}


@pytest.mark.parametrize("difficulty,expected", [
    (DIFFICULTY_EASY, False),
    (DIFFICULTY_MEDIUM, True),
    (DIFFICULTY_HARD, True),
])
def test_buy_threshold_depends_on_difficulty(difficulty, expected):
    bot = GreedyBot('Bot', difficulty)
    # Two sevens already in hand: usefulness 6
    hand = cards('7h', '7d', 'Kc')
    assert evaluate_card(card('7s'), hand) == 6
    assert bot.should_buy(card('7s'), view(['7h', '7d', 'Kc'])) is expected


def test_never_buys_without_buys_left():
    bot = GreedyBot('Bot', DIFFICULTY_HARD)
    assert not bot.should_buy(card('7s'), view(['7h', '7d', '7c'], buys=0))


@pytest.mark.parametrize("difficulty,low", [(DIFFICULTY_EASY, 3.0), (DIFFICULTY_MEDIUM, 2.0), (DIFFICULTY_HARD, 1.0)])
def test_delay_ranges(difficulty, low):
    bot = GreedyBot('Bot', difficulty)
    rng = random.Random(0)
    for _ in range(20):
        assert low <= bot.get_delay(rng) < low + 1.0


def test_choose_action_follows_turn_order():
    bot = create_bot('Bot', None)
    assert bot.difficulty == DIFFICULTY_MEDIUM
    assert bot.choose_action(view(['9c', '2d'], discard_top='5s', has_drawn=False)).type == 'draw'
    assert bot.choose_action(view(['9c', '9d', '9s', '2d', '3h'])).type == 'meld'
    assert bot.choose_action(view(['9c', '2d', '3h'])).type == 'discard'


def test_player_view_from_game():
    game = new_game()
    v = PlayerView.from_game(game, 'Alice')
    assert v.hand == game.player_data['Alice'].hand
    assert v.hand is not game.player_data['Alice'].hand
    assert v.discard_top is game.discard_top()
    assert v.has_drawn is False
    assert v.still_needed() == {'set': 2, 'run': 0}
    assert set(v.table_melds) == {'Alice', 'Bob'}


def test_bot_action_repr():
    assert repr(BotAction.discard(2)) == "BotAction('discard', {'index': 2})"
