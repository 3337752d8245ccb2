"""
Tests for meld validation, lay-off placement and contract checks.
"""

import random

import pytest

from shanghai_engine.constants import MELD_RUN, MELD_SET
from shanghai_engine.deck import create_shoe
from shanghai_engine.rules import get_requirement
from shanghai_engine.validate import (
    can_lay_off, count_qualifying, is_valid_run, is_valid_set, lay_off_position,
    meets_requirement, unmet_requirement_message, validate_indices, validate_meld,
)

from helpers import cards, meld


class TestSets:
    def test_three_of_a_rank(self):
        assert is_valid_set(cards('7h', '7s', '7d'))

    def test_same_suit_duplicates_from_both_decks(self):
        assert is_valid_set(cards('7h', '7h', '7s'))

    def test_more_than_three(self):
        assert is_valid_set(cards('Kh', 'Ks', 'Kd', 'Kc', 'Kh'))

    def test_too_small(self):
        assert not is_valid_set(cards('7h', '7s'))

    def test_mixed_ranks(self):
        assert not is_valid_set(cards('7h', '7s', '8d'))

    def test_face_cards_do_not_mix(self):
        # J, Q and K all count 10 for runs but are different ranks
        assert not is_valid_set(cards('Jh', 'Qh', 'Kh'))


class TestRuns:
    def test_four_in_order(self):
        assert is_valid_run(cards('4h', '5h', '6h', '7h'))

    def test_order_does_not_matter(self):
        assert is_valid_run(cards('7h', '4h', '6h', '5h'))

    def test_ace_is_low(self):
        assert is_valid_run(cards('Ah', '2h', '3h', '4h'))

    def test_ace_is_not_high(self):
        assert not is_valid_run(cards('10h', 'Jh', 'Qh', 'Ah'))

    def test_nine_then_face_card_is_consecutive(self):
        assert is_valid_run(cards('7s', '8s', '9s', 'Js'))

    def test_ten_and_face_card_share_a_value(self):
        assert not is_valid_run(cards('8s', '9s', '10s', 'Js'))

    def test_mixed_suits(self):
        assert not is_valid_run(cards('4h', '5h', '6s', '7h'))

    def test_gap(self):
        assert not is_valid_run(cards('4h', '5h', '7h', '8h'))

    def test_too_short(self):
        assert not is_valid_run(cards('4h', '5h', '6h'))

    def test_duplicate_value(self):
        assert not is_valid_run(cards('4h', '5h', '5h', '6h', '7h'))


def test_validate_meld_dispatches_on_type():
    run = cards('4h', '5h', '6h', '7h')
    assert validate_meld(run, MELD_RUN)
    assert not validate_meld(run, MELD_SET)
    assert not validate_meld(run, 'straight')


def test_validate_meld_does_not_reorder_input():
    run = cards('7h', '4h', '6h', '5h')
    before = list(run)
    validate_meld(run, MELD_RUN)
    assert run == before


def test_validity_ignores_card_order():
    rng = random.Random(11)
    shoe = create_shoe()
    for _ in range(300):
        sample = rng.sample(shoe, rng.randint(3, 6))
        shuffled = list(sample)
        rng.shuffle(shuffled)
        for meld_type in (MELD_SET, MELD_RUN):
            assert validate_meld(sample, meld_type) == validate_meld(shuffled, meld_type)


class TestLayOff:
    def test_set_appends(self):
        target = meld(MELD_SET, '9h', '9s', '9d')
        assert lay_off_position(cards('9c')[0], target) == 3

    def test_set_rejects_other_rank(self):
        assert lay_off_position(cards('8c')[0], meld(MELD_SET, '9h', '9s', '9d')) == -1

    def test_run_prepends_low_card(self):
        assert lay_off_position(cards('3h')[0], meld(MELD_RUN, '4h', '5h', '6h', '7h')) == 0

    def test_run_appends_high_card(self):
        assert lay_off_position(cards('8h')[0], meld(MELD_RUN, '4h', '5h', '6h', '7h')) == 4

    def test_run_rejects_other_suit(self):
        assert not can_lay_off(cards('8s')[0], meld(MELD_RUN, '4h', '5h', '6h', '7h'))

    def test_run_rejects_card_inside_range(self):
        assert not can_lay_off(cards('5h')[0], meld(MELD_RUN, '4h', '5h', '6h', '7h'))

    def test_empty_meld(self):
        assert lay_off_position(cards('5h')[0], meld(MELD_RUN)) == -1


class TestRequirements:
    def test_round_one_needs_two_sets(self):
        requirement = get_requirement(1)
        one_set = [meld(MELD_SET, '7h', '7s', '7d')]
        assert not meets_requirement(one_set, requirement)
        two_sets = one_set + [meld(MELD_SET, 'Kh', 'Ks', 'Kd')]
        assert meets_requirement(two_sets, requirement)

    def test_round_two_needs_a_set_and_a_run(self):
        requirement = get_requirement(2)
        melds = [meld(MELD_SET, '7h', '7s', '7d'), meld(MELD_SET, 'Kh', 'Ks', 'Kd')]
        assert count_qualifying(melds, requirement) == (2, 0)
        assert not meets_requirement(melds, requirement)
        melds.append(meld(MELD_RUN, '2c', '3c', '4c', '5c'))
        assert meets_requirement(melds, requirement)

    def test_extra_melds_are_allowed(self):
        requirement = get_requirement(3)
        melds = [
            meld(MELD_RUN, '2c', '3c', '4c', '5c'),
            meld(MELD_RUN, '6d', '7d', '8d', '9d'),
            meld(MELD_SET, 'Kh', 'Ks', 'Kd'),
        ]
        assert meets_requirement(melds, requirement)

    def test_unmet_message_names_the_gap(self):
        message = unmet_requirement_message([meld(MELD_SET, '7h', '7s', '7d')], get_requirement(2))
        assert "run" in message
        assert "Round 2" in message

    def test_unknown_round(self):
        with pytest.raises(ValueError):
            get_requirement(8)


class TestIndices:
    def test_valid(self):
        assert validate_indices([2, 0, 1], 3) == [2, 0, 1]

    @pytest.mark.parametrize("bad", [[True], ["1"], [1.0], [None]])
    def test_non_integers(self, bad):
        with pytest.raises(ValueError):
            validate_indices(bad, 5)

    @pytest.mark.parametrize("bad", [[-1], [5], [0, 9]])
    def test_out_of_range(self, bad):
        with pytest.raises(ValueError):
            validate_indices(bad, 5)

    def test_duplicates(self):
        with pytest.raises(ValueError):
            validate_indices([1, 1], 5)
