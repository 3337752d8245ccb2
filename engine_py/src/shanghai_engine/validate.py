"""
Meld validation and round-requirement checks.
"""

from typing import List, Sequence, Tuple

from .constants import MELD_RUN, MELD_SET, MIN_RUN_SIZE, MIN_SET_SIZE
from .models import Card, Meld
from .rules import RoundRequirement


def is_valid_set(cards: Sequence[Card]) -> bool:
    """Three or more cards of the same rank."""
    if len(cards) < MIN_SET_SIZE:
        return False
    rank = cards[0].rank
    return all(card.rank == rank for card in cards)


def is_valid_run(cards: Sequence[Card]) -> bool:
    """Four or more cards of one suit whose values step by exactly one."""
    if len(cards) < MIN_RUN_SIZE:
        return False
    suit = cards[0].suit
    if not all(card.suit == suit for card in cards):
        return False
    ordered = sorted(cards, key=lambda c: c.value)
    return all(
        ordered[i].value == ordered[i - 1].value + 1
        for i in range(1, len(ordered))
    )


def validate_meld(cards: Sequence[Card], meld_type: str) -> bool:
    """
    Check whether cards form a legal meld of the claimed type.

    Args:
        cards: Candidate cards, in any order (the input is not mutated)
        meld_type: 'set' or 'run'

    Returns:
        True if the cards form that meld; unknown types are never valid
    """
    if meld_type == MELD_SET:
        return is_valid_set(cards)
    if meld_type == MELD_RUN:
        return is_valid_run(cards)
    return False


def lay_off_position(card: Card, meld: Meld) -> int:
    """
    Where card would go when laid off on meld.

    Returns:
        0 to prepend (low end of a run), len(meld.cards) to append,
        or -1 if the card does not extend the meld
    """
    if not meld.cards:
        return -1
    if meld.type == MELD_SET:
        return len(meld.cards) if card.rank == meld.cards[0].rank else -1
    if meld.type == MELD_RUN:
        if card.suit != meld.cards[0].suit:
            return -1
        values = [c.value for c in meld.cards]
        if card.value == min(values) - 1:
            return 0
        if card.value == max(values) + 1:
            return len(meld.cards)
    return -1


def can_lay_off(card: Card, meld: Meld) -> bool:
    return lay_off_position(card, meld) >= 0


def count_qualifying(melds: List[Meld], requirement: RoundRequirement) -> Tuple[int, int]:
    """Count the sets and runs that are big enough to count toward requirement."""
    sets = sum(
        1 for m in melds
        if m.type == MELD_SET and len(m.cards) >= requirement.min_set_size
    )
    runs = sum(
        1 for m in melds
        if m.type == MELD_RUN and len(m.cards) >= requirement.min_run_size
    )
    return sets, runs


def meets_requirement(melds: List[Meld], requirement: RoundRequirement) -> bool:
    sets, runs = count_qualifying(melds, requirement)
    return sets >= requirement.sets and runs >= requirement.runs


def unmet_requirement_message(melds: List[Meld], requirement: RoundRequirement) -> str:
    """Human readable explanation of which part of the contract is missing."""
    sets, runs = count_qualifying(melds, requirement)
    missing = []
    if sets < requirement.sets:
        missing.append(f"{requirement.sets} set(s) of {requirement.min_set_size} (have {sets})")
    if runs < requirement.runs:
        missing.append(f"{requirement.runs} run(s) of {requirement.min_run_size} (have {runs})")
    if not missing:
        return f"Round {requirement.round} requirement met"
    return f"Round {requirement.round} needs " + " and ".join(missing) + " before going out"


def validate_indices(indices: Sequence[object], hand_size: int) -> List[int]:
    """
    Check hand indices coming from outside the engine.

    Returns:
        The indices as a list of ints

    Raises:
        ValueError: on non-integers, duplicates or out-of-range values
    """
    result = []
    for index in indices:
        # bool is an int subclass but never a valid index
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValueError(f"Card index must be an integer, got {index!r}")
        if index < 0 or index >= hand_size:
            raise ValueError(f"Card index {index} out of range (hand has {hand_size} cards)")
        result.append(index)
    if len(set(result)) != len(result):
        raise ValueError("Card indices must be distinct")
    return result
