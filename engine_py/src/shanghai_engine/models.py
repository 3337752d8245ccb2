"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import (
    RANKS, RED_SUITS, SUITS, SUIT_SYMBOLS, card_score_value, card_value,
)


@dataclass(frozen=True, eq=False)
class Card:
    """A single card of the two-deck shoe.

    Equality is identity: the shoe holds two copies of every card and they
    must never be confused with each other.
    """
    suit: str
    rank: str
    value: int = field(init=False)
    score_value: int = field(init=False)
    display: str = field(init=False)
    color: str = field(init=False)

    def __post_init__(self):
        if self.suit not in SUITS:
            raise ValueError(f"Unknown suit: {self.suit}")
        if self.rank not in RANKS:
            raise ValueError(f"Unknown rank: {self.rank}")
        object.__setattr__(self, 'value', card_value(self.rank))
        object.__setattr__(self, 'score_value', card_score_value(self.rank))
        object.__setattr__(self, 'display', f"{self.rank}{SUIT_SYMBOLS[self.suit]}")
        object.__setattr__(self, 'color', 'red' if self.suit in RED_SUITS else 'black')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'suit': self.suit,
            'rank': self.rank,
            'value': self.value,
            'display': self.display,
            'color': self.color,
        }


@dataclass
class Meld:
    type: str  # set|run
    cards: List[Card] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'cards': [c.to_dict() for c in self.cards]}


@dataclass
class PlayerRoundState:
    name: str
    seat: int
    is_bot: bool = False
    difficulty: Optional[str] = None  # bots only
    hand: List[Card] = field(default_factory=list)
    melds: List[Meld] = field(default_factory=list)
    buys: int = 3
    gone_down: bool = False
    scores: List[int] = field(default_factory=lambda: [0] * 7)  # one slot per round, never reset

    @property
    def total_score(self) -> int:
        return sum(self.scores)


@dataclass
class TurnState:
    has_drawn: bool = False


@dataclass
class BuyPhase:
    active: bool = False
    card: Optional[Card] = None
    discarder: Optional[str] = None
    eligible: List[str] = field(default_factory=list)
    requests: Dict[str, bool] = field(default_factory=dict)
    window_id: int = 0

    def all_responded(self) -> bool:
        return all(name in self.requests for name in self.eligible)


@dataclass
class GameEvent:
    type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'event': self.type, 'data': self.data}


@dataclass
class RoundResult:
    round_number: int
    winner: str
    round_scores: Dict[str, int]
    game_over: bool = False
    next_round: Optional[int] = None
    final_results: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round_number': self.round_number,
            'winner': self.winner,
            'round_scores': dict(self.round_scores),
            'game_over': self.game_over,
            'next_round': self.next_round,
            'final_results': self.final_results,
        }


class ActionResult:
    """Outcome of a room-manager call: success with a payload, or a coded failure."""

    def __init__(
        self,
        success: bool,
        code: Optional[str] = None,
        message: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None
    ):
        self.success = success
        self.code = code
        self.message = message
        self.payload = payload or {}

    @classmethod
    def ok(cls, payload: Optional[Dict[str, Any]] = None, message: str = "OK") -> 'ActionResult':
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def error(cls, code: str, message: str) -> 'ActionResult':
        return cls(success=False, code=code, message=message)

    def __repr__(self):
        if self.success:
            return f"ActionResult(success=True, payload={self.payload!r})"
        return f"ActionResult(success=False, code={self.code!r}, message={self.message!r})"
