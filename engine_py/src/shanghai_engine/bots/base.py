"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..constants import DIFFICULTY_MEDIUM
from ..models import Card, Meld
from ..rules import RoundRequirement
from ..validate import count_qualifying


@dataclass
class PlayerView:
    """What a bot may look at: its own hand plus public table state."""
    name: str
    hand: List[Card]
    requirement: RoundRequirement
    gone_down: bool
    melds: List[Meld]
    table_melds: Dict[str, List[Meld]] = field(default_factory=dict)
    discard_top: Optional[Card] = None
    buys: int = 0
    has_drawn: bool = False

    @classmethod
    def from_game(cls, game, name: str) -> 'PlayerView':
        data = game.player_data[name]
        return cls(
            name=name,
            hand=list(data.hand),
            requirement=game.requirement,
            gone_down=data.gone_down,
            melds=list(data.melds),
            table_melds={n: list(game.player_data[n].melds) for n in game.players},
            discard_top=game.discard_top(),
            buys=data.buys,
            has_drawn=game.turn_state.has_drawn and game.current_player == name,
        )

    def still_needed(self) -> Dict[str, int]:
        """How many more qualifying sets and runs the contract asks for."""
        sets, runs = count_qualifying(self.melds, self.requirement)
        return {
            'set': max(0, self.requirement.sets - sets),
            'run': max(0, self.requirement.runs - runs),
        }


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    @classmethod
    def draw(cls, from_discard: bool = False) -> 'BotAction':
        """Create a draw action (stock, or the top discard)."""
        return cls('draw', from_discard=from_discard)

    @classmethod
    def meld(cls, indices: List[int], meld_type: str) -> 'BotAction':
        """Create a meld action."""
        return cls('meld', indices=indices, meld_type=meld_type)

    @classmethod
    def lay_off(cls, card_index: int, target_player: str, meld_index: int) -> 'BotAction':
        """Create a lay-off action."""
        return cls('lay_off', card_index=card_index, target_player=target_player, meld_index=meld_index)

    @classmethod
    def discard(cls, index: int) -> 'BotAction':
        """Create a discard action."""
        return cls('discard', index=index)

    def __repr__(self):
        return f"BotAction({self.type!r}, {self.data!r})"


class BaseBot(ABC):
    """Abstract base class for bot players."""

    def __init__(self, name: str, difficulty: Optional[str] = None):
        self.name = name
        self.difficulty = difficulty or DIFFICULTY_MEDIUM

    def choose_action(self, view: PlayerView) -> BotAction:
        """
        Choose the next step of this bot's turn.

        Draws first, then melds and lay-offs while any are available, and
        finally a discard.
        """
        if not view.has_drawn:
            return self.choose_draw(view)
        meld = self.choose_meld(view)
        if meld is not None:
            return meld
        lay_off = self.choose_lay_off(view)
        if lay_off is not None:
            return lay_off
        return self.choose_discard(view)

    @abstractmethod
    def choose_draw(self, view: PlayerView) -> BotAction:
        pass

    @abstractmethod
    def choose_meld(self, view: PlayerView) -> Optional[BotAction]:
        pass

    @abstractmethod
    def choose_lay_off(self, view: PlayerView) -> Optional[BotAction]:
        pass

    @abstractmethod
    def choose_discard(self, view: PlayerView) -> BotAction:
        pass

    @abstractmethod
    def should_buy(self, card: Card, view: PlayerView) -> bool:
        pass

    @abstractmethod
    def get_delay(self, rng) -> float:
        """Seconds to wait before acting, to look like a human thinking."""
        pass
