"""
Game rule configuration and the per-round contract table.
"""

import os
from dataclasses import dataclass
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator


@dataclass(frozen=True)
class RoundRequirement:
    """Contract a player must meet to go down in a round."""
    round: int
    description: str
    sets: int
    runs: int
    min_set_size: int
    min_run_size: int

    def to_dict(self) -> Dict[str, object]:
        return {
            'round': self.round,
            'melds': self.description,
            'sets': self.sets,
            'runs': self.runs,
            'min_set_size': self.min_set_size,
            'min_run_size': self.min_run_size,
        }


ROUND_REQUIREMENTS: List[RoundRequirement] = [
    RoundRequirement(1, "2 Sets of 3", sets=2, runs=0, min_set_size=3, min_run_size=0),
    RoundRequirement(2, "1 Set of 3 + 1 Run of 4", sets=1, runs=1, min_set_size=3, min_run_size=4),
    RoundRequirement(3, "2 Runs of 4", sets=0, runs=2, min_set_size=0, min_run_size=4),
    RoundRequirement(4, "3 Sets of 3", sets=3, runs=0, min_set_size=3, min_run_size=0),
    RoundRequirement(5, "2 Sets of 3 + 1 Run of 4", sets=2, runs=1, min_set_size=3, min_run_size=4),
    RoundRequirement(6, "1 Set of 3 + 2 Runs of 4", sets=1, runs=2, min_set_size=3, min_run_size=4),
    RoundRequirement(7, "3 Runs of 4", sets=0, runs=3, min_set_size=0, min_run_size=4),
]

TOTAL_ROUNDS = len(ROUND_REQUIREMENTS)


def get_requirement(round_number: int) -> RoundRequirement:
    """Look up the contract for a 1-based round number."""
    if not 1 <= round_number <= TOTAL_ROUNDS:
        raise ValueError(f"Unsupported round number: {round_number}")
    return ROUND_REQUIREMENTS[round_number - 1]


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=2,
        ge=2,
        le=6,
        description="Minimum number of players (humans and bots) required to start"
    )
    max_players: int = Field(
        default=6,
        ge=2,
        le=6,
        description="Maximum number of players allowed (round 7 deals 17 cards each)"
    )
    starting_buys: int = Field(
        default=3,
        ge=0,
        le=3,
        description="Buy tokens each player receives at the start of every round"
    )
    base_hand_size: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Cards dealt per player before adding the round number"
    )
    buy_window_seconds: float = Field(
        default=3.0,
        ge=0,
        le=30,
        description="How long other players may ask to buy a discard"
    )
    ai_delay_scale: float = Field(
        default=1.0,
        ge=0,
        le=10,
        description="Multiplier applied to bot thinking delays (0 = act immediately)"
    )
    meld_step_delay: float = Field(
        default=1.0,
        ge=0,
        description="Pause between a bot's draw and its melds, in seconds"
    )
    discard_step_delay: float = Field(
        default=0.5,
        ge=0,
        description="Pause between a bot's melds and its discard, in seconds"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't go below minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def hand_size(self, round_number: int) -> int:
        """Number of cards dealt to each player in the given round."""
        return self.base_hand_size + round_number


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


ENV_OVERRIDES = {
    'SHANGHAI_MIN_PLAYERS': 'min_players',
    'SHANGHAI_MAX_PLAYERS': 'max_players',
    'SHANGHAI_BUY_WINDOW_SECONDS': 'buy_window_seconds',
    'SHANGHAI_AI_DELAY_SCALE': 'ai_delay_scale',
}


def rules_from_env() -> RuleConfig:
    """Build rules from SHANGHAI_* environment variables; pydantic coerces the strings."""
    overrides = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is not None:
            overrides[field_name] = value
    return create_rules(**overrides)
