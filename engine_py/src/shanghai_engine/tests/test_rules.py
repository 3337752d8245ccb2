"""
Tests for the contract table and rule configuration.
"""

import pytest
from pydantic import ValidationError

from shanghai_engine.rules import (
    ROUND_REQUIREMENTS, TOTAL_ROUNDS, create_rules, default_rules, rules_from_env,
)


def test_contract_table():
    assert TOTAL_ROUNDS == 7
    table = [(r.sets, r.runs) for r in ROUND_REQUIREMENTS]
    assert table == [(2, 0), (1, 1), (0, 2), (3, 0), (2, 1), (1, 2), (0, 3)]
    assert ROUND_REQUIREMENTS[1].to_dict()['melds'] == "1 Set of 3 + 1 Run of 4"


def test_defaults():
    assert default_rules.min_players == 2
    assert default_rules.max_players == 6
    assert default_rules.starting_buys == 3
    assert default_rules.buy_window_seconds == 3.0
    assert [default_rules.hand_size(r) for r in (1, 7)] == [11, 17]


def test_overrides_do_not_touch_defaults():
    rules = create_rules(max_players=4, ai_delay_scale=0)
    assert rules.max_players == 4
    assert rules.ai_delay_scale == 0
    assert default_rules.max_players == 6


@pytest.mark.parametrize("overrides", [
    {"max_players": 7},
    {"min_players": 1},
    {"min_players": 4, "max_players": 3},
    {"starting_buys": 5},
    {"buy_window_seconds": -1},
])
def test_rejects_bad_config(overrides):
    with pytest.raises(ValidationError):
        create_rules(**overrides)


def test_rules_from_env(monkeypatch):
    monkeypatch.setenv("SHANGHAI_MAX_PLAYERS", "4")
    monkeypatch.setenv("SHANGHAI_BUY_WINDOW_SECONDS", "1.5")
    rules = rules_from_env()
    assert rules.max_players == 4
    assert rules.buy_window_seconds == 1.5
    assert rules.min_players == 2
