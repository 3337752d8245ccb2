"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, Optional

from .constants import PHASE_LOBBY
from .game import Game
from .models import Card


def _card(card: Optional[Card]) -> Optional[Dict[str, Any]]:
    return card.to_dict() if card is not None else None


def sanitize_state(game: Game, viewer: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the view of a room that one participant is allowed to see.

    Args:
        game: Room to serialize
        viewer: Name of the player viewing the state (to show their cards)

    Returns:
        Snapshot dictionary safe for JSON transmission. Opponents' hands are
        reduced to counts; only the viewer's own hand is included.
    """
    viewer_data = game.player_data.get(viewer) if viewer else None

    all_melds = {}
    hand_counts = {}
    scores = {}
    totals = {}
    gone_down = {}
    buys = {}
    for name in game.players:
        data = game.player_data[name]
        all_melds[name] = [meld.to_dict() for meld in data.melds]
        hand_counts[name] = len(data.hand)
        scores[name] = list(data.scores)
        totals[name] = data.total_score
        gone_down[name] = data.gone_down
        buys[name] = data.buys

    buy_phase = game.buy_phase
    sanitized = {
        "game_code": game.code,
        "version": game.version,
        "phase": game.phase,
        "host": game.host_name,
        "players": list(game.players),
        "ai_players": game.bot_names,
        "current_player": game.current_player if game.phase != PHASE_LOBBY else None,
        "current_round": game.current_round,
        "round_requirements": game.requirement.to_dict(),
        "turn_state": {
            "has_drawn": game.turn_state.has_drawn,
            "phase": game.turn_phase,
        },
        "discard_top": _card(game.discard_top()),
        "discard_count": len(game.discard_pile),
        "stock_count": len(game.deck) if game.deck is not None else 0,
        "all_player_melds": all_melds,
        "hand_counts": hand_counts,
        "scores": scores,
        "totals": totals,
        "gone_down": gone_down,
        "buys": buys,
        "buy_phase": {
            "active": buy_phase.active,
            "card": _card(buy_phase.card) if buy_phase.active else None,
            "discarder": buy_phase.discarder if buy_phase.active else None,
            "eligible": list(buy_phase.eligible) if buy_phase.active else [],
        },
        "final_results": game.final_results,
        "game_log": game.game_log[-20:],
    }

    # Show hand contents only to their owner
    if viewer_data is not None:
        sanitized["you"] = viewer
        sanitized["hand"] = [card.to_dict() for card in viewer_data.hand]
        sanitized["melds"] = all_melds[viewer]
        sanitized["buys_remaining"] = viewer_data.buys
        sanitized["has_gone_down"] = viewer_data.gone_down
        sanitized["can_buy"] = buy_phase.active and viewer in buy_phase.eligible
    else:
        sanitized["you"] = None
        sanitized["hand"] = []
        sanitized["melds"] = []
        sanitized["buys_remaining"] = 0
        sanitized["has_gone_down"] = False
        sanitized["can_buy"] = False

    return sanitized


def serialize_player_for_list(game: Game, name: str) -> Dict[str, Any]:
    """Serialize player for lobby player list."""
    data = game.player_data[name]
    return {
        "name": data.name,
        "seat": data.seat,
        "is_bot": data.is_bot,
        "difficulty": data.difficulty,
        "is_host": name == game.host_name,
    }


def get_public_room_info(game: Game) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "game_code": game.code,
        "phase": game.phase,
        "current_round": game.current_round,
        "player_count": len(game.players),
        "max_players": game.rules.max_players,
        "players": [
            serialize_player_for_list(game, name)
            for name in game.players
        ]
    }
