# engine_py/src/shanghai_engine/scoring.py

from typing import Any, Dict, List

from .models import Card, PlayerRoundState


def hand_penalty(hand: List[Card]) -> int:
    """Points a losing player takes for the cards still in hand."""
    return sum(card.score_value for card in hand)


def score_round(players: List[PlayerRoundState], winner: str, round_number: int) -> Dict[str, int]:
    """
    Writes this round's score into every player's score array.

    The winner scores 0; everyone else scores their hand penalty. Returns the
    per-player scores for the round.
    """
    round_scores = {}
    for data in players:
        score = 0 if data.name == winner else hand_penalty(data.hand)
        data.scores[round_number - 1] = score
        round_scores[data.name] = score
    return round_scores


def final_standings(players: List[PlayerRoundState], round_winners: List[str]) -> List[Dict[str, Any]]:
    """
    Orders players for the end of the game. Lowest total wins.

    Ties on total go to the player who won more rounds, then to the earlier
    seat.
    """
    def sort_key(data: PlayerRoundState):
        return (data.total_score, -round_winners.count(data.name), data.seat)

    standings = []
    for place, data in enumerate(sorted(players, key=sort_key), start=1):
        standings.append({
            'place': place,
            'name': data.name,
            'total': data.total_score,
            'scores': list(data.scores),
            'rounds_won': round_winners.count(data.name),
        })
    return standings
