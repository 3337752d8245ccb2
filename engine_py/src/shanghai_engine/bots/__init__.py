"""
Computer opponents for empty seats.
"""

from .base import BaseBot, BotAction, PlayerView
from .greedy import GreedyBot


def create_bot(name: str, difficulty: str) -> BaseBot:
    return GreedyBot(name, difficulty)


__all__ = ["BaseBot", "BotAction", "PlayerView", "GreedyBot", "create_bot"]
