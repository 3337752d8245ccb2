"""
Shanghai Rummy game engine: rules, room management, bots and the WebSocket server.
"""

from .engine import ShanghaiEngine
from .game import Game
from .rules import RuleConfig, create_rules

__all__ = ["ShanghaiEngine", "Game", "RuleConfig", "create_rules"]
