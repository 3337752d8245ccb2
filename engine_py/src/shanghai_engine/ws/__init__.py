"""
WebSocket event models for the Shanghai game.
"""

from .events import (
    EventType,
    OutboundEventType,
    parse_inbound_event,
    create_error_event,
    create_join_success_event,
    create_state_full_event,
    create_game_event,
)

__all__ = [
    "EventType",
    "OutboundEventType",
    "parse_inbound_event",
    "create_error_event",
    "create_join_success_event",
    "create_state_full_event",
    "create_game_event",
]
