"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictInt, ValidationError

from ..constants import MELD_RUN, MELD_SET


class EventType(str, Enum):
    """Inbound event types."""
    JOIN = "join"
    START = "start"
    DRAW = "draw"
    PICK_UP_DISCARD = "pick_up_discard"
    BUY = "buy"
    DISCARD = "discard"
    MELD = "meld"
    LAY_OFF = "lay_off"
    REORDER = "reorder"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    EVENT = "event"
    ERROR = "error"


class MeldType(str, Enum):
    SET = MELD_SET
    RUN = MELD_RUN


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class JoinEvent(BaseEvent):
    """Join a room, or create one when room_id is missing or unknown."""
    type: EventType = EventType.JOIN
    room_id: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=30)
    ai_count: StrictInt = Field(0, ge=0, le=5)


class StartEvent(BaseEvent):
    """Start game event (host only)."""
    type: EventType = EventType.START


class DrawEvent(BaseEvent):
    """Draw from the stock."""
    type: EventType = EventType.DRAW


class PickUpDiscardEvent(BaseEvent):
    """Take the top discard."""
    type: EventType = EventType.PICK_UP_DISCARD


class BuyEvent(BaseEvent):
    """Answer the open buy window."""
    type: EventType = EventType.BUY
    wants: StrictBool = True


class DiscardEvent(BaseEvent):
    type: EventType = EventType.DISCARD
    card_index: StrictInt = Field(..., ge=0)


class MeldEvent(BaseEvent):
    type: EventType = EventType.MELD
    card_indices: List[StrictInt] = Field(..., min_length=1)
    meld_type: MeldType


class LayOffEvent(BaseEvent):
    type: EventType = EventType.LAY_OFF
    card_index: StrictInt = Field(..., ge=0)
    target_player: str = Field(..., min_length=1)
    meld_index: StrictInt = Field(..., ge=0)


class ReorderEvent(BaseEvent):
    """Rearrange the sender's hand; order is a permutation of hand indices."""
    type: EventType = EventType.REORDER
    order: List[StrictInt]


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    JoinEvent,
    StartEvent,
    DrawEvent,
    PickUpDiscardEvent,
    BuyEvent,
    DiscardEvent,
    MeldEvent,
    LayOffEvent,
    ReorderEvent,
    RequestStateEvent
]


# Outbound event models
class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    room_code: str
    player_name: str
    is_host: bool
    ai_players: List[str]
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event, personalised for the receiving player."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class GameEventMessage(BaseModel):
    """Lifecycle notification (round started, card bought, ...)."""
    type: OutboundEventType = OutboundEventType.EVENT
    event: str
    data: Dict[str, Any]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str
    timestamp: float


EVENT_MAP = {
    EventType.JOIN: JoinEvent,
    EventType.START: StartEvent,
    EventType.DRAW: DrawEvent,
    EventType.PICK_UP_DISCARD: PickUpDiscardEvent,
    EventType.BUY: BuyEvent,
    EventType.DISCARD: DiscardEvent,
    EventType.MELD: MeldEvent,
    EventType.LAY_OFF: LayOffEvent,
    EventType.REORDER: ReorderEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = EVENT_MAP[event_type]
    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0]['msg']}")


def create_error_event(code: str, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_join_success_event(room_code: str, player_name: str, is_host: bool, ai_players: List[str]) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(
        room_code=room_code,
        player_name=player_name,
        is_host=is_host,
        ai_players=ai_players,
        timestamp=time.time()
    )


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(
        state=state,
        timestamp=time.time()
    )


def create_game_event(event: str, data: Dict[str, Any]) -> GameEventMessage:
    """Wrap a lifecycle event for the wire."""
    return GameEventMessage(
        event=event,
        data=data,
        timestamp=time.time()
    )
