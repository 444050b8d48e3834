"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    START_GAME = "start_game"
    CONFIRM_BOTS = "confirm_bots"
    PLAY_CARD = "play_card"
    PLAY_DOUBLE = "play_double"
    DECLARE_SYMBOL = "declare_symbol"
    DECLARE_COLOR = "declare_color"
    DRAW_CARD = "draw_card"
    PASS = "pass"
    MATCH_CARD = "match_card"
    ANNOUNCE_LAST_CARD = "announce_last_card"
    CHALLENGE_LAST_CARD = "challenge_last_card"
    NEXT_ROUND = "next_round"
    GET_ROOMS = "get_rooms"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_CREATED = "room_created"
    ROOM_JOINED = "room_joined"
    ROOM_UPDATE = "room_update"
    GAME_STATE = "game_state"
    ERROR = "error"
    LAST_CARD_ANNOUNCED = "last_card_announced"
    LAST_CARD_CHALLENGE = "last_card_challenge"
    SUGGEST_BOTS = "suggest_bots"
    ROOMS_AVAILABLE = "rooms_available"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    NAME_TAKEN = "NAME_TAKEN"
    NOT_HOST = "NOT_HOST"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    WRONG_PHASE = "WRONG_PHASE"
    DECLARATION_PENDING = "DECLARATION_PENDING"
    NO_DECLARATION = "NO_DECLARATION"
    OWNERSHIP = "OWNERSHIP"
    ILLEGAL_PLAY = "ILLEGAL_PLAY"
    ILLEGAL_DOUBLE = "ILLEGAL_DOUBLE"
    DOUBLE_GOING_OUT = "DOUBLE_GOING_OUT"
    ALREADY_DREW = "ALREADY_DREW"
    MUST_DRAW = "MUST_DRAW"
    NO_MATCH = "NO_MATCH"
    MATCH_WINDOW_CLOSED = "MATCH_WINDOW_CLOSED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    INTERNAL = "INTERNAL"

    @classmethod
    def from_code(cls, code: Optional[str]) -> 'ErrorCode':
        """Map an engine or room error code onto the wire enum."""
        try:
            return cls(code)
        except ValueError:
            return cls.INTERNAL


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    type: EventType = EventType.CREATE_ROOM
    player_name: str = Field(..., max_length=30)
    target_score: Optional[int] = Field(default=None, ge=1, le=10000)


class JoinRoomEvent(BaseEvent):
    type: EventType = EventType.JOIN_ROOM
    room_id: str = Field(..., min_length=1, max_length=10)
    player_name: str = Field(..., max_length=30)


class StartGameEvent(BaseEvent):
    type: EventType = EventType.START_GAME


class ConfirmBotsEvent(BaseEvent):
    type: EventType = EventType.CONFIRM_BOTS
    confirm: bool


class PlayCardEvent(BaseEvent):
    type: EventType = EventType.PLAY_CARD
    card_id: str = Field(..., min_length=1)


class PlayDoubleEvent(BaseEvent):
    type: EventType = EventType.PLAY_DOUBLE
    card_id1: str = Field(..., min_length=1)
    card_id2: str = Field(..., min_length=1)


class DeclareSymbolEvent(BaseEvent):
    type: EventType = EventType.DECLARE_SYMBOL
    symbol: str


class DeclareColorEvent(BaseEvent):
    type: EventType = EventType.DECLARE_COLOR
    color: str


class DrawCardEvent(BaseEvent):
    type: EventType = EventType.DRAW_CARD


class PassEvent(BaseEvent):
    type: EventType = EventType.PASS


class MatchCardEvent(BaseEvent):
    type: EventType = EventType.MATCH_CARD
    card_id: str = Field(..., min_length=1)


class AnnounceLastCardEvent(BaseEvent):
    type: EventType = EventType.ANNOUNCE_LAST_CARD


class ChallengeLastCardEvent(BaseEvent):
    type: EventType = EventType.CHALLENGE_LAST_CARD
    target_player_id: str = Field(..., min_length=1)


class NextRoundEvent(BaseEvent):
    type: EventType = EventType.NEXT_ROUND


class GetRoomsEvent(BaseEvent):
    type: EventType = EventType.GET_ROOMS


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    StartGameEvent,
    ConfirmBotsEvent,
    PlayCardEvent,
    PlayDoubleEvent,
    DeclareSymbolEvent,
    DeclareColorEvent,
    DrawCardEvent,
    PassEvent,
    MatchCardEvent,
    AnnounceLastCardEvent,
    ChallengeLastCardEvent,
    NextRoundEvent,
    GetRoomsEvent,
]

EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.START_GAME: StartGameEvent,
    EventType.CONFIRM_BOTS: ConfirmBotsEvent,
    EventType.PLAY_CARD: PlayCardEvent,
    EventType.PLAY_DOUBLE: PlayDoubleEvent,
    EventType.DECLARE_SYMBOL: DeclareSymbolEvent,
    EventType.DECLARE_COLOR: DeclareColorEvent,
    EventType.DRAW_CARD: DrawCardEvent,
    EventType.PASS: PassEvent,
    EventType.MATCH_CARD: MatchCardEvent,
    EventType.ANNOUNCE_LAST_CARD: AnnounceLastCardEvent,
    EventType.CHALLENGE_LAST_CARD: ChallengeLastCardEvent,
    EventType.NEXT_ROUND: NextRoundEvent,
    EventType.GET_ROOMS: GetRoomsEvent,
}


# Outbound event models
class OutboundEvent(BaseModel):
    type: OutboundEventType
    timestamp: float = Field(default_factory=time.time)


class RoomCreatedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ROOM_CREATED
    room_id: str


class RoomJoinedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ROOM_JOINED
    room_id: str
    player_id: str
    spectator: bool = False


class RoomUpdateEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ROOM_UPDATE
    room_id: str
    host_id: str
    players: List[Dict[str, Any]]
    spectators: List[Dict[str, Any]]
    phase: str


class GameStateEvent(OutboundEvent):
    """Redacted state; the view fields sit at the top level."""
    model_config = ConfigDict(extra="allow")
    type: OutboundEventType = OutboundEventType.GAME_STATE


class ErrorEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str


class LastCardAnnouncedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.LAST_CARD_ANNOUNCED
    player_name: str


class LastCardChallengeEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.LAST_CARD_CHALLENGE
    challenger_name: str
    target_name: str


class SuggestBotsEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.SUGGEST_BOTS
    current_count: int
    bots_needed: int


class RoomsAvailableEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ROOMS_AVAILABLE
    rooms: List[Dict[str, Any]]


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
    except Exception as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def create_error_event(code: Union[ErrorCode, str], message: str) -> ErrorEvent:
    """Create an error event."""
    if not isinstance(code, ErrorCode):
        code = ErrorCode.from_code(code)
    return ErrorEvent(code=code, message=message)


def create_game_state_event(view: Dict[str, Any]) -> GameStateEvent:
    """Wrap a redacted view."""
    return GameStateEvent(**view)
