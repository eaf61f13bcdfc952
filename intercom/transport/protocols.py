# intercom/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from intercom.domain.common.errors import MalformedFrame
from intercom.domain.common.types import TARGET_ALL, HouseMode


# Wire names are camelCase, Python names snake_case.
_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =========================
# Incoming (Client -> Server)
# Frames look like {"type": "...", "data": {...}}
# =========================

class InBase(BaseModel):
    model_config = _WIRE

    type: str
    # Informational only: the session bound to the socket is authoritative.
    session_id: Optional[str] = None


# ---- Lifecycle ----

class InJoin(InBase):
    type: Literal["join"] = "join"
    house_code: str = Field(min_length=1, max_length=32)
    session_id: str = Field(min_length=1, max_length=64)
    room_name: Optional[str] = Field(default=None, max_length=40)
    display_name: Optional[str] = Field(default=None, max_length=40)


class InLeave(InBase):
    type: Literal["leave"] = "leave"


class InChangeMode(InBase):
    type: Literal["changeMode"] = "changeMode"
    mode: HouseMode


# ---- Rooms (multi-room variant) ----

class InCreateRoom(InBase):
    type: Literal["createRoom"] = "createRoom"
    name: str = Field(min_length=1, max_length=40)
    permanent: bool = False


class InJoinRoom(InBase):
    type: Literal["joinRoom"] = "joinRoom"
    room_name: str = Field(min_length=1, max_length=40)


class InLeaveRoom(InBase):
    type: Literal["leaveRoom"] = "leaveRoom"


class InDeleteRoom(InBase):
    type: Literal["deleteRoom"] = "deleteRoom"
    name: str = Field(min_length=1, max_length=40)


# ---- Chat ----

class InChat(InBase):
    type: Literal["chat"] = "chat"
    text: str = Field(min_length=1, max_length=1000)
    target: str = "ALL"


class InTyping(InBase):
    type: Literal["typing"] = "typing"
    is_typing: bool
    target: Optional[str] = None


# ---- Talk / WebRTC signaling ----

class InStartTalk(InBase):
    type: Literal["startTalk"] = "startTalk"
    target: str = "ALL"


class InStopTalk(InBase):
    type: Literal["stopTalk"] = "stopTalk"


class InKillAllAudio(InBase):
    type: Literal["killAllAudio"] = "killAllAudio"


class InSignal(InBase):
    """
    Opaque WebRTC payload (offer / answer / ICE candidate).
    `to` and `target` are interchangeable; "ALL" fans out to the house.
    """
    type: Literal["signal", "webrtc-signal"] = "signal"
    to: Optional[str] = None
    target: Optional[str] = None
    signal: Any

    def recipient(self) -> Optional[str]:
        if TARGET_ALL in (self.to, self.target):
            return TARGET_ALL
        return self.to or self.target


# ---- Polls ----

class InStartPoll(InBase):
    type: Literal["startPoll"] = "startPoll"
    question: str = Field(min_length=1, max_length=200)
    options: List[str] = Field(min_length=2, max_length=10)
    show_realtime: bool = False
    duration: Optional[float] = None
    multiple_choice: bool = False


class InVote(InBase):
    type: Literal["vote"] = "vote"
    option_index: int


class InEndPoll(InBase):
    type: Literal["endPoll"] = "endPoll"


class InCancelPoll(InBase):
    type: Literal["cancelPoll"] = "cancelPoll"


# ---- Circle sort mini-game ----

class InStartCircleSort(InBase):
    type: Literal["startCircleSort"] = "startCircleSort"
    grid_size: Optional[int] = None
    time_limit: Optional[int] = None
    rounds: Optional[int] = None
    color_count: Optional[int] = None


class InSubmitCircleSort(InBase):
    type: Literal["submitCircleSort"] = "submitCircleSort"
    completion_time: float = Field(ge=0)
    clicks: int = Field(ge=0)
    score: int
    completed: bool = False


class InCancelCircleSort(InBase):
    type: Literal["cancelCircleSort"] = "cancelCircleSort"


# ---- Collaborative drawing passthrough ----

PASSTHROUGH_TYPES = (
    "drawPoints",
    "strokeStart",
    "strokeEnd",
    "cursorMove",
    "tafelStroke",
    "tafelErase",
    "tafelClear",
    "tafelClearMine",
    "userColorChange",
    "settingsUpdate",
)


class InPassthrough(InBase):
    """Opaque payload relayed to the rest of the house; extra fields are kept."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: Literal[
        "drawPoints",
        "strokeStart",
        "strokeEnd",
        "cursorMove",
        "tafelStroke",
        "tafelErase",
        "tafelClear",
        "tafelClearMine",
        "userColorChange",
        "settingsUpdate",
    ]

    def payload(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


# Union of all incoming messages
IncomingMessage = Union[
    InJoin,
    InLeave,
    InChangeMode,
    InCreateRoom,
    InJoinRoom,
    InLeaveRoom,
    InDeleteRoom,
    InChat,
    InTyping,
    InStartTalk,
    InStopTalk,
    InKillAllAudio,
    InSignal,
    InStartPoll,
    InVote,
    InEndPoll,
    InCancelPoll,
    InStartCircleSort,
    InSubmitCircleSort,
    InCancelCircleSort,
    InPassthrough,
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    model_config = _WIRE

    type: str

    def envelope(self) -> Dict[str, Any]:
        """{"type": ..., "data": {...}} with camelCase keys."""
        data = self.model_dump(by_alias=True, exclude={"type"}, exclude_none=True)
        return {"type": self.type, "data": data}


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    message: str


class OutSystem(OutBase):
    type: Literal["system"] = "system"
    message: str


class OutJoined(OutBase):
    type: Literal["joined"] = "joined"
    session_id: str
    house_code: str
    is_housemaster: bool
    mode: HouseMode
    members: List[Dict[str, Any]]
    rooms: List[Dict[str, Any]]


class OutMemberList(OutBase):
    """Member list of a house; clients know this event as `rooms`."""
    type: Literal["rooms"] = "rooms"
    members: List[Dict[str, Any]]


class OutRoomsUpdate(OutBase):
    type: Literal["roomsUpdate"] = "roomsUpdate"
    rooms: List[Dict[str, Any]]


class OutModeChange(OutBase):
    type: Literal["modeChange"] = "modeChange"
    mode: HouseMode


class OutChat(OutBase):
    type: Literal["chat"] = "chat"
    sender: str
    sender_name: str
    target: str
    text: str
    timestamp: int


class OutTyping(OutBase):
    type: Literal["typing"] = "typing"
    session_id: str
    name: str
    is_typing: bool


class OutTalkState(OutBase):
    type: Literal["talkState"] = "talkState"
    talking: bool
    session_id: str
    name: Optional[str] = None
    target: Optional[str] = None


class OutSignal(OutBase):
    type: Literal["signal"] = "signal"
    signal: Any
    sender: Optional[str] = Field(default=None, alias="from")
    target: Optional[str] = None
    session_id: Optional[str] = None

    def envelope(self) -> Dict[str, Any]:
        env = super().envelope()
        # the payload is forwarded as sent, null included
        env["data"]["signal"] = self.signal
        return env


class OutForceStopTalking(OutBase):
    type: Literal["forceStopTalking"] = "forceStopTalking"
    reason: str
    by: str


class OutPollStarted(OutBase):
    type: Literal["pollStarted"] = "pollStarted"
    poll: Dict[str, Any]


class OutPollUpdate(OutBase):
    type: Literal["pollUpdate"] = "pollUpdate"
    poll: Dict[str, Any]


class OutPollEnded(OutBase):
    type: Literal["pollEnded"] = "pollEnded"
    poll: Dict[str, Any]
    results: List[Dict[str, Any]]
    reason: Literal["ended", "timeout"] = "ended"


class OutPollCanceled(OutBase):
    type: Literal["pollCanceled"] = "pollCanceled"


class OutCircleSortStarted(OutBase):
    type: Literal["circleSortStarted"] = "circleSortStarted"
    round: int
    total_rounds: int
    grid: List[List[str]]
    grid_size: int
    color_count: int
    time_limit: int
    start_time: int
    end_time: int


class OutCircleSortEnded(OutBase):
    type: Literal["circleSortEnded"] = "circleSortEnded"
    round: int
    total_rounds: int
    results: List[Dict[str, Any]]
    final_round: bool


class OutCircleSortGameEnded(OutBase):
    type: Literal["circleSortGameEnded"] = "circleSortGameEnded"
    standings: List[Dict[str, Any]]
    total_rounds: int


class OutCircleSortCanceled(OutBase):
    type: Literal["circleSortCanceled"] = "circleSortCanceled"


class OutRelay(OutBase):
    """Passthrough drawing event; keeps the sender's opaque fields."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: str
    session_id: str
    timestamp: int

    def envelope(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude={"type"})
        return {"type": self.type, "data": data}


OutgoingEvent = Union[
    OutError,
    OutSystem,
    OutJoined,
    OutMemberList,
    OutRoomsUpdate,
    OutModeChange,
    OutChat,
    OutTyping,
    OutTalkState,
    OutSignal,
    OutForceStopTalking,
    OutPollStarted,
    OutPollUpdate,
    OutPollEnded,
    OutPollCanceled,
    OutCircleSortStarted,
    OutCircleSortEnded,
    OutCircleSortGameEnded,
    OutCircleSortCanceled,
    OutRelay,
]


# =========================
# Parser helpers
# =========================

class UnknownCommand(ValueError):
    """Frame type is not part of the inbound catalog."""


_INCOMING_BY_TYPE: Dict[str, type] = {
    "join": InJoin,
    "leave": InLeave,
    "changeMode": InChangeMode,
    "createRoom": InCreateRoom,
    "joinRoom": InJoinRoom,
    "leaveRoom": InLeaveRoom,
    "deleteRoom": InDeleteRoom,
    "chat": InChat,
    "typing": InTyping,
    "startTalk": InStartTalk,
    "stopTalk": InStopTalk,
    "killAllAudio": InKillAllAudio,
    "signal": InSignal,
    "webrtc-signal": InSignal,
    "startPoll": InStartPoll,
    "vote": InVote,
    "endPoll": InEndPoll,
    "cancelPoll": InCancelPoll,
    "startCircleSort": InStartCircleSort,
    "submitCircleSort": InSubmitCircleSort,
    "cancelCircleSort": InCancelCircleSort,
    **{t: InPassthrough for t in PASSTHROUGH_TYPES},
}


def parse_incoming(frame: Dict[str, Any]) -> IncomingMessage:
    """
    Convert a raw {type, data} frame -> validated message model.
    Raises MalformedFrame when the envelope itself is broken,
    UnknownCommand for a type outside the catalog and
    ValidationError for a known type with bad fields.
    """
    t = frame.get("type") if isinstance(frame, dict) else None
    if not isinstance(t, str):
        raise MalformedFrame("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise UnknownCommand(f"Unknown message type: {t}")

    data = frame.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedFrame(f"{t}: data must be an object")

    return cls.model_validate({**data, "type": t})
