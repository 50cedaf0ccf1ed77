# outsider/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from outsider.store.models import Mode, Outcome, Phase


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str


# ---- Lifecycle ----

class InCreateRoom(InBase):
    type: Literal["create_room"] = "create_room"
    name: str = Field(min_length=1, max_length=24)
    # stable identity of the creator; a fresh one is issued when omitted
    pid: Optional[str] = Field(default=None, min_length=1, max_length=64)


class InJoin(InBase):
    type: Literal["join"] = "join"
    name: str = Field(min_length=1, max_length=24)


class InLeave(InBase):
    type: Literal["leave"] = "leave"


class InHeartbeat(InBase):
    type: Literal["heartbeat"] = "heartbeat"


class InSnapshot(InBase):
    type: Literal["snapshot"] = "snapshot"


class InReconnect(InBase):
    type: Literal["reconnect"] = "reconnect"
    pid: str = Field(min_length=1, max_length=64)


# ---- Lobby ----

class InToggleReady(InBase):
    type: Literal["toggle_ready"] = "toggle_ready"


class InUpdateSettings(InBase):
    type: Literal["update_settings"] = "update_settings"
    mode: Optional[Mode] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=40)
    discussion_time: Optional[int] = Field(default=None, ge=60, le=900)


class InCanStart(InBase):
    type: Literal["can_start"] = "can_start"


# ---- Game ----

class InStartRound(InBase):
    type: Literal["start_round"] = "start_round"


class InPassTurn(InBase):
    type: Literal["pass_turn"] = "pass_turn"


class InCallVote(InBase):
    type: Literal["call_vote"] = "call_vote"


class InCastVote(InBase):
    type: Literal["cast_vote"] = "cast_vote"
    target: str = Field(min_length=1, max_length=64)


class InResolveVotes(InBase):
    type: Literal["resolve_votes"] = "resolve_votes"


class InNextRound(InBase):
    type: Literal["next_round"] = "next_round"


class InPlayAgain(InBase):
    type: Literal["play_again"] = "play_again"


class InResetRoom(InBase):
    type: Literal["reset_room"] = "reset_room"


# Union of all incoming messages you support right now
IncomingMessage = Union[
    InCreateRoom,
    InJoin,
    InLeave,
    InHeartbeat,
    InSnapshot,
    InReconnect,
    InToggleReady,
    InUpdateSettings,
    InCanStart,
    InStartRound,
    InPassTurn,
    InCallVote,
    InCastVote,
    InResolveVotes,
    InNextRound,
    InPlayAgain,
    InResetRoom,
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    message: str


class OutHello(OutBase):
    type: Literal["hello"] = "hello"
    pid: str
    room_code: str


class OutRoomSnapshot(OutBase):
    """Room as seen by one viewer; secrets the viewer may not know are stripped."""
    type: Literal["room_snapshot"] = "room_snapshot"
    room: Dict[str, Any]
    players: List[Dict[str, Any]]
    viewer_pid: Optional[str] = None
    word: Optional[str] = None
    is_outsider: bool = False


class OutRoomCreated(OutBase):
    type: Literal["room_created"] = "room_created"
    room_code: str
    pid: str


class OutPlayerJoined(OutBase):
    type: Literal["player_joined"] = "player_joined"
    pid: str
    name: str


class OutPlayerLeft(OutBase):
    type: Literal["player_left"] = "player_left"
    pid: str


class OutPlayerUpdated(OutBase):
    type: Literal["player_updated"] = "player_updated"
    player: Dict[str, Any]


class OutSettingsUpdated(OutBase):
    type: Literal["settings_updated"] = "settings_updated"
    mode: Mode
    category: str
    discussion_time: int


class OutCanStart(OutBase):
    type: Literal["can_start"] = "can_start"
    can_start: bool
    reason: Optional[str] = None


class OutPhaseChanged(OutBase):
    type: Literal["phase_changed"] = "phase_changed"
    phase: Phase
    round_no: int


class OutTurnChanged(OutBase):
    type: Literal["turn_changed"] = "turn_changed"
    current_turn_index: int
    pid: Optional[str] = None
    turns_taken: int


class OutVoteCast(OutBase):
    """Who has voted. The target stays hidden until results."""
    type: Literal["vote_cast"] = "vote_cast"
    by: str


class OutVoteResult(OutBase):
    type: Literal["vote_result"] = "vote_result"
    outcome: Outcome
    eliminated_pid: Optional[str] = None
    vote_counts: Dict[str, int] = Field(default_factory=dict)


# =========================
# Parser helpers
# =========================

# A small map so we can parse by "type" quickly (simple & readable)
_INCOMING_BY_TYPE = {
    "create_room": InCreateRoom,
    "join": InJoin,
    "leave": InLeave,
    "heartbeat": InHeartbeat,
    "snapshot": InSnapshot,
    "reconnect": InReconnect,
    "toggle_ready": InToggleReady,
    "update_settings": InUpdateSettings,
    "can_start": InCanStart,
    "start_round": InStartRound,
    "pass_turn": InPassTurn,
    "call_vote": InCallVote,
    "cast_vote": InCastVote,
    "resolve_votes": InResolveVotes,
    "next_round": InNextRound,
    "play_again": InPlayAgain,
    "reset_room": InResetRoom,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValidationError if invalid, ValueError for a missing or unknown type.
    """
    t = payload.get("type")
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)


OutgoingEvent = Union[
    OutError,
    OutHello,
    OutRoomSnapshot,
    OutRoomCreated,
    OutPlayerJoined,
    OutPlayerLeft,
    OutPlayerUpdated,
    OutSettingsUpdated,
    OutCanStart,
    OutPhaseChanged,
    OutTurnChanged,
    OutVoteCast,
    OutVoteResult,
]
