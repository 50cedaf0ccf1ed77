# outsider/domain/lifecycle/handlers.py
from __future__ import annotations

import logging
import random
import string
import uuid
from typing import Any, Dict, List, Optional, Tuple

from outsider.domain.common.validation import is_outsider
from outsider.domain.game.rules import is_game_over
from outsider.settings import get_settings
from outsider.store.models import PlayerStore, RoomStore
from outsider.transport.protocols import (
    InCreateRoom,
    InHeartbeat,
    InJoin,
    InLeave,
    InReconnect,
    InSnapshot,
    OutError,
    OutPlayerJoined,
    OutPlayerLeft,
    OutRoomCreated,
    OutRoomSnapshot,
)
from outsider.util.timeutil import now_ts

logger = logging.getLogger(__name__)

# Returns: (to_sender, to_room)
Result = Tuple[List[Any], List[Any]]

_HIDDEN_ROOM_FIELDS = {"secret_word", "decoy_word", "previous_outsider_pids"}


def _gen_room_code() -> str:
    # 4-6 uppercase letters
    n = random.randint(4, 6)
    return "".join(random.choice(string.ascii_uppercase) for _ in range(n))


def new_pid() -> str:
    return uuid.uuid4().hex[:10]


def _reveal_all(room: RoomStore) -> bool:
    return room.phase == "results" and is_game_over(room.last_outcome)


def viewer_word(room: RoomStore, viewer: Optional[PlayerStore]) -> Optional[str]:
    """
    The word this viewer is allowed to see.
    Outsiders get nothing, the confused player gets the decoy.
    """
    if room.secret_word is None:
        return None
    if _reveal_all(room):
        return room.secret_word
    if viewer is None or is_outsider(viewer, room):
        return None
    if viewer.secret_role == "confused" and room.decoy_word:
        return room.decoy_word
    return room.secret_word


async def build_snapshot(repo, room_code: str, *, viewer_pid: Optional[str] = None) -> Optional[OutRoomSnapshot]:
    """
    Build the room as one viewer may see it.
    Keep it store-driven, not rule-driven.
    """
    room = await repo.get_room(room_code)
    if room is None:
        return None
    players = await repo.list_players(room_code)
    reveal = _reveal_all(room)

    room_out: Dict[str, Any] = room.model_dump(exclude=_HIDDEN_ROOM_FIELDS)
    if reveal:
        room_out["secret_word"] = room.secret_word
        room_out["decoy_word"] = room.decoy_word
    else:
        room_out["outsider_pids"] = []

    players_out: List[Dict[str, Any]] = []
    viewer: Optional[PlayerStore] = None
    for p in players:
        d = p.model_dump()
        if p.pid == viewer_pid:
            viewer = p
            # being told you are confused would give the decoy away
            if not reveal and p.secret_role == "confused":
                d["secret_role"] = None
        elif not reveal:
            d["secret_role"] = None
            if room.phase != "results":
                d["voted_for"] = None
        players_out.append(d)

    return OutRoomSnapshot(
        room=room_out,
        players=players_out,
        viewer_pid=viewer_pid,
        word=viewer_word(room, viewer),
        is_outsider=is_outsider(viewer, room),
    )


async def snapshots_for_room(repo, room_code: str) -> List[Dict[str, Any]]:
    """One targeted snapshot per connected player."""
    out: List[Dict[str, Any]] = []
    for p in await repo.list_players(room_code):
        if not p.connected:
            continue
        snap = await build_snapshot(repo, room_code, viewer_pid=p.pid)
        if snap is not None:
            out.append({**snap.model_dump(), "targets": [p.pid]})
    return out


# -------------------------
# Handlers
# -------------------------

async def handle_create_room(*, app, room_code: str, pid: Optional[str], msg: InCreateRoom) -> Result:
    """
    Create a room with the caller as host. The URL room code is ignored;
    a fresh code is always generated.
    """
    repo = app.state.repo
    ts = now_ts()

    # create_room replaces whatever sits under the code, so it must be unused
    code = _gen_room_code()
    while await repo.room_exists(code):
        code = _gen_room_code()

    host_pid = msg.pid or pid or new_pid()
    room = RoomStore(
        code=code,
        host_pid=host_pid,
        category=get_settings().DEFAULT_CATEGORY,
        created_at=ts,
        last_activity=ts,
    )
    await repo.create_room(room)
    await repo.add_player(
        code,
        PlayerStore(pid=host_pid, name=msg.name, is_host=True, is_ready=True, joined_at=ts, last_seen=ts),
    )
    await repo.refresh_room_ttl(code)
    logger.info("room %s created by %s", code, host_pid)

    return [OutRoomCreated(room_code=code, pid=host_pid)], []


async def handle_join(*, app, room_code: str, pid: Optional[str], msg: InJoin) -> Result:
    """
    Join:
    - only while the room is waiting
    - same identity joining twice keeps its record (name refreshed)
    - send snapshot to joiner, broadcast player_joined
    """
    if not pid:
        return [OutError(code="NO_PID", message="Missing pid for this connection")], []

    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    if room is None:
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []
    if room.phase != "waiting":
        return [OutError(code="GAME_IN_PROGRESS", message="Game already in progress")], []

    existing = await repo.get_player(room_code, pid)
    if existing is None:
        await repo.add_player(
            room_code,
            PlayerStore(pid=pid, name=msg.name, is_host=pid == room.host_pid, joined_at=ts, last_seen=ts),
        )
    else:
        await repo.update_player_fields(room_code, pid, name=msg.name)
        await repo.set_player_connected(room_code, pid, True, ts)

    await repo.update_room_fields(room_code, last_activity=ts)
    await repo.refresh_room_ttl(room_code)

    snapshot = await build_snapshot(repo, room_code, viewer_pid=pid)
    return [snapshot], [OutPlayerJoined(pid=pid, name=msg.name)]


async def handle_snapshot(*, app, room_code: str, pid: Optional[str], msg: InSnapshot) -> Result:
    snap = await build_snapshot(app.state.repo, room_code, viewer_pid=pid)
    if snap is None:
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []
    return [snap], []


async def handle_reconnect(*, app, room_code: str, pid: Optional[str], msg: InReconnect) -> Result:
    """
    Reconnect using an existing pid (stable identity across refresh).
    """
    effective_pid = msg.pid or pid
    if not effective_pid:
        return [OutError(code="NO_PID", message="Missing pid")], []

    repo = app.state.repo
    ts = now_ts()

    if not await repo.room_exists(room_code):
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []

    existing = await repo.get_player(room_code, effective_pid)
    if existing is None:
        return [OutError(code="PLAYER_NOT_FOUND", message="Player not found for reconnect")], []

    await repo.set_player_connected(room_code, effective_pid, True, ts)
    await repo.update_room_fields(room_code, last_activity=ts)
    await repo.refresh_room_ttl(room_code)

    snap = await build_snapshot(repo, room_code, viewer_pid=effective_pid)
    return [snap], []


async def handle_heartbeat(*, app, room_code: str, pid: Optional[str], msg: InHeartbeat) -> Result:
    """
    Heartbeat keeps presence + TTL alive.
    """
    if not pid:
        return [OutError(code="NO_PID", message="Missing pid")], []

    repo = app.state.repo
    ts = now_ts()

    if not await repo.room_exists(room_code):
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []

    await repo.set_player_connected(room_code, pid, True, ts)
    await repo.update_room_fields(room_code, last_activity=ts)
    await repo.refresh_room_ttl(room_code)

    # Keep heartbeat quiet (no broadcast spam)
    return [], []


async def handle_leave(*, app, room_code: str, pid: Optional[str], msg: InLeave) -> Result:
    """
    Leave: mark disconnected.
    The player record stays so the identity can reconnect and keep its score.
    """
    if not pid:
        return [OutError(code="NO_PID", message="Missing pid")], []

    repo = app.state.repo
    ts = now_ts()

    if not await repo.room_exists(room_code):
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []

    await repo.set_player_connected(room_code, pid, False, ts)
    await repo.update_room_fields(room_code, last_activity=ts)
    await repo.refresh_room_ttl(room_code)

    return [], [OutPlayerLeft(pid=pid)]


async def handle_disconnect(*, app, room_code: str, pid: Optional[str]) -> Result:
    """
    Called by transport when WS disconnects unexpectedly.
    Mirrors leave behavior but without requiring a message model.
    """
    if not pid:
        return [], []

    repo = app.state.repo
    if await repo.get_player(room_code, pid) is None:
        return [], []

    ts = now_ts()
    await repo.set_player_connected(room_code, pid, False, ts)
    await repo.update_room_fields(room_code, last_activity=ts)
    await repo.refresh_room_ttl(room_code)

    return [], [OutPlayerLeft(pid=pid)]
