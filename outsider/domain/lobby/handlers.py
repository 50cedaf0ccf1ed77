# outsider/domain/lobby/handlers.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from outsider.domain.common.types import DISCUSSION_TIMES
from outsider.domain.common.validation import is_host
from outsider.domain.game.rules import MIN_PLAYERS
from outsider.domain.game.words import WORD_CATEGORIES
from outsider.transport.protocols import (
    InCanStart,
    InToggleReady,
    InUpdateSettings,
    OutCanStart,
    OutError,
    OutPlayerUpdated,
    OutSettingsUpdated,
)
from outsider.util.timeutil import now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[Any], List[Any]]


def can_start_game(players: list) -> tuple[bool, Optional[str]]:
    """
    Lobby readiness check shown to the host before starting.
    Returns (can_start, reason)
    """
    if len(players) < MIN_PLAYERS:
        return False, f"At least {MIN_PLAYERS} players are required"
    if not all(p.is_ready or p.is_host for p in players):
        return False, "Every player must be ready"
    return True, None


async def handle_toggle_ready(*, app, room_code: str, pid: Optional[str], msg: InToggleReady) -> Result:
    if not pid:
        return [OutError(code="NO_PID", message="Missing pid")], []

    repo = app.state.repo
    room = await repo.get_room(room_code)
    if room is None:
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []
    if room.phase != "waiting":
        return [OutError(code="BAD_PHASE", message=f"Cannot change readiness in phase {room.phase}")], []

    player = await repo.get_player(room_code, pid)
    # the host is always ready
    if player is None or player.is_host:
        return [OutError(code="INVALID_PLAYER", message="Invalid player")], []

    await repo.update_player_fields(room_code, pid, is_ready=not player.is_ready)
    await repo.update_room_fields(room_code, last_activity=now_ts())
    await repo.refresh_room_ttl(room_code)

    updated = await repo.get_player(room_code, pid)
    return [], [OutPlayerUpdated(player=updated.model_dump(include={"pid", "name", "is_ready"}))]


async def handle_update_settings(*, app, room_code: str, pid: Optional[str], msg: InUpdateSettings) -> Result:
    repo = app.state.repo
    room = await repo.get_room(room_code)
    if room is None:
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []
    if not is_host(pid, room):
        return [OutError(code="NOT_HOST", message="Only the host can update settings")], []
    if room.phase != "waiting":
        return [OutError(code="BAD_PHASE", message=f"Cannot change settings in phase {room.phase}")], []

    updates: dict[str, Any] = {}
    if msg.mode is not None:
        updates["mode"] = msg.mode
    if msg.category is not None:
        if msg.category not in WORD_CATEGORIES:
            return [OutError(code="BAD_CATEGORY", message=f"Unknown category: {msg.category}")], []
        updates["category"] = msg.category
    if msg.discussion_time is not None:
        if msg.discussion_time not in DISCUSSION_TIMES:
            return [OutError(code="BAD_DISCUSSION_TIME", message=f"Discussion time must be one of {DISCUSSION_TIMES}")], []
        updates["discussion_time"] = msg.discussion_time

    if updates:
        await repo.update_room_fields(room_code, last_activity=now_ts(), **updates)
        await repo.refresh_room_ttl(room_code)
        logger.info("room %s: settings updated %s", room_code, updates)

    room = await repo.get_room(room_code)
    return [], [OutSettingsUpdated(mode=room.mode, category=room.category, discussion_time=room.discussion_time)]


async def handle_can_start(*, app, room_code: str, pid: Optional[str], msg: InCanStart) -> Result:
    repo = app.state.repo
    if not await repo.room_exists(room_code):
        return [OutError(code="ROOM_NOT_FOUND", message=f"Room {room_code} not found")], []
    players = await repo.list_players(room_code)
    ok, reason = can_start_game(players)
    return [OutCanStart(can_start=ok, reason=reason)], []
