# outsider/transport/dispatcher.py
from __future__ import annotations

from typing import Any, Dict, List, Tuple, Optional

from pydantic import BaseModel, ValidationError

from outsider.transport.protocols import (
    parse_incoming,
    OutError,
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
)
from outsider.domain.lifecycle.handlers import (
    handle_create_room,
    handle_join,
    handle_leave,
    handle_heartbeat,
    handle_snapshot,
    handle_reconnect,
)
from outsider.domain.lobby.handlers import (
    handle_toggle_ready,
    handle_update_settings,
    handle_can_start,
)
from outsider.domain.game.handlers import (
    handle_start_round,
    handle_pass_turn,
    handle_call_vote,
    handle_cast_vote,
    handle_resolve_votes,
    handle_next_round,
    handle_play_again,
    handle_reset_room,
)

DispatchResult = Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]
# (to_sender_events, to_room_events), each event is JSON dict

_HANDLERS = {
    # Lifecycle
    InCreateRoom: handle_create_room,
    InJoin: handle_join,
    InLeave: handle_leave,
    InHeartbeat: handle_heartbeat,
    InSnapshot: handle_snapshot,
    InReconnect: handle_reconnect,
    # Lobby
    InToggleReady: handle_toggle_ready,
    InUpdateSettings: handle_update_settings,
    InCanStart: handle_can_start,
    # Game
    InStartRound: handle_start_round,
    InPassTurn: handle_pass_turn,
    InCallVote: handle_call_vote,
    InCastVote: handle_cast_vote,
    InResolveVotes: handle_resolve_votes,
    InNextRound: handle_next_round,
    InPlayAgain: handle_play_again,
    InResetRoom: handle_reset_room,
}


async def dispatch_message(
    *,
    app,
    room_code: str,
    pid: Optional[str],
    raw: Dict[str, Any],
) -> DispatchResult:
    """
    Transport layer calls this.
    - Parses + validates raw JSON
    - Routes to the correct domain handler
    - Returns (to_sender, to_room) events as JSON dicts

    NOTE: This file contains NO Redis key usage and NO game rules.
    """
    try:
        msg = parse_incoming(raw)
    except (ValidationError, ValueError) as e:
        err = OutError(code="BAD_MESSAGE", message=str(e)).model_dump()
        return [err], []

    handler = _HANDLERS.get(type(msg))
    if handler is None:
        # If protocol exists but we didn't route it yet:
        err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}").model_dump()
        return [err], []

    to_sender, to_room = await handler(app=app, room_code=room_code, pid=pid, msg=msg)
    return _dump(to_sender), _dump(to_room)


def _dump(events: List[Any]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts. Targeted snapshots are already dicts.
    """
    return [e.model_dump() if isinstance(e, BaseModel) else e for e in events]
