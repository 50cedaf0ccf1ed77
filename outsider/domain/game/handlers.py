# outsider/domain/game/handlers.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from outsider.domain.common.errors import GameError
from outsider.domain.game.engine import RoomStateMachine
from outsider.domain.lifecycle.handlers import snapshots_for_room
from outsider.transport.protocols import (
    InCallVote,
    InCastVote,
    InNextRound,
    InPassTurn,
    InPlayAgain,
    InResetRoom,
    InResolveVotes,
    InStartRound,
    OutError,
    OutPhaseChanged,
    OutTurnChanged,
    OutVoteCast,
    OutVoteResult,
)

logger = logging.getLogger(__name__)

Outgoing = List[Any]
Result = Tuple[Outgoing, Outgoing]


def machine_for(app) -> RoomStateMachine:
    """State machine bound to the app's repo and randomness source."""
    return RoomStateMachine(app.state.repo, rng=getattr(app.state, "rng", None))


def _rejected(room_code: str, err: GameError) -> Result:
    logger.debug("room %s: command rejected %s: %s", room_code, err.code, err.message)
    return [OutError(code=err.code, message=err.message)], []


async def _phase_broadcast(app, room_code: str) -> Outgoing:
    room = await app.state.repo.get_room(room_code)
    events: Outgoing = [OutPhaseChanged(phase=room.phase, round_no=room.round_no)]
    events.extend(await snapshots_for_room(app.state.repo, room_code))
    return events


async def handle_start_round(*, app, room_code: str, pid: Optional[str], msg: InStartRound) -> Result:
    try:
        await machine_for(app).start_round(room_code, pid)
    except GameError as e:
        return _rejected(room_code, e)
    # the word and roles travel only inside per-viewer snapshots
    return [], await _phase_broadcast(app, room_code)


async def handle_pass_turn(*, app, room_code: str, pid: Optional[str], msg: InPassTurn) -> Result:
    try:
        step = await machine_for(app).pass_turn(room_code)
    except GameError as e:
        return _rejected(room_code, e)

    if step.phase != "playing":
        return [], await _phase_broadcast(app, room_code)

    holder = await machine_for(app).get_current_turn_holder(room_code)
    return [], [
        OutTurnChanged(
            current_turn_index=step.current_turn_index,
            pid=holder.pid if holder else None,
            turns_taken=step.turns_taken,
        )
    ]


async def handle_call_vote(*, app, room_code: str, pid: Optional[str], msg: InCallVote) -> Result:
    try:
        await machine_for(app).call_vote(room_code, pid)
    except GameError as e:
        return _rejected(room_code, e)
    return [], await _phase_broadcast(app, room_code)


async def handle_cast_vote(*, app, room_code: str, pid: Optional[str], msg: InCastVote) -> Result:
    try:
        await machine_for(app).cast_vote(room_code, pid, msg.target)
    except GameError as e:
        return _rejected(room_code, e)
    return [], [OutVoteCast(by=pid)]


async def handle_resolve_votes(*, app, room_code: str, pid: Optional[str], msg: InResolveVotes) -> Result:
    try:
        verdict = await machine_for(app).resolve_votes(room_code)
    except GameError as e:
        return _rejected(room_code, e)

    result = OutVoteResult(
        outcome=verdict.outcome,
        eliminated_pid=verdict.eliminated_pid,
        vote_counts=verdict.vote_counts,
    )
    return [], [result, *await _phase_broadcast(app, room_code)]


async def handle_next_round(*, app, room_code: str, pid: Optional[str], msg: InNextRound) -> Result:
    try:
        await machine_for(app).next_round(room_code, pid)
    except GameError as e:
        return _rejected(room_code, e)
    return [], await _phase_broadcast(app, room_code)


async def handle_play_again(*, app, room_code: str, pid: Optional[str], msg: InPlayAgain) -> Result:
    try:
        await machine_for(app).play_again(room_code, pid)
    except GameError as e:
        return _rejected(room_code, e)
    return [], await _phase_broadcast(app, room_code)


async def handle_reset_room(*, app, room_code: str, pid: Optional[str], msg: InResetRoom) -> Result:
    try:
        await machine_for(app).reset_room(room_code, pid)
    except GameError as e:
        return _rejected(room_code, e)
    return [], await _phase_broadcast(app, room_code)
