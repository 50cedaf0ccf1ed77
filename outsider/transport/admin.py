# outsider/transport/admin.py
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from outsider.domain.game.rules import is_game_over

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/rooms")
async def list_rooms(request: Request):
    """
    Live rooms with their game state. Secrets (word, outsiders) are left out.
    """
    repo = request.app.state.repo
    wsman = request.app.state.wsman

    rooms = []
    for code in await repo.list_room_codes():
        room = await repo.get_room(code)
        if room is None:
            continue
        players = await repo.list_players(code)
        rooms.append(
            {
                "room_code": code,
                "host_pid": room.host_pid,
                "mode": room.mode,
                "category": room.category,
                "phase": room.phase,
                "round_no": room.round_no,
                "last_outcome": room.last_outcome,
                "game_over": is_game_over(room.last_outcome),
                "players": len(players),
                "eliminated": sum(1 for p in players if p.is_eliminated),
                "sockets": len(await wsman.connected_pids(code)),
                "last_activity": room.last_activity,
            }
        )

    return {"rooms": rooms}


@router.post("/rooms/{room_code}/close")
async def close_room(room_code: str, request: Request):
    """
    Force close a room: delete its keys and kick every socket.
    """
    repo = request.app.state.repo
    wsman = request.app.state.wsman

    room_code = room_code.upper()
    if not await repo.room_exists(room_code):
        raise HTTPException(status_code=404, detail="Room not found")

    await repo.delete_room(room_code)
    closed = await wsman.close_room(room_code)
    logger.info("admin closed room %s (%d sockets)", room_code, closed)

    return {"ok": True, "room_code": room_code, "closed_sockets": closed}
