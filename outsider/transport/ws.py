# outsider/transport/ws.py
from __future__ import annotations

import ipaddress
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from outsider.settings import Settings, get_settings
from outsider.domain.lifecycle.handlers import handle_disconnect, new_pid
from outsider.transport.dispatcher import dispatch_message, _dump
from outsider.transport.protocols import OutError, OutHello
from outsider.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)

router = APIRouter()

# the web client's dev server
LAN_CLIENT_PORT = 3000


def origin_allowed(origin: Optional[str], settings: Settings) -> bool:
    """
    Browsers always send Origin; native clients and tests usually don't.
    Private LAN addresses on the client port pass when WS_ALLOW_LAN_ORIGINS is on,
    so phones on the same network can join a party.
    """
    if origin is None:
        return True
    allowed = {o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()}
    if origin in allowed:
        return True
    if not settings.WS_ALLOW_LAN_ORIGINS:
        return False
    parsed = urlparse(origin)
    try:
        private = ipaddress.ip_address(parsed.hostname or "").is_private
    except ValueError:
        return False
    return private and parsed.port == LAN_CLIENT_PORT


async def _accept(websocket: WebSocket) -> bool:
    origin = websocket.headers.get("origin")
    if not origin_allowed(origin, get_settings()):
        logger.info("rejecting websocket from origin %s", origin)
        await websocket.close(code=1008)
        return False
    await websocket.accept()
    return True


async def fanout(wsman: WSManager, room_code: str, events: List[Dict[str, Any]]) -> None:
    """
    Events carrying "targets" are per-viewer (snapshots with the viewer's word) and
    only go to those pids, with the routing key stripped. Everything else is room-wide.
    """
    for e in events:
        if "targets" not in e:
            await wsman.broadcast(room_code, e)
            continue
        payload = {k: v for k, v in e.items() if k != "targets"}
        for target in e["targets"] or []:
            await wsman.send_to_pid(room_code, target, payload)


@router.websocket("/ws-create")
async def ws_create(websocket: WebSocket):
    """One-shot socket: create a room, answer with its code and the host pid, close."""
    if not await _accept(websocket):
        return

    try:
        raw = await websocket.receive_json()
        if not isinstance(raw, dict) or raw.get("type") != "create_room":
            err = OutError(code="ONLY_CREATE_ROOM", message="ws-create only accepts create_room")
            await websocket.send_json(err.model_dump())
            return

        to_sender, _ = await dispatch_message(app=websocket.app, room_code="", pid=None, raw=raw)
        for e in to_sender:
            await websocket.send_json(e)
    except WebSocketDisconnect:
        return
    finally:
        await websocket.close()


@router.websocket("/ws/{room_code}")
async def ws_room(websocket: WebSocket, room_code: str):
    """
    Player socket. Each connection starts under a fresh pid; a client that already
    has an identity in this room sends `reconnect` to take it back.
    """
    if not await _accept(websocket):
        return

    room_code = room_code.upper()
    pid = new_pid()
    wsman: WSManager = websocket.app.state.wsman
    await wsman.add(room_code, pid, websocket)
    await websocket.send_json(OutHello(pid=pid, room_code=room_code).model_dump())

    try:
        while True:
            raw = await websocket.receive_json()
            if not isinstance(raw, dict):
                err = OutError(code="BAD_MESSAGE", message="Expected a JSON object")
                await websocket.send_json(err.model_dump())
                continue

            claimed = raw.get("pid") if raw.get("type") == "reconnect" else None
            if isinstance(claimed, str) and claimed and claimed != pid:
                await wsman.rebind(room_code, pid, claimed)
                pid = claimed
                await websocket.send_json(OutHello(pid=pid, room_code=room_code).model_dump())

            to_sender, to_room = await dispatch_message(
                app=websocket.app, room_code=room_code, pid=pid, raw=raw
            )
            for e in to_sender:
                await websocket.send_json(e)
            await fanout(wsman, room_code, to_room)

    except WebSocketDisconnect:
        logger.debug("room %s: %s disconnected", room_code, pid)
        await wsman.remove(room_code, pid, websocket)
        if pid in await wsman.connected_pids(room_code):
            # the identity moved to a newer socket
            return
        _, to_room = await handle_disconnect(app=websocket.app, room_code=room_code, pid=pid)
        await fanout(wsman, room_code, _dump(to_room))

    finally:
        await wsman.remove(room_code, pid, websocket)
