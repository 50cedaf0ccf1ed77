# outsider/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class WSManager:
    """
    Which socket belongs to which player identity, per room.
    A player identity maps to at most one socket; rebinding replaces the old one.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def add(self, room_code: str, pid: str, ws: WebSocket) -> None:
        async with self._lock:
            self._rooms.setdefault(room_code, {})[pid] = ws

    async def rebind(self, room_code: str, old_pid: str, new_pid: str) -> None:
        """Move a socket from its temporary identity to the player's stable one."""
        async with self._lock:
            room = self._rooms.setdefault(room_code, {})
            ws = room.pop(old_pid, None)
            if ws is not None:
                room[new_pid] = ws

    async def remove(self, room_code: str, pid: str, ws: WebSocket) -> None:
        # only drop the entry if it still points at this socket; a rebind may have replaced it
        async with self._lock:
            room = self._rooms.get(room_code)
            if not room or room.get(pid) is not ws:
                return
            del room[pid]
            if not room:
                del self._rooms[room_code]

    async def connected_pids(self, room_code: str) -> set[str]:
        async with self._lock:
            return set(self._rooms.get(room_code, {}))

    async def send_to_pid(self, room_code: str, pid: str, event: Dict[str, Any]) -> None:
        async with self._lock:
            ws = self._rooms.get(room_code, {}).get(pid)
        if ws is not None:
            await self._send(room_code, pid, ws, event)

    async def broadcast(self, room_code: str, event: Dict[str, Any]) -> None:
        # snapshot under lock, send outside it
        async with self._lock:
            targets = list(self._rooms.get(room_code, {}).items())
        for pid, ws in targets:
            await self._send(room_code, pid, ws, event)

    async def _send(self, room_code: str, pid: str, ws: WebSocket, event: Dict[str, Any]) -> None:
        try:
            await ws.send_json(event)
        except (RuntimeError, WebSocketDisconnect):
            # the socket's own receive loop handles cleanup
            logger.debug("room %s: dropped %s for %s", room_code, event.get("type"), pid)

    async def close_room(self, room_code: str, code: int = 4000) -> int:
        """Close every socket in a room and forget them. Returns how many were closed."""
        async with self._lock:
            sockets = list(self._rooms.pop(room_code, {}).items())
        for pid, ws in sockets:
            try:
                await ws.close(code=code)
            except RuntimeError:
                logger.debug("room %s: socket for %s already closed", room_code, pid)
        return len(sockets)
