from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from outsider.store.models import PlayerStore, RoomStore


class RoomRepo(Protocol):
    """
    What the room state machine needs from storage.

    Each single-record update is atomic. ``update_players`` commits a batch of
    player records together when the backing store supports it.
    """

    async def get_room(self, room_code: str) -> Optional[RoomStore]: ...

    async def list_players(self, room_code: str) -> list[PlayerStore]: ...

    async def get_player(self, room_code: str, pid: str) -> Optional[PlayerStore]: ...

    async def update_room_fields(self, room_code: str, **fields: Any) -> None: ...

    async def update_player_fields(self, room_code: str, pid: str, **fields: Any) -> None: ...

    async def update_players(self, room_code: str, updates: Dict[str, Dict[str, Any]]) -> None: ...
