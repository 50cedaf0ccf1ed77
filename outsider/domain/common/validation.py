from __future__ import annotations

from typing import Optional
from outsider.store.models import PlayerStore, RoomStore


def is_host(pid: Optional[str], room: RoomStore) -> bool:
    """Check if the caller identity holds host authority."""
    return bool(pid) and room.host_pid == pid


def is_active(player: Optional[PlayerStore]) -> bool:
    """Check if player exists and is still in the round."""
    return player is not None and not player.is_eliminated


def is_outsider(player: Optional[PlayerStore], room: RoomStore) -> bool:
    return player is not None and player.pid in room.outsider_pids


def eliminated_pids(players: list[PlayerStore]) -> set[str]:
    return {p.pid for p in players if p.is_eliminated}
