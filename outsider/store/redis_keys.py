from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RK:
    """
    Redis Key builder for room-scoped keys.
    """
    room_code: str

    def room(self) -> str:
        return f"room:{self.room_code}"  # HASH field -> JSON value

    def players(self) -> str:
        return f"room:{self.room_code}:players"  # HASH pid -> JSON

    def all_room_keys(self) -> list[str]:
        """Returns all keys that should share the same TTL policy."""
        return [self.room(), self.players()]
