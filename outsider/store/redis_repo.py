# outsider/store/redis_repo.py
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from redis.asyncio import Redis

from outsider.store.redis_keys import RK
from outsider.store.models import PlayerStore, RoomStore


class RedisRepo:
    def __init__(self, r: Redis, room_ttl_sec: int = 3600):
        self.r = r
        self.room_ttl_sec = room_ttl_sec

    def _dec(self, x):
        """Decode redis bytes -> str; pass through str/int/None safely."""
        if x is None:
            return None
        if isinstance(x, bytes):
            return x.decode("utf-8")
        return x

    def _enc_fields(self, fields: Dict[str, Any]) -> tuple[Dict[str, str], list[str]]:
        # None means "clear the field"; everything else is stored as JSON
        mapping = {k: json.dumps(v) for k, v in fields.items() if v is not None}
        removed = [k for k, v in fields.items() if v is None]
        return mapping, removed

    # ----------------------------
    # Helpers
    # ----------------------------
    async def refresh_room_ttl(self, room_code: str) -> None:
        pipe = self.r.pipeline()
        for k in RK(room_code).all_room_keys():
            pipe.expire(k, self.room_ttl_sec)
        await pipe.execute()

    async def room_exists(self, room_code: str) -> bool:
        return bool(await self.r.exists(RK(room_code).room()))

    async def delete_room(self, room_code: str) -> None:
        await self.r.delete(*RK(room_code).all_room_keys())

    async def list_room_codes(self) -> list[str]:
        # Scan for room keys: room:<code> (sub-keys have a second colon)
        codes: set[str] = set()
        async for k in self.r.scan_iter(match="room:*", count=200):
            key = self._dec(k)
            if key.count(":") == 1:
                codes.add(key.split(":", 1)[1])
        return sorted(codes)

    # ----------------------------
    # Room
    # ----------------------------
    async def create_room(self, room: RoomStore) -> None:
        rk = RK(room.code)
        mapping, _ = self._enc_fields(room.model_dump())
        pipe = self.r.pipeline(transaction=True)
        pipe.delete(*rk.all_room_keys())
        pipe.hset(rk.room(), mapping=mapping)
        await pipe.execute()

    async def get_room(self, room_code: str) -> Optional[RoomStore]:
        data = await self.r.hgetall(RK(room_code).room())
        if not data:
            return None
        norm = {self._dec(k): json.loads(self._dec(v)) for k, v in data.items()}
        return RoomStore(**norm)

    async def update_room_fields(self, room_code: str, **fields: Any) -> None:
        rk = RK(room_code)
        mapping, removed = self._enc_fields(fields)
        pipe = self.r.pipeline(transaction=True)
        if mapping:
            pipe.hset(rk.room(), mapping=mapping)
        if removed:
            pipe.hdel(rk.room(), *removed)
        await pipe.execute()

    # ----------------------------
    # Players
    # ----------------------------
    async def add_player(self, room_code: str, player: PlayerStore) -> None:
        await self.r.hset(RK(room_code).players(), player.pid, player.model_dump_json())

    async def set_player_connected(self, room_code: str, pid: str, connected: bool, ts: int) -> None:
        # presence lives on the player record; snapshots go to connected players only
        await self.update_player_fields(room_code, pid, connected=connected, last_seen=ts)

    async def get_player(self, room_code: str, pid: str) -> Optional[PlayerStore]:
        raw = await self.r.hget(RK(room_code).players(), pid)
        if not raw:
            return None
        return PlayerStore.model_validate_json(self._dec(raw))

    async def list_players(self, room_code: str) -> list[PlayerStore]:
        data = await self.r.hgetall(RK(room_code).players())
        players = [PlayerStore.model_validate_json(self._dec(raw)) for raw in data.values()]
        # stable order: joined_at
        players.sort(key=lambda x: x.joined_at)
        return players

    async def update_player_fields(self, room_code: str, pid: str, **fields: Any) -> None:
        p = await self.get_player(room_code, pid)
        if p is None:
            return
        for k, v in fields.items():
            setattr(p, k, v)
        await self.r.hset(RK(room_code).players(), pid, p.model_dump_json())

    async def update_players(self, room_code: str, updates: Dict[str, Dict[str, Any]]) -> None:
        """
        Apply per-player field updates and commit them in one MULTI/EXEC.
        Reads are not WATCHed, so a write to one of these players landing between
        the read and EXEC is overwritten.
        """
        if not updates:
            return
        rk = RK(room_code)
        data = await self.r.hmget(rk.players(), list(updates.keys()))
        mapping: Dict[str, str] = {}
        for pid, raw in zip(updates.keys(), data):
            if not raw:
                continue
            p = PlayerStore.model_validate_json(self._dec(raw))
            for k, v in updates[pid].items():
                setattr(p, k, v)
            mapping[pid] = p.model_dump_json()
        if not mapping:
            return
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(rk.players(), mapping=mapping)
        await pipe.execute()
