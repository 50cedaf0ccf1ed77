import random

import pytest

from outsider.store.models import PlayerStore, RoomStore


class FakeRepo:
    """In-memory stand-in for RedisRepo. Reads hand out copies, like a real store."""

    def __init__(self):
        self.rooms = {}
        self.players = {}      # room_code -> {pid: PlayerStore}
        self.batches = []      # every update_players call, for assertions

    # ---- setup helpers (sync) ----
    def seed(self, *, code="ROOM", mode="classic", n=4, host="p0", **room_fields):
        self.rooms[code] = RoomStore(
            code=code, host_pid=host, mode=mode, created_at=0, last_activity=0, **room_fields
        )
        self.players[code] = {}
        for i in range(n):
            pid = f"p{i}"
            self.players[code][pid] = PlayerStore(
                pid=pid, name=f"P{i}", is_host=pid == host, is_ready=True, joined_at=i, last_seen=0
            )
        return self.rooms[code]

    def room(self, code="ROOM"):
        return self.rooms[code]

    def player(self, pid, code="ROOM"):
        return self.players[code][pid]

    # ---- repo API ----
    async def room_exists(self, room_code):
        return room_code in self.rooms

    async def create_room(self, room):
        self.rooms[room.code] = room.model_copy(deep=True)
        self.players[room.code] = {}

    async def delete_room(self, room_code):
        self.rooms.pop(room_code, None)
        self.players.pop(room_code, None)

    async def list_room_codes(self):
        return sorted(self.rooms)

    async def get_room(self, room_code):
        room = self.rooms.get(room_code)
        return room.model_copy(deep=True) if room else None

    async def update_room_fields(self, room_code, **fields):
        room = self.rooms[room_code]
        for k, v in fields.items():
            setattr(room, k, v)

    async def refresh_room_ttl(self, room_code):
        return None

    async def add_player(self, room_code, player):
        self.players.setdefault(room_code, {})[player.pid] = player.model_copy(deep=True)

    async def get_player(self, room_code, pid):
        p = self.players.get(room_code, {}).get(pid)
        return p.model_copy(deep=True) if p else None

    async def list_players(self, room_code):
        players = [p.model_copy(deep=True) for p in self.players.get(room_code, {}).values()]
        players.sort(key=lambda x: x.joined_at)
        return players

    async def update_player_fields(self, room_code, pid, **fields):
        p = self.players[room_code].get(pid)
        if p is None:
            return
        for k, v in fields.items():
            setattr(p, k, v)

    async def update_players(self, room_code, updates):
        self.batches.append(updates)
        for pid, fields in updates.items():
            await self.update_player_fields(room_code, pid, **fields)

    async def set_player_connected(self, room_code, pid, connected, ts):
        await self.update_player_fields(room_code, pid, connected=connected, last_seen=ts)


class FakeApp:
    def __init__(self, repo, seed=0):
        self.state = type("State", (), {"repo": repo, "rng": random.Random(seed)})()


@pytest.fixture
def repo():
    return FakeRepo()


@pytest.fixture
def app(repo):
    return FakeApp(repo)
