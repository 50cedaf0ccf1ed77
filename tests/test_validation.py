from outsider.domain.common.validation import (
    eliminated_pids,
    is_active,
    is_host,
    is_outsider,
)
from outsider.store.models import PlayerStore, RoomStore


def _room(**kw):
    return RoomStore(code="ABCD", host_pid="p1", created_at=0, last_activity=0, **kw)


def test_is_host():
    room = _room()
    assert is_host("p1", room) is True
    assert is_host("p2", room) is False
    assert is_host(None, room) is False


def test_is_active():
    assert is_active(PlayerStore(pid="p1", name="A", joined_at=0, last_seen=0)) is True
    assert is_active(PlayerStore(pid="p1", name="A", joined_at=0, last_seen=0, is_eliminated=True)) is False
    assert is_active(None) is False


def test_is_outsider():
    room = _room(outsider_pids=["p2"])
    assert is_outsider(PlayerStore(pid="p2", name="B", joined_at=0, last_seen=0), room) is True
    assert is_outsider(PlayerStore(pid="p1", name="A", joined_at=0, last_seen=0), room) is False
    assert is_outsider(None, room) is False


def test_eliminated_pids():
    players = [
        PlayerStore(pid="p1", name="A", joined_at=0, last_seen=0, is_eliminated=True),
        PlayerStore(pid="p2", name="B", joined_at=0, last_seen=0),
    ]
    assert eliminated_pids(players) == {"p1"}
