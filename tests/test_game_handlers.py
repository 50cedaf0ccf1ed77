import pytest

from outsider.domain.lifecycle.handlers import build_snapshot
from outsider.transport.dispatcher import dispatch_message


async def _send(app, pid, **raw):
    return await dispatch_message(app=app, room_code="ROOM", pid=pid, raw=raw)


def _snapshot_for(events, pid):
    return next(e for e in events if e["type"] == "room_snapshot" and e.get("targets") == [pid])


@pytest.mark.asyncio
async def test_bad_message_is_rejected(app):
    to_sender, to_room = await _send(app, "p0", type="nope")
    assert to_sender[0]["code"] == "BAD_MESSAGE"
    assert to_room == []

    to_sender, _ = await _send(app, "p0", type="cast_vote")
    assert to_sender[0]["code"] == "BAD_MESSAGE"


@pytest.mark.asyncio
async def test_start_round_by_non_host(app, repo):
    repo.seed()
    to_sender, to_room = await _send(app, "p1", type="start_round")
    assert to_sender == [{"type": "error", "code": "NOT_HOST", "message": "Only the host can start the game"}]
    assert to_room == []
    assert repo.room().phase == "waiting"


@pytest.mark.asyncio
async def test_start_round_error_codes(app, repo):
    repo.seed(n=2)
    to_sender, _ = await _send(app, "p0", type="start_round")
    assert to_sender[0]["code"] == "NOT_ENOUGH_PLAYERS"

    to_sender, _ = await _send(app, "p0", type="pass_turn")
    assert to_sender[0]["code"] == "BAD_PHASE"

    to_sender, _ = await dispatch_message(app=app, room_code="GONE", pid="p0", raw={"type": "start_round"})
    assert to_sender[0]["code"] == "ROOM_NOT_FOUND"


@pytest.mark.asyncio
async def test_start_round_sends_each_player_their_own_view(app, repo):
    repo.seed(mode="confusion", n=5)
    to_sender, to_room = await _send(app, "p0", type="start_round")
    assert to_sender == []
    assert to_room[0] == {"type": "phase_changed", "phase": "playing", "round_no": 1}

    room = repo.room()
    outsider = room.outsider_pids[0]
    confused = next(f"p{i}" for i in range(5) if repo.player(f"p{i}").secret_role == "confused")
    citizen = next(f"p{i}" for i in range(5) if f"p{i}" not in (outsider, confused))

    snap = _snapshot_for(to_room, outsider)
    assert snap["word"] is None
    assert snap["is_outsider"] is True

    snap = _snapshot_for(to_room, confused)
    assert snap["word"] == room.decoy_word
    assert snap["is_outsider"] is False

    snap = _snapshot_for(to_room, citizen)
    assert snap["word"] == room.secret_word
    # nobody learns who the outsider is from the room payload
    assert snap["room"]["outsider_pids"] == []
    assert "secret_word" not in snap["room"]
    assert "decoy_word" not in snap["room"]
    others = [p for p in snap["players"] if p["pid"] != citizen]
    assert all(p["secret_role"] is None for p in others)


@pytest.mark.asyncio
async def test_disconnected_players_get_no_snapshot(app, repo):
    repo.seed(n=4)
    repo.player("p3").connected = False
    _, to_room = await _send(app, "p0", type="start_round")
    targets = [e["targets"] for e in to_room if e["type"] == "room_snapshot"]
    assert sorted(targets) == [["p0"], ["p1"], ["p2"]]


@pytest.mark.asyncio
async def test_pass_turn_broadcasts_turn_change(app, repo):
    repo.seed(n=4)
    await _send(app, "p0", type="start_round")
    order = repo.room().turn_order

    to_sender, to_room = await _send(app, "p2", type="pass_turn")
    assert to_sender == []
    assert to_room == [{"type": "turn_changed", "current_turn_index": 1, "pid": order[1], "turns_taken": 1}]


@pytest.mark.asyncio
async def test_vote_flow_hides_targets_until_results(app, repo):
    repo.seed(n=4)
    await _send(app, "p0", type="start_round")
    repo.room().outsider_pids = ["p3"]
    await _send(app, "p0", type="call_vote")

    to_sender, to_room = await _send(app, "p1", type="cast_vote", target="p3")
    assert to_sender == []
    assert to_room == [{"type": "vote_cast", "by": "p1"}]

    snap = await build_snapshot(repo, "ROOM", viewer_pid="p2")
    p1 = next(p for p in snap.players if p["pid"] == "p1")
    assert p1["voted_for"] is None

    for voter in ("p0", "p2"):
        await _send(app, voter, type="cast_vote", target="p3")
    _, to_room = await _send(app, "p0", type="resolve_votes")
    assert to_room[0] == {
        "type": "vote_result",
        "outcome": "citizens",
        "eliminated_pid": "p3",
        "vote_counts": {"p3": 3},
    }
    assert to_room[1]["type"] == "phase_changed"
    assert to_room[1]["phase"] == "results"

    # game over: everything is revealed
    snap = _snapshot_for(to_room, "p3")
    assert snap["room"]["outsider_pids"] == ["p3"]
    assert snap["room"]["secret_word"] == repo.room().secret_word
    assert snap["word"] == repo.room().secret_word


@pytest.mark.asyncio
async def test_cast_vote_for_eliminated_player(app, repo):
    repo.seed(n=4)
    await _send(app, "p0", type="start_round")
    await _send(app, "p0", type="call_vote")
    repo.player("p2").is_eliminated = True
    to_sender, to_room = await _send(app, "p1", type="cast_vote", target="p2")
    assert to_sender[0]["code"] == "INVALID_PLAYER"
    assert to_room == []


@pytest.mark.asyncio
async def test_play_again_and_reset_return_to_lobby(app, repo):
    repo.seed(n=3)
    await _send(app, "p0", type="start_round")
    repo.room().outsider_pids = ["p2"]
    await _send(app, "p0", type="call_vote")
    await _send(app, "p0", type="cast_vote", target="p2")
    await _send(app, "p1", type="cast_vote", target="p2")
    await _send(app, "p0", type="resolve_votes")

    to_sender, _ = await _send(app, "p0", type="next_round")
    assert to_sender[0]["code"] == "BAD_PHASE"

    _, to_room = await _send(app, "p0", type="play_again")
    assert to_room[0] == {"type": "phase_changed", "phase": "waiting", "round_no": 1}
    assert repo.player("p0").score > 0

    _, to_room = await _send(app, "p0", type="reset_room")
    assert to_room[0] == {"type": "phase_changed", "phase": "waiting", "round_no": 0}
    assert repo.player("p0").score == 0


@pytest.mark.asyncio
async def test_confused_player_does_not_see_own_role(app, repo):
    repo.seed(mode="confusion", n=5)
    await _send(app, "p0", type="start_round")
    confused = next(f"p{i}" for i in range(5) if repo.player(f"p{i}").secret_role == "confused")

    snap = await build_snapshot(repo, "ROOM", viewer_pid=confused)
    me = next(p for p in snap.players if p["pid"] == confused)
    assert me["secret_role"] is None
    assert snap.word == repo.room().decoy_word


@pytest.mark.asyncio
async def test_detective_still_sees_own_role(app, repo):
    repo.seed(mode="secret", n=5)
    await _send(app, "p0", type="start_round")
    detective = next(f"p{i}" for i in range(5) if repo.player(f"p{i}").secret_role == "detective")

    snap = await build_snapshot(repo, "ROOM", viewer_pid=detective)
    me = next(p for p in snap.players if p["pid"] == detective)
    assert me["secret_role"] == "detective"


@pytest.mark.asyncio
async def test_confused_role_revealed_at_game_over(app, repo):
    repo.seed(mode="confusion", n=5)
    await _send(app, "p0", type="start_round")
    confused = next(f"p{i}" for i in range(5) if repo.player(f"p{i}").secret_role == "confused")
    repo.room().phase = "results"
    repo.room().last_outcome = "citizens"

    snap = await build_snapshot(repo, "ROOM", viewer_pid=confused)
    me = next(p for p in snap.players if p["pid"] == confused)
    assert me["secret_role"] == "confused"
    assert snap.word == repo.room().secret_word
