from outsider.domain.game.rules import (
    CITIZENS_WIN_BONUS,
    OUTSIDERS_WIN_BONUS,
    evaluate_outcome,
    evaluate_stalemate,
    is_game_over,
    validate_start_conditions,
)
from outsider.store.models import PlayerStore


def _players(n, **overrides):
    out = []
    for i in range(n):
        pid = f"p{i}"
        out.append(PlayerStore(pid=pid, name=pid, joined_at=i, last_seen=0, **overrides.get(pid, {})))
    return out


def test_validate_start_conditions():
    assert validate_start_conditions("classic", 3) == (True, None)
    ok, err = validate_start_conditions("classic", 2)
    assert ok is False and "3" in err
    ok, err = validate_start_conditions("confusion", 3)
    assert ok is False and "Confusion" in err
    assert validate_start_conditions("confusion", 4) == (True, None)


def test_no_elimination_continues():
    v = evaluate_outcome(mode="classic", eliminated_pid=None, outsider_pids=["p0"], players=_players(4),
                         vote_counts={"p0": 1, "p1": 1})
    assert v.outcome == "continue"
    assert v.vote_counts == {"p0": 1, "p1": 1}
    assert v.score_deltas == {}


def test_clown_wins_in_secret_mode_only():
    players = _players(4, p1={"secret_role": "clown"})
    v = evaluate_outcome(mode="secret", eliminated_pid="p1", outsider_pids=["p0"], players=players)
    assert v.outcome == "clown"
    assert v.eliminated_pid == "p1"
    assert v.score_deltas == {}

    v = evaluate_outcome(mode="classic", eliminated_pid="p1", outsider_pids=["p0"], players=players)
    assert v.outcome == "continue"


def test_clown_checked_before_outsider_count():
    # eliminating the clown would leave 1 outsider vs 1 citizen
    players = _players(3, p1={"secret_role": "clown"})
    v = evaluate_outcome(mode="secret", eliminated_pid="p1", outsider_pids=["p0"], players=players)
    assert v.outcome == "clown"


def test_last_outsider_eliminated_citizens_win():
    v = evaluate_outcome(mode="classic", eliminated_pid="p0", outsider_pids=["p0"], players=_players(4))
    assert v.outcome == "citizens"
    assert v.score_deltas == {"p1": CITIZENS_WIN_BONUS, "p2": CITIZENS_WIN_BONUS, "p3": CITIZENS_WIN_BONUS}


def test_citizens_bonus_includes_eliminated_citizens():
    players = _players(5, p4={"is_eliminated": True})
    v = evaluate_outcome(mode="classic", eliminated_pid="p0", outsider_pids=["p0"], players=players)
    assert v.outcome == "citizens"
    assert "p4" in v.score_deltas


def test_outsiders_win_on_parity():
    v = evaluate_outcome(mode="classic", eliminated_pid="p1", outsider_pids=["p0"], players=_players(3))
    assert v.outcome == "outsiders"
    assert v.score_deltas == {"p0": OUTSIDERS_WIN_BONUS}


def test_one_of_two_outsiders_eliminated_continues():
    v = evaluate_outcome(mode="double", eliminated_pid="p0", outsider_pids=["p0", "p1"], players=_players(6))
    assert v.outcome == "continue"
    assert v.eliminated_pid == "p0"


def test_stalemate_and_game_over():
    v = evaluate_stalemate()
    assert v.outcome == "stalemate"
    assert v.eliminated_pid is None
    assert v.vote_counts == {}
    assert v.score_deltas == {}
    assert is_game_over("stalemate") is True
    assert is_game_over("citizens") is True
    assert is_game_over("continue") is False
    assert is_game_over(None) is False
