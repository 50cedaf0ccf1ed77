# outsider/domain/game/rules.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence

from outsider.domain.common.types import Mode, Outcome
from outsider.store.models import PlayerStore

# Game constants
MIN_PLAYERS = 3
MIN_PLAYERS_CONFUSION = 4
CITIZENS_WIN_BONUS = 10
OUTSIDERS_WIN_BONUS = 15


@dataclass
class Verdict:
    outcome: Outcome
    eliminated_pid: Optional[str] = None
    vote_counts: Dict[str, int] = field(default_factory=dict)
    score_deltas: Dict[str, int] = field(default_factory=dict)


def validate_start_conditions(mode: Mode, player_count: int) -> tuple[bool, Optional[str]]:
    """
    Check if a round can start.
    Returns (can_start, error_message)
    """
    if player_count < MIN_PLAYERS:
        return False, f"At least {MIN_PLAYERS} players are required"
    if mode == "confusion" and player_count < MIN_PLAYERS_CONFUSION:
        return False, f"Confusion mode requires at least {MIN_PLAYERS_CONFUSION} players"
    return True, None


def is_game_over(outcome: Optional[Outcome]) -> bool:
    return outcome is not None and outcome != "continue"


def _active_split(players: Iterable[PlayerStore], outsider_pids: Sequence[str], eliminated_pid: Optional[str]):
    outsiders = set(outsider_pids)
    active = [p for p in players if not p.is_eliminated and p.pid != eliminated_pid]
    active_outsiders = [p for p in active if p.pid in outsiders]
    active_citizens = [p for p in active if p.pid not in outsiders]
    return active_outsiders, active_citizens


def evaluate_outcome(
    *,
    mode: Mode,
    eliminated_pid: Optional[str],
    outsider_pids: Sequence[str],
    players: Sequence[PlayerStore],
    vote_counts: Optional[Dict[str, int]] = None,
) -> Verdict:
    """
    Decide what a vote resolution means. First match wins:
      1. nobody eliminated         -> continue
      2. clown eliminated (secret) -> clown
      3. no outsider left active   -> citizens, +CITIZENS_WIN_BONUS to every non-outsider
      4. outsiders >= citizens     -> outsiders, +OUTSIDERS_WIN_BONUS to every outsider
      5. otherwise                 -> continue
    The eliminated player is counted as out from step 2 on.
    """
    counts = dict(vote_counts or {})
    if eliminated_pid is None:
        return Verdict(outcome="continue", vote_counts=counts)

    eliminated = next((p for p in players if p.pid == eliminated_pid), None)
    if mode == "secret" and eliminated is not None and eliminated.secret_role == "clown":
        return Verdict(outcome="clown", eliminated_pid=eliminated_pid, vote_counts=counts)

    outsiders = set(outsider_pids)
    active_outsiders, active_citizens = _active_split(players, outsider_pids, eliminated_pid)

    if not active_outsiders:
        deltas = {p.pid: CITIZENS_WIN_BONUS for p in players if p.pid not in outsiders}
        return Verdict(outcome="citizens", eliminated_pid=eliminated_pid, vote_counts=counts, score_deltas=deltas)

    if len(active_outsiders) >= len(active_citizens):
        deltas = {p.pid: OUTSIDERS_WIN_BONUS for p in players if p.pid in outsiders}
        return Verdict(outcome="outsiders", eliminated_pid=eliminated_pid, vote_counts=counts, score_deltas=deltas)

    return Verdict(outcome="continue", eliminated_pid=eliminated_pid, vote_counts=counts)


def evaluate_stalemate() -> Verdict:
    """
    Nobody in the turn order can take a turn any more. The round ends with no winner
    and no score change.
    """
    return Verdict(outcome="stalemate")
