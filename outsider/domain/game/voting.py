from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from outsider.store.models import PlayerStore


@dataclass
class VoteTally:
    counts: Dict[str, int] = field(default_factory=dict)
    eliminated_pid: Optional[str] = None


def tally_votes(players: Iterable[PlayerStore]) -> VoteTally:
    """
    One vote per non-eliminated player. Eliminated voters and empty votes are ignored.
    Only a single candidate holding the maximum is eliminated; ties and no votes eliminate nobody.
    """
    counts: Dict[str, int] = {}
    for p in players:
        if p.is_eliminated or not p.voted_for:
            continue
        counts[p.voted_for] = counts.get(p.voted_for, 0) + 1

    max_votes = 0
    leaders: List[str] = []
    for pid, votes in counts.items():
        if votes > max_votes:
            max_votes = votes
            leaders = [pid]
        elif votes == max_votes:
            leaders.append(pid)

    eliminated = leaders[0] if len(leaders) == 1 else None
    return VoteTally(counts=counts, eliminated_pid=eliminated)
