from __future__ import annotations

import random
from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Sequence

from outsider.domain.common.types import Mode

# Turns each player gets per round before voting is forced
TURNS_PER_PLAYER: dict[Mode, int] = {
    "classic": 2,
    "double": 2,
    "secret": 2,
    "confusion": 2,
    "silence": 2,
}


@dataclass
class TurnAdvance:
    next_index: Optional[int]   # None: nobody left to take a turn
    turns_taken: int
    budget_exhausted: bool


def initial_turn_order(pids: Sequence[str], rng: random.Random) -> List[str]:
    order = list(pids)
    rng.shuffle(order)
    return order


def turn_budget(mode: Mode, player_count: int) -> int:
    return player_count * TURNS_PER_PLAYER.get(mode, 2)


def _scan(turn_order: Sequence[str], start: int, ineligible: AbstractSet[str]) -> Optional[int]:
    # one full lap at most
    n = len(turn_order)
    for step in range(n):
        idx = (start + step) % n
        if turn_order[idx] not in ineligible:
            return idx
    return None


def next_eligible_index(
    turn_order: Sequence[str],
    current_index: int,
    ineligible: AbstractSet[str],
) -> Optional[int]:
    """
    Next holder after current_index, skipping eliminated or missing players.
    `ineligible` is the set of pids that cannot take a turn.
    """
    if not turn_order:
        return None
    return _scan(turn_order, (current_index + 1) % len(turn_order), ineligible)


def first_eligible_index(turn_order: Sequence[str], ineligible: AbstractSet[str]) -> Optional[int]:
    if not turn_order:
        return None
    return _scan(turn_order, 0, ineligible)


def advance_turn(
    *,
    mode: Mode,
    turn_order: Sequence[str],
    current_index: int,
    turns_taken: int,
    ineligible: AbstractSet[str],
) -> TurnAdvance:
    taken = turns_taken + 1
    if taken >= turn_budget(mode, len(turn_order)):
        return TurnAdvance(next_index=current_index, turns_taken=taken, budget_exhausted=True)
    return TurnAdvance(
        next_index=next_eligible_index(turn_order, current_index, ineligible),
        turns_taken=taken,
        budget_exhausted=False,
    )
