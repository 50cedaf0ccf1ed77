from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from outsider.domain.common.types import Mode, SecretRole
from outsider.domain.game.words import words_for

SECRET_MODE_ROLES: Tuple[SecretRole, ...] = ("detective", "clown")
DOUBLE_MODE_MIN_PLAYERS = 5


@dataclass
class RoleAssignment:
    secret_word: str
    decoy_word: Optional[str]
    outsider_pids: List[str]
    secret_roles: Dict[str, SecretRole] = field(default_factory=dict)


def pick_words(category: Optional[str], mode: Mode, rng: random.Random) -> Tuple[str, Optional[str]]:
    """
    Pick the secret word, plus a distinct decoy word in confusion mode.
    """
    words = words_for(category)
    word_index = rng.randrange(len(words))
    secret = words[word_index]

    decoy = None
    if mode == "confusion" and len(words) > 1:
        # uniform over the other indices
        decoy_index = rng.randrange(len(words) - 1)
        if decoy_index >= word_index:
            decoy_index += 1
        decoy = words[decoy_index]
    return secret, decoy


def outsider_count(mode: Mode, player_count: int) -> int:
    if mode == "double" and player_count >= DOUBLE_MODE_MIN_PLAYERS:
        return 2
    return 1


def pick_outsiders(
    pids: Sequence[str],
    previous_outsider_pids: Sequence[str],
    count: int,
    rng: random.Random,
) -> List[str]:
    """
    Prefer players who were not outsiders last round.
    Falls back to the full pool when there are not enough fresh candidates.
    """
    previous = set(previous_outsider_pids)
    fresh = [pid for pid in pids if pid not in previous]
    pool = fresh if len(fresh) >= count else list(pids)
    rng.shuffle(pool)
    return pool[:count]


def assign_secret_roles(mode: Mode, citizen_pids: Sequence[str], rng: random.Random) -> Dict[str, SecretRole]:
    """
    secret:    detective + clown to up to two random citizens
    confusion: one random citizen is confused (gets the decoy word)
    """
    shuffled = list(citizen_pids)
    rng.shuffle(shuffled)

    if mode == "secret":
        return {pid: role for pid, role in zip(shuffled, SECRET_MODE_ROLES)}
    if mode == "confusion" and shuffled:
        return {shuffled[0]: "confused"}
    return {}


def assign_roles(
    *,
    mode: Mode,
    category: Optional[str],
    pids: Sequence[str],
    previous_outsider_pids: Sequence[str],
    rng: random.Random,
) -> RoleAssignment:
    secret, decoy = pick_words(category, mode, rng)
    outsiders = pick_outsiders(pids, previous_outsider_pids, outsider_count(mode, len(pids)), rng)
    citizens = [pid for pid in pids if pid not in outsiders]
    return RoleAssignment(
        secret_word=secret,
        decoy_word=decoy,
        outsider_pids=outsiders,
        secret_roles=assign_secret_roles(mode, citizens, rng),
    )
