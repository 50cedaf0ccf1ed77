# outsider/domain/game/engine.py
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from outsider.domain.common.errors import (
    InsufficientPlayers,
    InvalidPhase,
    InvalidPlayer,
    RoomNotFound,
    Unauthorized,
)
from outsider.domain.common.types import Phase
from outsider.domain.common.validation import eliminated_pids, is_active, is_host
from outsider.domain.game.roles import assign_roles
from outsider.domain.game.rules import (
    Verdict,
    evaluate_outcome,
    evaluate_stalemate,
    is_game_over,
    validate_start_conditions,
)
from outsider.domain.game.turns import advance_turn, first_eligible_index, initial_turn_order
from outsider.domain.game.voting import tally_votes
from outsider.store.models import PlayerStore, RoomStore
from outsider.store.repo import RoomRepo
from outsider.util.timeutil import now_ts

logger = logging.getLogger(__name__)


@dataclass
class RoundStarted:
    secret_word: str
    outsider_pids: List[str]


@dataclass
class TurnPassed:
    phase: Phase
    current_turn_index: int
    turns_taken: int


def _lobby_room_fields() -> Dict[str, Any]:
    """Room fields wiped whenever the room goes back to the lobby."""
    return {
        "phase": "waiting",
        "secret_word": None,
        "decoy_word": None,
        "outsider_pids": [],
        "turn_order": [],
        "current_turn_index": 0,
        "turn_started_at": None,
        "voting_started_at": None,
        "turns_taken": 0,
        "last_outcome": None,
        "last_eliminated_pid": None,
        "last_vote_counts": {},
    }


class RoomStateMachine:
    """
    Phase transitions for one room: waiting -> playing -> voting -> results -> playing/waiting.

    Every command validates first and raises a GameError before touching the store.
    Game rules live in roles/turns/voting/rules; this class only reads, decides and writes.
    """

    def __init__(
        self,
        repo: RoomRepo,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ts,
    ):
        self.repo = repo
        self.rng = rng or random.Random()
        self.clock = clock

    # ----------------------------
    # Guards
    # ----------------------------
    async def _load(self, room_code: str) -> RoomStore:
        room = await self.repo.get_room(room_code)
        if room is None:
            raise RoomNotFound(f"Room {room_code} not found")
        return room

    @staticmethod
    def _require_host(room: RoomStore, caller_pid: Optional[str], action: str) -> None:
        if not is_host(caller_pid, room):
            raise Unauthorized(f"Only the host can {action}")

    @staticmethod
    def _require_phase(room: RoomStore, *phases: Phase, action: str) -> None:
        if room.phase not in phases:
            raise InvalidPhase(f"Cannot {action} in phase {room.phase}")

    @staticmethod
    def _ineligible(room: RoomStore, players: List[PlayerStore]) -> set[str]:
        # eliminated players, plus anyone in the turn order who no longer has a record
        present = {p.pid for p in players}
        return eliminated_pids(players) | {pid for pid in room.turn_order if pid not in present}

    async def _clear_votes(self, room_code: str, players: List[PlayerStore]) -> None:
        await self.repo.update_players(
            room_code, {p.pid: {"voted_for": None} for p in players if p.voted_for is not None}
        )

    async def _end_in_stalemate(self, room: RoomStore, ts: int) -> Verdict:
        verdict = evaluate_stalemate()
        await self.repo.update_room_fields(
            room.code,
            phase="results",
            last_outcome=verdict.outcome,
            last_eliminated_pid=None,
            last_vote_counts={},
            last_activity=ts,
        )
        logger.warning("room %s: nobody left to take a turn, round %s ends in stalemate", room.code, room.round_no)
        return verdict

    # ----------------------------
    # Commands
    # ----------------------------
    async def start_round(self, room_code: str, caller_pid: Optional[str]) -> RoundStarted:
        room = await self._load(room_code)
        self._require_host(room, caller_pid, "start the game")
        self._require_phase(room, "waiting", action="start a round")

        players = await self.repo.list_players(room_code)
        ok, err = validate_start_conditions(room.mode, len(players))
        if not ok:
            raise InsufficientPlayers(err or "Not enough players")

        pids = [p.pid for p in players]
        assignment = assign_roles(
            mode=room.mode,
            category=room.category,
            pids=pids,
            previous_outsider_pids=room.previous_outsider_pids,
            rng=self.rng,
        )
        turn_order = initial_turn_order(pids, self.rng)
        ts = self.clock()

        await self.repo.update_players(
            room_code,
            {
                p.pid: {
                    "secret_role": assignment.secret_roles.get(p.pid),
                    "voted_for": None,
                    "is_eliminated": False,
                }
                for p in players
            },
        )
        await self.repo.update_room_fields(
            room_code,
            phase="playing",
            secret_word=assignment.secret_word,
            decoy_word=assignment.decoy_word,
            outsider_pids=assignment.outsider_pids,
            turn_order=turn_order,
            current_turn_index=0,
            turn_started_at=ts,
            voting_started_at=None,
            round_no=1,
            turns_taken=0,
            last_outcome=None,
            last_eliminated_pid=None,
            last_vote_counts={},
            last_activity=ts,
        )
        logger.info(
            "room %s: round started, mode=%s players=%d outsiders=%d",
            room_code, room.mode, len(players), len(assignment.outsider_pids),
        )
        return RoundStarted(secret_word=assignment.secret_word, outsider_pids=assignment.outsider_pids)

    async def pass_turn(self, room_code: str) -> TurnPassed:
        room = await self._load(room_code)
        self._require_phase(room, "playing", action="pass the turn")

        players = await self.repo.list_players(room_code)
        step = advance_turn(
            mode=room.mode,
            turn_order=room.turn_order,
            current_index=room.current_turn_index,
            turns_taken=room.turns_taken,
            ineligible=self._ineligible(room, players),
        )
        ts = self.clock()

        if step.budget_exhausted:
            await self._clear_votes(room_code, players)
            await self.repo.update_room_fields(
                room_code, phase="voting", voting_started_at=ts, turns_taken=0, last_activity=ts
            )
            logger.info("room %s: turn budget used up after %d turns, voting", room_code, step.turns_taken)
            return TurnPassed(phase="voting", current_turn_index=room.current_turn_index, turns_taken=0)

        if step.next_index is None:
            await self._end_in_stalemate(room, ts)
            return TurnPassed(phase="results", current_turn_index=room.current_turn_index, turns_taken=step.turns_taken)

        await self.repo.update_room_fields(
            room_code,
            current_turn_index=step.next_index,
            turn_started_at=ts,
            turns_taken=step.turns_taken,
            last_activity=ts,
        )
        return TurnPassed(phase="playing", current_turn_index=step.next_index, turns_taken=step.turns_taken)

    async def call_vote(self, room_code: str, caller_pid: Optional[str]) -> None:
        room = await self._load(room_code)
        self._require_host(room, caller_pid, "call a vote")
        self._require_phase(room, "playing", action="call a vote")

        players = await self.repo.list_players(room_code)
        ts = self.clock()
        await self._clear_votes(room_code, players)
        await self.repo.update_room_fields(room_code, phase="voting", voting_started_at=ts, last_activity=ts)
        logger.info("room %s: host called a vote", room_code)

    async def cast_vote(self, room_code: str, caller_pid: Optional[str], target_pid: str) -> None:
        room = await self._load(room_code)
        self._require_phase(room, "voting", action="vote")

        voter = await self.repo.get_player(room_code, caller_pid) if caller_pid else None
        if not is_active(voter):
            raise InvalidPlayer("Only active players can vote")
        target = await self.repo.get_player(room_code, target_pid)
        if not is_active(target):
            raise InvalidPlayer("Vote target is not an active player")

        await self.repo.update_player_fields(room_code, voter.pid, voted_for=target_pid)

    async def resolve_votes(self, room_code: str) -> Verdict:
        room = await self._load(room_code)
        self._require_phase(room, "voting", action="resolve votes")

        players = await self.repo.list_players(room_code)
        tally = tally_votes(players)
        verdict = evaluate_outcome(
            mode=room.mode,
            eliminated_pid=tally.eliminated_pid,
            outsider_pids=room.outsider_pids,
            players=players,
            vote_counts=tally.counts,
        )

        updates: Dict[str, Dict[str, Any]] = {}
        if verdict.eliminated_pid is not None:
            updates[verdict.eliminated_pid] = {"is_eliminated": True}
        by_pid = {p.pid: p for p in players}
        for pid, delta in verdict.score_deltas.items():
            updates.setdefault(pid, {})["score"] = by_pid[pid].score + delta

        ts = self.clock()
        await self.repo.update_players(room_code, updates)
        await self.repo.update_room_fields(
            room_code,
            phase="results",
            last_outcome=verdict.outcome,
            last_eliminated_pid=verdict.eliminated_pid,
            last_vote_counts=verdict.vote_counts,
            last_activity=ts,
        )
        logger.info(
            "room %s: votes resolved, outcome=%s eliminated=%s", room_code, verdict.outcome, verdict.eliminated_pid
        )
        return verdict

    async def next_round(self, room_code: str, caller_pid: Optional[str]) -> None:
        room = await self._load(room_code)
        self._require_host(room, caller_pid, "start the next round")
        self._require_phase(room, "results", action="start the next round")
        if is_game_over(room.last_outcome):
            raise InvalidPhase("The game is over, play again instead")

        players = await self.repo.list_players(room_code)
        ts = self.clock()
        start = first_eligible_index(room.turn_order, self._ineligible(room, players))
        await self._clear_votes(room_code, players)
        if start is None:
            await self._end_in_stalemate(room, ts)
            return

        await self.repo.update_room_fields(
            room_code,
            phase="playing",
            current_turn_index=start,
            turn_started_at=ts,
            voting_started_at=None,
            turns_taken=0,
            round_no=room.round_no + 1,
            last_activity=ts,
        )
        logger.info("room %s: round %d", room_code, room.round_no + 1)

    async def play_again(self, room_code: str, caller_pid: Optional[str]) -> None:
        room = await self._load(room_code)
        self._require_host(room, caller_pid, "restart the game")
        self._require_phase(room, "results", action="play again")
        if not is_game_over(room.last_outcome):
            raise InvalidPhase("The game is still going, start the next round instead")

        players = await self.repo.list_players(room_code)
        await self.repo.update_players(
            room_code,
            {
                p.pid: {"is_eliminated": False, "voted_for": None, "secret_role": None, "is_ready": p.is_host}
                for p in players
            },
        )
        await self.repo.update_room_fields(
            room_code,
            **_lobby_room_fields(),
            previous_outsider_pids=room.outsider_pids,
            last_activity=self.clock(),
        )
        logger.info("room %s: back to lobby, scores kept", room_code)

    async def reset_room(self, room_code: str, caller_pid: Optional[str]) -> None:
        room = await self._load(room_code)
        self._require_host(room, caller_pid, "reset the room")

        players = await self.repo.list_players(room_code)
        await self.repo.update_players(
            room_code,
            {
                p.pid: {
                    "is_eliminated": False,
                    "voted_for": None,
                    "secret_role": None,
                    "is_ready": p.is_host,
                    "score": 0,
                }
                for p in players
            },
        )
        await self.repo.update_room_fields(
            room_code,
            **_lobby_room_fields(),
            previous_outsider_pids=[],
            round_no=0,
            last_activity=self.clock(),
        )
        logger.info("room %s: reset", room_code)

    # ----------------------------
    # Queries
    # ----------------------------
    async def get_current_turn_holder(self, room_code: str) -> Optional[PlayerStore]:
        room = await self._load(room_code)
        if room.phase != "playing":
            return None
        if not 0 <= room.current_turn_index < len(room.turn_order):
            return None
        return await self.repo.get_player(room_code, room.turn_order[room.current_turn_index])
