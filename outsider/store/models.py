# outsider/store/models.py
from __future__ import annotations

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field


Mode = Literal["classic", "double", "secret", "confusion", "silence"]
Phase = Literal["waiting", "playing", "voting", "results"]
SecretRole = Literal["detective", "clown", "confused"]
Outcome = Literal["continue", "citizens", "outsiders", "clown", "stalemate"]


class PlayerStore(BaseModel):
    pid: str                            # stable session identity
    name: str
    is_host: bool = False
    is_ready: bool = False
    is_eliminated: bool = False
    score: int = 0
    secret_role: Optional[SecretRole] = None
    voted_for: Optional[str] = None     # pid, only meaningful while voting
    connected: bool = True
    joined_at: int
    last_seen: int


class RoomStore(BaseModel):
    code: str
    host_pid: str
    phase: Phase = "waiting"
    mode: Mode = "classic"
    category: str = "Animals"
    discussion_time: int = 300
    created_at: int
    last_activity: int

    # round state
    secret_word: Optional[str] = None
    decoy_word: Optional[str] = None
    outsider_pids: List[str] = Field(default_factory=list)
    previous_outsider_pids: List[str] = Field(default_factory=list)
    turn_order: List[str] = Field(default_factory=list)
    current_turn_index: int = 0
    turn_started_at: Optional[int] = None     # display only
    voting_started_at: Optional[int] = None   # display only
    round_no: int = 0
    turns_taken: int = 0

    # last resolution, kept for the results screen
    last_outcome: Optional[Outcome] = None
    last_eliminated_pid: Optional[str] = None
    last_vote_counts: Dict[str, int] = Field(default_factory=dict)
