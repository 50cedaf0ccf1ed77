from __future__ import annotations

from .engine import RoomStateMachine, RoundStarted, TurnPassed
from .rules import Verdict

__all__ = [
    "RoomStateMachine",
    "RoundStarted",
    "TurnPassed",
    "Verdict",
]
