from __future__ import annotations

from outsider.store.models import Mode, Outcome, Phase, SecretRole

MODES: tuple[Mode, ...] = ("classic", "double", "secret", "confusion", "silence")
DISCUSSION_TIMES: tuple[int, ...] = (120, 180, 300, 420, 600)

__all__ = ["Mode", "Outcome", "Phase", "SecretRole", "MODES", "DISCUSSION_TIMES"]
