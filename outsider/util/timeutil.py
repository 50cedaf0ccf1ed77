from __future__ import annotations

import time


def now_ts() -> int:
    """Unix seconds. Used for display countdowns and activity stamps only."""
    return int(time.time())
