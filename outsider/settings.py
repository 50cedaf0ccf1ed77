# outsider/settings.py
from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel


class Settings(BaseModel):
    APP_NAME: str = "outsider-server"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    ROOM_TTL_SEC: int = 3600

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Dev
    LOG_LEVEL: str = "INFO"

    # Game
    DEFAULT_CATEGORY: str = "Animals"
    # fixed seed for role/word/turn-order draws; unset means fresh randomness
    RNG_SEED: Optional[int] = None

    # WebSocket origin policy (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000,null"
    # Dev helper: allow any private LAN IP on port 3000
    WS_ALLOW_LAN_ORIGINS: bool = True


def _opt_int(raw: Optional[str]) -> Optional[int]:
    return int(raw) if raw not in (None, "") else None


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "outsider-server"),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        ROOM_TTL_SEC=int(os.getenv("ROOM_TTL_SEC", "3600")),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "8000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        DEFAULT_CATEGORY=os.getenv("DEFAULT_CATEGORY", "Animals"),
        RNG_SEED=_opt_int(os.getenv("RNG_SEED")),

        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,null",
        ),
        WS_ALLOW_LAN_ORIGINS=os.getenv("WS_ALLOW_LAN_ORIGINS", "true").lower()
        in ("1", "true", "yes", "y", "on"),
    )
