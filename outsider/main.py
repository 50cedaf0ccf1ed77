# outsider/main.py
from __future__ import annotations

import logging
import random

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from outsider.settings import get_settings
from outsider.store.redis_repo import RedisRepo
from outsider.transport.admin import router as admin_router
from outsider.transport.ws import router as ws_router
from outsider.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME)
    allowed_origins = [o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()]
    if "null" not in allowed_origins:
        allowed_origins.append("null")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _startup() -> None:
        r = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        app.state.redis = r
        app.state.repo = RedisRepo(r, room_ttl_sec=settings.ROOM_TTL_SEC)
        app.state.wsman = WSManager()
        app.state.rng = random.Random(settings.RNG_SEED)
        await r.ping()
        logger.info("%s connected to redis at %s", settings.APP_NAME, settings.REDIS_URL)
        if settings.RNG_SEED is not None:
            logger.warning("RNG_SEED=%s set, games are reproducible", settings.RNG_SEED)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        r: Redis = app.state.redis
        await r.close()

    @app.get("/health")
    async def health():
        r: Redis = app.state.redis
        pong = await r.ping()
        return {"ok": True, "redis": str(pong)}

    app.include_router(ws_router)
    app.include_router(admin_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("outsider.main:app", host=s.HOST, port=s.PORT, log_level=s.LOG_LEVEL.lower())
