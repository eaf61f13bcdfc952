# intercom/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError

from intercom.domain.hub import HouseHub
from intercom.settings import get_settings
from intercom.store.redis_repo import LikesRepo
from intercom.transport.admin import router as admin_router
from intercom.transport.likes import router as likes_router
from intercom.transport.ws import router as ws_router

logger = logging.getLogger(__name__)


def create_app(*, likes_repo=None, hub: Optional[HouseHub] = None) -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
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
        app.state.hub = hub or HouseHub.from_settings(settings)
        if likes_repo is not None:
            app.state.redis = None
            app.state.likes = likes_repo
            return

        r = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        app.state.redis = r
        app.state.likes = LikesRepo(r)
        try:
            await r.ping()
        except RedisError as e:
            # the relay works without it; only /api/likes fails
            logger.warning("redis unavailable at startup: %s", e)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        app.state.hub.close()
        r: Optional[Redis] = app.state.redis
        if r is not None:
            await r.aclose()

    @app.get("/health")
    async def health():
        hub: HouseHub = app.state.hub
        out = {"ok": True, "houses": len(hub.directory), "connections": len(hub.wsman)}
        try:
            out["redis"] = str(await app.state.likes.ping())
        except RedisError as e:
            out["redis"] = f"down: {e}"
        return out

    app.include_router(ws_router)
    app.include_router(admin_router)
    app.include_router(likes_router)
    return app


app = create_app()
