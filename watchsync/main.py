from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from watchsync.core.config import Settings, get_settings
from watchsync.core.logging import setup_logging

from watchsync.state.playback_state import PlaybackStore
from watchsync.state.resource_store import ResourceStore
from watchsync.workers.background import DetachedTasks

from watchsync.services.relay import EventRelay
from watchsync.ws.manager import ViewerManager

from watchsync.api.routes_ws import router as ws_router
from watchsync.api.routes_resource import router as resource_router
from watchsync.api.routes_media import router as media_router
from watchsync.api.routes_status import router as status_router

log = logging.getLogger("app")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        log.info("app_starting", extra={"env": settings.app_env})

        os.makedirs(settings.media_dir, exist_ok=True)

        # state is in-process: one worker only
        app.state.settings = settings
        app.state.background = DetachedTasks()
        app.state.resources = ResourceStore(settings.media_dir, app.state.background)
        app.state.playback = PlaybackStore()
        app.state.viewers = ViewerManager()
        app.state.relay = EventRelay(
            app.state.playback,
            app.state.resources,
            app.state.viewers,
            url_prefix=settings.media_url_prefix,
        )
        log.info("relay_ready", extra={"media_dir": settings.media_dir})

        try:
            yield
        finally:
            try:
                await app.state.background.drain()
            except Exception:
                log.exception("error_draining_background")
            log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(ws_router)
    app.include_router(resource_router)
    app.include_router(status_router)
    app.include_router(media_router, prefix=settings.media_url_prefix)

    @app.get("/health")
    def health():
        viewers = getattr(app.state, "viewers", None)
        return {
            "ok": True,
            "app": settings.app_name,
            "env": settings.app_env,
            "viewers": len(viewers) if viewers is not None else 0,
        }

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
