from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .lifecycle import RoomLifecycle
from .registry import RoomRegistry
from .routers import rooms as rooms_router
from .routers import websockets as ws_router

logger = logging.getLogger(__name__)

# -----------------------------
# FastAPI app factory
# -----------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an app owning its own room registry."""
    settings = settings or Settings()

    app = FastAPI(title="Fourline Game Server")
    app.state.settings = settings
    app.state.registry = RoomRegistry(settings.rules)
    app.state.lifecycle = RoomLifecycle(
        app.state.registry,
        empty_room_ttl=settings.empty_room_ttl,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    rules = settings.rules
    logger.info(
        "Game server ready: %dx%d board, %d in a row, %s placement",
        rules.board_size,
        rules.board_size,
        rules.win_length,
        rules.placement.value,
    )
    return app


app = create_app()

__all__ = ["app", "create_app"]
