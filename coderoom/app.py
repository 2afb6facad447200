from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .events import EventRouter
from .executor import CodeExecutor
from .logging_utils import setup_logging
from .registry import SessionRegistry
from .routers import rooms as rooms_router
from .routers import websockets as ws_router


def create_app(settings: Optional[Settings] = None, executor: Optional[CodeExecutor] = None) -> FastAPI:
    """Build the ASGI app with its own, isolated room registry."""
    settings = settings or get_settings()

    app = FastAPI(title=settings.app_name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------
    # Runtime state (one registry per app instance)
    # -----------------------------
    registry = SessionRegistry(
        default_buffer=settings.default_buffer,
        default_language=settings.default_language,
    )
    if executor is None and settings.execution_enabled:
        executor = CodeExecutor(settings=settings)
    app.state.settings = settings
    app.state.registry = registry
    app.state.events = EventRouter(registry, executor)

    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    @app.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run("coderoom.app:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


__all__ = ["app", "create_app", "run"]
