"""Main FastAPI server for the Nimbus bridge."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import Callable, Awaitable

from fastapi import FastAPI, WebSocket
from fastapi.responses import ORJSONResponse

from src.state import RuntimeDeps
from src.handlers.routes import router
from src.runtime.logging import configure_logging
from src.runtime.dependencies import build_runtime_deps
from src.config.websocket import WS_CONTROL_PATH, WS_ENDPOINT_PATH
from src.handlers.websocket.endpoint import handle_endpoint_connection
from src.handlers.websocket.manager import handle_control_connection

logger = logging.getLogger(__name__)

configure_logging()

DepsFactory = Callable[[], Awaitable[RuntimeDeps]]


def _runtime_deps(app: FastAPI) -> RuntimeDeps:
    runtime_deps = getattr(app.state, "runtime_deps", None)
    if runtime_deps is None:
        raise RuntimeError("Runtime dependencies are not initialized")
    return runtime_deps


def create_app(deps_factory: DepsFactory = build_runtime_deps) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        runtime_deps = await deps_factory()
        app.state.runtime_deps = runtime_deps
        runtime_deps.start()
        logger.info("runtime: ready")
        try:
            yield
        finally:
            deps = getattr(app.state, "runtime_deps", None)
            if deps is not None:
                await deps.shutdown()

    app = FastAPI(default_response_class=ORJSONResponse, lifespan=_lifespan)
    app.include_router(router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.websocket(WS_CONTROL_PATH)
    async def control_websocket(websocket: WebSocket) -> None:
        await handle_control_connection(websocket, _runtime_deps(app))

    @app.websocket(WS_ENDPOINT_PATH)
    async def endpoint_websocket(websocket: WebSocket) -> None:
        await handle_endpoint_connection(websocket, _runtime_deps(app))

    return app


app = create_app()

__all__ = ["app", "create_app"]
