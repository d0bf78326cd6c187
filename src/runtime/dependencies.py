"""Runtime dependency construction (hub, heartbeat, workers, admission control)."""

from __future__ import annotations

import logging

from src.state import RuntimeDeps
from src.state.settings import AppSettings
from src.sessions.manager import SessionFactory, WorkerManager
from src.hub import CorrelationHub, HeartbeatMonitor
from src.handlers.connections import ConnectionManager

from .settings_loader import load_settings

logger = logging.getLogger(__name__)


async def build_runtime_deps(
    settings: AppSettings | None = None,
    *,
    session_factory: SessionFactory | None = None,
) -> RuntimeDeps:
    settings = settings or load_settings()

    hub = CorrelationHub(request_timeout_s=settings.hub.request_timeout_s)
    heartbeat = HeartbeatMonitor(hub, interval_s=settings.hub.heartbeat_interval_s)
    workers = WorkerManager(
        settings.workers,
        settings.capture,
        hub,
        session_factory=session_factory,
    )
    connections = ConnectionManager(max_connections=settings.limits.max_control_connections)

    logger.info(
        "runtime ready: %d worker(s), request timeout %.1fs, heartbeat %.1fs",
        len(settings.workers.repos),
        settings.hub.request_timeout_s,
        settings.hub.heartbeat_interval_s,
    )
    return RuntimeDeps(
        connections=connections,
        hub=hub,
        heartbeat=heartbeat,
        workers=workers,
        settings=settings,
    )


__all__ = ["RuntimeDeps", "build_runtime_deps"]
