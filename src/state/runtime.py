"""Typed runtime state objects for dependency wiring."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from src.state.settings import AppSettings
    from src.sessions.manager import WorkerManager
    from src.handlers.connections import ConnectionManager
    from src.hub import CorrelationHub, HeartbeatMonitor


@dataclass(slots=True)
class RuntimeDeps:
    connections: ConnectionManager
    hub: CorrelationHub
    heartbeat: HeartbeatMonitor
    workers: WorkerManager
    settings: AppSettings
    _startup_task: asyncio.Task | None = field(default=None, repr=False)

    def start(self, *, start_workers: bool = True) -> None:
        self.heartbeat.start()
        if start_workers and self._startup_task is None:
            self._startup_task = asyncio.create_task(self.workers.start_all())

    async def shutdown(self) -> None:
        if self._startup_task is not None and not self._startup_task.done():
            self._startup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self._startup_task
        try:
            await self.heartbeat.stop()
            await self.workers.shutdown_all()
            await self.hub.close()
        except Exception:
            logger.exception("runtime shutdown failed")


__all__ = ["RuntimeDeps"]
