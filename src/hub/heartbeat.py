"""Periodic liveness sweep over registered endpoint connections."""

from __future__ import annotations

import asyncio
import logging
import contextlib

from .hub import CorrelationHub

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    def __init__(self, hub: CorrelationHub, *, interval_s: float) -> None:
        self._hub = hub
        self._interval_s = float(interval_s)
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._stop_event.clear()
            self._task = asyncio.create_task(self._sweep_loop())
        return self._task

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await self._task
        self._task = None

    async def _sweep_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(self._interval_s)
                if self._stop_event.is_set():
                    break
                try:
                    await self._hub.heartbeat_sweep()
                except Exception:
                    logger.exception("heartbeat sweep failed")
        except asyncio.CancelledError:
            return


__all__ = ["HeartbeatMonitor"]
