"""Owns every worker and forwards their log/status events to the hub."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from collections.abc import Callable

from src.hub import CorrelationHub
from src.state.worker import LogEntry, WorkerState
from src.state.settings import RepoSettings, WorkerSettings, CaptureSettings
from src.config.websocket import (
    WS_KEY_TYPE,
    WS_KEY_PAYLOAD,
    WS_KEY_ENDPOINT_KEY,
    WS_TYPE_WORKER_LOG,
    WS_TYPE_WORKER_UPDATE,
    WS_CLOSE_SESSION_ENDED_CODE,
    WS_CLOSE_SESSION_ENDED_REASON,
)

from .worker import Worker, WorkerCallbacks

logger = logging.getLogger(__name__)

SessionFactory = Callable[[RepoSettings], Any]


class WorkerManager:
    def __init__(
        self,
        settings: WorkerSettings,
        capture: CaptureSettings,
        hub: CorrelationHub,
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._settings = settings
        self._hub = hub
        self._workers: dict[str, Worker] = {}
        callbacks = WorkerCallbacks(
            on_state_change=self._on_state_change,
            on_log_entry=self._on_log_entry,
            on_session_ended=self._on_session_ended,
        )
        for repo in settings.repos:
            session = session_factory(repo) if session_factory is not None else None
            self._workers[repo.name] = Worker(
                repo,
                settings=settings,
                capture=capture,
                callbacks=callbacks,
                session=session,
            )

    async def _on_state_change(self, state: WorkerState) -> None:
        await self._hub.broadcast({
            WS_KEY_TYPE: WS_TYPE_WORKER_UPDATE,
            WS_KEY_ENDPOINT_KEY: state.id,
            WS_KEY_PAYLOAD: state.to_dict(include_log=False),
        })

    async def _on_log_entry(self, worker_id: str, entry: LogEntry) -> None:
        await self._hub.broadcast({
            WS_KEY_TYPE: WS_TYPE_WORKER_LOG,
            WS_KEY_ENDPOINT_KEY: worker_id,
            WS_KEY_PAYLOAD: entry.to_dict(),
        })

    async def _on_session_ended(self, worker_id: str) -> None:
        # The endpoint is told to reconnect; routes fail with NoSuchEndpoint until it does.
        await self._hub.evict(worker_id, code=WS_CLOSE_SESSION_ENDED_CODE, reason=WS_CLOSE_SESSION_ENDED_REASON)

    async def start_all(self) -> None:
        for index, (name, worker) in enumerate(self._workers.items()):
            if index:
                await asyncio.sleep(self._settings.start_stagger_s)
            logger.info("Starting worker: %s", name)
            try:
                await worker.start()
            except Exception:
                logger.exception("Failed to start worker %s", name)
        logger.info("All workers started")

    def get(self, worker_id: str) -> Worker | None:
        return self._workers.get(worker_id)

    def all_states(self, *, include_log: bool = True) -> list[dict[str, Any]]:
        return [w.state.to_dict(include_log=include_log) for w in self._workers.values()]

    async def send_to_worker(self, worker_id: str, message: str) -> bool:
        worker = self._workers.get(worker_id)
        if worker is None:
            return False
        return await worker.send_message(message)

    async def interrupt_worker(self, worker_id: str) -> bool:
        worker = self._workers.get(worker_id)
        if worker is None:
            return False
        return await worker.interrupt()

    async def restart_worker(self, worker_id: str) -> bool:
        worker = self._workers.get(worker_id)
        if worker is None:
            return False
        await worker.shutdown()
        await asyncio.sleep(1.0)
        await worker.start()
        return True

    async def resize_all(self, *, cols: int, rows: int) -> None:
        for worker in self._workers.values():
            await worker.resize(cols=cols, rows=rows)

    async def shutdown_all(self) -> None:
        results = await asyncio.gather(
            *(w.shutdown() for w in self._workers.values()),
            return_exceptions=True,
        )
        for worker_id, result in zip(self._workers, results):
            if isinstance(result, Exception):
                logger.warning("worker %s shutdown failed: %s", worker_id, result)


__all__ = ["SessionFactory", "WorkerManager"]
