"""Control (dashboard) WebSocket connection handler orchestration."""

from __future__ import annotations

import logging
import contextlib

from fastapi import WebSocket

from src.state import RuntimeDeps
from src.hub import ControlSubscriber
from src.handlers.limits import SlidingWindowRateLimiter
from src.config.websocket import (
    WS_CLOSE_BUSY_CODE,
    WS_TYPE_ALL_WORKERS,
    WS_TYPE_ENDPOINT_STATUS,
    WS_ERROR_SERVER_AT_CAPACITY,
)

from .errors import reject_connection, safe_send_envelope
from .message_loop import run_message_loop

logger = logging.getLogger(__name__)


def _create_rate_limiters(runtime_deps: RuntimeDeps) -> tuple[SlidingWindowRateLimiter, SlidingWindowRateLimiter]:
    message_limiter = SlidingWindowRateLimiter(
        limit=runtime_deps.settings.limits.ws_max_messages_per_window,
        window_seconds=runtime_deps.settings.limits.ws_message_window_seconds,
    )
    control_limiter = SlidingWindowRateLimiter(
        limit=runtime_deps.settings.limits.ws_max_controls_per_window,
        window_seconds=runtime_deps.settings.limits.ws_control_window_seconds,
    )
    return message_limiter, control_limiter


async def _prepare_connection(ws: WebSocket, runtime_deps: RuntimeDeps) -> bool:
    if not await runtime_deps.connections.connect(ws):
        await reject_connection(
            ws,
            error_code=WS_ERROR_SERVER_AT_CAPACITY,
            message="Server cannot accept new connections. Please try again later.",
            close_code=WS_CLOSE_BUSY_CODE,
        )
        return False

    try:
        await ws.accept()
    except Exception:
        with contextlib.suppress(Exception):
            await runtime_deps.connections.disconnect(ws)
        raise
    return True


async def _send_snapshot(ws: WebSocket, runtime_deps: RuntimeDeps) -> None:
    await safe_send_envelope(
        ws,
        msg_type=WS_TYPE_ALL_WORKERS,
        payload={"workers": runtime_deps.workers.all_states()},
    )
    await safe_send_envelope(ws, msg_type=WS_TYPE_ENDPOINT_STATUS, payload=runtime_deps.hub.status())


async def handle_control_connection(ws: WebSocket, runtime_deps: RuntimeDeps) -> None:
    subscriber: ControlSubscriber | None = None
    admitted = False
    try:
        if not await _prepare_connection(ws, runtime_deps):
            return
        admitted = True

        subscriber = ControlSubscriber(ws)
        await _send_snapshot(ws, runtime_deps)
        runtime_deps.hub.subscribe(subscriber)

        message_limiter, control_limiter = _create_rate_limiters(runtime_deps)

        logger.info("Control connection accepted. Active: %s", runtime_deps.connections.get_connection_count())
        await run_message_loop(ws, message_limiter, control_limiter, runtime_deps)
    finally:
        if subscriber is not None:
            runtime_deps.hub.unsubscribe(subscriber)

        if admitted:
            with contextlib.suppress(Exception):
                await runtime_deps.connections.disconnect(ws)
            logger.info("Control connection closed. Active: %s", runtime_deps.connections.get_connection_count())


__all__ = ["handle_control_connection"]
