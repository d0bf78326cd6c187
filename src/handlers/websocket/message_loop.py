"""Control WebSocket message loop and dispatch (/ws)."""

from __future__ import annotations

import logging
import contextlib
from typing import Any, Literal
from collections.abc import Callable, Awaitable

from fastapi import WebSocket, WebSocketDisconnect

from src.errors import BridgeError
from src.state import RuntimeDeps
from src.handlers.limits import SlidingWindowRateLimiter
from src.config.websocket import (
    WS_KEY_TYPE,
    WS_TYPE_ACK,
    WS_TYPE_END,
    WS_TYPE_PING,
    WS_TYPE_PONG,
    WS_KEY_PAYLOAD,
    WS_KEY_REQUEST_ID,
    WS_TYPE_ENDPOINT_EXEC,
    WS_TYPE_RESIZE_WORKERS,
    WS_ERROR_UNKNOWN_WORKER,
    WS_TYPE_RESTART_WORKER,
    WS_TYPE_SEND_TO_WORKER,
    WS_ERROR_INVALID_MESSAGE,
    WS_ERROR_INVALID_PAYLOAD,
    WS_TYPE_INTERRUPT_WORKER,
    WS_CLOSE_CLIENT_REQUEST_CODE,
)

from .errors import send_error, safe_send_envelope
from .parser import require_str, parse_control_message, require_positive_int
from .limits import consume_limiter, select_rate_limiter

logger = logging.getLogger(__name__)

HandlerFn = Callable[[WebSocket, RuntimeDeps, str | None, dict[str, Any]], Awaitable[None]]


async def _handle_control_message(
    ws: WebSocket,
    msg_type: str,
    *,
    request_id: str | None,
) -> Literal["none", "continue", "close"]:
    if msg_type == WS_TYPE_PING:
        await safe_send_envelope(ws, msg_type=WS_TYPE_PONG, request_id=request_id, payload={})
        return "continue"
    if msg_type == WS_TYPE_END:
        with contextlib.suppress(Exception):
            await ws.close(code=WS_CLOSE_CLIENT_REQUEST_CODE)
        return "close"
    return "none"


async def _parse_or_send_error(ws: WebSocket, raw: str) -> dict[str, Any] | None:
    try:
        return parse_control_message(raw)
    except ValueError as exc:
        await send_error(
            ws,
            request_id=None,
            error_code=WS_ERROR_INVALID_MESSAGE,
            message=str(exc),
            reason_code="invalid_message",
        )
        return None


async def _ack(ws: WebSocket, action: str, request_id: str | None, **fields: Any) -> None:
    await safe_send_envelope(ws, msg_type=WS_TYPE_ACK, request_id=request_id, payload={"action": action, **fields})


async def _unknown_worker(ws: WebSocket, request_id: str | None, worker_id: str) -> None:
    await send_error(
        ws,
        request_id=request_id,
        error_code=WS_ERROR_UNKNOWN_WORKER,
        message=f"worker not found: {worker_id}",
        details={"worker_id": worker_id},
    )


async def _handle_send_to_worker(
    ws: WebSocket,
    runtime_deps: RuntimeDeps,
    request_id: str | None,
    payload: dict[str, Any],
) -> None:
    worker_id = require_str(payload, "worker_id")
    message = payload.get("message")
    if not isinstance(message, str) or not message.strip():
        raise ValueError("payload.message (non-empty string) is required")
    if runtime_deps.workers.get(worker_id) is None:
        await _unknown_worker(ws, request_id, worker_id)
        return
    ok = await runtime_deps.workers.send_to_worker(worker_id, message)
    await _ack(ws, WS_TYPE_SEND_TO_WORKER, request_id, worker_id=worker_id, success=ok)


async def _handle_interrupt_worker(
    ws: WebSocket,
    runtime_deps: RuntimeDeps,
    request_id: str | None,
    payload: dict[str, Any],
) -> None:
    worker_id = require_str(payload, "worker_id")
    if runtime_deps.workers.get(worker_id) is None:
        await _unknown_worker(ws, request_id, worker_id)
        return
    ok = await runtime_deps.workers.interrupt_worker(worker_id)
    await _ack(ws, WS_TYPE_INTERRUPT_WORKER, request_id, worker_id=worker_id, success=ok)


async def _handle_restart_worker(
    ws: WebSocket,
    runtime_deps: RuntimeDeps,
    request_id: str | None,
    payload: dict[str, Any],
) -> None:
    worker_id = require_str(payload, "worker_id")
    if runtime_deps.workers.get(worker_id) is None:
        await _unknown_worker(ws, request_id, worker_id)
        return
    ok = await runtime_deps.workers.restart_worker(worker_id)
    await _ack(ws, WS_TYPE_RESTART_WORKER, request_id, worker_id=worker_id, success=ok)


async def _handle_endpoint_exec(
    ws: WebSocket,
    runtime_deps: RuntimeDeps,
    request_id: str | None,
    payload: dict[str, Any],
) -> None:
    endpoint_key = require_str(payload, "endpoint_key")
    code = require_str(payload, "code")
    try:
        hub_request_id = await runtime_deps.hub.send(endpoint_key, {"code": code})
    except BridgeError as exc:
        await send_error(
            ws,
            request_id=request_id,
            error_code=exc.code,
            message=str(exc),
            details={"endpoint_key": endpoint_key, "delivered": exc.delivered},
        )
        return
    # The answer arrives later as an endpoint_result broadcast carrying this id.
    await _ack(ws, WS_TYPE_ENDPOINT_EXEC, request_id, endpoint_key=endpoint_key, hub_request_id=hub_request_id)


async def _handle_resize_workers(
    ws: WebSocket,
    runtime_deps: RuntimeDeps,
    request_id: str | None,
    payload: dict[str, Any],
) -> None:
    cols = require_positive_int(payload, "cols")
    rows = require_positive_int(payload, "rows")
    await runtime_deps.workers.resize_all(cols=cols, rows=rows)
    await _ack(ws, WS_TYPE_RESIZE_WORKERS, request_id, cols=cols, rows=rows)


HANDLERS: dict[str, HandlerFn] = {
    WS_TYPE_SEND_TO_WORKER: _handle_send_to_worker,
    WS_TYPE_INTERRUPT_WORKER: _handle_interrupt_worker,
    WS_TYPE_RESTART_WORKER: _handle_restart_worker,
    WS_TYPE_ENDPOINT_EXEC: _handle_endpoint_exec,
    WS_TYPE_RESIZE_WORKERS: _handle_resize_workers,
}


async def run_message_loop(
    ws: WebSocket,
    message_limiter: SlidingWindowRateLimiter,
    control_limiter: SlidingWindowRateLimiter,
    runtime_deps: RuntimeDeps,
) -> None:
    try:
        while True:
            raw = await ws.receive_text()

            msg = await _parse_or_send_error(ws, raw)
            if msg is None:
                continue

            msg_type = msg[WS_KEY_TYPE]
            request_id = msg[WS_KEY_REQUEST_ID]
            payload = msg[WS_KEY_PAYLOAD]

            limiter, label = select_rate_limiter(msg_type, message_limiter, control_limiter)
            if limiter is not None:
                if not await consume_limiter(ws, limiter, label, request_id=request_id):
                    continue

            control = await _handle_control_message(ws, msg_type, request_id=request_id)
            if control == "close":
                return
            if control == "continue":
                continue

            handler = HANDLERS.get(msg_type)
            if handler is None:
                await send_error(
                    ws,
                    request_id=request_id,
                    error_code=WS_ERROR_INVALID_MESSAGE,
                    message=f"message type '{msg_type}' is not supported",
                    reason_code="unknown_message_type",
                )
                continue

            try:
                await handler(ws, runtime_deps, request_id, payload)
            except ValueError as exc:
                await send_error(
                    ws,
                    request_id=request_id,
                    error_code=WS_ERROR_INVALID_PAYLOAD,
                    message=str(exc),
                    reason_code="invalid_payload",
                )
    except WebSocketDisconnect:
        return


__all__ = ["HANDLERS", "run_message_loop"]
