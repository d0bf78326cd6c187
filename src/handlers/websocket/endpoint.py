"""Execution endpoint connection handler (/endpoint)."""

from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from src.state import RuntimeDeps
from src.hub import CorrelationHub, EndpointConnection
from src.hub.messages import Event, Ready, Result, LivenessPong, EndpointMessage, parse_endpoint_message
from src.config.websocket import (
    WS_KEY_TYPE,
    WS_KEY_ERROR,
    WS_KEY_RESULT,
    WS_KEY_PAYLOAD,
    WS_KEY_REQUEST_ID,
    WS_KEY_ENDPOINT_KEY,
    WS_CLOSE_POLICY_CODE,
    WS_ENDPOINT_KEY_PARAM,
    WS_TYPE_ENDPOINT_RESULT,
    WS_ERROR_INVALID_MESSAGE,
    WS_ERROR_INVALID_PAYLOAD,
    WS_CLOSE_READY_TIMEOUT_REASON,
)

from .errors import send_error

logger = logging.getLogger(__name__)


async def _receive(ws: WebSocket, conn: EndpointConnection, ready_deadline: float) -> str | None:
    """Receive one frame; unregistered connections only get until ``ready_deadline``."""
    if conn.endpoint_key is not None:
        return await ws.receive_text()
    remaining = ready_deadline - asyncio.get_running_loop().time()
    try:
        return await asyncio.wait_for(ws.receive_text(), timeout=max(0.0, remaining))
    except TimeoutError:
        return None


async def _handle_result(hub: CorrelationHub, conn: EndpointConnection, msg: Result) -> None:
    if not hub.complete_request(msg.request_id, msg.result, msg.error):
        return
    await hub.broadcast({
        WS_KEY_TYPE: WS_TYPE_ENDPOINT_RESULT,
        WS_KEY_ENDPOINT_KEY: conn.endpoint_key,
        WS_KEY_REQUEST_ID: msg.request_id,
        WS_KEY_PAYLOAD: {WS_KEY_RESULT: msg.result, WS_KEY_ERROR: msg.error},
    })


async def _dispatch(ws: WebSocket, hub: CorrelationHub, conn: EndpointConnection, msg: EndpointMessage) -> None:
    if isinstance(msg, LivenessPong):
        hub.record_pong(conn)
        return
    if isinstance(msg, Ready):
        await hub.register(msg.endpoint_key, conn)
        return
    if isinstance(msg, Result):
        await _handle_result(hub, conn, msg)
        return
    if isinstance(msg, Event):
        if conn.endpoint_key is None:
            await send_error(
                ws,
                request_id=None,
                error_code=WS_ERROR_INVALID_PAYLOAD,
                message="send 'ready' with an endpoint_key before events",
                reason_code="not_registered",
            )
            return
        await hub.on_unsolicited_event(conn.endpoint_key, msg.payload)


async def handle_endpoint_connection(ws: WebSocket, runtime_deps: RuntimeDeps) -> None:
    hub = runtime_deps.hub
    await ws.accept()
    conn = EndpointConnection(ws)

    key = (ws.query_params.get(WS_ENDPOINT_KEY_PARAM) or "").strip()
    if key:
        await hub.register(key, conn)

    ready_deadline = asyncio.get_running_loop().time() + runtime_deps.settings.websocket.ready_timeout_s
    try:
        while not conn.closed:
            raw = await _receive(ws, conn, ready_deadline)
            if raw is None:
                logger.info("endpoint connection %s sent no ready; closing", conn.connection_id)
                await conn.close(code=WS_CLOSE_POLICY_CODE, reason=WS_CLOSE_READY_TIMEOUT_REASON)
                return

            try:
                msg = parse_endpoint_message(raw)
            except ValueError as exc:
                await send_error(
                    ws,
                    request_id=None,
                    error_code=WS_ERROR_INVALID_MESSAGE,
                    message=str(exc),
                    reason_code="invalid_message",
                )
                continue

            await _dispatch(ws, hub, conn, msg)
    except WebSocketDisconnect:
        return
    finally:
        if conn.endpoint_key is not None:
            await hub.unregister(conn.endpoint_key, conn)
        conn.mark_closed()


__all__ = ["handle_endpoint_connection"]
