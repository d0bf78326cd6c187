"""Send and error helpers for the WebSocket JSON envelopes."""

from __future__ import annotations

import logging
from typing import Any

import orjson
from fastapi import WebSocket, WebSocketDisconnect

from src.config.websocket import (
    WS_KEY_TYPE,
    WS_TYPE_ERROR,
    WS_KEY_PAYLOAD,
    WS_KEY_REQUEST_ID,
    WS_UNKNOWN_REQUEST_ID,
)

logger = logging.getLogger(__name__)


def build_error_payload(
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    reason_code: str | None = None,
) -> dict[str, Any]:
    payload_details = dict(details or {})
    if reason_code:
        payload_details.setdefault("reason_code", reason_code)
    return {"code": code, "message": message, "details": payload_details}


def build_envelope(
    msg_type: str,
    request_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    envelope: dict[str, Any] = {WS_KEY_TYPE: msg_type, WS_KEY_PAYLOAD: payload or {}}
    if request_id is not None:
        envelope[WS_KEY_REQUEST_ID] = request_id
    return envelope


def encode_message(data: dict[str, Any]) -> str:
    return orjson.dumps(data).decode("utf-8")


async def safe_send_text(ws: Any, text: str) -> bool:
    try:
        await ws.send_text(text)
    except WebSocketDisconnect:
        return False
    except Exception:
        logger.debug("WebSocket send failed", exc_info=True)
        return False
    return True


async def safe_send_json(ws: Any, data: dict[str, Any]) -> bool:
    return await safe_send_text(ws, encode_message(data))


async def safe_send_envelope(
    ws: Any,
    *,
    msg_type: str,
    request_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> bool:
    return await safe_send_json(ws, build_envelope(msg_type, request_id, payload))


async def send_error(
    ws: Any,
    *,
    request_id: str | None,
    error_code: str,
    message: str,
    reason_code: str | None = None,
    details: dict[str, Any] | None = None,
) -> bool:
    return await safe_send_envelope(
        ws,
        msg_type=WS_TYPE_ERROR,
        request_id=request_id or WS_UNKNOWN_REQUEST_ID,
        payload=build_error_payload(error_code, message, details=details, reason_code=reason_code),
    )


async def reject_connection(
    ws: WebSocket,
    *,
    error_code: str,
    message: str,
    close_code: int,
) -> None:
    # Accept so we can send a structured error, then close.
    try:
        await ws.accept()
    except Exception:
        return
    await send_error(
        ws,
        request_id=WS_UNKNOWN_REQUEST_ID,
        error_code=error_code,
        message=message,
        reason_code=error_code,
    )
    try:
        await ws.close(code=close_code, reason=message)
    except Exception:
        return


__all__ = [
    "build_error_payload",
    "build_envelope",
    "encode_message",
    "safe_send_text",
    "safe_send_json",
    "safe_send_envelope",
    "send_error",
    "reject_connection",
]
