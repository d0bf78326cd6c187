"""Control (dashboard) message parsing/validation."""

from __future__ import annotations

from typing import Any

import orjson

from src.config.websocket import WS_KEY_TYPE, WS_KEY_PAYLOAD, WS_KEY_REQUEST_ID


def parse_control_message(raw: str | bytes) -> dict[str, Any]:
    try:
        msg = orjson.loads(raw)
    except Exception as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc

    if not isinstance(msg, dict):
        raise ValueError("message must be a JSON object")

    msg_type = msg.get(WS_KEY_TYPE)
    if not isinstance(msg_type, str) or not msg_type.strip():
        raise ValueError("message missing non-empty 'type'")

    request_id = msg.get(WS_KEY_REQUEST_ID)
    if request_id is not None and (not isinstance(request_id, str) or not request_id.strip()):
        raise ValueError("message 'request_id' must be a non-empty string when present")

    payload = msg.get(WS_KEY_PAYLOAD, {})
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValueError("message 'payload' must be an object")

    msg[WS_KEY_TYPE] = msg_type.strip()
    msg[WS_KEY_REQUEST_ID] = request_id.strip() if request_id is not None else None
    msg[WS_KEY_PAYLOAD] = payload
    return msg


def require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"payload.{key} (non-empty string) is required")
    return value.strip()


def require_positive_int(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"payload.{key} (positive integer) is required")
    return value


__all__ = ["parse_control_message", "require_positive_int", "require_str"]
