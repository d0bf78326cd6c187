"""Wire messages between the hub and execution endpoints.

Each direction is a closed set of frozen dataclasses. Adding a message kind
means adding a variant here and a branch wherever the union is dispatched.
"""

from __future__ import annotations

from typing import Any
from dataclasses import field, dataclass

import orjson

from src.config.websocket import (
    WS_KEY_TYPE,
    WS_KEY_ERROR,
    WS_KEY_RESULT,
    WS_TYPE_EVENT,
    WS_TYPE_READY,
    WS_KEY_PAYLOAD,
    WS_TYPE_INVOKE,
    WS_TYPE_RESULT,
    WS_KEY_REQUEST_ID,
    WS_KEY_ENDPOINT_KEY,
    WS_TYPE_LIVENESS_PING,
    WS_TYPE_LIVENESS_PONG,
)


@dataclass(frozen=True, slots=True)
class Ready:
    endpoint_key: str


@dataclass(frozen=True, slots=True)
class Result:
    request_id: str
    result: Any = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class Event:
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LivenessPong:
    pass


@dataclass(frozen=True, slots=True)
class Invoke:
    request_id: str
    payload: Any

    def to_wire(self) -> dict[str, Any]:
        return {WS_KEY_TYPE: WS_TYPE_INVOKE, WS_KEY_REQUEST_ID: self.request_id, WS_KEY_PAYLOAD: self.payload}


@dataclass(frozen=True, slots=True)
class LivenessPing:
    def to_wire(self) -> dict[str, Any]:
        return {WS_KEY_TYPE: WS_TYPE_LIVENESS_PING}


EndpointMessage = Ready | Result | Event | LivenessPong
HubMessage = Invoke | LivenessPing


def _require_str(msg: dict[str, Any], key: str) -> str:
    value = msg.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"message missing non-empty '{key}'")
    return value.strip()


def parse_endpoint_message(raw: str | bytes) -> EndpointMessage:
    try:
        msg = orjson.loads(raw)
    except Exception as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc

    if not isinstance(msg, dict):
        raise ValueError("message must be a JSON object")

    msg_type = msg.get(WS_KEY_TYPE)
    if not isinstance(msg_type, str) or not msg_type.strip():
        raise ValueError("message missing non-empty 'type'")
    msg_type = msg_type.strip()

    if msg_type == WS_TYPE_READY:
        return Ready(endpoint_key=_require_str(msg, WS_KEY_ENDPOINT_KEY))
    if msg_type == WS_TYPE_RESULT:
        error = msg.get(WS_KEY_ERROR)
        if error is not None and not isinstance(error, str):
            error = orjson.dumps(error).decode("utf-8")
        return Result(
            request_id=_require_str(msg, WS_KEY_REQUEST_ID),
            result=msg.get(WS_KEY_RESULT),
            error=error or None,
        )
    if msg_type == WS_TYPE_EVENT:
        return Event(payload={k: v for k, v in msg.items() if k != WS_KEY_TYPE})
    if msg_type == WS_TYPE_LIVENESS_PONG:
        return LivenessPong()
    raise ValueError(f"message type '{msg_type}' is not supported")


__all__ = [
    "EndpointMessage",
    "Event",
    "HubMessage",
    "Invoke",
    "LivenessPing",
    "LivenessPong",
    "Ready",
    "Result",
    "parse_endpoint_message",
]
