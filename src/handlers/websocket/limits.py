"""Rate limiting utilities for control WebSocket message handling."""

from __future__ import annotations

import math
from typing import Any

from fastapi import WebSocket

from src.errors import RateLimitError
from src.handlers.limits import SlidingWindowRateLimiter
from src.config.websocket import (
    WS_TYPE_END,
    WS_TYPE_PING,
    WS_TYPE_ERROR,
    WS_ERROR_RATE_LIMITED,
    WS_TYPE_RESIZE_WORKERS,
    WS_TYPE_RESTART_WORKER,
    WS_TYPE_INTERRUPT_WORKER,
)

from .errors import safe_send_envelope, build_error_payload

_CONTROL_TYPES = frozenset({WS_TYPE_INTERRUPT_WORKER, WS_TYPE_RESTART_WORKER, WS_TYPE_RESIZE_WORKERS})
_UNLIMITED_TYPES = frozenset({WS_TYPE_PING, WS_TYPE_END})


def select_rate_limiter(
    msg_type: str,
    message_limiter: SlidingWindowRateLimiter,
    control_limiter: SlidingWindowRateLimiter,
) -> tuple[SlidingWindowRateLimiter | None, str]:
    if msg_type in _CONTROL_TYPES:
        return control_limiter, "control"
    if msg_type in _UNLIMITED_TYPES:
        return None, ""
    return message_limiter, "message"


async def consume_limiter(
    ws: WebSocket,
    limiter: SlidingWindowRateLimiter,
    label: str,
    *,
    request_id: str | None,
) -> bool:
    try:
        limiter.consume()
    except RateLimitError as exc:
        retry_in_s = int(max(1, math.ceil(exc.retry_in))) if exc.retry_in else 1
        details: dict[str, Any] = {
            "retry_in": retry_in_s,
            "limit": limiter.limit,
            "window_seconds": int(limiter.window_seconds),
            "kind": label,
        }
        await safe_send_envelope(
            ws,
            msg_type=WS_TYPE_ERROR,
            request_id=request_id,
            payload=build_error_payload(
                WS_ERROR_RATE_LIMITED,
                f"{label} rate limit: at most {limiter.limit} per {int(limiter.window_seconds)} seconds; "
                f"retry in {retry_in_s} seconds",
                details=details,
                reason_code=f"{label}_rate_limited",
            ),
        )
        return False
    return True


__all__ = ["select_rate_limiter", "consume_limiter"]
