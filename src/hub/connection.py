"""A registered execution endpoint connection and its liveness record."""

from __future__ import annotations

import uuid
import asyncio
import logging
import contextlib
from typing import Any

from src.handlers.websocket.errors import safe_send_json

from .messages import HubMessage, LivenessPing

logger = logging.getLogger(__name__)


class EndpointConnection:
    def __init__(self, ws: Any, *, endpoint_key: str | None = None) -> None:
        self._ws = ws
        self._send_lock = asyncio.Lock()
        self.endpoint_key = endpoint_key
        self.connection_id = uuid.uuid4().hex[:12]
        # Seen-pong-since-last-ping. Starts true so a fresh connection gets
        # one full heartbeat period before it can be evicted.
        self.seen_pong = True
        self.closed = False
        self._close_sent = False

    @property
    def is_open(self) -> bool:
        return not self.closed

    async def send(self, message: HubMessage) -> bool:
        if self.closed:
            return False
        # Serialized so requests reach the endpoint in routing order.
        async with self._send_lock:
            return await safe_send_json(self._ws, message.to_wire())

    async def ping(self) -> bool:
        return await self.send(LivenessPing())

    def mark_pong(self) -> None:
        self.seen_pong = True

    def mark_closed(self) -> None:
        self.closed = True

    async def close(self, *, code: int, reason: str) -> None:
        self.closed = True
        if self._close_sent:
            return
        self._close_sent = True
        with contextlib.suppress(Exception):
            await self._ws.close(code=code, reason=reason)

    def __repr__(self) -> str:
        return f"EndpointConnection(key={self.endpoint_key!r}, id={self.connection_id}, open={self.is_open})"


__all__ = ["EndpointConnection"]
