"""Admission control for dashboard (control) WebSocket connections.

Endpoint connections are not counted here: the hub holds at most one per key.
"""

from __future__ import annotations

import asyncio
from typing import Any


class ConnectionManager:
    def __init__(self, *, max_connections: int) -> None:
        self.max_connections = max(1, int(max_connections))
        self._lock = asyncio.Lock()
        self._admitted: set[int] = set()

    async def connect(self, ws: Any) -> bool:
        """Reserve a slot for ``ws`` before it is accepted. False when full."""
        async with self._lock:
            if len(self._admitted) >= self.max_connections:
                return False
            self._admitted.add(id(ws))
            return True

    async def disconnect(self, ws: Any) -> None:
        async with self._lock:
            self._admitted.discard(id(ws))

    def get_connection_count(self) -> int:
        return len(self._admitted)


__all__ = ["ConnectionManager"]
