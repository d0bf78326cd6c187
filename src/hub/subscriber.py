"""Control-side (dashboard) subscriber that receives hub broadcasts."""

from __future__ import annotations

import uuid
from typing import Any

from src.handlers.websocket.errors import safe_send_text


class ControlSubscriber:
    def __init__(self, ws: Any) -> None:
        self._ws = ws
        self.subscriber_id = uuid.uuid4().hex[:12]

    async def send_text(self, text: str) -> bool:
        return await safe_send_text(self._ws, text)


__all__ = ["ControlSubscriber"]
