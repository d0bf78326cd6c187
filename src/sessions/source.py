"""Interface of the live-output source a capture loop samples."""

from __future__ import annotations

from typing import Protocol


class SessionSource(Protocol):
    async def capture(self) -> str:
        """Return the full visible buffer, or "" when nothing is available."""
        ...

    async def is_alive(self) -> bool:
        ...


__all__ = ["SessionSource"]
