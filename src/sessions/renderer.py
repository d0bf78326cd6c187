"""Render raw pane output (with ANSI/cursor sequences) into plain screen text."""

from __future__ import annotations

import pyte


class TerminalRenderer:
    """A fixed-size character grid, reset before every render.

    Snapshots are full buffers, never deltas, so no escape-sequence state is
    carried from one render to the next.
    """

    def __init__(self, *, cols: int, rows: int) -> None:
        self.cols = int(cols)
        self.rows = int(rows)
        self._screen = pyte.Screen(self.cols, self.rows)
        self._stream = pyte.Stream(self._screen)

    def render(self, raw: str | bytes) -> str:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        self._screen.reset()
        self._stream.feed(self._ensure_crlf(raw))
        lines = [line.rstrip() for line in self._screen.display]
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines)

    def resize(self, *, cols: int, rows: int) -> None:
        self.cols = int(cols)
        self.rows = int(rows)
        self._screen.resize(lines=self.rows, columns=self.cols)

    @staticmethod
    def _ensure_crlf(raw: str) -> str:
        # capture-pane emits bare LF; a terminal only returns to column 0 on CR.
        if not raw:
            return raw
        chars: list[str] = []
        prev = ""
        for ch in raw:
            if ch == "\n" and prev != "\r":
                chars.append("\r\n")
            else:
                chars.append(ch)
            prev = ch
        return "".join(chars)


__all__ = ["TerminalRenderer"]
