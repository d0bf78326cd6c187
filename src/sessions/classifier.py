"""Heuristic idle/busy classification from the trailing lines of a rendered screen."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from src.state.worker import ActivityGuess


class ActivityClassifier:
    """Classify a screen by prompt and activity markers.

    Activity wins over a prompt (an agent's TUI keeps its input prompt on
    screen while a tool runs). Neither marker means UNKNOWN, and callers keep
    their current state.
    """

    def __init__(
        self,
        *,
        prompt_patterns: Iterable[str],
        activity_patterns: Iterable[str],
        activity_exclude: Iterable[str] = (),
        tail_lines: int = 10,
    ) -> None:
        self._prompt = [re.compile(p) for p in prompt_patterns]
        self._activity = [re.compile(p) for p in activity_patterns]
        self._exclude = tuple(s for s in activity_exclude if s)
        self.tail_lines = max(1, int(tail_lines))

    def tail(self, screen: str | Sequence[str]) -> list[str]:
        lines = screen.split("\n") if isinstance(screen, str) else list(screen)
        return [line.strip() for line in lines if line.strip()][-self.tail_lines:]

    def has_prompt(self, line: str) -> bool:
        return any(p.search(line) for p in self._prompt)

    def has_activity(self, line: str) -> bool:
        if any(s in line for s in self._exclude):
            return False
        return any(p.search(line) for p in self._activity)

    def classify(self, screen: str | Sequence[str]) -> ActivityGuess:
        lines = self.tail(screen)
        if not lines:
            return ActivityGuess.UNKNOWN
        if any(self.has_activity(line) for line in lines):
            return ActivityGuess.BUSY
        if any(self.has_prompt(line) for line in lines):
            return ActivityGuess.IDLE
        return ActivityGuess.UNKNOWN


__all__ = ["ActivityClassifier"]
