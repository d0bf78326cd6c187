"""Per-session capture loop: sample, render, diff, classify."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from dataclasses import dataclass
from collections.abc import Callable, Awaitable

from src.state.worker import ActivityGuess

from .source import SessionSource
from .renderer import TerminalRenderer
from .differ import compute_new_content
from .classifier import ActivityClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CaptureResult:
    screen: str
    new_content: str
    guess: ActivityGuess
    changed: bool


ResultFn = Callable[[CaptureResult], Awaitable[None]]
EndedFn = Callable[[], Awaitable[None]]


class SessionCaptureLoop:
    def __init__(
        self,
        source: SessionSource,
        *,
        renderer: TerminalRenderer,
        classifier: ActivityClassifier,
        interval_s: float,
        on_result: ResultFn,
        on_ended: EndedFn,
    ) -> None:
        self._source = source
        self._renderer = renderer
        self._classifier = classifier
        self._interval_s = float(interval_s)
        self._on_result = on_result
        self._on_ended = on_ended
        self._task: asyncio.Task | None = None
        self.previous_screen = ""
        self.ended = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._poll_loop())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await task

    async def tick(self) -> CaptureResult | None:
        """Run one capture cycle. Returns None when there was nothing to sample."""
        if self.ended:
            return None

        raw = await self._source.capture()
        if not raw:
            if not await self._source.is_alive():
                self.ended = True
                await self._on_ended()
            return None

        screen = self._renderer.render(raw)
        if screen == self.previous_screen:
            result = CaptureResult(screen=screen, new_content="", guess=ActivityGuess.UNKNOWN, changed=False)
        else:
            new_content = compute_new_content(self.previous_screen, screen)
            self.previous_screen = screen
            result = CaptureResult(
                screen=screen,
                new_content=new_content,
                guess=self._classifier.classify(screen),
                changed=True,
            )
        await self._on_result(result)
        return result

    async def _poll_loop(self) -> None:
        try:
            while not self.ended:
                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.debug("capture tick failed", exc_info=True)
                if self.ended:
                    break
                await asyncio.sleep(self._interval_s)
        except asyncio.CancelledError:
            return


__all__ = ["CaptureResult", "SessionCaptureLoop"]
