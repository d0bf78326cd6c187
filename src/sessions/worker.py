"""A worker: one tmux-hosted agent session, its capture loop and its activity state."""

from __future__ import annotations

import shlex
import asyncio
import logging
from typing import Any
from dataclasses import dataclass
from collections.abc import Callable, Awaitable

from src.errors import SessionEnded, TmuxCommandError
from src.config.workers import TMUX_SESSION_PREFIX, WORKER_CURRENT_TASK_MAX_CHARS, WORKER_LITERAL_SEND_MAX_CHARS
from src.state.settings import RepoSettings, WorkerSettings, CaptureSettings
from src.state.worker import LogKind, LogEntry, WorkerState, ActivityGuess, ActivityState

from .tmux import TmuxSession
from .renderer import TerminalRenderer
from .classifier import ActivityClassifier
from .capture import CaptureResult, SessionCaptureLoop

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WorkerCallbacks:
    on_state_change: Callable[[WorkerState], Awaitable[None]]
    on_log_entry: Callable[[str, LogEntry], Awaitable[None]]
    on_session_ended: Callable[[str], Awaitable[None]] | None = None


def build_classifier(capture: CaptureSettings) -> ActivityClassifier:
    return ActivityClassifier(
        prompt_patterns=capture.prompt_patterns,
        activity_patterns=capture.activity_patterns,
        activity_exclude=capture.activity_exclude,
        tail_lines=capture.tail_lines,
    )


class Worker:
    def __init__(
        self,
        repo: RepoSettings,
        *,
        settings: WorkerSettings,
        capture: CaptureSettings,
        callbacks: WorkerCallbacks,
        session: Any | None = None,
    ) -> None:
        self._settings = settings
        self._capture = capture
        self._callbacks = callbacks
        repo_path = settings.base_path / repo.name
        tmux_name = f"{TMUX_SESSION_PREFIX}{repo.name}"
        self.state = WorkerState(
            id=repo.name,
            repo_name=repo.name,
            repo_path=str(repo_path),
            github_url=f"https://github.com/{repo.github_user}/{repo.name}" if repo.github_user else "",
            tmux_session=tmux_name,
            live_url=repo.live_url,
        )
        self.session = session or TmuxSession(
            tmux_name,
            tmux_bin=settings.tmux_bin,
            capture_lines=capture.capture_lines,
        )
        self.renderer = TerminalRenderer(cols=capture.cols, rows=capture.rows)
        self.capture_loop = self._new_capture_loop()

    @property
    def id(self) -> str:
        return self.state.id

    def _new_capture_loop(self) -> SessionCaptureLoop:
        return SessionCaptureLoop(
            self.session,
            renderer=self.renderer,
            classifier=build_classifier(self._capture),
            interval_s=self._capture.poll_interval_s,
            on_result=self.handle_capture,
            on_ended=self.handle_session_ended,
        )

    def launch_command(self) -> str:
        return shlex.join([
            self._settings.claude_bin,
            "--model",
            self._settings.default_model,
            "--dangerously-skip-permissions",
            "--mcp-config",
            str(self._settings.mcp_config),
        ])

    # ----- lifecycle -----------------------------------------------------

    async def start(self) -> None:
        await self.capture_loop.stop()
        self.capture_loop = self._new_capture_loop()
        self.state.status = ActivityState.STARTING
        self.state.last_error = None
        await self._emit_state()

        command = self.launch_command()
        try:
            await self.session.start(
                cwd=self.state.repo_path,
                command=command,
                cols=self._capture.cols,
                rows=self._capture.rows,
            )
        except (TmuxCommandError, OSError) as exc:
            await self._fail(f"Failed to start: {exc}")
            return

        await self.add_log(LogKind.SYSTEM, f'Started tmux session "{self.state.tmux_session}" in {self.state.repo_path}')
        await self.add_log(LogKind.SYSTEM, f"Launching: {command}")

        await asyncio.sleep(self._settings.startup_grace_s)
        if not await self.session.is_alive():
            await self._fail("tmux session died immediately")
            return
        await self.add_log(LogKind.SYSTEM, "Agent CLI starting...")
        self.capture_loop.start()

    async def shutdown(self) -> None:
        await self.capture_loop.stop()
        await self.session.kill()
        await self.add_log(LogKind.SYSTEM, "tmux session killed")

    async def _fail(self, message: str) -> None:
        logger.error("worker %s: %s", self.id, message)
        self.state.status = ActivityState.ERROR
        self.state.last_error = message
        await self.add_log(LogKind.ERROR, message)
        await self._emit_state()

    # ----- control actions -----------------------------------------------

    async def send_message(self, text: str) -> bool:
        self.state.current_task = text[:WORKER_CURRENT_TASK_MAX_CHARS]
        await self.add_log(LogKind.USER, text)
        try:
            if "\n" in text or len(text) > WORKER_LITERAL_SEND_MAX_CHARS:
                await self.session.paste(text)
            else:
                await self.session.send_literal(text)
        except TmuxCommandError as exc:
            self.state.last_error = str(exc)
            await self.add_log(LogKind.ERROR, f"Failed to send message: {exc}")
            await self._emit_state()
            return False

        if self.state.status is not ActivityState.ERROR:
            self.state.status = ActivityState.BUSY
        await self._emit_state()
        return True

    async def interrupt(self) -> bool:
        try:
            await self.session.send_keys("Escape")
        except TmuxCommandError as exc:
            await self.add_log(LogKind.ERROR, f"Failed to interrupt: {exc}")
            return False
        if self.state.status is not ActivityState.ERROR:
            self.state.status = ActivityState.INTERRUPTED
        self.state.current_task = None
        await self.add_log(LogKind.SYSTEM, "Interrupted (sent Escape)")
        await self._emit_state()
        return True

    async def resize(self, *, cols: int, rows: int) -> None:
        await self.session.resize(cols=cols, rows=rows)
        self.renderer.resize(cols=cols, rows=rows)
        await self.add_log(LogKind.SYSTEM, f"Resized to {cols}x{rows}")

    # ----- capture callbacks ---------------------------------------------

    async def handle_capture(self, result: CaptureResult) -> None:
        changed_state = False
        if self.state.status is ActivityState.STARTING:
            self.state.status = ActivityState.BUSY
            changed_state = True

        if result.changed:
            if result.new_content:
                await self.add_log(LogKind.OUTPUT, result.new_content)
            changed_state = self.apply_guess(result.guess) or changed_state

        if changed_state:
            await self._emit_state()

    def apply_guess(self, guess: ActivityGuess) -> bool:
        """Apply a classifier verdict; returns True when the status changed."""
        status = self.state.status
        if status in (ActivityState.INTERRUPTED, ActivityState.ERROR, ActivityState.STARTING):
            return False
        if guess is ActivityGuess.IDLE and status is not ActivityState.IDLE:
            self.state.status = ActivityState.IDLE
            self.state.current_task = None
            return True
        if guess is ActivityGuess.BUSY and status is not ActivityState.BUSY:
            self.state.status = ActivityState.BUSY
            return True
        return False

    async def handle_session_ended(self) -> None:
        ended = SessionEnded(endpoint_key=self.id)
        logger.warning("worker %s: %s", self.id, ended)
        self.state.status = ActivityState.ERROR
        self.state.last_error = str(ended)
        await self.add_log(LogKind.SYSTEM, "tmux session ended")
        await self._emit_state()
        if self._callbacks.on_session_ended is not None:
            await self._callbacks.on_session_ended(self.id)

    # ----- log and events ------------------------------------------------

    async def add_log(self, kind: LogKind, content: str, tool_name: str | None = None) -> LogEntry:
        entry = LogEntry(kind=kind, content=content, tool_name=tool_name)
        log = self.state.output_log
        log.append(entry)
        overflow = len(log) - self._capture.max_log_entries
        if overflow > 0:
            del log[:overflow]
        await self._callbacks.on_log_entry(self.id, entry)
        return entry

    async def _emit_state(self) -> None:
        await self._callbacks.on_state_change(self.state)


__all__ = ["Worker", "WorkerCallbacks", "build_classifier"]
