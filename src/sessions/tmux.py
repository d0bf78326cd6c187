"""tmux-backed live session: the external process collaborator a worker drives."""

from __future__ import annotations

import uuid
import asyncio
import logging
import contextlib

from src.errors import TmuxCommandError
from src.config.workers import TMUX_COMMAND_TIMEOUT_S

logger = logging.getLogger(__name__)


class TmuxSession:
    def __init__(
        self,
        name: str,
        *,
        tmux_bin: str = "tmux",
        capture_lines: int = 200,
        timeout_s: float = TMUX_COMMAND_TIMEOUT_S,
    ) -> None:
        self.name = name
        self._tmux_bin = tmux_bin
        self._capture_lines = int(capture_lines)
        self._timeout_s = float(timeout_s)

    async def _run(self, *args: str, stdin: bytes | None = None, check: bool = True) -> str:
        cmd = (self._tmux_bin, *args)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise TmuxCommandError(command=args, returncode=-1, stderr=str(exc)) from exc
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(stdin), timeout=self._timeout_s)
        except TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            raise TmuxCommandError(command=args, returncode=None) from None
        if check and proc.returncode != 0:
            raise TmuxCommandError(
                command=args,
                returncode=proc.returncode,
                stderr=stderr.decode("utf-8", errors="replace"),
            )
        return stdout.decode("utf-8", errors="replace")

    async def _run_quiet(self, *args: str) -> str:
        try:
            return await self._run(*args, check=False)
        except TmuxCommandError:
            logger.debug("tmux %s failed", args[0], exc_info=True)
            return ""

    async def start(self, *, cwd: str, command: str, cols: int, rows: int) -> None:
        await self.kill()
        await asyncio.sleep(0.2)
        await self._run("new-session", "-d", "-s", self.name, "-c", cwd, "-x", str(cols), "-y", str(rows))
        await self._run("send-keys", "-t", self.name, command, "Enter")

    async def capture(self) -> str:
        return await self._run_quiet("capture-pane", "-t", self.name, "-p", "-S", f"-{self._capture_lines}")

    async def is_alive(self) -> bool:
        try:
            await self._run("has-session", "-t", self.name)
        except TmuxCommandError:
            return False
        return True

    async def send_literal(self, text: str) -> None:
        await self._run("send-keys", "-t", self.name, "-l", text)
        await self._run("send-keys", "-t", self.name, "Enter")

    async def paste(self, text: str) -> None:
        buffer_name = f"nimbus-{uuid.uuid4().hex[:8]}"
        await self._run("load-buffer", "-b", buffer_name, "-", stdin=text.encode("utf-8"))
        await self._run("paste-buffer", "-d", "-b", buffer_name, "-t", self.name)
        await self._run("send-keys", "-t", self.name, "Enter")

    async def send_keys(self, *keys: str) -> None:
        await self._run("send-keys", "-t", self.name, *keys)

    async def resize(self, *, cols: int, rows: int) -> None:
        await self._run_quiet("resize-window", "-t", self.name, "-x", str(cols), "-y", str(rows))

    async def kill(self) -> None:
        await self._run_quiet("kill-session", "-t", self.name)


__all__ = ["TmuxSession"]
