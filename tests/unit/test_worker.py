from __future__ import annotations

from pathlib import Path

import pytest

from src.hub import CorrelationHub, EndpointConnection
from src.sessions.capture import CaptureResult
from src.sessions.manager import WorkerManager
from src.sessions.worker import Worker, WorkerCallbacks
from src.state.worker import LogKind, LogEntry, WorkerState, ActivityGuess, ActivityState
from src.state.settings import RepoSettings, WorkerSettings, CaptureSettings
from src.config.websocket import WS_CLOSE_SESSION_ENDED_CODE
from src.config.capture import (
    DEFAULT_CAPTURE_PROMPT_PATTERNS,
    DEFAULT_CAPTURE_ACTIVITY_EXCLUDE,
    DEFAULT_CAPTURE_ACTIVITY_PATTERNS,
)


class _FakeSession:
    def __init__(self, frames: list[str] | None = None, *, alive: bool = True) -> None:
        self.frames = list(frames or [])
        self.alive = alive
        self.calls: list[tuple] = []

    async def start(self, *, cwd: str, command: str, cols: int, rows: int) -> None:
        self.calls.append(("start", cwd, command))

    async def capture(self) -> str:
        return self.frames.pop(0) if self.frames else ""

    async def is_alive(self) -> bool:
        return self.alive

    async def send_literal(self, text: str) -> None:
        self.calls.append(("literal", text))

    async def paste(self, text: str) -> None:
        self.calls.append(("paste", text))

    async def send_keys(self, *keys: str) -> None:
        self.calls.append(("keys", *keys))

    async def resize(self, *, cols: int, rows: int) -> None:
        self.calls.append(("resize", cols, rows))

    async def kill(self) -> None:
        self.calls.append(("kill",))


class _Events:
    def __init__(self) -> None:
        self.states: list[str] = []
        self.logs: list[LogEntry] = []
        self.ended: list[str] = []

    async def on_state_change(self, state: WorkerState) -> None:
        self.states.append(state.status.value)

    async def on_log_entry(self, worker_id: str, entry: LogEntry) -> None:
        self.logs.append(entry)

    async def on_session_ended(self, worker_id: str) -> None:
        self.ended.append(worker_id)


def _capture_settings(**overrides) -> CaptureSettings:
    values = dict(
        poll_interval_s=0.01,
        capture_lines=200,
        cols=80,
        rows=24,
        tail_lines=10,
        max_log_entries=500,
        prompt_patterns=DEFAULT_CAPTURE_PROMPT_PATTERNS,
        activity_patterns=DEFAULT_CAPTURE_ACTIVITY_PATTERNS,
        activity_exclude=DEFAULT_CAPTURE_ACTIVITY_EXCLUDE,
    )
    values.update(overrides)
    return CaptureSettings(**values)


def _worker_settings(*repos: str) -> WorkerSettings:
    return WorkerSettings(
        base_path=Path("/srv/repos"),
        default_model="test-model",
        claude_bin="claude",
        mcp_config=Path("/srv/mcp.json"),
        tmux_bin="tmux",
        start_stagger_s=0.0,
        startup_grace_s=0.0,
        repos=tuple(RepoSettings(name=name, github_user="octo") for name in repos),
    )


def _worker(session: _FakeSession, events: _Events, **capture) -> Worker:
    return Worker(
        RepoSettings(name="shiro", github_user="octo", live_url="https://shiro.example"),
        settings=_worker_settings(),
        capture=_capture_settings(**capture),
        callbacks=WorkerCallbacks(
            on_state_change=events.on_state_change,
            on_log_entry=events.on_log_entry,
            on_session_ended=events.on_session_ended,
        ),
        session=session,
    )


def _changed(guess: ActivityGuess, text: str = "x") -> CaptureResult:
    return CaptureResult(screen=text, new_content=text, guess=guess, changed=True)


def test_worker_state_describes_repo() -> None:
    worker = _worker(_FakeSession(), _Events())
    data = worker.state.to_dict()
    assert data["id"] == "shiro"
    assert data["repo_path"] == "/srv/repos/shiro"
    assert data["github_url"] == "https://github.com/octo/shiro"
    assert data["tmux_session"] == "nimbus-shiro"
    assert data["live_url"] == "https://shiro.example"
    assert "output_log" not in worker.state.to_dict(include_log=False)
    assert worker.launch_command().startswith("claude --model test-model --dangerously-skip-permissions")


@pytest.mark.asyncio
async def test_start_goes_busy_on_first_sample() -> None:
    session = _FakeSession(["Welcome to the agent"])
    events = _Events()
    worker = _worker(session, events)

    await worker.start()
    assert worker.state.status is ActivityState.STARTING
    assert session.calls[0][0] == "start"
    assert session.calls[0][1] == "/srv/repos/shiro"

    await worker.capture_loop.tick()
    assert worker.state.status is ActivityState.BUSY
    assert any(e.kind is LogKind.OUTPUT and e.content == "Welcome to the agent" for e in worker.state.output_log)
    await worker.capture_loop.stop()


@pytest.mark.asyncio
async def test_start_fails_when_session_dies_immediately() -> None:
    events = _Events()
    worker = _worker(_FakeSession(alive=False), events)

    await worker.start()
    assert worker.state.status is ActivityState.ERROR
    assert worker.state.last_error == "tmux session died immediately"
    assert worker.capture_loop.running is False


@pytest.mark.asyncio
async def test_classifier_drives_busy_idle_and_abstains_on_unknown() -> None:
    worker = _worker(_FakeSession(), _Events())
    worker.state.status = ActivityState.BUSY
    worker.state.current_task = "fix tests"

    await worker.handle_capture(_changed(ActivityGuess.IDLE))
    assert worker.state.status is ActivityState.IDLE
    assert worker.state.current_task is None

    await worker.handle_capture(_changed(ActivityGuess.UNKNOWN))
    assert worker.state.status is ActivityState.IDLE

    await worker.handle_capture(_changed(ActivityGuess.BUSY))
    assert worker.state.status is ActivityState.BUSY


@pytest.mark.asyncio
async def test_interrupt_holds_until_next_message() -> None:
    session = _FakeSession()
    worker = _worker(session, _Events())
    worker.state.status = ActivityState.BUSY

    assert await worker.interrupt() is True
    assert ("keys", "Escape") in session.calls
    assert worker.state.status is ActivityState.INTERRUPTED

    await worker.handle_capture(_changed(ActivityGuess.IDLE))
    await worker.handle_capture(_changed(ActivityGuess.BUSY))
    assert worker.state.status is ActivityState.INTERRUPTED

    assert await worker.send_message("carry on") is True
    assert worker.state.status is ActivityState.BUSY
    await worker.handle_capture(_changed(ActivityGuess.IDLE))
    assert worker.state.status is ActivityState.IDLE


@pytest.mark.asyncio
async def test_send_message_picks_literal_or_paste() -> None:
    session = _FakeSession()
    worker = _worker(session, _Events())

    await worker.send_message("short")
    await worker.send_message("line one\nline two")
    await worker.send_message("x" * 501)

    kinds = [call[0] for call in session.calls]
    assert kinds == ["literal", "paste", "paste"]
    assert worker.state.current_task == "x" * 120
    assert [e.kind for e in worker.state.output_log] == [LogKind.USER] * 3


@pytest.mark.asyncio
async def test_session_end_is_terminal_until_restart() -> None:
    session = _FakeSession(alive=False)
    events = _Events()
    worker = _worker(session, events)
    worker.state.status = ActivityState.BUSY

    await worker.capture_loop.tick()
    assert worker.state.status is ActivityState.ERROR
    assert worker.state.last_error == "session ended: shiro"
    assert events.ended == ["shiro"]

    await worker.handle_capture(_changed(ActivityGuess.IDLE))
    assert worker.state.status is ActivityState.ERROR
    await worker.send_message("hello?")
    assert worker.state.status is ActivityState.ERROR


@pytest.mark.asyncio
async def test_output_log_is_bounded() -> None:
    worker = _worker(_FakeSession(), _Events(), max_log_entries=3)
    for n in range(5):
        await worker.add_log(LogKind.SYSTEM, f"entry {n}")
    assert [e.content for e in worker.state.output_log] == ["entry 2", "entry 3", "entry 4"]


@pytest.mark.asyncio
async def test_manager_closes_endpoint_when_session_ends() -> None:
    hub = CorrelationHub(request_timeout_s=1.0)
    sessions: dict[str, _FakeSession] = {}

    def factory(repo: RepoSettings) -> _FakeSession:
        sessions[repo.name] = _FakeSession(["booting"])
        return sessions[repo.name]

    manager = WorkerManager(_worker_settings("shiro", "foam"), _capture_settings(), hub, session_factory=factory)

    class _Ws:
        close_code: int | None = None

        async def send_text(self, text: str) -> None:
            return None

        async def close(self, *, code: int = 1000, reason: str | None = None) -> None:
            self.close_code = code

    endpoint_ws = _Ws()
    await hub.register("shiro", EndpointConnection(endpoint_ws))
    await manager.start_all()
    assert [s["id"] for s in manager.all_states()] == ["shiro", "foam"]

    worker = manager.get("shiro")
    assert worker is not None
    await worker.capture_loop.stop()
    sessions["shiro"].frames.clear()
    sessions["shiro"].alive = False
    await worker.capture_loop.tick()
    assert worker.state.status is ActivityState.ERROR
    assert hub.status() == {"shiro": False}
    assert endpoint_ws.close_code == WS_CLOSE_SESSION_ENDED_CODE

    assert await manager.send_to_worker("missing", "hi") is False
    assert await manager.interrupt_worker("foam") is True
    await manager.shutdown_all()
    assert ("kill",) in sessions["foam"].calls
