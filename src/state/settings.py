"""Runtime settings (dataclasses only)."""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class HubSettings:
    request_timeout_s: float
    heartbeat_interval_s: float


@dataclass(frozen=True, slots=True)
class LimitsSettings:
    max_control_connections: int
    ws_message_window_seconds: float
    ws_max_messages_per_window: int
    ws_control_window_seconds: float
    ws_max_controls_per_window: int


@dataclass(frozen=True, slots=True)
class WebSocketSettings:
    ready_timeout_s: float


@dataclass(frozen=True, slots=True)
class CaptureSettings:
    poll_interval_s: float
    capture_lines: int
    cols: int
    rows: int
    tail_lines: int
    max_log_entries: int
    prompt_patterns: tuple[str, ...]
    activity_patterns: tuple[str, ...]
    activity_exclude: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RepoSettings:
    name: str
    github_user: str = ""
    live_url: str | None = None


@dataclass(frozen=True, slots=True)
class WorkerSettings:
    base_path: Path
    default_model: str
    claude_bin: str
    mcp_config: Path
    tmux_bin: str
    start_stagger_s: float
    startup_grace_s: float
    repos: tuple[RepoSettings, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class AppSettings:
    hub: HubSettings
    limits: LimitsSettings
    websocket: WebSocketSettings
    capture: CaptureSettings
    workers: WorkerSettings


__all__ = [
    "AppSettings",
    "CaptureSettings",
    "HubSettings",
    "LimitsSettings",
    "RepoSettings",
    "WebSocketSettings",
    "WorkerSettings",
]
