"""Environment parsing for runtime settings."""

from __future__ import annotations

import os
import re
import json
import logging
from typing import Any
from pathlib import Path

from src.config.websocket import ENV_WS_READY_TIMEOUT_S, DEFAULT_WS_READY_TIMEOUT_S
from src.state.settings import (
    AppSettings,
    HubSettings,
    RepoSettings,
    LimitsSettings,
    WorkerSettings,
    CaptureSettings,
    WebSocketSettings,
)
from src.config.hub import (
    ENV_HUB_REQUEST_TIMEOUT_S,
    ENV_HUB_HEARTBEAT_INTERVAL_S,
    DEFAULT_HUB_REQUEST_TIMEOUT_S,
    DEFAULT_HUB_HEARTBEAT_INTERVAL_S,
)
from src.config.limits import (
    ENV_MAX_CONTROL_CONNECTIONS,
    ENV_WS_CONTROL_WINDOW_SECONDS,
    ENV_WS_MESSAGE_WINDOW_SECONDS,
    ENV_WS_MAX_CONTROLS_PER_WINDOW,
    ENV_WS_MAX_MESSAGES_PER_WINDOW,
    DEFAULT_MAX_CONTROL_CONNECTIONS,
    DEFAULT_WS_CONTROL_WINDOW_SECONDS,
    DEFAULT_WS_MESSAGE_WINDOW_SECONDS,
    DEFAULT_WS_MAX_CONTROLS_PER_WINDOW,
    DEFAULT_WS_MAX_MESSAGES_PER_WINDOW,
)
from src.config.capture import (
    ENV_CAPTURE_COLS,
    ENV_CAPTURE_ROWS,
    ENV_CAPTURE_LINES,
    DEFAULT_CAPTURE_COLS,
    DEFAULT_CAPTURE_ROWS,
    DEFAULT_CAPTURE_LINES,
    ENV_CAPTURE_TAIL_LINES,
    DEFAULT_CAPTURE_TAIL_LINES,
    ENV_CAPTURE_POLL_INTERVAL_S,
    ENV_CAPTURE_MAX_LOG_ENTRIES,
    ENV_CAPTURE_PROMPT_PATTERNS,
    ENV_CAPTURE_ACTIVITY_EXCLUDE,
    DEFAULT_CAPTURE_POLL_INTERVAL_S,
    DEFAULT_CAPTURE_MAX_LOG_ENTRIES,
    DEFAULT_CAPTURE_PROMPT_PATTERNS,
    ENV_CAPTURE_ACTIVITY_PATTERNS,
    DEFAULT_CAPTURE_ACTIVITY_EXCLUDE,
    DEFAULT_CAPTURE_ACTIVITY_PATTERNS,
)
from src.config.workers import (
    ENV_TMUX_BIN,
    ENV_CLAUDE_BIN,
    ENV_MCP_CONFIG,
    DEFAULT_TMUX_BIN,
    ENV_NIMBUS_CONFIG,
    DEFAULT_CLAUDE_BIN,
    DEFAULT_MCP_CONFIG,
    ENV_NIMBUS_WORKERS,
    ENV_NIMBUS_BASE_PATH,
    DEFAULT_NIMBUS_CONFIG,
    DEFAULT_NIMBUS_BASE_PATH,
    ENV_NIMBUS_DEFAULT_MODEL,
    ENV_WORKER_START_STAGGER_S,
    ENV_WORKER_STARTUP_GRACE_S,
    DEFAULT_NIMBUS_DEFAULT_MODEL,
    DEFAULT_WORKER_START_STAGGER_S,
    DEFAULT_WORKER_STARTUP_GRACE_S,
)

logger = logging.getLogger(__name__)


def _str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _json_env(name: str, default: Any) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return json.loads(raw.strip())
    except Exception:
        logger.warning("%s is not valid JSON; using default", name)
        return default


def _patterns_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    parsed = _json_env(name, None)
    if parsed is None:
        return default
    if isinstance(parsed, str):
        parsed = [parsed]
    if not isinstance(parsed, list) or not all(isinstance(p, str) for p in parsed):
        logger.warning("%s must be a JSON list of strings; using default", name)
        return default
    for pattern in parsed:
        try:
            re.compile(pattern)
        except re.error as exc:
            logger.warning("%s has an invalid pattern %r (%s); using default", name, pattern, exc)
            return default
    return tuple(parsed)


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValueError(f"cannot read {ENV_NIMBUS_CONFIG} file {path}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{ENV_NIMBUS_CONFIG} file {path} must hold a JSON object")
    return parsed


def _parse_repos(raw: Any) -> tuple[RepoSettings, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError("workers/repos must be a JSON list")
    repos: list[RepoSettings] = []
    seen: set[str] = set()
    for item in raw:
        if isinstance(item, str):
            item = {"name": item}
        name = item.get("name") if isinstance(item, dict) else None
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"repo entry needs a non-empty 'name': {item!r}")
        name = name.strip()
        if name in seen:
            raise ValueError(f"duplicate repo name: {name}")
        seen.add(name)
        repos.append(
            RepoSettings(
                name=name,
                github_user=str(_pick(item, "github_user", "githubUser") or ""),
                live_url=_pick(item, "live_url", "liveUrl") or None,
            )
        )
    return tuple(repos)


def _load_hub_settings() -> HubSettings:
    return HubSettings(
        request_timeout_s=_float_env(ENV_HUB_REQUEST_TIMEOUT_S, DEFAULT_HUB_REQUEST_TIMEOUT_S),
        heartbeat_interval_s=_float_env(ENV_HUB_HEARTBEAT_INTERVAL_S, DEFAULT_HUB_HEARTBEAT_INTERVAL_S),
    )


def _load_limits_settings() -> LimitsSettings:
    max_connections = _int_env(ENV_MAX_CONTROL_CONNECTIONS, DEFAULT_MAX_CONTROL_CONNECTIONS)
    msg_window = _float_env(ENV_WS_MESSAGE_WINDOW_SECONDS, DEFAULT_WS_MESSAGE_WINDOW_SECONDS)
    msg_limit = _int_env(ENV_WS_MAX_MESSAGES_PER_WINDOW, DEFAULT_WS_MAX_MESSAGES_PER_WINDOW)
    control_window = _float_env(ENV_WS_CONTROL_WINDOW_SECONDS, DEFAULT_WS_CONTROL_WINDOW_SECONDS)
    if control_window <= 0:
        control_window = msg_window
    control_limit = _int_env(ENV_WS_MAX_CONTROLS_PER_WINDOW, DEFAULT_WS_MAX_CONTROLS_PER_WINDOW)

    return LimitsSettings(
        max_control_connections=max_connections,
        ws_message_window_seconds=msg_window,
        ws_max_messages_per_window=msg_limit,
        ws_control_window_seconds=control_window,
        ws_max_controls_per_window=control_limit,
    )


def _load_websocket_settings() -> WebSocketSettings:
    return WebSocketSettings(ready_timeout_s=_float_env(ENV_WS_READY_TIMEOUT_S, DEFAULT_WS_READY_TIMEOUT_S))


def _load_capture_settings(file_config: dict[str, Any]) -> CaptureSettings:
    max_log_default = _pick(file_config, "max_log_entries", "maxLogEntries") or DEFAULT_CAPTURE_MAX_LOG_ENTRIES
    return CaptureSettings(
        poll_interval_s=_float_env(ENV_CAPTURE_POLL_INTERVAL_S, DEFAULT_CAPTURE_POLL_INTERVAL_S),
        capture_lines=_int_env(ENV_CAPTURE_LINES, DEFAULT_CAPTURE_LINES),
        cols=_int_env(ENV_CAPTURE_COLS, DEFAULT_CAPTURE_COLS),
        rows=_int_env(ENV_CAPTURE_ROWS, DEFAULT_CAPTURE_ROWS),
        tail_lines=_int_env(ENV_CAPTURE_TAIL_LINES, DEFAULT_CAPTURE_TAIL_LINES),
        max_log_entries=max(1, _int_env(ENV_CAPTURE_MAX_LOG_ENTRIES, int(max_log_default))),
        prompt_patterns=_patterns_env(ENV_CAPTURE_PROMPT_PATTERNS, DEFAULT_CAPTURE_PROMPT_PATTERNS),
        activity_patterns=_patterns_env(ENV_CAPTURE_ACTIVITY_PATTERNS, DEFAULT_CAPTURE_ACTIVITY_PATTERNS),
        activity_exclude=_patterns_env(ENV_CAPTURE_ACTIVITY_EXCLUDE, DEFAULT_CAPTURE_ACTIVITY_EXCLUDE),
    )


def _load_worker_settings(file_config: dict[str, Any]) -> WorkerSettings:
    base_path = _str_env(
        ENV_NIMBUS_BASE_PATH,
        _pick(file_config, "base_path", "basePath") or DEFAULT_NIMBUS_BASE_PATH,
    )
    default_model = _str_env(
        ENV_NIMBUS_DEFAULT_MODEL,
        _pick(file_config, "default_model", "defaultModel") or DEFAULT_NIMBUS_DEFAULT_MODEL,
    )
    repos_raw = _json_env(ENV_NIMBUS_WORKERS, None)
    if repos_raw is None:
        repos_raw = file_config.get("repos")

    return WorkerSettings(
        base_path=Path(base_path).expanduser(),
        default_model=default_model,
        claude_bin=_str_env(ENV_CLAUDE_BIN, DEFAULT_CLAUDE_BIN),
        mcp_config=Path(_str_env(ENV_MCP_CONFIG, DEFAULT_MCP_CONFIG)).expanduser().resolve(),
        tmux_bin=_str_env(ENV_TMUX_BIN, DEFAULT_TMUX_BIN),
        start_stagger_s=_float_env(ENV_WORKER_START_STAGGER_S, DEFAULT_WORKER_START_STAGGER_S),
        startup_grace_s=_float_env(ENV_WORKER_STARTUP_GRACE_S, DEFAULT_WORKER_STARTUP_GRACE_S),
        repos=_parse_repos(repos_raw),
    )


def load_settings() -> AppSettings:
    file_config = _read_config_file(Path(_str_env(ENV_NIMBUS_CONFIG, DEFAULT_NIMBUS_CONFIG)).expanduser())
    return AppSettings(
        hub=_load_hub_settings(),
        limits=_load_limits_settings(),
        websocket=_load_websocket_settings(),
        capture=_load_capture_settings(file_config),
        workers=_load_worker_settings(file_config),
    )


__all__ = ["load_settings"]
