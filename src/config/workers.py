"""Worker (tmux-hosted agent session) configuration."""

from __future__ import annotations

# Path to a JSON file: {"base_path": ..., "default_model": ..., "repos": [...]}
ENV_NIMBUS_CONFIG = "NIMBUS_CONFIG"
DEFAULT_NIMBUS_CONFIG = "nimbus.config.json"

# Inline JSON list of repos; takes precedence over the file's "repos".
ENV_NIMBUS_WORKERS = "NIMBUS_WORKERS"

ENV_NIMBUS_BASE_PATH = "NIMBUS_BASE_PATH"
DEFAULT_NIMBUS_BASE_PATH = "~/repos"

ENV_NIMBUS_DEFAULT_MODEL = "NIMBUS_DEFAULT_MODEL"
DEFAULT_NIMBUS_DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

ENV_CLAUDE_BIN = "CLAUDE_BIN"
DEFAULT_CLAUDE_BIN = "claude"

ENV_MCP_CONFIG = "MCP_CONFIG"
DEFAULT_MCP_CONFIG = "skyeyes-mcp.json"

ENV_TMUX_BIN = "TMUX_BIN"
DEFAULT_TMUX_BIN = "tmux"

TMUX_SESSION_PREFIX = "nimbus-"
TMUX_COMMAND_TIMEOUT_S = 5.0

# Delay between consecutive worker starts, and before the liveness check.
ENV_WORKER_START_STAGGER_S = "WORKER_START_STAGGER_S"
DEFAULT_WORKER_START_STAGGER_S = 2.0

ENV_WORKER_STARTUP_GRACE_S = "WORKER_STARTUP_GRACE_S"
DEFAULT_WORKER_STARTUP_GRACE_S = 2.0

# Messages longer than this (or multi-line) go through a tmux paste buffer.
WORKER_LITERAL_SEND_MAX_CHARS = 500
WORKER_CURRENT_TASK_MAX_CHARS = 120

__all__ = [
    "ENV_NIMBUS_CONFIG",
    "DEFAULT_NIMBUS_CONFIG",
    "ENV_NIMBUS_WORKERS",
    "ENV_NIMBUS_BASE_PATH",
    "DEFAULT_NIMBUS_BASE_PATH",
    "ENV_NIMBUS_DEFAULT_MODEL",
    "DEFAULT_NIMBUS_DEFAULT_MODEL",
    "ENV_CLAUDE_BIN",
    "DEFAULT_CLAUDE_BIN",
    "ENV_MCP_CONFIG",
    "DEFAULT_MCP_CONFIG",
    "ENV_TMUX_BIN",
    "DEFAULT_TMUX_BIN",
    "TMUX_SESSION_PREFIX",
    "TMUX_COMMAND_TIMEOUT_S",
    "ENV_WORKER_START_STAGGER_S",
    "DEFAULT_WORKER_START_STAGGER_S",
    "ENV_WORKER_STARTUP_GRACE_S",
    "DEFAULT_WORKER_STARTUP_GRACE_S",
    "WORKER_LITERAL_SEND_MAX_CHARS",
    "WORKER_CURRENT_TASK_MAX_CHARS",
]
