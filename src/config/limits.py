"""Admission control and rate limit configuration (env names and defaults only)."""

from __future__ import annotations

# Dashboard/control connections only; endpoint connections are bounded by key.
ENV_MAX_CONTROL_CONNECTIONS = "MAX_CONTROL_CONNECTIONS"
DEFAULT_MAX_CONTROL_CONNECTIONS = 100

ENV_WS_MESSAGE_WINDOW_SECONDS = "WS_MESSAGE_WINDOW_SECONDS"
DEFAULT_WS_MESSAGE_WINDOW_SECONDS = 60.0

ENV_WS_MAX_MESSAGES_PER_WINDOW = "WS_MAX_MESSAGES_PER_WINDOW"
DEFAULT_WS_MAX_MESSAGES_PER_WINDOW = 600

# Interrupts and restarts have their own, tighter window.
ENV_WS_CONTROL_WINDOW_SECONDS = "WS_CONTROL_WINDOW_SECONDS"
DEFAULT_WS_CONTROL_WINDOW_SECONDS = 0.0

ENV_WS_MAX_CONTROLS_PER_WINDOW = "WS_MAX_CONTROLS_PER_WINDOW"
DEFAULT_WS_MAX_CONTROLS_PER_WINDOW = 30

__all__ = [
    "ENV_MAX_CONTROL_CONNECTIONS",
    "DEFAULT_MAX_CONTROL_CONNECTIONS",
    "ENV_WS_MESSAGE_WINDOW_SECONDS",
    "DEFAULT_WS_MESSAGE_WINDOW_SECONDS",
    "ENV_WS_MAX_MESSAGES_PER_WINDOW",
    "DEFAULT_WS_MAX_MESSAGES_PER_WINDOW",
    "ENV_WS_CONTROL_WINDOW_SECONDS",
    "DEFAULT_WS_CONTROL_WINDOW_SECONDS",
    "ENV_WS_MAX_CONTROLS_PER_WINDOW",
    "DEFAULT_WS_MAX_CONTROLS_PER_WINDOW",
]
