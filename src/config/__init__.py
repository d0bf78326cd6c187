"""Configuration module exports (env names and defaults only)."""

from .hub import (
    DEFAULT_HUB_REQUEST_TIMEOUT_S,
    DEFAULT_HUB_HEARTBEAT_INTERVAL_S,
)
from .capture import DEFAULT_CAPTURE_POLL_INTERVAL_S

__all__ = [
    "DEFAULT_CAPTURE_POLL_INTERVAL_S",
    "DEFAULT_HUB_HEARTBEAT_INTERVAL_S",
    "DEFAULT_HUB_REQUEST_TIMEOUT_S",
]
