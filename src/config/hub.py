"""Correlation hub timing configuration (env names and defaults only)."""

from __future__ import annotations

# Default deadline for a routed request awaiting its result.
ENV_HUB_REQUEST_TIMEOUT_S = "HUB_REQUEST_TIMEOUT_S"
DEFAULT_HUB_REQUEST_TIMEOUT_S = 10.0

# Liveness sweep period. An endpoint that misses one full period without a
# pong is evicted on the following sweep.
ENV_HUB_HEARTBEAT_INTERVAL_S = "HUB_HEARTBEAT_INTERVAL_S"
DEFAULT_HUB_HEARTBEAT_INTERVAL_S = 15.0

__all__ = [
    "ENV_HUB_REQUEST_TIMEOUT_S",
    "DEFAULT_HUB_REQUEST_TIMEOUT_S",
    "ENV_HUB_HEARTBEAT_INTERVAL_S",
    "DEFAULT_HUB_HEARTBEAT_INTERVAL_S",
]
