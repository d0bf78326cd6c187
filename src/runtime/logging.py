"""Logging initialization."""

from __future__ import annotations

import logging

from src.config.logging import LOG_LEVEL, LOG_FORMAT, SHOW_ACCESS_LOGS


def configure_logging() -> None:
    # Per-request access lines drown out hub and worker events. Keep them off unless asked.
    if not SHOW_ACCESS_LOGS:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


__all__ = ["configure_logging"]
