"""Session capture and activity classification configuration."""

from __future__ import annotations

ENV_CAPTURE_POLL_INTERVAL_S = "CAPTURE_POLL_INTERVAL_S"
DEFAULT_CAPTURE_POLL_INTERVAL_S = 1.5

# Scrollback lines requested from the pane on every tick.
ENV_CAPTURE_LINES = "CAPTURE_LINES"
DEFAULT_CAPTURE_LINES = 200

ENV_CAPTURE_COLS = "CAPTURE_COLS"
DEFAULT_CAPTURE_COLS = 200

ENV_CAPTURE_ROWS = "CAPTURE_ROWS"
DEFAULT_CAPTURE_ROWS = 50

# Number of trailing non-blank screen lines the classifier inspects.
ENV_CAPTURE_TAIL_LINES = "CAPTURE_TAIL_LINES"
DEFAULT_CAPTURE_TAIL_LINES = 10

ENV_CAPTURE_MAX_LOG_ENTRIES = "CAPTURE_MAX_LOG_ENTRIES"
DEFAULT_CAPTURE_MAX_LOG_ENTRIES = 500

# Marker sets are JSON lists of regular expressions, matched per stripped line.
ENV_CAPTURE_PROMPT_PATTERNS = "CAPTURE_PROMPT_PATTERNS"
DEFAULT_CAPTURE_PROMPT_PATTERNS: tuple[str, ...] = ("❯", r"^>\s*$")

# Leading word boundary only, so "Reading file..." counts as Read activity.
ENV_CAPTURE_ACTIVITY_PATTERNS = "CAPTURE_ACTIVITY_PATTERNS"
DEFAULT_CAPTURE_ACTIVITY_PATTERNS: tuple[str, ...] = (r"\b(?:Read|Bash|Edit|Write|Grep|Glob|Task)",)

# A line containing any of these substrings never counts as activity
# (the idle input placeholder mentions tool names, e.g. 'Try "edit ..."').
ENV_CAPTURE_ACTIVITY_EXCLUDE = "CAPTURE_ACTIVITY_EXCLUDE"
DEFAULT_CAPTURE_ACTIVITY_EXCLUDE: tuple[str, ...] = ("Try ",)

__all__ = [
    "ENV_CAPTURE_POLL_INTERVAL_S",
    "DEFAULT_CAPTURE_POLL_INTERVAL_S",
    "ENV_CAPTURE_LINES",
    "DEFAULT_CAPTURE_LINES",
    "ENV_CAPTURE_COLS",
    "DEFAULT_CAPTURE_COLS",
    "ENV_CAPTURE_ROWS",
    "DEFAULT_CAPTURE_ROWS",
    "ENV_CAPTURE_TAIL_LINES",
    "DEFAULT_CAPTURE_TAIL_LINES",
    "ENV_CAPTURE_MAX_LOG_ENTRIES",
    "DEFAULT_CAPTURE_MAX_LOG_ENTRIES",
    "ENV_CAPTURE_PROMPT_PATTERNS",
    "DEFAULT_CAPTURE_PROMPT_PATTERNS",
    "ENV_CAPTURE_ACTIVITY_PATTERNS",
    "DEFAULT_CAPTURE_ACTIVITY_PATTERNS",
    "ENV_CAPTURE_ACTIVITY_EXCLUDE",
    "DEFAULT_CAPTURE_ACTIVITY_EXCLUDE",
]
