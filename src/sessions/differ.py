"""Screen differencing: turn successive rendered screens into incremental log text."""

from __future__ import annotations


def non_blank_text(screen: str) -> str:
    return "\n".join(line for line in screen.split("\n") if line.strip())


def compute_new_content(previous: str, current: str) -> str:
    """Return the text to emit for ``current`` given the ``previous`` screen.

    A continuation of the previous non-blank text (output appended, terminal
    scrolled) yields only the suffix. Anything else (cleared or redrawn
    screen) yields the whole current text.
    """
    if current == previous:
        return ""
    new_joined = non_blank_text(current)
    if not previous:
        return new_joined
    old_joined = non_blank_text(previous)
    if new_joined.startswith(old_joined):
        return new_joined[len(old_joined):].strip()
    return new_joined


__all__ = ["compute_new_content", "non_blank_text"]
