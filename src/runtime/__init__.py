"""Runtime package.

Keep this module dependency-light: importing `src.runtime.*` in unit tests
should not start workers or touch tmux.
"""

__all__: list[str] = []
