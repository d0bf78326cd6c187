from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = str(Path(__file__).resolve().parent.parent)


def pytest_configure() -> None:
    # `src` is a flat package at the repo root, not an installed distribution.
    if REPO_ROOT not in sys.path:
        sys.path.insert(0, REPO_ROOT)
