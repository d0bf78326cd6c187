from __future__ import annotations

import pytest

from src.state.worker import ActivityGuess
from src.sessions.classifier import ActivityClassifier
from src.config.capture import (
    DEFAULT_CAPTURE_PROMPT_PATTERNS,
    DEFAULT_CAPTURE_ACTIVITY_EXCLUDE,
    DEFAULT_CAPTURE_ACTIVITY_PATTERNS,
)


@pytest.fixture
def classifier() -> ActivityClassifier:
    return ActivityClassifier(
        prompt_patterns=DEFAULT_CAPTURE_PROMPT_PATTERNS,
        activity_patterns=DEFAULT_CAPTURE_ACTIVITY_PATTERNS,
        activity_exclude=DEFAULT_CAPTURE_ACTIVITY_EXCLUDE,
        tail_lines=10,
    )


def test_prompt_alone_is_idle(classifier: ActivityClassifier) -> None:
    assert classifier.classify(["some output", "> "]) is ActivityGuess.IDLE
    assert classifier.classify("done\n❯ ") is ActivityGuess.IDLE


def test_activity_beats_prompt(classifier: ActivityClassifier) -> None:
    assert classifier.classify(["Reading file...", "> "]) is ActivityGuess.BUSY


def test_tool_name_is_busy(classifier: ActivityClassifier) -> None:
    assert classifier.classify("● Bash(ls -la)\n  ⎿ running") is ActivityGuess.BUSY


def test_placeholder_hint_is_not_activity(classifier: ActivityClassifier) -> None:
    assert classifier.classify('❯ Try "edit main.py to add tests"') is ActivityGuess.IDLE


def test_no_markers_is_unknown(classifier: ActivityClassifier) -> None:
    assert classifier.classify("compiling...\n50%") is ActivityGuess.UNKNOWN
    assert classifier.classify("") is ActivityGuess.UNKNOWN


def test_only_trailing_lines_count() -> None:
    classifier = ActivityClassifier(prompt_patterns=[r"^>\s*$"], activity_patterns=[r"\bRead"], tail_lines=2)
    screen = ["Read foo.py", "line", "line", ">"]
    assert classifier.classify(screen) is ActivityGuess.IDLE


def test_prompt_regex_does_not_match_quoted_output(classifier: ActivityClassifier) -> None:
    assert classifier.classify("> quoted reply text") is ActivityGuess.UNKNOWN
