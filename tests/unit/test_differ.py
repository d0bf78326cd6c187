from __future__ import annotations

from src.sessions.differ import non_blank_text, compute_new_content


def test_identical_screens_emit_nothing() -> None:
    assert compute_new_content("a\nb", "a\nb") == ""


def test_first_screen_emits_all_non_blank_lines() -> None:
    assert compute_new_content("", "a\n\n  \nb") == "a\nb"


def test_appended_output_emits_suffix_only() -> None:
    assert compute_new_content("a\nb\nc", "a\nb\nc\nd") == "d"


def test_redrawn_screen_emits_everything() -> None:
    assert compute_new_content("a\nb\nc", "x\ny") == "x\ny"


def test_blank_lines_do_not_break_continuation() -> None:
    assert compute_new_content("a\n\nb", "a\nb\n\nc") == "c"


def test_non_blank_text() -> None:
    assert non_blank_text("\n a \n\n b\n") == " a \n b"
