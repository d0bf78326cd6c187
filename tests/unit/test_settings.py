from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.runtime.settings_loader import load_settings
from src.config.capture import DEFAULT_CAPTURE_ACTIVITY_PATTERNS


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("NIMBUS_WORKERS", "NIMBUS_BASE_PATH", "CAPTURE_ACTIVITY_PATTERNS", "WS_CONTROL_WINDOW_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NIMBUS_CONFIG", str(tmp_path / "absent.json"))


def test_defaults_without_config() -> None:
    settings = load_settings()
    assert settings.hub.request_timeout_s == 10.0
    assert settings.hub.heartbeat_interval_s == 15.0
    assert settings.capture.poll_interval_s == 1.5
    assert settings.capture.activity_patterns == DEFAULT_CAPTURE_ACTIVITY_PATTERNS
    assert settings.workers.repos == ()
    # Control window falls back to the message window.
    assert settings.limits.ws_control_window_seconds == settings.limits.ws_message_window_seconds


def test_config_file_supplies_repos(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "nimbus.config.json"
    config.write_text(
        json.dumps({
            "basePath": str(tmp_path / "repos"),
            "defaultModel": "m-1",
            "maxLogEntries": 42,
            "repos": [{"name": "shiro", "githubUser": "octo", "liveUrl": "https://shiro.example"}, "foam"],
        })
    )
    monkeypatch.setenv("NIMBUS_CONFIG", str(config))

    settings = load_settings()
    assert settings.workers.base_path == tmp_path / "repos"
    assert settings.workers.default_model == "m-1"
    assert settings.capture.max_log_entries == 42
    assert [r.name for r in settings.workers.repos] == ["shiro", "foam"]
    assert settings.workers.repos[0].github_user == "octo"
    assert settings.workers.repos[0].live_url == "https://shiro.example"


def test_env_workers_override_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NIMBUS_WORKERS", json.dumps([{"name": "spirit"}]))
    monkeypatch.setenv("CAPTURE_ACTIVITY_PATTERNS", json.dumps([r"\bThinking"]))

    settings = load_settings()
    assert [r.name for r in settings.workers.repos] == ["spirit"]
    assert settings.capture.activity_patterns == (r"\bThinking",)


def test_duplicate_repo_names_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NIMBUS_WORKERS", json.dumps(["shiro", "shiro"]))
    with pytest.raises(ValueError):
        load_settings()


def test_invalid_activity_pattern_falls_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CAPTURE_ACTIVITY_PATTERNS", json.dumps([r"\bThinking", "(unclosed"]))
    settings = load_settings()
    assert settings.capture.activity_patterns == tuple(DEFAULT_CAPTURE_ACTIVITY_PATTERNS)
