"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from swipe_triage.core.config import load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.imap.host == "imap.gmail.com"
    assert settings.storage.db_path == Path("./swipe_triage.db")
    assert settings.sync.batch_size == 50
    assert settings.gesture.distance_threshold == 100
    assert settings.gesture.velocity_threshold == 0.5
    assert settings.gesture.hard_bound == 300
    assert settings.gesture.soft_bound is None
    assert settings.stack.window_size == 3


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "SWIPE_TRIAGE_IMAP__HOST=imap.example.com\n"
        "SWIPE_TRIAGE_GESTURE__DISTANCE_THRESHOLD=80\n"
        "SWIPE_TRIAGE_SYNC__UNSEEN_ONLY=false\n"
        "UNRELATED_KEY=ignored\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.imap.host == "imap.example.com"
    assert settings.gesture.distance_threshold == 80
    assert settings.sync.unseen_only is False


def test_environment_wins_over_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("SWIPE_TRIAGE_STACK__WINDOW_SIZE=2\n", encoding="utf-8")
    monkeypatch.setenv("SWIPE_TRIAGE_STACK__WINDOW_SIZE", "4")

    settings = load_app_settings(env_file=env_file)
    assert settings.stack.window_size == 4


def test_empty_value_resets_optional_field(tmp_path: Path) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("SWIPE_TRIAGE_SYNC__MAX_MESSAGES=\n", encoding="utf-8")

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.sync.max_messages is None


def test_missing_env_file_falls_back_to_defaults(tmp_path: Path) -> None:
    settings = load_app_settings(
        env_file=tmp_path / "absent.env", include_environment=False
    )
    assert settings.web.fetch_rate_limit_calls == 2
