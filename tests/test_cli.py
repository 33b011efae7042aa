"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from swipe_triage import cli
from swipe_triage.core.config import load_app_settings
from swipe_triage.core.models import FetchReport


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    load_app_settings.cache_clear()


@pytest.fixture()
def env_file(tmp_path: Path) -> Path:
    path = tmp_path / "cli.env"
    path.write_text(
        f"SWIPE_TRIAGE_STORAGE__DB_PATH={tmp_path / 'cli.db'}\n", encoding="utf-8"
    )
    return path


def test_info_reports_configuration(env_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--env-file", str(env_file), "info"])

    output = capsys.readouterr().out
    assert "IMAP host: imap.gmail.com" in output
    assert "Items waiting in inbox: 0" in output


def test_seed_then_stats(env_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--env-file", str(env_file), "seed"])
    cli.main(["--env-file", str(env_file), "seed"])
    cli.main(["--env-file", str(env_file), "stats"])

    output = capsys.readouterr().out
    assert "Seeded 5 sample item(s)." in output
    assert "Sample items already present; nothing seeded." in output
    assert "Processed today: 0" in output
    assert "No activity recorded yet." in output


def test_triage_session_updates_store(
    env_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.main(["--env-file", str(env_file), "seed"])
    commands = iter(["a", "d", "q"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(commands))

    cli.main(["--env-file", str(env_file), "triage"])
    cli.main(["--env-file", str(env_file), "stats"])

    output = capsys.readouterr().out
    assert "Archived: Meeting Reschedule Request" in output
    assert "Saved for later: Project Update Required" in output
    assert "Processed today: 2" in output
    assert "For later: 1" in output
    assert "Archived: 1" in output


def test_sync_reports_imap_failure(
    env_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.main(["--env-file", str(env_file), "sync"])

    assert "Sync failed: IMAP credentials are not configured" in capsys.readouterr().out


def test_sync_reports_processed_count(
    env_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    limits: list[int | None] = []

    def fake_sync(imap_settings, repository, sync_settings, *, limit=None) -> FetchReport:
        limits.append(limit)
        return FetchReport(processed=3, new_last_uid=99)

    monkeypatch.setattr(cli, "sync_mailbox", fake_sync)

    cli.main(["--env-file", str(env_file), "sync", "--limit", "7"])

    assert limits == [7]
    assert "Processed 3 message(s). Last UID stored: 99" in capsys.readouterr().out
