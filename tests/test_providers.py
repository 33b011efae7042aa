"""Tests for IMAP provider presets."""

from __future__ import annotations

from swipe_triage.core.config import ImapSettings
from swipe_triage.transport import EMAIL_PROVIDERS, settings_for_provider


def test_known_provider_fills_host_and_credentials() -> None:
    base = ImapSettings(mailbox="Important", timeout_seconds=5)

    settings = settings_for_provider("Yahoo", "me@yahoo.com", "pw", base=base)

    assert settings is not None
    assert settings.host == EMAIL_PROVIDERS["yahoo"].host
    assert settings.port == 993
    assert settings.use_ssl is True
    assert settings.username == "me@yahoo.com"
    assert settings.app_password == "pw"
    assert settings.mailbox == "Important"
    assert base.username is None


def test_unknown_provider_returns_none() -> None:
    assert settings_for_provider("aol", "me@aol.com", "pw") is None
