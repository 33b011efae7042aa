"""Tests for the IMAP transport adapter."""

# pylint: disable=protected-access

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from swipe_triage.core.config import ImapSettings
from swipe_triage.transport import ImapClient, ImapError, check_connection


def _settings(**overrides: object) -> ImapSettings:
    values: dict[str, object] = {
        "host": "imap.test",
        "port": 993,
        "username": "user",
        "app_password": "password",
        "mailbox": "INBOX",
        "use_ssl": False,
    }
    values.update(overrides)
    return ImapSettings(**values)


def _mock_connection(search_result: bytes) -> MagicMock:
    mock_connection = MagicMock()

    def uid(command, *args):
        if command == "SEARCH":
            return "OK", [search_result]
        if command == "FETCH":
            uid_arg = args[0]
            return "OK", [(b"", f"raw-{uid_arg}".encode()), b")"]
        raise AssertionError("Unexpected IMAP command")

    mock_connection.uid.side_effect = uid
    return mock_connection


def test_fetch_since_returns_message_chunks() -> None:
    client = ImapClient(_settings(), "INBOX")
    mock_connection = _mock_connection(b"101 102")
    client._connection = mock_connection  # type: ignore[attr-defined]

    chunks = list(client.fetch_since(last_uid=None, batch_size=2))

    assert [chunk.uid for chunk in chunks] == [101, 102]
    assert chunks[0].raw == b"raw-101"
    mock_connection.uid.assert_any_call("SEARCH", None, "UID", "1:*")
    mock_connection.uid.assert_any_call("FETCH", "101", "(BODY.PEEK[])")
    mock_connection.uid.assert_any_call("FETCH", "102", "(BODY.PEEK[])")


def test_fetch_since_can_restrict_to_unseen_messages() -> None:
    client = ImapClient(_settings(), unseen_only=True)
    mock_connection = _mock_connection(b"12")
    client._connection = mock_connection  # type: ignore[attr-defined]

    chunks = list(client.fetch_since(last_uid=10, batch_size=5))

    assert [chunk.uid for chunk in chunks] == [12]
    mock_connection.uid.assert_any_call("SEARCH", None, "UID", "11:*", "UNSEEN")


def test_fetch_since_ignores_highest_uid_below_checkpoint() -> None:
    client = ImapClient(_settings())
    mock_connection = _mock_connection(b"105")
    client._connection = mock_connection  # type: ignore[attr-defined]

    chunks = list(client.fetch_since(last_uid=105, batch_size=5))

    assert chunks == []
    assert mock_connection.uid.call_count == 1


def test_search_failure_raises_imap_error() -> None:
    client = ImapClient(_settings())
    mock_connection = MagicMock()
    mock_connection.uid.return_value = ("NO", [b""])
    client._connection = mock_connection  # type: ignore[attr-defined]

    with pytest.raises(ImapError):
        list(client.fetch_since(last_uid=None, batch_size=5))


def test_fetch_without_connection_raises() -> None:
    with pytest.raises(ImapError):
        ImapClient(_settings()).fetch_since(last_uid=None, batch_size=5)


def test_connect_selects_mailbox_read_only(monkeypatch: pytest.MonkeyPatch) -> None:
    mock_connection = MagicMock()
    mock_connection.select.return_value = ("OK", [b"3"])
    factory = MagicMock(return_value=mock_connection)
    monkeypatch.setattr("swipe_triage.transport.imap_client.imaplib.IMAP4", factory)

    with ImapClient(_settings(mailbox="Archive")) as client:
        assert client.mailbox == "Archive"

    factory.assert_called_once_with("imap.test", 993, timeout=10.0)
    mock_connection.login.assert_called_once_with("user", "password")
    mock_connection.select.assert_called_once_with("Archive", readonly=True)
    mock_connection.logout.assert_called_once()


def test_connect_requires_credentials() -> None:
    with pytest.raises(ImapError):
        ImapClient(_settings(app_password=None)).connect()


def test_check_connection_reports_failure_message() -> None:
    success, message = check_connection(_settings(username=None))

    assert success is False
    assert "credentials" in message
