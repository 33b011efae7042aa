"""Tests for RFC822 parsing into triage items."""

from __future__ import annotations

from datetime import datetime, timezone
from email.message import EmailMessage
from pathlib import Path

import pytest

from swipe_triage.ingestion import ItemParser
from swipe_triage.ingestion.parser import DEFAULT_SENDER, DEFAULT_SUBJECT

FIXTURE_PATH = Path(__file__).parent / "fixtures" / "sample_email.eml"


def _message(**headers: str) -> EmailMessage:
    message = EmailMessage()
    for name, value in headers.items():
        message[name.replace("_", "-")] = value
    return message


def test_item_parser_extracts_headers_and_body() -> None:
    payload = FIXTURE_PATH.read_bytes()
    parser = ItemParser()

    item = parser.parse(uid=101, payload=payload, source="INBOX")

    assert item.id is None
    assert item.external_id == "INBOX:101"
    assert item.sender == "Sarah Anderson"
    assert item.sender_email == "sarah@company.com"
    assert item.subject == "Q4 Budget Review Meeting"
    assert item.body == (
        "Hi team, please review the attached Q4 budget proposal before Friday."
    )
    assert item.received_at == datetime(2025, 10, 24, 7, 15, tzinfo=timezone.utc)
    assert item.priority == "Urgent"
    assert item.attachments == 2
    assert item.unread is True
    assert item.status == "inbox"


def test_html_only_message_is_stripped_to_text() -> None:
    message = _message(From="news@shop.example", Subject="Weekly deals")
    message["List-Unsubscribe"] = "<mailto:unsubscribe@shop.example>"
    message.set_content("<html><body><h1>Big</h1>  <p>savings</p></body></html>", subtype="html")

    item = ItemParser().parse(uid=5, payload=message.as_bytes(), source="INBOX")

    assert item.body == "Big savings"
    assert item.priority == "Marketing"
    assert item.sender == "news@shop.example"
    assert item.sender_email == "news@shop.example"


def test_missing_headers_fall_back_to_defaults() -> None:
    message = EmailMessage()
    message.set_content("No headers at all")

    item = ItemParser().parse(uid=9, payload=message.as_bytes(), source="Archive")

    assert item.subject == DEFAULT_SUBJECT
    assert item.sender == DEFAULT_SENDER
    assert item.sender_email == ""
    assert item.priority == "Normal"
    assert item.received_at is not None
    assert item.external_id == "Archive:9"


@pytest.mark.parametrize(
    ("header", "value", "expected"),
    [
        ("X-Priority", "2 (High)", "Important"),
        ("Importance", "High", "Important"),
        ("Precedence", "bulk", "Marketing"),
        ("X-Priority", "3 (Normal)", "Normal"),
    ],
)
def test_priority_is_derived_from_headers(header: str, value: str, expected: str) -> None:
    message = _message(From="Team <team@example.com>", Subject="Note")
    message[header] = value
    message.set_content("Body")

    item = ItemParser().parse(uid=1, payload=message.as_bytes(), source="INBOX")

    assert item.priority == expected


def test_body_is_truncated_to_preview_length() -> None:
    message = _message(From="Team <team@example.com>", Subject="Long")
    message.set_content("x" * 1000)

    item = ItemParser(body_limit=40).parse(uid=2, payload=message.as_bytes(), source="INBOX")

    assert item.body == "x" * 40


def test_body_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ItemParser(body_limit=0)
