"""Utilities for parsing raw RFC822 messages into triage items."""

from __future__ import annotations

import re
from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parseaddr, parsedate_to_datetime

from ..core.datetime_utils import utc_now
from ..core.models import PRIORITY_NORMAL, Item

DEFAULT_SUBJECT = "No Subject"
DEFAULT_SENDER = "Unknown Sender"

_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"[ \t]+")


class ItemParser:
    """Convert raw email payloads into inbox items."""

    def __init__(self, *, body_limit: int = 500) -> None:
        """Prepare internal parser instance."""
        if body_limit <= 0:
            raise ValueError("body_limit must be positive")
        self._parser = BytesParser(policy=policy.default)
        self._body_limit = body_limit

    def parse(self, uid: int, payload: bytes, source: str) -> Item:
        """Parse raw RFC822 bytes into an :class:`Item` ready for storage.

        ``source`` names the account mailbox the UID belongs to and prefixes
        the stored ``external_id``.
        """
        message = self._parser.parsebytes(payload)
        sender, sender_email = _split_sender(message.get("From"))
        subject = (message.get("Subject") or "").strip() or DEFAULT_SUBJECT
        received_at = _try_parse_datetime(message.get("Date")) or utc_now()
        body = _extract_text(message)[: self._body_limit]
        attachments = sum(1 for _ in message.iter_attachments())

        return Item(
            id=None,
            sender=sender,
            sender_email=sender_email,
            subject=subject,
            body=body,
            received_at=received_at,
            priority=_classify_priority(message),
            unread=True,
            attachments=attachments,
            has_reply=False,
            external_id=f"{source}:{uid}",
        )


def _split_sender(header_value: str | None) -> tuple[str, str]:
    if not header_value:
        return DEFAULT_SENDER, ""
    name, address = parseaddr(str(header_value))
    name = name.strip().strip('"')
    if name:
        return name, address
    if address:
        return address, address
    return DEFAULT_SENDER, ""


def _classify_priority(message: EmailMessage) -> str:
    x_priority = str(message.get("X-Priority") or "").strip()
    importance = str(message.get("Importance") or "").strip().lower()
    precedence = str(message.get("Precedence") or "").strip().lower()
    if x_priority.startswith("1"):
        return "Urgent"
    if x_priority.startswith("2") or importance == "high":
        return "Important"
    if message.get("List-Unsubscribe") or precedence in {"bulk", "list"}:
        return "Marketing"
    return PRIORITY_NORMAL


def _extract_text(message: EmailMessage) -> str:
    plain_chunks: list[str] = []
    html_chunks: list[str] = []

    for part in message.walk():
        if part.is_multipart():
            continue
        if part.get_content_disposition() == "attachment":
            continue
        try:
            content_obj = part.get_content()
        except LookupError:
            continue
        if not isinstance(content_obj, str):
            continue
        content = content_obj.strip()
        if not content:
            continue
        content_type = part.get_content_type()
        if content_type == "text/plain":
            plain_chunks.append(content)
        elif content_type == "text/html":
            html_chunks.append(content)

    if plain_chunks:
        return "\n\n".join(plain_chunks)
    if html_chunks:
        stripped = _TAG_PATTERN.sub(" ", "\n".join(html_chunks))
        return _WHITESPACE_PATTERN.sub(" ", stripped).strip()
    return ""


def _try_parse_datetime(header_value: str | None) -> datetime | None:
    if header_value is None:
        return None
    try:
        return parsedate_to_datetime(str(header_value))
    except (TypeError, ValueError):
        return None


__all__ = ["DEFAULT_SENDER", "DEFAULT_SUBJECT", "ItemParser"]
