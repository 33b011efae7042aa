"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal

ItemStatus = Literal["inbox", "later", "archived", "deleted"]

STATUS_INBOX: ItemStatus = "inbox"
STATUS_LATER: ItemStatus = "later"
STATUS_ARCHIVED: ItemStatus = "archived"
STATUS_DELETED: ItemStatus = "deleted"

ITEM_STATUSES: tuple[ItemStatus, ...] = (
    STATUS_INBOX,
    STATUS_LATER,
    STATUS_ARCHIVED,
    STATUS_DELETED,
)

ACTION_UNDONE = "undone"

PRIORITY_NORMAL = "Normal"


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True, frozen=True)
class Item:
    """A message surrogate flowing through the triage stack."""

    id: int | None
    sender: str
    sender_email: str
    subject: str
    body: str
    received_at: datetime | None
    priority: str = PRIORITY_NORMAL
    unread: bool = True
    attachments: int = 0
    has_reply: bool = False
    status: ItemStatus = STATUS_INBOX
    external_id: str | None = None

    def with_status(self, status: ItemStatus) -> Item:
        """Return a copy of the item carrying ``status``."""
        return replace(self, status=status)


@dataclass(slots=True, frozen=True)
class Stats:
    """Cumulative triage counters."""

    processed_today: int
    for_later: int
    archived: int


@dataclass(slots=True, frozen=True)
class Activity:
    """Append-only audit entry for a single transition."""

    id: int
    item_id: int
    action: str
    item_subject: str
    item_sender: str
    created_at: datetime


@dataclass(slots=True, frozen=True)
class TransitionResult:
    """Outcome of a status transition applied by the store."""

    item: Item
    applied: bool


@dataclass(slots=True, frozen=True)
class SearchFilters:
    """Optional criteria for item searches."""

    status: ItemStatus | None = None
    sender: str | None = None
    subject: str | None = None
    start: datetime | None = None
    end: datetime | None = None


@dataclass(slots=True)
class MessageChunk:
    """Raw IMAP payload paired with its UID."""

    uid: int
    raw: bytes


@dataclass(slots=True)
class SyncCheckpoint:
    """Last processed UID for a mailbox."""

    mailbox: str
    last_uid: int


@dataclass(slots=True)
class FetchReport:
    """Outcome summary for a mail fetch cycle."""

    processed: int
    new_last_uid: int | None
    items: tuple[Item, ...] = ()


def is_valid_status(value: object) -> bool:
    """Return ``True`` when ``value`` is one of the enumerated item statuses."""
    return isinstance(value, str) and value in ITEM_STATUSES


__all__ = [
    "ACTION_UNDONE",
    "ITEM_STATUSES",
    "PRIORITY_NORMAL",
    "STATUS_ARCHIVED",
    "STATUS_DELETED",
    "STATUS_INBOX",
    "STATUS_LATER",
    "Activity",
    "FetchReport",
    "Item",
    "ItemStatus",
    "MessageChunk",
    "SearchFilters",
    "Stats",
    "SyncCheckpoint",
    "TransitionResult",
    "is_valid_status",
]
