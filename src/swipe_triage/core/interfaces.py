"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from .models import (
    Activity,
    Item,
    ItemStatus,
    MessageChunk,
    SearchFilters,
    Stats,
    SyncCheckpoint,
    TransitionResult,
)


class MailboxProvider(Protocol):
    """Abstraction over an email source such as IMAP."""

    mailbox: str

    def fetch_since(
        self, last_uid: int | None, batch_size: int
    ) -> Iterable[MessageChunk]:
        """Yield messages with UID greater than the provided checkpoint."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any network resources."""
        raise NotImplementedError


class ItemRepository(Protocol):
    """Abstraction for item persistence."""

    def persist_item(self, item: Item) -> Item | None:
        """Store a new item; return ``None`` when its external id already exists."""
        raise NotImplementedError

    def fetch_item(self, item_id: int) -> Item | None:
        """Retrieve a stored item by identifier."""
        raise NotImplementedError

    def list_items(
        self,
        *,
        status: ItemStatus | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Item]:
        """Return items ordered most recent first."""
        raise NotImplementedError

    def search_items(
        self,
        filters: SearchFilters,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Item]:
        """Return items matching ``filters`` ordered most recent first."""
        raise NotImplementedError

    def transition_status(
        self,
        item_id: int,
        status: ItemStatus,
        *,
        action: str,
        counters: Sequence[str] = (),
    ) -> TransitionResult | None:
        """Atomically set status, log ``action`` and bump ``counters``."""
        raise NotImplementedError

    def delete_item(
        self,
        item_id: int,
        *,
        action: str = "deleted",
        counters: Sequence[str] = (),
    ) -> Item | None:
        """Remove the item, keeping an ``action`` activity that describes it."""
        raise NotImplementedError

    def get_stats(self) -> Stats:
        """Return the aggregate counters, creating them when missing."""
        raise NotImplementedError

    def list_activities(self, limit: int = 50) -> list[Activity]:
        """Return the newest activity records."""
        raise NotImplementedError

    def get_checkpoint(self, mailbox: str) -> SyncCheckpoint | None:
        """Return the last stored checkpoint for the given mailbox."""
        raise NotImplementedError

    def upsert_checkpoint(self, checkpoint: SyncCheckpoint) -> None:
        """Persist the latest checkpoint for a mailbox."""
        raise NotImplementedError

    def close(self) -> None:
        """Close database connections if necessary."""
        raise NotImplementedError


class StatusGateway(Protocol):
    """Boundary the card stack uses to reach the action dispatcher."""

    def commit(self, item_id: int, status: ItemStatus) -> bool:
        """Apply ``status`` to the item; report success."""
        raise NotImplementedError

    def undo(self, item_id: int) -> bool:
        """Return the item to the inbox; report success."""
        raise NotImplementedError


__all__ = ["ItemRepository", "MailboxProvider", "StatusGateway"]
