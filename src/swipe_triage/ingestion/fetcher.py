"""Mail fetching orchestration logic."""

from __future__ import annotations

import logging
from typing import Protocol

from ..core.interfaces import ItemRepository, MailboxProvider
from ..core.models import FetchReport, Item, SyncCheckpoint

LOGGER = logging.getLogger(__name__)


class ItemParserProtocol(Protocol):
    """Minimal protocol implemented by item parsers."""

    def parse(self, uid: int, payload: bytes, source: str) -> Item:
        """Convert raw RFC822 payload into an item."""
        raise NotImplementedError


class MailFetcher:
    """Pull messages from a mailbox provider, parse, and store them as items."""

    def __init__(
        self,
        mailbox: MailboxProvider,
        repository: ItemRepository,
        parser: ItemParserProtocol,
        *,
        batch_size: int = 50,
        max_messages: int | None = None,
        source: str | None = None,
    ) -> None:
        """Initialise the fetcher with mailbox, storage, and parser.

        ``source`` keys the sync checkpoint and prefixes external ids. It
        defaults to the mailbox name; callers syncing several accounts pass
        an account-qualified key so UIDs from different servers never collide.
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if max_messages is not None and max_messages <= 0:
            raise ValueError("max_messages must be positive when set")
        self._mailbox = mailbox
        self._repository = repository
        self._parser = parser
        self._batch_size = batch_size
        self._max_messages = max_messages
        self._source = source or mailbox.mailbox

    def run(self) -> FetchReport:
        """Execute a synchronization cycle and return a summary."""
        source = self._source
        checkpoint = self._repository.get_checkpoint(source)
        last_uid = checkpoint.last_uid if checkpoint else None
        LOGGER.info(
            "Starting fetch for %s (last UID %s)", source, last_uid
        )

        processed = 0
        skipped = 0
        new_last_uid = last_uid
        stored: list[Item] = []

        for chunk in self._mailbox.fetch_since(last_uid, self._batch_size):
            if self._max_messages is not None and processed >= self._max_messages:
                LOGGER.info("Reached max_messages=%s; stopping", self._max_messages)
                break
            try:
                item = self._parser.parse(chunk.uid, chunk.raw, source)
            except (ValueError, LookupError) as exc:
                LOGGER.warning("Skipping UID %s: unparseable message (%s)", chunk.uid, exc)
                skipped += 1
            else:
                persisted = self._repository.persist_item(item)
                if persisted is None:
                    skipped += 1
                else:
                    stored.append(persisted)
                    processed += 1

            self._repository.upsert_checkpoint(
                SyncCheckpoint(mailbox=source, last_uid=chunk.uid)
            )
            new_last_uid = chunk.uid

        LOGGER.info(
            "Fetch complete for %s: %d stored, %d skipped, last UID %s",
            source,
            processed,
            skipped,
            new_last_uid,
            extra={"source": source},
        )
        return FetchReport(
            processed=processed, new_last_uid=new_last_uid, items=tuple(stored)
        )


__all__ = ["ItemParserProtocol", "MailFetcher"]
