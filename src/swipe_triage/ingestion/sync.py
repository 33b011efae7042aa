"""One-shot IMAP synchronisation shared by the CLI and the web API."""

from __future__ import annotations

from ..core.config import ImapSettings, SyncSettings
from ..core.interfaces import ItemRepository
from ..core.models import FetchReport
from ..transport import ImapClient
from .fetcher import MailFetcher
from .parser import ItemParser


def account_source(imap_settings: ImapSettings, mailbox: str | None = None) -> str:
    """Return the ``user@host/mailbox`` key used for checkpoints and external ids."""
    username = (imap_settings.username or "").strip().lower()
    host = imap_settings.host.strip().lower()
    return f"{username}@{host}/{mailbox or imap_settings.mailbox}"


def sync_mailbox(
    imap_settings: ImapSettings,
    repository: ItemRepository,
    sync_settings: SyncSettings,
    *,
    limit: int | None = None,
) -> FetchReport:
    """Connect, ingest new messages into ``repository`` and disconnect.

    Raises:
        ImapError: the server refused the connection or a command failed.
    """
    parser = ItemParser(body_limit=sync_settings.body_preview_chars)
    with ImapClient(imap_settings, unseen_only=sync_settings.unseen_only) as mailbox:
        fetcher = MailFetcher(
            mailbox=mailbox,
            repository=repository,
            parser=parser,
            batch_size=sync_settings.batch_size,
            max_messages=limit if limit is not None else sync_settings.max_messages,
            source=account_source(imap_settings, mailbox.mailbox),
        )
        return fetcher.run()


__all__ = ["account_source", "sync_mailbox"]
