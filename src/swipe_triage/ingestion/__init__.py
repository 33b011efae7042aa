"""Ingestion pipeline components."""

from .fetcher import ItemParserProtocol, MailFetcher
from .parser import ItemParser
from .sync import account_source, sync_mailbox

__all__ = [
    "ItemParser",
    "ItemParserProtocol",
    "MailFetcher",
    "account_source",
    "sync_mailbox",
]
