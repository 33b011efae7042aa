"""Persistence adapters."""

from .connection_pool import ConnectionPool
from .seed import seed_sample_items
from .sqlite import SqliteItemRepository

__all__ = ["ConnectionPool", "SqliteItemRepository", "seed_sample_items"]
