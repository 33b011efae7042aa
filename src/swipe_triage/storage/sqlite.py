"""SQLite-backed item repository implementation."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import cast

from ..core.config import StorageSettings
from ..core.datetime_utils import parse_datetime, serialize_datetime, utc_now
from ..core.interfaces import ItemRepository
from ..core.models import (
    Activity,
    Item,
    ItemStatus,
    SearchFilters,
    Stats,
    SyncCheckpoint,
    TransitionResult,
)

LOGGER = logging.getLogger(__name__)

COUNTER_COLUMNS: tuple[str, ...] = ("processed_today", "for_later", "archived")
SCHEMA_DIR = Path(__file__).resolve().parent / "schema"

_ITEM_COLUMNS = """
    id,
    sender,
    sender_email,
    subject,
    body,
    received_at,
    priority,
    unread,
    attachments,
    has_reply,
    status,
    external_id
"""


class SqliteItemRepository(ItemRepository):
    """Persist items, activities and counters using SQLite."""

    def __init__(self, settings: StorageSettings) -> None:
        """Initialise the repository and apply migrations."""
        self._settings = settings
        db_path = Path(settings.db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(
            db_path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
            timeout=10.0,
        )
        self._connection.row_factory = sqlite3.Row
        self._enable_foreign_keys()
        try:
            self._apply_migrations()
        except sqlite3.Error:
            self._connection.close()
            raise

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SqliteItemRepository:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure the connection is closed when exiting context manager."""
        self.close()

    # Items -------------------------------------------------------------------
    def persist_item(self, item: Item) -> Item | None:
        """Insert ``item`` and return it with its identifier.

        Items whose external reference is already stored are skipped and
        ``None`` is returned, so repeated IMAP syncs do not duplicate cards.
        """
        LOGGER.debug("Persisting item external_id=%s", item.external_id)
        with self._connection:
            cur = self._connection.execute(
                f"""
                INSERT INTO items (
                    sender,
                    sender_email,
                    subject,
                    body,
                    received_at,
                    priority,
                    unread,
                    attachments,
                    has_reply,
                    status,
                    external_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(external_id) DO NOTHING
                RETURNING {_ITEM_COLUMNS}
                """,
                (
                    item.sender,
                    item.sender_email,
                    item.subject,
                    item.body,
                    serialize_datetime(item.received_at),
                    item.priority,
                    1 if item.unread else 0,
                    item.attachments,
                    1 if item.has_reply else 0,
                    item.status,
                    item.external_id,
                ),
            )
            rows = cur.fetchall()
        if not rows:
            LOGGER.debug(
                "Item with external_id=%s already stored; skipping", item.external_id
            )
            return None
        return _row_to_item(rows[0])

    def fetch_item(self, item_id: int) -> Item | None:
        """Retrieve a stored item."""
        row = self._fetch_item_row(item_id)
        return _row_to_item(row) if row is not None else None

    def list_items(
        self,
        *,
        status: ItemStatus | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Item]:
        """Return items, optionally filtered by status, most recent first."""
        return self.search_items(SearchFilters(status=status), limit=limit, offset=offset)

    def search_items(
        self,
        filters: SearchFilters,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Item]:
        """Return items matching every supplied filter, most recent first."""
        clauses: list[str] = []
        parameters: list[object] = []
        if filters.status:
            clauses.append("status = ?")
            parameters.append(filters.status)
        if filters.sender:
            clauses.append("(sender LIKE ? ESCAPE '\\' OR sender_email LIKE ? ESCAPE '\\')")
            pattern = _like_pattern(filters.sender)
            parameters.extend((pattern, pattern))
        if filters.subject:
            clauses.append("subject LIKE ? ESCAPE '\\'")
            parameters.append(_like_pattern(filters.subject))
        if filters.start is not None:
            clauses.append("received_at >= ?")
            parameters.append(serialize_datetime(filters.start))
        if filters.end is not None:
            clauses.append("received_at <= ?")
            parameters.append(serialize_datetime(filters.end))

        where_clause = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        parameters.extend((-1 if limit is None else limit, offset or 0))
        cur = self._connection.execute(
            f"""
            SELECT {_ITEM_COLUMNS}
            FROM items
            {where_clause}
            ORDER BY received_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            tuple(parameters),
        )
        return [_row_to_item(row) for row in cur.fetchall()]

    def count_items(self, status: ItemStatus | None = None) -> int:
        """Return the number of stored items, optionally for one status."""
        if status is None:
            cur = self._connection.execute("SELECT COUNT(*) FROM items")
        else:
            cur = self._connection.execute(
                "SELECT COUNT(*) FROM items WHERE status = ?", (status,)
            )
        return int(cur.fetchone()[0])

    # Transitions -------------------------------------------------------------
    def transition_status(
        self,
        item_id: int,
        status: ItemStatus,
        *,
        action: str,
        counters: Sequence[str] = (),
    ) -> TransitionResult | None:
        """Apply a status change, its activity record and counters in one transaction.

        Returns ``None`` when the item does not exist. When the item already
        carries ``status`` nothing is written and ``applied`` is ``False``.
        """
        unknown = [name for name in counters if name not in COUNTER_COLUMNS]
        if unknown:
            raise ValueError(f"Unknown counters: {', '.join(unknown)}")

        with self._connection:
            cur = self._connection.execute(
                f"""
                UPDATE items
                SET status = ?
                WHERE id = ? AND status != ?
                RETURNING {_ITEM_COLUMNS}
                """,
                (status, item_id, status),
            )
            rows = cur.fetchall()
            if not rows:
                existing = self._fetch_item_row(item_id)
                if existing is None:
                    LOGGER.debug("Transition skipped; item %s not found", item_id)
                    return None
                LOGGER.debug("Item %s already %s; nothing to apply", item_id, status)
                return TransitionResult(item=_row_to_item(existing), applied=False)

            item = _row_to_item(rows[0])
            self._record_activity(item, action)
            self._bump_counters(counters)
        LOGGER.debug(
            "Item %s moved to %s (action=%s, counters=%s)",
            item_id,
            status,
            action,
            ",".join(counters) or "-",
        )
        return TransitionResult(item=item, applied=True)

    def delete_item(
        self,
        item_id: int,
        *,
        action: str = "deleted",
        counters: Sequence[str] = (),
    ) -> Item | None:
        """Remove the item row for good, keeping an activity that describes it.

        The row removal, the activity record and the counter increments share
        one transaction. Returns the removed item, or ``None`` when it does
        not exist.
        """
        unknown = [name for name in counters if name not in COUNTER_COLUMNS]
        if unknown:
            raise ValueError(f"Unknown counters: {', '.join(unknown)}")

        with self._connection:
            rows = self._connection.execute(
                f"DELETE FROM items WHERE id = ? RETURNING {_ITEM_COLUMNS}",
                (item_id,),
            ).fetchall()
            if not rows:
                LOGGER.debug("Delete skipped; item %s not found", item_id)
                return None
            item = _row_to_item(rows[0])
            self._record_activity(item, action)
            self._bump_counters(counters)
        LOGGER.debug("Item %s removed (action=%s)", item_id, action)
        return item

    # Stats and activity -----------------------------------------------------
    def get_stats(self) -> Stats:
        """Return counters, lazily creating the zeroed row."""
        with self._connection:
            self._ensure_stats_row()
            row = self._connection.execute(
                "SELECT processed_today, for_later, archived FROM stats WHERE id = 1"
            ).fetchone()
        return Stats(
            processed_today=row["processed_today"],
            for_later=row["for_later"],
            archived=row["archived"],
        )

    def list_activities(self, limit: int = 50) -> list[Activity]:
        """Return the newest activity records first."""
        cur = self._connection.execute(
            """
            SELECT id, item_id, action, item_subject, item_sender, created_at
            FROM activities
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [
            Activity(
                id=row["id"],
                item_id=row["item_id"],
                action=row["action"],
                item_subject=row["item_subject"],
                item_sender=row["item_sender"],
                created_at=cast(
                    datetime, parse_datetime(row["created_at"], assume_utc=True)
                ),
            )
            for row in cur.fetchall()
        ]

    # Checkpoints -------------------------------------------------------------
    def get_checkpoint(self, mailbox: str) -> SyncCheckpoint | None:
        """Retrieve the last recorded UID for ``mailbox``."""
        cur = self._connection.execute(
            "SELECT mailbox, last_uid FROM sync_state WHERE mailbox = ?",
            (mailbox,),
        )
        row = cur.fetchone()
        if row is None:
            return None
        return SyncCheckpoint(mailbox=row["mailbox"], last_uid=row["last_uid"])

    def upsert_checkpoint(self, checkpoint: SyncCheckpoint) -> None:
        """Persist the supplied checkpoint."""
        LOGGER.debug(
            "Updating checkpoint mailbox=%s last_uid=%s",
            checkpoint.mailbox,
            checkpoint.last_uid,
        )
        with self._connection:
            self._connection.execute(
                """
                INSERT INTO sync_state (mailbox, last_uid)
                VALUES (?, ?)
                ON CONFLICT(mailbox) DO UPDATE SET last_uid=excluded.last_uid
                """,
                (checkpoint.mailbox, checkpoint.last_uid),
            )

    def ping(self) -> bool:
        """Return ``True`` when the connection answers a trivial query."""
        try:
            self._connection.execute("SELECT 1")
        except sqlite3.Error:
            return False
        return True

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        self._connection.close()

    # Internal helpers --------------------------------------------------------
    def _fetch_item_row(self, item_id: int) -> sqlite3.Row | None:
        cur = self._connection.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE id = ?",
            (item_id,),
        )
        return cur.fetchone()

    def _record_activity(self, item: Item, action: str) -> None:
        self._connection.execute(
            """
            INSERT INTO activities (
                item_id,
                action,
                item_subject,
                item_sender,
                created_at
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (item.id, action, item.subject, item.sender, utc_now().isoformat()),
        )

    def _bump_counters(self, counters: Sequence[str]) -> None:
        if not counters:
            return
        self._ensure_stats_row()
        assignments = ", ".join(f"{name} = {name} + 1" for name in counters)
        self._connection.execute(f"UPDATE stats SET {assignments} WHERE id = 1")

    def _ensure_stats_row(self) -> None:
        self._connection.execute(
            """
            INSERT OR IGNORE INTO stats (id, processed_today, for_later, archived)
            VALUES (1, 0, 0, 0)
            """
        )

    def _enable_foreign_keys(self) -> None:
        with self._connection:
            self._connection.execute("PRAGMA foreign_keys = ON")

    def _apply_migrations(self) -> None:
        with self._connection:
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    name TEXT PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """
            )
        applied = {
            row["name"]
            for row in self._connection.execute("SELECT name FROM schema_migrations")
        }
        for migration in sorted(SCHEMA_DIR.glob("*.sql")):
            if migration.stem in applied:
                continue
            LOGGER.debug("Applying migration %s", migration.name)
            # executescript cannot bind parameters, so the record is inlined.
            script = "\n".join(
                (
                    "BEGIN;",
                    migration.read_text(encoding="utf-8"),
                    "INSERT INTO schema_migrations (name, applied_at) VALUES "
                    f"({_sql_literal(migration.stem)}, {_sql_literal(utc_now().isoformat())});",
                    "COMMIT;",
                )
            )
            try:
                self._connection.executescript(script)
            except sqlite3.Error:
                LOGGER.error("Migration %s failed; rolling back", migration.name)
                if self._connection.in_transaction:
                    self._connection.rollback()
                raise


def _row_to_item(row: sqlite3.Row) -> Item:
    return Item(
        id=row["id"],
        sender=row["sender"],
        sender_email=row["sender_email"],
        subject=row["subject"],
        body=row["body"],
        received_at=parse_datetime(row["received_at"], assume_utc=True),
        priority=row["priority"],
        unread=bool(row["unread"]),
        attachments=row["attachments"],
        has_reply=bool(row["has_reply"]),
        status=row["status"],
        external_id=row["external_id"],
    )


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


__all__ = ["COUNTER_COLUMNS", "SqliteItemRepository"]
