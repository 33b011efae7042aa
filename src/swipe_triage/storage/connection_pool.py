"""
Repository pool for the web application.

Each request borrows its own pre-opened :class:`SqliteItemRepository`, so
concurrent handlers never share a SQLite connection. Borrowed repositories
are pinged first and replaced when the connection has gone away.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from queue import Empty, Queue
from threading import Lock
from types import TracebackType

from ..core.config import StorageSettings
from .sqlite import SqliteItemRepository

LOGGER = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe, fixed-size pool of item repositories."""

    def __init__(self, settings: StorageSettings, pool_size: int = 5) -> None:
        """
        Open ``pool_size`` repositories against ``settings.db_path``.

        Raises:
            ValueError: If ``pool_size`` is not positive
        """
        if pool_size <= 0:
            raise ValueError("pool_size must be positive")
        self.settings = settings
        self.pool_size = pool_size
        self._idle: Queue[SqliteItemRepository] = Queue(maxsize=pool_size)
        self._lock = Lock()
        self._opened = 0
        self._borrowed = 0
        self._closed = False

        for _ in range(pool_size):
            self._idle.put(self._open_repository())

        LOGGER.info(
            "Repository pool ready: %d connection(s) to %s",
            pool_size,
            settings.db_path,
        )

    @contextmanager
    def acquire(self, timeout: float = 10.0) -> Iterator[SqliteItemRepository]:
        """
        Borrow a repository for the duration of the ``with`` block.

        Raises:
            RuntimeError: If the pool is closed
            TimeoutError: If every repository stays borrowed for ``timeout`` seconds
        """
        if self._closed:
            raise RuntimeError("Connection pool is closed")

        try:
            repository = self._idle.get(timeout=timeout)
        except Empty as exc:
            raise TimeoutError(
                f"No repository became available within {timeout} seconds"
            ) from exc

        if not repository.ping():
            LOGGER.warning("Pooled connection failed its ping; reopening")
            repository.close()
            try:
                repository = self._open_repository()
            except Exception:
                # Keep the slot; the next borrower retries the reopen.
                self._idle.put(repository)
                raise

        with self._lock:
            self._borrowed += 1
        try:
            yield repository
        finally:
            with self._lock:
                self._borrowed -= 1
            if self._closed:
                repository.close()
            else:
                self._idle.put(repository)

    def close(self) -> None:
        """Close idle repositories; borrowed ones close when returned."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        closed = 0
        while True:
            try:
                repository = self._idle.get_nowait()
            except Empty:
                break
            repository.close()
            closed += 1
        LOGGER.info(
            "Repository pool closed (%d idle closed, %d still borrowed)",
            closed,
            self._borrowed,
        )

    def __enter__(self) -> ConnectionPool:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def size(self) -> int:
        """Number of idle repositories."""
        return self._idle.qsize()

    @property
    def borrowed(self) -> int:
        """Number of repositories currently lent out."""
        return self._borrowed

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _open_repository(self) -> SqliteItemRepository:
        with self._lock:
            if self._closed:
                raise RuntimeError("Connection pool is closed")
            self._opened += 1
            LOGGER.debug("Opening pooled repository #%d", self._opened)
        return SqliteItemRepository(self.settings)


__all__ = ["ConnectionPool"]
