"""Translate committed swipes into atomic status transitions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from ..core.errors import InvalidStatusError, ItemNotFoundError
from ..core.interfaces import ItemRepository
from ..core.models import (
    ACTION_UNDONE,
    STATUS_ARCHIVED,
    STATUS_DELETED,
    STATUS_INBOX,
    STATUS_LATER,
    Item,
    ItemStatus,
    is_valid_status,
)

LOGGER = logging.getLogger(__name__)

# processed_today moves once per committed transition; at most one
# status-specific counter moves with it.
_COUNTERS_BY_STATUS: Mapping[str, tuple[str, ...]] = {
    STATUS_LATER: ("processed_today", "for_later"),
    STATUS_ARCHIVED: ("processed_today", "archived"),
    STATUS_DELETED: ("processed_today",),
}


class ActionDispatcher:
    """Apply status transitions together with their activity and counters.

    Every transition runs as a single repository transaction. Undo restores
    the item to the inbox without touching the counters, which are a
    historical tally rather than a count derived from current state.
    """

    def __init__(
        self, repository: ItemRepository, *, lock: threading.Lock | None = None
    ) -> None:
        """Initialise with the backing store and an optional shared lock."""
        self._repository = repository
        self._lock = lock or threading.Lock()

    def dispatch(self, item_id: int, status: str) -> Item:
        """Move ``item_id`` to ``status`` and return the stored item.

        Raises:
            InvalidStatusError: ``status`` is not an enumerated item status.
            ItemNotFoundError: no item with ``item_id`` exists.
        """
        if not is_valid_status(status):
            raise InvalidStatusError(status)
        if status == STATUS_INBOX:
            return self.undo(item_id)

        target: ItemStatus = status  # type: ignore[assignment]
        with self._lock:
            result = self._repository.transition_status(
                item_id,
                target,
                action=target,
                counters=_COUNTERS_BY_STATUS[target],
            )
        if result is None:
            raise ItemNotFoundError(item_id)
        context = {"item_id": item_id, "action": target, "status": target}
        if result.applied:
            LOGGER.info("Item %s moved to %s", item_id, target, extra=context)
        else:
            LOGGER.info(
                "Item %s already %s; transition ignored", item_id, target, extra=context
            )
        return result.item

    def undo(self, item_id: int) -> Item:
        """Return ``item_id`` to the inbox.

        Raises:
            ItemNotFoundError: no item with ``item_id`` exists.
        """
        with self._lock:
            result = self._repository.transition_status(
                item_id, STATUS_INBOX, action=ACTION_UNDONE
            )
        if result is None:
            raise ItemNotFoundError(item_id)
        if result.applied:
            LOGGER.info(
                "Item %s restored to inbox",
                item_id,
                extra={"item_id": item_id, "action": ACTION_UNDONE, "status": STATUS_INBOX},
            )
        return result.item

    def delete(self, item_id: int) -> Item:
        """Remove ``item_id`` permanently and return what was removed.

        The activity log keeps a ``deleted`` entry and the counters move as
        they do for a swipe to the deleted status.

        Raises:
            ItemNotFoundError: no item with ``item_id`` exists.
        """
        with self._lock:
            removed = self._repository.delete_item(
                item_id,
                action=STATUS_DELETED,
                counters=_COUNTERS_BY_STATUS[STATUS_DELETED],
            )
        if removed is None:
            raise ItemNotFoundError(item_id)
        LOGGER.info(
            "Item %s removed permanently",
            item_id,
            extra={"item_id": item_id, "action": STATUS_DELETED},
        )
        return removed


__all__ = ["ActionDispatcher"]
