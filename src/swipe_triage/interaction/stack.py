"""Card stack controller driving the swipe triage flow."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..core.interfaces import StatusGateway
from ..core.models import STATUS_ARCHIVED, STATUS_LATER, Item, ItemStatus
from .gesture import DragUpdate, GestureTracker, SwipeDirection

LOGGER = logging.getLogger(__name__)

SWIPE_STATUS: Mapping[str, ItemStatus] = {
    "left": STATUS_ARCHIVED,
    "right": STATUS_LATER,
}

KEY_DIRECTIONS: Mapping[str, SwipeDirection] = {
    "ArrowLeft": "left",
    "ArrowRight": "right",
}

_STATUS_MESSAGES: Mapping[str, str] = {
    STATUS_ARCHIVED: "Archived",
    STATUS_LATER: "Saved for later",
}


@dataclass(slots=True, frozen=True)
class LastAction:
    """Single-slot undo record for the most recent commit."""

    item_id: int
    status: ItemStatus
    index: int


@dataclass(slots=True, frozen=True)
class CommitOutcome:
    """Result of committing the front card."""

    item: Item
    status: ItemStatus
    success: bool
    message: str


class CardStackController:
    """Hold the pending queue and advance it on committed swipes.

    The front pointer advances optimistically before the gateway call. When
    the gateway reports failure the pointer and the previous undo record are
    restored, so the card comes back to the front.
    """

    def __init__(
        self,
        items: Sequence[Item],
        gateway: StatusGateway,
        *,
        tracker: GestureTracker | None = None,
        window_size: int = 3,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        if any(item.id is None for item in items):
            raise ValueError("Every queued item needs a stored identifier")
        self._items: tuple[Item, ...] = tuple(items)
        self._gateway = gateway
        self._tracker = tracker or GestureTracker()
        self._window_size = window_size
        self._front = 0
        self._last_action: LastAction | None = None

    # Queue state -------------------------------------------------------------
    @property
    def front(self) -> int:
        """Index of the interactive card."""
        return self._front

    @property
    def remaining(self) -> int:
        """Number of cards not yet committed."""
        return len(self._items) - self._front

    @property
    def is_empty(self) -> bool:
        """``True`` once every card has been committed."""
        return self._front >= len(self._items)

    @property
    def last_action(self) -> LastAction | None:
        """The commit that :meth:`undo` would reverse."""
        return self._last_action

    @property
    def tracker(self) -> GestureTracker:
        """Gesture tracker bound to the front card."""
        return self._tracker

    def current_item(self) -> Item | None:
        """Return the front item or ``None`` when the queue is exhausted."""
        if self.is_empty:
            return None
        return self._items[self._front]

    def visible_items(self) -> tuple[Item, ...]:
        """Return the front card followed by the cards rendered beneath it."""
        return self._items[self._front : self._front + self._window_size]

    def progress(self, processed_today: int) -> float:
        """Percentage of today's workload already processed."""
        total = processed_today + self.remaining
        if total <= 0:
            return 0.0
        return processed_today / total * 100

    # Commands ----------------------------------------------------------------
    def commit(self, direction: str) -> CommitOutcome | None:
        """Commit the front card in ``direction``; ``None`` if nothing to commit."""
        status = SWIPE_STATUS.get(direction)
        if status is None:
            LOGGER.debug("Ignoring commit with unknown direction %r", direction)
            return None
        item = self.current_item()
        if item is None:
            return None
        item_id = _require_id(item)

        index = self._front
        previous = self._last_action
        self._last_action = LastAction(item_id=item_id, status=status, index=index)
        self._front = index + 1
        self._tracker.reset()

        if not self._gateway.commit(item_id, status):
            LOGGER.warning("Rolling back optimistic commit of item %s", item_id)
            self._front = index
            self._last_action = previous
            return CommitOutcome(
                item=item,
                status=status,
                success=False,
                message=f"Could not update '{item.subject}'",
            )
        return CommitOutcome(
            item=item,
            status=status,
            success=True,
            message=_STATUS_MESSAGES[status],
        )

    def undo(self) -> bool:
        """Reverse the last commit; no-op without one."""
        action = self._last_action
        if action is None:
            return False
        committed_front = self._front
        self._last_action = None
        self._front = action.index
        self._tracker.reset()

        if not self._gateway.undo(action.item_id):
            LOGGER.warning("Undo of item %s failed; keeping it committed", action.item_id)
            self._front = committed_front
            self._last_action = action
            return False
        return True

    def handle_key(self, key: str) -> CommitOutcome | None:
        """Treat arrow keys as completed swipes on the current front card."""
        direction = KEY_DIRECTIONS.get(key)
        if direction is None:
            return None
        return self.commit(direction)

    # Pointer surface ---------------------------------------------------------
    def pointer_down(self, x: float, timestamp_ms: float) -> bool:
        """Start dragging the front card."""
        if self.is_empty:
            return False
        return self._tracker.start(x, timestamp_ms)

    def pointer_move(self, x: float, timestamp_ms: float) -> DragUpdate | None:
        """Forward a move event to the tracker."""
        return self._tracker.move(x, timestamp_ms)

    def pointer_up(
        self, x: float | None = None, timestamp_ms: float | None = None
    ) -> CommitOutcome | None:
        """Release the drag; commits only when the tracker says so."""
        resolution = self._tracker.release(x, timestamp_ms)
        if resolution is None or resolution.direction is None:
            return None
        return self.commit(resolution.direction)


def _require_id(item: Item) -> int:
    if item.id is None:
        raise ValueError("Item has no identifier")
    return item.id


__all__ = [
    "KEY_DIRECTIONS",
    "SWIPE_STATUS",
    "CardStackController",
    "CommitOutcome",
    "LastAction",
]
