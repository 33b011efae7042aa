"""Domain errors raised by the triage core."""

from __future__ import annotations


class TriageError(RuntimeError):
    """Base class for failures while transitioning items."""


class ItemNotFoundError(TriageError):
    """Raised when a referenced item is absent from the store."""

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class InvalidStatusError(TriageError, ValueError):
    """Raised when a status outside the enumerated set is requested."""

    def __init__(self, status: object) -> None:
        super().__init__(f"Invalid status: {status!r}")
        self.status = status


__all__ = ["InvalidStatusError", "ItemNotFoundError", "TriageError"]
