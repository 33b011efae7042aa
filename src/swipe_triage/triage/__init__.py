"""Server-side triage bookkeeping."""

from .dispatcher import ActionDispatcher

__all__ = ["ActionDispatcher"]
