"""Core utilities for configuration, logging, and domain models."""

from .config import AppSettings, GestureSettings, SyncSettings, load_app_settings
from .errors import InvalidStatusError, ItemNotFoundError, TriageError
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "GestureSettings",
    "InvalidStatusError",
    "ItemNotFoundError",
    "SyncSettings",
    "TriageError",
    "configure_logging",
    "load_app_settings",
]
