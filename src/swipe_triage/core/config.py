"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field


class ImapSettings(BaseModel):
    """Settings controlling IMAP connectivity."""

    host: str = Field(default="imap.gmail.com", description="IMAP hostname")
    port: int = Field(default=993, description="IMAP port, typically 993 for SSL")
    username: str | None = Field(default=None, description="Account username")
    app_password: str | None = Field(default=None, description="App password")
    mailbox: str = Field(default="INBOX", description="Mailbox to triage")
    use_ssl: bool = Field(default=True, description="Whether to enforce SSL")
    timeout_seconds: float = Field(
        default=10.0, gt=0, description="Connection timeout for the IMAP socket"
    )


class StorageSettings(BaseModel):
    """Settings for local persistence."""

    db_path: Path = Field(
        default=Path("./swipe_triage.db"), description="SQLite database path"
    )
    pool_size: int = Field(
        default=5, ge=1, description="Connections kept by the web connection pool"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Emit one JSON object per log line"
    )


class SyncSettings(BaseModel):
    """Settings controlling fetch cadence and bounds."""

    batch_size: int = Field(
        default=50, ge=1, description="Messages fetched per IMAP batch"
    )
    max_messages: int | None = Field(
        default=20, description="Hard cap for messages ingested in a cycle"
    )
    unseen_only: bool = Field(
        default=True, description="Only ingest messages without the \\Seen flag"
    )
    body_preview_chars: int = Field(
        default=500, ge=1, description="Body text kept per ingested message"
    )


class GestureSettings(BaseModel):
    """Thresholds driving the swipe gesture state machine."""

    activation_threshold: float = Field(
        default=50.0, ge=0, description="Offset before a direction is shown"
    )
    distance_threshold: float = Field(
        default=100.0, gt=0, description="Offset that commits a swipe on release"
    )
    velocity_threshold: float = Field(
        default=0.5, gt=0, description="Speed (units/ms) that commits a flick"
    )
    hard_bound: float = Field(
        default=300.0, gt=0, description="Maximum reported offset magnitude"
    )
    soft_bound: float | None = Field(
        default=None, gt=0, description="Offset beyond which damping applies"
    )
    damping: float = Field(
        default=0.5, gt=0, le=1.0, description="Factor applied past the soft bound"
    )
    rotation_factor: float = Field(
        default=0.1, description="Degrees of tilt per unit of offset"
    )
    max_rotation: float = Field(
        default=15.0, gt=0, description="Maximum tilt in degrees"
    )


class StackSettings(BaseModel):
    """Settings for the card stack presentation."""

    window_size: int = Field(
        default=3, ge=1, description="Cards rendered, front card included"
    )
    queue_limit: int | None = Field(
        default=None, description="Maximum inbox items loaded into a session"
    )


class WebSettings(BaseModel):
    """Settings for the REST API."""

    fetch_rate_limit_calls: int = Field(
        default=2, ge=1, description="IMAP fetch requests allowed per window"
    )
    fetch_rate_limit_window_seconds: float = Field(
        default=60.0, gt=0, description="Rate limit window length"
    )
    default_page_size: int = Field(
        default=50, ge=1, description="Items returned when no limit is supplied"
    )
    max_page_size: int = Field(default=200, ge=1, description="Upper bound on limit")


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    imap: ImapSettings = Field(default_factory=ImapSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    gesture: GestureSettings = Field(default_factory=GestureSettings)
    stack: StackSettings = Field(default_factory=StackSettings)
    web: WebSettings = Field(default_factory=WebSettings)


ENV_PREFIX = "SWIPE_TRIAGE_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values: dict[str, str] = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "GestureSettings",
    "ImapSettings",
    "LoggingSettings",
    "StackSettings",
    "StorageSettings",
    "SyncSettings",
    "WebSettings",
    "load_app_settings",
]
