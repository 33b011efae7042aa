"""FastAPI application exposing the triage store over JSON."""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status as http_status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from swipe_triage.core import AppSettings, load_app_settings
from swipe_triage.core.config import ImapSettings
from swipe_triage.core.datetime_utils import serialize_datetime, time_ago
from swipe_triage.core.errors import InvalidStatusError, ItemNotFoundError
from swipe_triage.core.models import (
    Activity,
    FetchReport,
    Item,
    SearchFilters,
    Stats,
    is_valid_status,
)
from swipe_triage.ingestion import sync_mailbox
from swipe_triage.storage import ConnectionPool, SqliteItemRepository
from swipe_triage.transport import (
    EMAIL_PROVIDERS,
    ImapError,
    check_connection,
    settings_for_provider,
)
from swipe_triage.triage import ActionDispatcher

from .rate_limit import SlidingWindowRateLimiter

LOGGER = logging.getLogger(__name__)

ACTIVITY_LIMIT = 50
DEFAULT_FETCH_LIMIT = 20
MAX_FETCH_LIMIT = 200
FETCH_RATE_LIMIT_KEY = "mail-fetch"

_PROJECT_ROOT = Path.cwd()
_DEFAULT_ENV_FILE = _PROJECT_ROOT / ".env"
_ENV_FILE_OVERRIDE_VAR = "SWIPE_TRIAGE_ENV_FILE"


class StatusUpdateRequest(BaseModel):
    """Body of ``PATCH /items/{id}/status``."""

    status: str | None = None


class MailCredentialsRequest(BaseModel):
    """Provider credentials supplied by the client."""

    provider: str | None = None
    user: str | None = None
    password: str | None = None


class MailFetchRequest(MailCredentialsRequest):
    """Credentials plus the maximum number of messages to ingest."""

    limit: int = Field(default=DEFAULT_FETCH_LIMIT, ge=1, le=MAX_FETCH_LIMIT)


def create_app(
    settings: AppSettings | None = None,
    *,
    rate_limiter: SlidingWindowRateLimiter | None = None,
) -> FastAPI:
    """Construct the FastAPI application."""
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    web_settings = app_settings.web

    connection_pool = ConnectionPool(
        app_settings.storage, pool_size=app_settings.storage.pool_size
    )
    fetch_limiter = rate_limiter or SlidingWindowRateLimiter(
        web_settings.fetch_rate_limit_calls,
        web_settings.fetch_rate_limit_window_seconds,
    )
    # Serialises transitions across pooled connections.
    transition_lock = threading.Lock()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        connection_pool.close()
        LOGGER.info("Connection pool closed")

    app = FastAPI(title="Swipe Triage", lifespan=lifespan)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.state.settings = app_settings
    app.state.connection_pool = connection_pool
    app.state.fetch_limiter = fetch_limiter

    def get_repository() -> Iterator[SqliteItemRepository]:
        with connection_pool.acquire(timeout=10.0) as repository:
            yield repository

    def get_dispatcher(
        repository: SqliteItemRepository = Depends(get_repository),
    ) -> ActionDispatcher:
        return ActionDispatcher(repository, lock=transition_lock)

    def page_bounds(
        limit: int | None = Query(default=None, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> tuple[int, int]:
        effective = min(limit or web_settings.default_page_size, web_settings.max_page_size)
        return effective, offset

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request", "errors": errors},
        )

    @app.exception_handler(InvalidStatusError)
    async def handle_invalid_status(
        _request: Request, exc: InvalidStatusError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"detail": f"Invalid status: {exc.status!r}"},
        )

    @app.exception_handler(ItemNotFoundError)
    async def handle_not_found(_request: Request, exc: ItemNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_404_NOT_FOUND,
            content={"detail": f"Item {exc.item_id} not found"},
        )

    @app.exception_handler(sqlite3.Error)
    async def handle_storage_error(_request: Request, exc: sqlite3.Error) -> JSONResponse:
        LOGGER.error("Storage error while handling request: %s", exc)
        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal storage error"},
        )

    @app.get("/items")
    async def list_items(
        status: str | None = None,
        bounds: tuple[int, int] = Depends(page_bounds),
        repository: SqliteItemRepository = Depends(get_repository),
    ) -> list[dict[str, Any]]:
        """Return items, most recent first, optionally filtered by status."""
        if status is not None and not is_valid_status(status):
            raise InvalidStatusError(status)
        limit, offset = bounds
        items = repository.list_items(status=status, limit=limit, offset=offset)  # type: ignore[arg-type]
        return [_serialize_item(item) for item in items]

    @app.get("/items/search")
    async def search_items(
        status: str | None = None,
        sender: str | None = None,
        subject: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        bounds: tuple[int, int] = Depends(page_bounds),
        repository: SqliteItemRepository = Depends(get_repository),
    ) -> list[dict[str, Any]]:
        """Search items by sender, subject, status and received date range."""
        if status is not None and not is_valid_status(status):
            raise InvalidStatusError(status)
        limit, offset = bounds
        filters = SearchFilters(
            status=status,  # type: ignore[arg-type]
            sender=(sender or "").strip() or None,
            subject=(subject or "").strip() or None,
            start=start,
            end=end,
        )
        items = repository.search_items(filters, limit=limit, offset=offset)
        return [_serialize_item(item) for item in items]

    @app.get("/items/{item_id}")
    async def get_item(
        item_id: int,
        repository: SqliteItemRepository = Depends(get_repository),
    ) -> dict[str, Any]:
        item = repository.fetch_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return _serialize_item(item)

    @app.patch("/items/{item_id}/status")
    async def update_status(
        item_id: int,
        payload: StatusUpdateRequest,
        dispatcher: ActionDispatcher = Depends(get_dispatcher),
    ) -> dict[str, Any]:
        """Apply a status transition and return the updated item."""
        if payload.status is None:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail="Status is required",
            )
        item = dispatcher.dispatch(item_id, payload.status)
        return _serialize_item(item)

    @app.post("/items/{item_id}/undo")
    async def undo_item(
        item_id: int,
        dispatcher: ActionDispatcher = Depends(get_dispatcher),
    ) -> dict[str, Any]:
        """Restore an item to the inbox."""
        item = dispatcher.undo(item_id)
        return _serialize_item(item)

    @app.delete("/items/{item_id}")
    async def delete_item(
        item_id: int,
        dispatcher: ActionDispatcher = Depends(get_dispatcher),
    ) -> dict[str, Any]:
        """Remove an item permanently; its activity history is kept."""
        removed = dispatcher.delete(item_id)
        return {"success": True, "id": removed.id}

    @app.get("/stats")
    async def get_stats(
        repository: SqliteItemRepository = Depends(get_repository),
    ) -> dict[str, int]:
        return _serialize_stats(repository.get_stats())

    @app.get("/activities")
    async def list_activities(
        repository: SqliteItemRepository = Depends(get_repository),
    ) -> list[dict[str, Any]]:
        """Return the most recent activity entries, newest first."""
        activities = repository.list_activities(limit=ACTIVITY_LIMIT)
        return [_serialize_activity(activity) for activity in activities]

    @app.get("/mail/providers")
    async def list_providers() -> dict[str, dict[str, Any]]:
        return {
            name: {"host": preset.host, "port": preset.port, "tls": preset.use_ssl}
            for name, preset in EMAIL_PROVIDERS.items()
        }

    @app.post("/mail/test")
    async def test_mail_connection(payload: MailCredentialsRequest) -> dict[str, Any]:
        """Check that the supplied credentials can log in."""
        imap_settings = _resolve_credentials(payload, app_settings.imap)
        success, message = await asyncio.to_thread(check_connection, imap_settings)
        return {"success": success, "message": message}

    @app.post("/mail/fetch")
    async def fetch_mail(payload: MailFetchRequest) -> dict[str, Any]:
        """Ingest new messages from the supplied mailbox."""
        imap_settings = _resolve_credentials(payload, app_settings.imap)
        if not fetch_limiter.try_acquire(FETCH_RATE_LIMIT_KEY):
            retry_after = fetch_limiter.retry_after(FETCH_RATE_LIMIT_KEY)
            raise HTTPException(
                status_code=http_status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many fetch requests. Please wait a moment.",
                headers={"Retry-After": str(max(1, round(retry_after)))},
            )

        def run_fetch() -> FetchReport:
            with connection_pool.acquire(timeout=10.0) as repository:
                return sync_mailbox(
                    imap_settings, repository, app_settings.sync, limit=payload.limit
                )

        try:
            report = await asyncio.to_thread(run_fetch)
        except ImapError as exc:
            LOGGER.error("Mail fetch failed: %s", exc)
            raise HTTPException(
                status_code=http_status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to fetch emails: {exc}",
            ) from exc
        return {
            "success": True,
            "count": report.processed,
            "items": [_serialize_item(item) for item in report.items],
        }

    return app


def _resolve_credentials(
    payload: MailCredentialsRequest, base: ImapSettings
) -> ImapSettings:
    if not payload.provider or not payload.user or not payload.password:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: provider, user, password",
        )
    imap_settings = settings_for_provider(
        payload.provider, payload.user, payload.password, base=base
    )
    if imap_settings is None:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown provider: {payload.provider}",
        )
    return imap_settings


def _serialize_item(item: Item) -> dict[str, Any]:
    return {
        "id": item.id,
        "sender": item.sender,
        "senderEmail": item.sender_email,
        "subject": item.subject,
        "body": item.body,
        "receivedAt": serialize_datetime(item.received_at),
        "timeAgo": time_ago(item.received_at),
        "priority": item.priority,
        "unread": item.unread,
        "attachments": item.attachments,
        "hasReply": item.has_reply,
        "status": item.status,
        "externalId": item.external_id,
    }


def _serialize_stats(stats: Stats) -> dict[str, int]:
    return {
        "processedToday": stats.processed_today,
        "forLater": stats.for_later,
        "archived": stats.archived,
    }


def _serialize_activity(activity: Activity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "itemId": activity.item_id,
        "action": activity.action,
        "itemSubject": activity.item_subject,
        "itemSender": activity.item_sender,
        "createdAt": serialize_datetime(activity.created_at),
    }


def _resolve_env_file() -> Path:
    override = os.getenv(_ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override).expanduser()
    return _DEFAULT_ENV_FILE


__all__ = ["create_app"]
