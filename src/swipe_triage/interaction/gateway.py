"""Status gateways connecting the card stack to the action dispatcher."""

from __future__ import annotations

import logging
import sqlite3
from types import TracebackType

import httpx

from ..core.errors import TriageError
from ..core.interfaces import StatusGateway
from ..core.models import ItemStatus
from ..triage.dispatcher import ActionDispatcher

LOGGER = logging.getLogger(__name__)


class LocalStatusGateway(StatusGateway):
    """Call the dispatcher in-process, reporting only success or failure."""

    def __init__(self, dispatcher: ActionDispatcher) -> None:
        self._dispatcher = dispatcher

    def commit(self, item_id: int, status: ItemStatus) -> bool:
        try:
            self._dispatcher.dispatch(item_id, status)
        except TriageError as exc:
            LOGGER.warning("Commit of item %s rejected: %s", item_id, exc)
            return False
        except sqlite3.Error:
            LOGGER.exception("Storage failure committing item %s", item_id)
            return False
        return True

    def undo(self, item_id: int) -> bool:
        try:
            self._dispatcher.undo(item_id)
        except TriageError as exc:
            LOGGER.warning("Undo of item %s rejected: %s", item_id, exc)
            return False
        except sqlite3.Error:
            LOGGER.exception("Storage failure undoing item %s", item_id)
            return False
        return True


class HttpStatusGateway(StatusGateway):
    """Talk to the REST API with ``httpx``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Create a gateway for ``base_url``; ``client`` overrides the default."""
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url, timeout=timeout_seconds
        )

    def __enter__(self) -> HttpStatusGateway:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def commit(self, item_id: int, status: ItemStatus) -> bool:
        return self._send("PATCH", f"/items/{item_id}/status", {"status": status})

    def undo(self, item_id: int) -> bool:
        return self._send("POST", f"/items/{item_id}/undo", None)

    def close(self) -> None:
        """Close the underlying client when this gateway created it."""
        if self._owns_client:
            self._client.close()

    def _send(self, method: str, path: str, payload: dict[str, str] | None) -> bool:
        try:
            response = self._client.request(method, path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "%s %s failed with HTTP %s", method, path, exc.response.status_code
            )
            return False
        except httpx.HTTPError as exc:
            LOGGER.warning("%s %s failed: %s", method, path, exc)
            return False
        return True


__all__ = ["HttpStatusGateway", "LocalStatusGateway"]
