"""IMAP transport adapter providing mailbox access."""

from __future__ import annotations

import imaplib
import logging
from collections.abc import Iterable, Iterator
from types import TracebackType

from ..core.config import ImapSettings
from ..core.interfaces import MailboxProvider
from ..core.models import MessageChunk

LOGGER = logging.getLogger(__name__)


class ImapError(RuntimeError):
    """Wrap low level IMAP errors with additional context."""


class ImapClient(MailboxProvider):
    """Thin wrapper around ``imaplib`` offering typed fetch helpers."""

    def __init__(
        self,
        settings: ImapSettings,
        mailbox: str | None = None,
        *,
        unseen_only: bool = False,
    ) -> None:
        """Initialise the client with configuration settings and mailbox."""
        self._settings = settings
        self._connection: imaplib.IMAP4 | imaplib.IMAP4_SSL | None = None
        self._unseen_only = unseen_only
        self.mailbox = mailbox or settings.mailbox

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ImapClient:
        """Connect on entering a context manager scope."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure resources are released on context exit."""
        self.close()

    # Public API ---------------------------------------------------------------
    def connect(self) -> None:
        """Establish IMAP connection and select the configured mailbox."""
        if self._connection is not None:
            return

        username = self._settings.username
        password = self._settings.app_password
        if not username or not password:
            raise ImapError("IMAP credentials are not configured")

        try:
            if self._settings.use_ssl:
                LOGGER.debug(
                    "Connecting to IMAP host %s:%s via SSL",
                    self._settings.host,
                    self._settings.port,
                )
                connection: imaplib.IMAP4 | imaplib.IMAP4_SSL = imaplib.IMAP4_SSL(
                    self._settings.host,
                    self._settings.port,
                    timeout=self._settings.timeout_seconds,
                )
            else:
                LOGGER.debug(
                    "Connecting to IMAP host %s:%s without SSL",
                    self._settings.host,
                    self._settings.port,
                )
                connection = imaplib.IMAP4(
                    self._settings.host,
                    self._settings.port,
                    timeout=self._settings.timeout_seconds,
                )

            LOGGER.debug("Authenticating as %s", username)
            connection.login(username, password)
            # Read-only select keeps \Seen flags untouched while fetching.
            status, _ = connection.select(self.mailbox, readonly=True)
            if status != "OK":
                raise ImapError(f"Unable to select mailbox '{self.mailbox}'")
            self._connection = connection
        except (imaplib.IMAP4.error, OSError) as exc:  # pragma: no cover - network dependent
            raise ImapError(
                "Email connection failed. Please check your credentials."
            ) from exc

    def fetch_since(
        self, last_uid: int | None, batch_size: int
    ) -> Iterable[MessageChunk]:
        """Yield messages whose UID exceeds ``last_uid`` in ascending order."""
        connection = self._require_connection()
        start_uid = 1 if last_uid is None else last_uid + 1
        criteria = ["UID", f"{start_uid}:*"]
        if self._unseen_only:
            criteria.append("UNSEEN")
        LOGGER.debug("Searching for messages with %s", " ".join(criteria))
        status, data = connection.uid("SEARCH", None, *criteria)  # type: ignore[arg-type]
        if status != "OK":
            raise ImapError("Failed to search for message UIDs")

        raw_ids = data[0].split() if data and data[0] else []
        # "n:*" always matches the highest UID, even when it is below n.
        uids = [int(raw) for raw in raw_ids if int(raw) >= start_uid]
        if not uids:
            LOGGER.debug("No new messages found")
            return []

        def generator() -> Iterator[MessageChunk]:
            for chunk in _chunked(uids, batch_size):
                for uid in chunk:
                    uid_str = str(uid)
                    LOGGER.debug("Fetching RFC822 payload for UID %s", uid_str)
                    status_fetch, fetch_data = connection.uid(
                        "FETCH", uid_str, "(BODY.PEEK[])"
                    )
                    if status_fetch != "OK":
                        raise ImapError(f"Failed to fetch message UID {uid_str}")
                    payload = _extract_rfc822(fetch_data)
                    if payload is None:
                        LOGGER.warning("No RFC822 payload returned for UID %s", uid_str)
                        continue
                    yield MessageChunk(uid=uid, raw=payload)

        return generator()

    def close(self) -> None:
        """Terminate the IMAP session cleanly."""
        if self._connection is None:
            return
        try:
            LOGGER.debug("Closing IMAP connection")
            self._connection.close()
        except imaplib.IMAP4.error:  # pragma: no cover - depends on server state
            LOGGER.debug("IMAP close raised; continuing with logout")
        finally:
            try:
                self._connection.logout()
            except imaplib.IMAP4.error:  # pragma: no cover
                LOGGER.debug("IMAP logout raised; suppressing during shutdown")
            self._connection = None

    # Internal helpers ---------------------------------------------------------
    def _require_connection(self) -> imaplib.IMAP4 | imaplib.IMAP4_SSL:
        if self._connection is None:
            raise ImapError("IMAP connection has not been established")
        return self._connection


def check_connection(settings: ImapSettings) -> tuple[bool, str]:
    """Try to log in and select the mailbox; report the outcome."""
    try:
        with ImapClient(settings):
            pass
    except ImapError as exc:
        return False, str(exc)
    return True, "Connection successful"


def _chunked(items: Iterable[int], size: int) -> Iterator[list[int]]:
    """Yield successive lists of ``size`` elements."""
    bucket: list[int] = []
    for item in items:
        bucket.append(item)
        if len(bucket) >= size:
            yield bucket
            bucket = []
    if bucket:
        yield bucket


def _extract_rfc822(fetch_data: list[tuple[bytes, bytes] | bytes]) -> bytes | None:
    """Extract the message payload from ``imaplib`` response chunks."""
    for entry in fetch_data:
        if isinstance(entry, tuple) and len(entry) == 2:
            return entry[1]
    return None


__all__ = [
    "ImapClient",
    "ImapError",
    "check_connection",
]
