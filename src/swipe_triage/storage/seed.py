"""Sample inbox used to demo the card stack without an IMAP account."""

from __future__ import annotations

import logging
from datetime import timedelta

from ..core.datetime_utils import utc_now
from ..core.interfaces import ItemRepository
from ..core.models import Item

LOGGER = logging.getLogger(__name__)

_SAMPLE_ITEMS: tuple[dict[str, object], ...] = (
    {
        "sender": "Sarah Anderson",
        "sender_email": "sarah@company.com",
        "subject": "Meeting Reschedule Request",
        "body": (
            "Hi Team,\n\nI need to reschedule our meeting planned for tomorrow "
            "at 2 PM due to an unexpected client call. Would Thursday at the "
            "same time work?\n\nBest regards,\nSarah"
        ),
        "priority": "Urgent",
        "attachments": 2,
        "has_reply": True,
    },
    {
        "sender": "John Doe",
        "sender_email": "john@company.com",
        "subject": "Project Update Required",
        "body": (
            "Could you send the current progress, any blockers and the "
            "expected completion date before the client meeting next week?"
        ),
        "priority": "Important",
    },
    {
        "sender": "Marketing Team",
        "sender_email": "marketing@company.com",
        "subject": "Q4 Campaign Results",
        "body": (
            "The Q4 campaign exceeded expectations: 45% more website traffic "
            "and 32% more leads. Detailed report attached."
        ),
        "priority": "Marketing",
        "attachments": 1,
    },
    {
        "sender": "HR Department",
        "sender_email": "hr@company.com",
        "subject": "Annual Review Process",
        "body": (
            "It's time for annual performance reviews. Please complete your "
            "self-assessment form by end of week."
        ),
        "priority": "Important",
        "attachments": 1,
    },
    {
        "sender": "Finance Team",
        "sender_email": "finance@company.com",
        "subject": "Expense Report Submission",
        "body": (
            "Please submit your expense reports for this quarter by Friday. "
            "All receipts must be attached."
        ),
    },
)


def seed_sample_items(repository: ItemRepository) -> list[Item]:
    """Insert the sample inbox, newest first, and return the stored items."""
    now = utc_now()
    stored: list[Item] = []
    for offset, fields in enumerate(_SAMPLE_ITEMS):
        item = Item(
            id=None,
            received_at=now - timedelta(hours=offset * 3),
            external_id=f"seed-{offset + 1}",
            **fields,  # type: ignore[arg-type]
        )
        persisted = repository.persist_item(item)
        if persisted is not None:
            stored.append(persisted)
    LOGGER.info("Seeded %d sample item(s)", len(stored))
    return stored


__all__ = ["seed_sample_items"]
