"""Command-line entry point for Swipe Triage."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from swipe_triage.core import AppSettings, configure_logging, load_app_settings
from swipe_triage.core.datetime_utils import time_ago
from swipe_triage.core.models import STATUS_INBOX
from swipe_triage.ingestion import sync_mailbox
from swipe_triage.interaction import (
    CardStackController,
    GestureTracker,
    LocalStatusGateway,
    TriageSession,
)
from swipe_triage.storage import SqliteItemRepository, seed_sample_items
from swipe_triage.transport import ImapError
from swipe_triage.triage import ActionDispatcher

RECENT_ACTIVITY_LIMIT = 10


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Swipe Triage email inbox")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "sync", "seed", "stats", "triage"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum messages to ingest during sync (default: sync.max_messages).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> None:
    """Execute the requested CLI command."""
    command = args.command
    if command == "info":
        _run_info(settings)
    elif command == "sync":
        _run_sync(settings, limit=args.limit)
    elif command == "seed":
        _run_seed(settings)
    elif command == "stats":
        _run_stats(settings)
    elif command == "triage":
        _run_triage(settings)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    execute(args, settings)


def _run_info(settings: AppSettings) -> None:
    print("Swipe Triage is ready. Configure IMAP settings or seed sample data to start.")
    print(f"IMAP host: {settings.imap.host}")
    print(f"Database path: {settings.storage.db_path}")
    with SqliteItemRepository(settings.storage) as repository:
        pending = repository.count_items(STATUS_INBOX)
    print(f"Items waiting in inbox: {pending}")


def _run_sync(settings: AppSettings, *, limit: int | None = None) -> None:
    """Run a synchronization cycle and report the outcome."""
    try:
        with SqliteItemRepository(settings.storage) as repository:
            result = sync_mailbox(settings.imap, repository, settings.sync, limit=limit)
    except ImapError as exc:
        print(f"Sync failed: {exc}")
        return

    print(
        f"Processed {result.processed} message(s). Last UID stored: {result.new_last_uid}"
    )


def _run_seed(settings: AppSettings) -> None:
    with SqliteItemRepository(settings.storage) as repository:
        inserted = seed_sample_items(repository)
    if inserted:
        print(f"Seeded {len(inserted)} sample item(s).")
    else:
        print("Sample items already present; nothing seeded.")


def _run_stats(settings: AppSettings) -> None:
    """Print the counters followed by the most recent activity."""
    with SqliteItemRepository(settings.storage) as repository:
        stats = repository.get_stats()
        activities = repository.list_activities(limit=RECENT_ACTIVITY_LIMIT)

    print(f"Processed today: {stats.processed_today}")
    print(f"For later: {stats.for_later}")
    print(f"Archived: {stats.archived}")
    if not activities:
        print("No activity recorded yet.")
        return
    print("Recent activity:")
    for activity in activities:
        print(
            f"- {activity.action:<8} {activity.item_subject} "
            f"({activity.item_sender}, {time_ago(activity.created_at)})"
        )


def _run_triage(settings: AppSettings) -> None:
    """Open an interactive keyboard session over the pending inbox items."""
    with SqliteItemRepository(settings.storage) as repository:
        items = repository.list_items(status=STATUS_INBOX, limit=settings.stack.queue_limit)
        controller = CardStackController(
            items,
            LocalStatusGateway(ActionDispatcher(repository)),
            tracker=GestureTracker(settings.gesture),
            window_size=settings.stack.window_size,
        )
        session = TriageSession(controller, repository.get_stats, read=input)
        session.run()


if __name__ == "__main__":
    main()
