"""Keyboard-driven triage loop for the terminal."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from ..core.datetime_utils import time_ago
from ..core.models import Item, Stats
from .stack import CardStackController

LOGGER = logging.getLogger(__name__)

COMMAND_KEYS: Mapping[str, str] = {
    "h": "ArrowLeft",
    "a": "ArrowLeft",
    "left": "ArrowLeft",
    "l": "ArrowRight",
    "d": "ArrowRight",
    "right": "ArrowRight",
}
UNDO_COMMANDS = frozenset({"u", "undo"})
QUIT_COMMANDS = frozenset({"q", "quit", "exit"})

PROMPT = "[h] archive  [l] later  [u] undo  [q] quit > "


class TriageSession:
    """Render the front card and translate typed commands into key presses."""

    def __init__(
        self,
        controller: CardStackController,
        stats_provider: Callable[[], Stats],
        *,
        read: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self._controller = controller
        self._stats_provider = stats_provider
        self._read = read
        self._write = write

    def run(self) -> None:
        """Process commands until the user quits or input ends."""
        while True:
            self._render()
            try:
                raw = self._read(PROMPT)
            except EOFError:
                break
            command = raw.strip().lower()
            if command in QUIT_COMMANDS:
                break
            if command in UNDO_COMMANDS:
                if self._controller.undo():
                    self._write("Undone.")
                else:
                    self._write("Nothing to undo.")
                continue
            key = COMMAND_KEYS.get(command)
            if key is None:
                self._write(f"Unknown command: {command or '(empty)'}")
                continue
            outcome = self._controller.handle_key(key)
            if outcome is None:
                self._write("No email to process.")
            elif outcome.success:
                self._write(f"{outcome.message}: {outcome.item.subject}")
            else:
                self._write(f"{outcome.message}; the card is back on top.")

    def _render(self) -> None:
        stats = self._stats_provider()
        progress = self._controller.progress(stats.processed_today)
        self._write("")
        self._write(
            f"{self._controller.remaining} left | {round(progress)}% complete | "
            f"processed {stats.processed_today}, later {stats.for_later}, "
            f"archived {stats.archived}"
        )
        item = self._controller.current_item()
        if item is None:
            self._write("Inbox Zero! All emails have been processed.")
            return
        for line in render_card(item):
            self._write(line)


def render_card(item: Item) -> list[str]:
    """Return the text lines of a card."""
    lines = [
        f"{item.sender} <{item.sender_email}>  [{item.priority}]",
        f"  {item.subject}",
        f"  {time_ago(item.received_at)}",
    ]
    preview = item.body.strip().splitlines()
    lines.extend(f"  | {line}" for line in preview[:6])
    extras: list[str] = []
    if item.attachments > 0:
        plural = "s" if item.attachments > 1 else ""
        extras.append(f"{item.attachments} attachment{plural}")
    if item.has_reply:
        extras.append("Reply expected")
    if extras:
        lines.append("  " + " - ".join(extras))
    return lines


__all__ = ["TriageSession", "render_card"]
