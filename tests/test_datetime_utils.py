"""Tests for datetime helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from swipe_triage.core.datetime_utils import (
    ensure_utc,
    parse_datetime,
    serialize_datetime,
    time_ago,
)

NOW = datetime(2025, 10, 24, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("delta", "label"),
    [
        (timedelta(minutes=30), "Just now"),
        (timedelta(hours=1, minutes=5), "1 hour ago"),
        (timedelta(hours=5), "5 hours ago"),
        (timedelta(hours=30), "1 day ago"),
        (timedelta(days=3), "3 days ago"),
    ],
)
def test_time_ago_labels(delta: timedelta, label: str) -> None:
    assert time_ago(NOW - delta, now=NOW) == label


def test_time_ago_handles_missing_value() -> None:
    assert time_ago(None, now=NOW) == "Unknown"


def test_naive_values_are_treated_as_utc() -> None:
    naive = datetime(2025, 10, 24, 8, 30)

    assert ensure_utc(naive) == datetime(2025, 10, 24, 8, 30, tzinfo=timezone.utc)
    assert serialize_datetime(naive) == "2025-10-24T08:30:00+00:00"


def test_offsets_are_normalised_to_utc() -> None:
    local = datetime(2025, 10, 24, 10, 0, tzinfo=timezone(timedelta(hours=2)))

    assert serialize_datetime(local) == "2025-10-24T08:00:00+00:00"


def test_parse_datetime_assumes_utc_when_requested() -> None:
    parsed = parse_datetime("2025-10-24T08:00:00", assume_utc=True)

    assert parsed == datetime(2025, 10, 24, 8, 0, tzinfo=timezone.utc)
    assert parse_datetime(None) is None
