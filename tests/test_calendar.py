from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from journal_analytics.metrics.calendar import (
    day_label,
    iter_days,
    month_label,
    month_window,
    months_between,
    parse_timeframe,
    resolve_now,
    shift_month,
)


def test_labels():
    assert day_label(date(2024, 1, 5)) == "Jan 5"
    assert day_label(date(2024, 12, 31)) == "Dec 31"
    assert month_label(2024, 1) == "Jan 24"
    assert month_label(2009, 12) == "Dec 09"


def test_shift_month_wraps_years():
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2023, 12, 1) == (2024, 1)
    assert shift_month(2024, 3, -14) == (2023, 1)


def test_month_window_and_distance():
    assert month_window(date(2024, 2, 29), 3) == [(2023, 12), (2024, 1), (2024, 2)]
    assert month_window(date(2024, 2, 29), 0) == []
    assert months_between(date(2024, 2, 1), date(2023, 11, 30)) == 3
    assert months_between(date(2024, 2, 1), date(2024, 3, 1)) == -1


def test_iter_days_is_inclusive():
    days = list(iter_days(date(2024, 2, 27), date(2024, 3, 1)))
    assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
    assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []


def test_parse_timeframe():
    assert parse_timeframe(None) == "month"
    assert parse_timeframe("", default="week") == "week"
    assert parse_timeframe(" Year ") == "year"
    with pytest.raises(ValueError):
        parse_timeframe("quarter")


def test_resolve_now_keeps_calendars_consistent():
    naive = datetime(2024, 3, 15, 18, 0)
    assert resolve_now(naive) is naive
    assert resolve_now(naive, timezone.utc) == datetime(2024, 3, 15, 18, 0, tzinfo=timezone.utc)

    aware = datetime(2024, 3, 15, 18, 0, tzinfo=timezone.utc)
    local = resolve_now(aware)
    assert local.tzinfo is None
    assert local.timestamp() == aware.timestamp()
