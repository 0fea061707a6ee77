from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterator

Timeframe = str

TIMEFRAME_WEEK: Timeframe = "week"
TIMEFRAME_MONTH: Timeframe = "month"
TIMEFRAME_YEAR: Timeframe = "year"

TIMEFRAME_DAYS: dict[Timeframe, int] = {
    TIMEFRAME_WEEK: 7,
    TIMEFRAME_MONTH: 30,
    TIMEFRAME_YEAR: 365,
}

# Fixed English abbreviations; strftime("%b") follows the process locale.
MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def parse_timeframe(value: str | None, default: Timeframe = TIMEFRAME_MONTH) -> Timeframe:
    if value is None or not str(value).strip():
        return default
    text = str(value).strip().lower()
    if text not in TIMEFRAME_DAYS:
        raise ValueError(f"Unknown timeframe: {value}")
    return text


def resolve_now(now: datetime | None = None, tz: tzinfo | None = None) -> datetime:
    """Return the reference instant as a wall-clock datetime.

    With ``tz`` set the result is aware in that zone. Without it the result is
    naive system-local time, which is what ``datetime.fromtimestamp`` yields
    for trades, so the two always compare on the same calendar.
    """
    if now is None:
        return datetime.now(tz)
    if tz is not None:
        if now.tzinfo is None:
            return now.replace(tzinfo=tz)
        return now.astimezone(tz)
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def local_datetime(timestamp_seconds: int | float, tz: tzinfo | None = None) -> datetime:
    return datetime.fromtimestamp(timestamp_seconds, tz)


def local_date(timestamp_seconds: int | float, tz: tzinfo | None = None) -> date:
    return local_datetime(timestamp_seconds, tz).date()


def start_of_day(day: date, tz: tzinfo | None = None) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def day_label(day: date) -> str:
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}"


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year % 100:02d}"


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def months_between(reference: date, day: date) -> int:
    return (reference.year - day.year) * 12 + (reference.month - day.month)


def month_window(reference: date, month_count: int) -> list[tuple[int, int]]:
    """(year, month) pairs for ``month_count`` months ending at ``reference``, oldest first."""
    if month_count <= 0:
        return []
    return [
        shift_month(reference.year, reference.month, -offset)
        for offset in range(month_count - 1, -1, -1)
    ]
