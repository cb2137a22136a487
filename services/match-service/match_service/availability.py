import json
import re
from datetime import date, datetime, timedelta
from typing import Iterable

from dateutil import parser
from loguru import logger

from .schemas import AvailabilitySlot

MAX_DAYS = 30

# coarse time-of-day windows, minutes since midnight
TIME_WINDOWS = {
    "morning": (6 * 60, 12 * 60),
    "afternoon": (12 * 60, 18 * 60),
    "evening": (18 * 60, 23 * 60),
}

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_minutes(value) -> int | None:
    """'HH:MM' -> minutes since midnight, or None if malformed."""
    if not isinstance(value, str):
        return None
    m = _HHMM.match(value.strip())
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def sunday_index(day: date) -> int:
    # date.weekday() is Monday=0
    return (day.weekday() + 1) % 7


def _parse_day(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"not a date: {value!r}")
    return parser.isoparse(value.strip()).date()


def requested_days(requested_dates) -> list[date]:
    """
    Calendar days covered by {"start", "end"} or {"date"} (dict or JSON string).
    Raises ValueError on any other shape or an inverted range.
    """
    dates = requested_dates
    if isinstance(dates, (str, bytes)):
        dates = json.loads(dates)
    if not isinstance(dates, dict):
        raise ValueError("requested dates must be an object")

    if dates.get("start") and dates.get("end"):
        start = _parse_day(dates["start"])
        end = _parse_day(dates["end"])
    elif dates.get("date"):
        start = end = _parse_day(dates["date"])
    else:
        raise ValueError("requested dates need start/end or date")

    if start > end:
        raise ValueError(f"inverted range {start} > {end}")

    days = []
    current = start
    while current <= end and len(days) < MAX_DAYS:
        days.append(current)
        current += timedelta(days=1)
    return days


def slot_index(slots: Iterable[AvailabilitySlot]) -> dict[int, list[tuple[int, int]]]:
    """day-of-week -> [(start_min, end_min)], dropping malformed and empty slots."""
    index: dict[int, list[tuple[int, int]]] = {}
    for slot in slots:
        if not 0 <= slot.day_of_week <= 6:
            continue
        start = parse_minutes(slot.start_time)
        end = parse_minutes(slot.end_time)
        if start is None or end is None or start >= end:
            continue
        index.setdefault(slot.day_of_week, []).append((start, end))
    return index


def time_window(preferred_time) -> tuple[int, int] | None:
    if not isinstance(preferred_time, str):
        return None
    return TIME_WINDOWS.get(preferred_time.strip().lower())


def is_available(slots, requested_dates, preferred_time=None) -> bool:
    """
    True only if every requested day (max 30) has a slot on its weekday and, when a
    known time of day is given, one of that day's slots overlaps the window.
    Never raises; anything unparseable is "not available".
    """
    if not slots:
        return False

    try:
        days = requested_days(requested_dates)
        index = slot_index(slots)
    except Exception as e:
        logger.warning("availability check failed: {}", e)
        return False

    if not days or not index:
        return False

    window = time_window(preferred_time)

    for day in days:
        intervals = index.get(sunday_index(day))
        if not intervals:
            return False
        if window is None:
            continue
        w_start, w_end = window
        if not any(overlaps(s, e, w_start, w_end) for s, e in intervals):
            return False

    return True
