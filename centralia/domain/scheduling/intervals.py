"""
Interval arithmetic for slot generation and conflict checks

Everything here is pure: no database access, no clock reads. Datetimes
coming out of these helpers are naive UTC, matching what is stored.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Sequence

import pytz

Interval = tuple[datetime, datetime]


def overlaps(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    """Half-open overlap: [s1, e1) and [s2, e2) share at least one instant"""
    return s1 < e2 and s2 < e1


def normalize_timestamp(dt: datetime) -> datetime:
    """
    Convert to naive UTC and drop sub-second precision.

    Aware datetimes are converted to UTC, naive ones are taken as UTC
    already. Two requests for "the same start" must compare equal after
    this, otherwise the unique index on (specialist, start) cannot catch
    the race between them.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0)


def _parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def working_window(availability: Optional[Sequence[dict]], target_date: date, tz_name: str) -> list[Interval]:
    """
    Working intervals of a specialist on a calendar day, as naive UTC pairs.

    `availability` is the specialist's weekly template:
    [{"day": "monday", "start_time": "09:00", "end_time": "17:00", "is_available": true}, ...]
    Times are wall-clock times in the business timezone `tz_name`.
    Entries for other days, disabled entries and entries with end <= start
    are ignored.
    """
    try:
        tz = pytz.timezone(tz_name or "UTC")
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC

    weekday = target_date.strftime("%A").lower()
    windows = []
    for entry in availability or []:
        if (entry.get("day") or "").lower() != weekday:
            continue
        if not entry.get("is_available", True):
            continue

        start_local = tz.localize(datetime.combine(target_date, _parse_hhmm(entry["start_time"])))
        end_local = tz.localize(datetime.combine(target_date, _parse_hhmm(entry["end_time"])))
        if end_local <= start_local:
            continue

        windows.append((normalize_timestamp(start_local), normalize_timestamp(end_local)))

    windows.sort()
    return windows


def candidate_slots(windows: Iterable[Interval], duration: timedelta) -> list[datetime]:
    """Starts spaced by `duration`, each slot ending inside its window"""
    if duration <= timedelta(0):
        raise ValueError("Slot duration must be positive")

    starts = []
    for window_start, window_end in windows:
        current = window_start
        while current + duration <= window_end:
            starts.append(current)
            current += duration
    return starts


def free_slots(
    candidates: Iterable[datetime],
    duration: timedelta,
    busy: Sequence[Interval],
    not_before: Optional[datetime] = None,
) -> list[datetime]:
    """
    Drop candidates that collide with a busy interval.

    When `not_before` is given, candidates starting at or before it are
    dropped as well (elapsed slots).
    """
    available = []
    for start in candidates:
        if not_before is not None and start <= not_before:
            continue
        end = start + duration
        if any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in busy):
            continue
        available.append(start)
    return sorted(available)
