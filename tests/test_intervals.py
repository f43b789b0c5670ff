"""Tests for the pure slot and overlap helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from centralia.domain.scheduling.intervals import (
    candidate_slots,
    free_slots,
    normalize_timestamp,
    overlaps,
    working_window,
)

MONDAY = date(2030, 1, 7)
HOUR = timedelta(hours=1)


def at(hour, minute=0, day=MONDAY):
    return datetime(day.year, day.month, day.day, hour, minute)


class TestOverlaps:
    def test_partial_overlap(self):
        assert overlaps(at(9), at(10), at(9, 30), at(10, 30))
        assert overlaps(at(9, 30), at(10, 30), at(9), at(10))

    def test_containment(self):
        assert overlaps(at(9), at(12), at(10), at(11))
        assert overlaps(at(10), at(11), at(9), at(12))

    def test_identical_intervals(self):
        assert overlaps(at(9), at(10), at(9), at(10))

    def test_back_to_back_is_not_overlap(self):
        """end1 == start2 is adjacency, not a conflict."""
        assert not overlaps(at(9), at(10), at(10), at(11))
        assert not overlaps(at(10), at(11), at(9), at(10))

    def test_disjoint(self):
        assert not overlaps(at(9), at(10), at(14), at(15))


class TestNormalizeTimestamp:
    def test_aware_datetime_converted_to_naive_utc(self):
        lima = timezone(timedelta(hours=-5))
        result = normalize_timestamp(datetime(2030, 1, 7, 9, 0, tzinfo=lima))
        assert result == datetime(2030, 1, 7, 14, 0)
        assert result.tzinfo is None

    def test_naive_taken_as_utc_and_microseconds_dropped(self):
        result = normalize_timestamp(datetime(2030, 1, 7, 9, 0, 12, 345678))
        assert result == datetime(2030, 1, 7, 9, 0, 12)


class TestWorkingWindow:
    AVAILABILITY = [
        {"day": "monday", "start_time": "09:00", "end_time": "12:00", "is_available": True},
        {"day": "monday", "start_time": "14:00", "end_time": "18:00", "is_available": True},
        {"day": "tuesday", "start_time": "08:00", "end_time": "10:00", "is_available": False},
    ]

    def test_windows_for_weekday_in_utc(self):
        windows = working_window(self.AVAILABILITY, MONDAY, "UTC")
        assert windows == [(at(9), at(12)), (at(14), at(18))]

    def test_business_timezone_shifts_window(self):
        # America/Lima is UTC-5 all year
        windows = working_window(self.AVAILABILITY[:1], MONDAY, "America/Lima")
        assert windows == [(at(14), at(17))]

    def test_disabled_day_has_no_window(self):
        assert working_window(self.AVAILABILITY, date(2030, 1, 8), "UTC") == []

    def test_day_without_entry_has_no_window(self):
        assert working_window(self.AVAILABILITY, date(2030, 1, 9), "UTC") == []

    def test_empty_availability(self):
        assert working_window([], MONDAY, "UTC") == []
        assert working_window(None, MONDAY, "UTC") == []


class TestCandidateSlots:
    def test_slots_stepped_by_duration(self):
        starts = candidate_slots([(at(9), at(12))], HOUR)
        assert starts == [at(9), at(10), at(11)]

    def test_partial_trailing_slot_dropped(self):
        starts = candidate_slots([(at(9), at(10, 30))], timedelta(minutes=45))
        assert starts == [at(9), at(9, 45)]

    def test_window_shorter_than_duration(self):
        assert candidate_slots([(at(9), at(9, 30))], HOUR) == []

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValueError):
            candidate_slots([(at(9), at(12))], timedelta(0))


class TestFreeSlots:
    def test_busy_interval_removes_overlapping_slots(self):
        candidates = [at(9), at(10), at(11), at(12)]
        busy = [(at(10), at(11))]
        assert free_slots(candidates, HOUR, busy) == [at(9), at(11), at(12)]

    def test_busy_interval_not_aligned_to_grid(self):
        candidates = [at(9), at(10), at(11)]
        busy = [(at(9, 30), at(10, 30))]
        assert free_slots(candidates, HOUR, busy) == [at(11)]

    def test_not_before_drops_elapsed_and_current_start(self):
        candidates = [at(9), at(10), at(11)]
        assert free_slots(candidates, HOUR, [], not_before=at(10)) == [at(11)]

    def test_no_result_overlaps_busy(self):
        candidates = [at(9) + timedelta(minutes=15 * i) for i in range(20)]
        busy = [(at(9, 40), at(10, 20)), (at(11), at(11, 5))]
        for start in free_slots(candidates, timedelta(minutes=30), busy):
            end = start + timedelta(minutes=30)
            assert not any(overlaps(start, end, s, e) for s, e in busy)
