"""Tests for closing a clock-in/clock-out pair into a time entry."""

from datetime import date, time

import pytest

from payroll_config.schema import DEFAULT_SHIFTS
from payroll_engines.timekeeping import TimekeepingRules, close_time_entry

SHIFTS = {s.shift_id: s for s in DEFAULT_SHIFTS}
DAY = date(2024, 3, 4)


def _close(start, end, shift_id="morningB", **kwargs):
    return close_time_entry(
        work_date=DAY, start=start, end=end, shift=SHIFTS[shift_id], **kwargs,
    )


class TestCloseTimeEntry:
    def test_overtime_past_shift_end(self):
        entry = _close(time(8, 0), time(20, 15))
        assert entry.duration_minutes == 735
        assert entry.overtime_minutes == 240
        assert entry.shift_id == "morningB"

    def test_no_overtime_when_leaving_early(self):
        entry = _close(time(8, 0), time(15, 0))
        assert entry.overtime_minutes == 0

    def test_break_deducted_from_long_session(self):
        entry = _close(time(8, 0), time(20, 15), break_minutes=30)
        assert entry.duration_minutes == 705
        assert entry.overtime_minutes == 240

    def test_break_not_deducted_from_short_session(self):
        entry = _close(time(8, 0), time(12, 0), break_minutes=30)
        assert entry.duration_minutes == 240

    def test_custom_break_threshold(self):
        entry = _close(
            time(8, 0), time(12, 0),
            break_minutes=30,
            rules=TimekeepingRules(break_threshold_minutes=120),
        )
        assert entry.duration_minutes == 210

    def test_night_shift_crosses_midnight(self):
        entry = _close(time(22, 0), time(7, 0), shift_id="night")
        assert entry.duration_minutes == 540
        assert entry.overtime_minutes == 45

    def test_overtime_clamped_to_duration(self):
        entry = _close(time(17, 0), time(18, 0))
        assert entry.duration_minutes == 60
        assert entry.overtime_minutes == 60

    def test_flags_carried_through(self):
        entry = _close(time(8, 0), time(16, 15), is_public_holiday=True, location="Depot")
        assert entry.is_public_holiday
        assert entry.location == "Depot"
        assert entry.start_time == time(8, 0)
        assert entry.end_time == time(16, 15)

    def test_negative_break_rejected(self):
        with pytest.raises(ValueError):
            _close(time(8, 0), time(16, 0), break_minutes=-5)
