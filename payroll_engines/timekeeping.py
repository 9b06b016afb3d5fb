"""
Timekeeping (``payroll_engines.timekeeping``).

Turns a clock-in/clock-out pair into a closed ``TimeEntry``: payable
duration (with the configured break deducted from long sessions) and the
overtime worked past the shift's scheduled end.

Pure functions; wall-clock times are passed in explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.records import Shift, TimeEntry
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.timekeeping")


@dataclass(frozen=True)
class TimekeepingRules:
    """Break deduction threshold (sessions longer than this lose the break)."""

    break_threshold_minutes: int = 360

    def __post_init__(self) -> None:
        if self.break_threshold_minutes < 0:
            raise ValueError("break_threshold_minutes cannot be negative")


def _minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


@traced_engine(
    "timekeeping", "1.0",
    fingerprint_fields=("work_date", "start", "end", "shift", "break_minutes"),
)
def close_time_entry(
    *,
    work_date: date,
    start: time,
    end: time,
    shift: Shift,
    break_minutes: int = 0,
    is_public_holiday: bool = False,
    location: str | None = None,
    rules: TimekeepingRules | None = None,
) -> TimeEntry:
    """Build the closed entry for one session.

    An end time at or before the start time means the session finished on
    the next day.  Overtime is clamped to ``[0, duration]``.
    """
    rules = rules or TimekeepingRules()
    if break_minutes < 0:
        raise ValueError("break_minutes cannot be negative")

    started = datetime.combine(work_date, start)
    ended = datetime.combine(work_date, end)
    if ended <= started:
        ended += timedelta(days=1)

    duration = _minutes(ended - started)
    if duration > rules.break_threshold_minutes and break_minutes > 0:
        duration = max(0, duration - break_minutes)

    shift_end = datetime.combine(work_date, shift.end_time)
    if shift.crosses_midnight:
        shift_end += timedelta(days=1)
    overtime = max(0, _minutes(ended - shift_end))
    overtime = min(overtime, duration)

    logger.debug(
        "time_entry_closed",
        extra={
            "work_date": work_date,
            "shift_id": shift.shift_id,
            "duration_minutes": duration,
            "overtime_minutes": overtime,
        },
    )
    return TimeEntry(
        work_date=work_date,
        duration_minutes=duration,
        overtime_minutes=overtime,
        shift_id=shift.shift_id,
        start_time=start,
        end_time=end,
        is_public_holiday=is_public_holiday,
        location=location,
    )
