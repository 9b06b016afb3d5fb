"""
Work Calendar (``payroll_engines.work_calendar``).

Responsibility
--------------
Date arithmetic shared by every payroll engine: the 26th-to-25th payroll
cycle, Monday-Saturday workable days, ISO week grouping, anniversary-based
seniority, calendar-month differences, working-day offsets, and tolerant
date parsing.

Architecture position
---------------------
**Engines layer** -- pure functions.  ZERO clock reads; "today" is always
an explicit ``as_of`` argument supplied by the caller.

Failure modes
-------------
* ``parse_iso_date`` raises ``MalformedDateError``.
* ``parse_date_or_none`` never raises: malformed values are logged at
  WARNING and come back as ``None`` so the dependent figure contributes zero.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from payroll_kernel.exceptions import MalformedDateError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.work_calendar")

SUNDAY = 6  # date.weekday()
DEFAULT_CYCLE_START_DAY = 26


def is_workable_day(day: date) -> bool:
    """Monday through Saturday are workable; Sunday is the weekly rest day."""
    return day.weekday() != SUNDAY


def iso_week_key(day: date) -> tuple[int, int]:
    """(ISO year, ISO week) -- weeks start on Monday."""
    iso = day.isocalendar()
    return iso[0], iso[1]


def _add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


@dataclass(frozen=True)
class PayrollCycle:
    """
    One payroll aggregation period, inclusive on both ends.

    The standard cycle runs from the 26th of month N to the 25th of
    month N+1.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f"Payroll cycle end {self.end} precedes start {self.start}"
            )

    @property
    def cycle_id(self) -> str:
        return f"{self.start.isoformat()}_{self.end.isoformat()}"

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self, until: date | None = None) -> Iterator[date]:
        """Every calendar day from start to ``min(end, until)``."""
        last = self.end if until is None else min(self.end, until)
        current = self.start
        while current <= last:
            yield current
            current += timedelta(days=1)

    def workable_days(self, until: date | None = None) -> tuple[date, ...]:
        """Workable days from start to ``min(end, until)``."""
        return tuple(d for d in self.days(until) if is_workable_day(d))

    @property
    def workable_day_count(self) -> int:
        return len(self.workable_days())


def payroll_cycle_for(
    day: date,
    cycle_start_day: int = DEFAULT_CYCLE_START_DAY,
) -> PayrollCycle:
    """Return the payroll cycle that contains ``day``.

    Days on or after ``cycle_start_day`` open the cycle that ends on the
    day before ``cycle_start_day`` of the following month.
    """
    if not 2 <= cycle_start_day <= 28:
        raise ValueError("cycle_start_day must be between 2 and 28")

    if day.day >= cycle_start_day:
        start = date(day.year, day.month, cycle_start_day)
        end_year, end_month = _add_months(day.year, day.month, 1)
    else:
        start_year, start_month = _add_months(day.year, day.month, -1)
        start = date(start_year, start_month, cycle_start_day)
        end_year, end_month = day.year, day.month
    return PayrollCycle(start=start, end=date(end_year, end_month, cycle_start_day - 1))


def calendar_month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the calendar month containing ``day``."""
    next_year, next_month = _add_months(day.year, day.month, 1)
    return day.replace(day=1), date(next_year, next_month, 1) - timedelta(days=1)


def week_days(day: date) -> tuple[date, ...]:
    """Monday through Sunday of the week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return tuple(monday + timedelta(days=offset) for offset in range(7))


def completed_years(start: date, end: date) -> int:
    """Whole years between two dates (anniversary based, may be negative)."""
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def calendar_months_between(start: date, end: date) -> int:
    """Difference in calendar months, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def completed_months(start: date, end: date) -> int:
    """Whole months between two dates; the day of month must be reached."""
    months = calendar_months_between(start, end)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def _replace_year(day: date, year: int) -> date:
    try:
        return day.replace(year=year)
    except ValueError:
        # 29 February in a non-leap year
        return day.replace(year=year, day=28)


def add_years(anchor: date, years: int) -> date:
    """Same day ``years`` later; 29 February falls back to the 28th."""
    return _replace_year(anchor, anchor.year + years)


def most_recent_anniversary(anchor: date, as_of: date) -> date:
    """Latest anniversary of ``anchor`` on or before ``as_of``.

    Returns ``anchor`` itself when it lies in the future.
    """
    if anchor >= as_of:
        return anchor
    candidate = _replace_year(anchor, as_of.year)
    if candidate > as_of:
        candidate = _replace_year(anchor, as_of.year - 1)
    return candidate


def add_working_days(start: date, days: int) -> date:
    """Date reached after ``days`` workable days following ``start``."""
    if days < 0:
        raise ValueError("days cannot be negative")
    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if is_workable_day(current):
            added += 1
    return current


def parse_iso_date(value: Any, field: str = "date") -> date:
    """Parse ``YYYY-MM-DD`` (or pass a ``date`` through).

    Raises:
        MalformedDateError: value is not a date or a valid date string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    raise MalformedDateError(field, value)


def parse_date_or_none(value: Any, field: str = "date") -> date | None:
    """Tolerant variant of ``parse_iso_date``.

    Missing values return ``None`` silently; malformed values are logged
    and also return ``None``.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return parse_iso_date(value, field)
    except MalformedDateError:
        logger.warning(
            "malformed_date_ignored",
            extra={"field": field, "value": str(value)},
        )
        return None


def parse_clock_time(value: Any) -> time:
    """Parse an ``HH:mm`` wall-clock time.

    Raises:
        ValueError: value is not an ``HH:mm`` string.
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected HH:mm string, got {value!r}")
    return datetime.strptime(value.strip(), "%H:%M").time()
