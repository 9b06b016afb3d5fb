"""
Hours Summary (``payroll_engines.hours``).

Responsibility
--------------
Worked-hours reporting for one employee: regular and overtime hours for
the calendar month, the overtime payout those hours are heading for, and a
Monday-Sunday per-day breakdown of the current week.

Architecture position
---------------------
**Engines layer** -- pure functions.  The payout estimate is priced by
``bucket_overtime`` so it agrees with the payslip for the same entries.

Invariants enforced
-------------------
* Regular minutes are ``duration - overtime`` per entry, never negative.
* Hours are reported as Decimal, rounded half-up to 2 places.
* The week breakdown always has seven days, Monday first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from payroll_engines.overtime import OvertimeBreakdown, OvertimePolicy, bucket_overtime
from payroll_engines.tracer import traced_engine
from payroll_engines.work_calendar import calendar_month_bounds, week_days
from payroll_kernel.domain.records import OvertimeRates, Shift, TimeEntry
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.hours")

_SIXTY = Decimal("60")
_CENTS = Decimal("0.01")
DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def minutes_to_hours(minutes: int) -> Decimal:
    return (Decimal(minutes) / _SIXTY).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class MonthlyHours:
    """Month-to-date totals."""

    month_start: date
    month_end: date
    entry_count: int
    total_minutes: int
    overtime_minutes: int
    overtime: OvertimeBreakdown

    @property
    def regular_minutes(self) -> int:
        return self.total_minutes - self.overtime_minutes

    @property
    def regular_hours(self) -> Decimal:
        return minutes_to_hours(self.regular_minutes)

    @property
    def overtime_hours(self) -> Decimal:
        return minutes_to_hours(self.overtime_minutes)

    @property
    def estimated_payout(self) -> Decimal:
        return self.overtime.total_payout


@dataclass(frozen=True)
class DayHours:
    day: date
    regular_minutes: int
    overtime_minutes: int

    @property
    def label(self) -> str:
        return DAY_LABELS[self.day.weekday()]

    @property
    def regular_hours(self) -> Decimal:
        return minutes_to_hours(self.regular_minutes)

    @property
    def overtime_hours(self) -> Decimal:
        return minutes_to_hours(self.overtime_minutes)


@traced_engine("hours", "1.0", fingerprint_fields=("entries", "as_of", "hourly_rate"))
def summarize_month_hours(
    *,
    entries: Iterable[TimeEntry],
    as_of: date,
    shifts: Mapping[str, Shift],
    rates: OvertimeRates,
    hourly_rate: Decimal,
    policy: OvertimePolicy | None = None,
) -> MonthlyHours:
    """Totals for the calendar month containing ``as_of``.

    Only entries dated inside that month count, so a week straddling the
    month boundary has its weekly cap applied to the in-month part only.
    """
    month_start, month_end = calendar_month_bounds(as_of)
    month_entries = tuple(
        e for e in entries if month_start <= e.work_date <= month_end
    )
    overtime = bucket_overtime(
        entries=month_entries,
        shifts=shifts,
        rates=rates,
        hourly_rate=hourly_rate,
        policy=policy,
    )
    summary = MonthlyHours(
        month_start=month_start,
        month_end=month_end,
        entry_count=len(month_entries),
        total_minutes=sum(e.duration_minutes for e in month_entries),
        overtime_minutes=sum(e.overtime_minutes for e in month_entries),
        overtime=overtime,
    )
    logger.debug(
        "month_hours_summarized",
        extra={
            "month_start": month_start,
            "entry_count": summary.entry_count,
            "overtime_minutes": summary.overtime_minutes,
        },
    )
    return summary


def summarize_week_hours(
    entries: Iterable[TimeEntry],
    as_of: date,
) -> tuple[DayHours, ...]:
    """Per-day regular and overtime minutes, Monday to Sunday of ``as_of``'s week."""
    days = week_days(as_of)
    totals = {day: [0, 0] for day in days}
    for entry in entries:
        bucket = totals.get(entry.work_date)
        if bucket is not None:
            bucket[0] += entry.duration_minutes - entry.overtime_minutes
            bucket[1] += entry.overtime_minutes
    return tuple(DayHours(day, *totals[day]) for day in days)
