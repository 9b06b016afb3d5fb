"""
Bonus & Proration Calculator (``payroll_engines.compensation``).

Responsibility
--------------
Computes the earnings side of a payslip for one payroll cycle: seniority
bonus, attendance counts, attendance/performance bonuses, prorated base,
transport and housing allowances, and the optional absence penalty.

Architecture position
---------------------
**Engines layer** -- pure functional core.  "Today" is the explicit
``as_of`` argument; overtime payout arrives precomputed from
``payroll_engines.overtime``.

Invariants enforced
-------------------
* Attendance is counted over workable days from cycle start to
  ``min(cycle end, as_of)`` only.
* Any unjustified absence zeroes both the attendance and the performance
  bonus.
* Zero workable days yields a zero prorated base, never a division error.
* Paid days never exceed workable days: a sick-leave override on a worked
  date or a Sunday adds nothing.
* ``gross == total_earnings - absence_penalty``; statutory deductions are
  based on ``total_earnings``.

Failure modes
-------------
* A malformed hire date is logged and treated as unknown: no seniority
  bonus and no pre-registration days.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_engines.tracer import traced_engine
from payroll_engines.work_calendar import (
    PayrollCycle,
    completed_years,
    is_workable_day,
    parse_date_or_none,
)
from payroll_kernel.domain.records import (
    AttendanceOverride,
    AttendanceStatus,
    Profile,
    TimeEntry,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.compensation")

_ZERO = Decimal("0")


class AbsencePenaltyMethod(str, Enum):
    """How absences reduce gross pay beyond the lost bonuses."""

    NONE = "none"
    COMBINED_DAILY_RATE = "combined_daily_rate"
    SPLIT_COMPONENTS = "split_components"


@dataclass(frozen=True)
class BonusRules:
    """Fixed amounts and rates for the earnings side."""

    seniority_rate_per_year: Decimal = Decimal("0.017")
    attendance_bonus: Decimal = Decimal("3000")
    performance_bonus: Decimal = Decimal("4000")
    monthly_transport_allowance: Decimal = Decimal("18325")
    transport_reference_days: int = 26
    housing_rate: Decimal = Decimal("0.10")

    def __post_init__(self) -> None:
        if self.transport_reference_days <= 0:
            raise ValueError("transport_reference_days must be positive")
        for name in (
            "seniority_rate_per_year",
            "attendance_bonus",
            "performance_bonus",
            "monthly_transport_allowance",
            "housing_rate",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")


@dataclass(frozen=True)
class AbsencePenaltyRules:
    """Absence penalty policy.

    ``split_components`` charges a salary and a transport component per
    absent day and also counts days before the hire date;
    ``combined_daily_rate`` charges the per-day amount from global settings
    per unjustified absence.
    """

    method: AbsencePenaltyMethod = AbsencePenaltyMethod.NONE
    salary_component: Decimal = Decimal("3360")
    transport_component: Decimal = Decimal("705")

    def __post_init__(self) -> None:
        if self.salary_component < 0 or self.transport_component < 0:
            raise ValueError("Absence penalty components cannot be negative")


@dataclass(frozen=True)
class AttendanceSummary:
    """Day counts for one cycle."""

    workable_days: int
    worked_days: int
    sick_leave_days: int
    unjustified_absences: int
    pre_registration_absences: int

    @property
    def days_worked(self) -> int:
        """Paid days: distinct worked dates plus sick-leave dates."""
        return self.worked_days + self.sick_leave_days


@dataclass(frozen=True)
class CompensationResult:
    """Earnings side of a payslip."""

    base_salary: Decimal
    seniority_years: int
    seniority_bonus: Decimal
    attendance: AttendanceSummary
    attendance_bonus: Decimal
    performance_bonus: Decimal
    prorated_base: Decimal
    transport_allowance: Decimal
    housing_allowance: Decimal
    overtime_payout: Decimal
    absence_penalty: Decimal = _ZERO

    @property
    def total_earnings(self) -> Decimal:
        """Sum of every earning before any absence penalty."""
        return (
            self.prorated_base
            + self.seniority_bonus
            + self.attendance_bonus
            + self.performance_bonus
            + self.overtime_payout
            + self.transport_allowance
            + self.housing_allowance
        )

    @property
    def gross(self) -> Decimal:
        return self.total_earnings - self.absence_penalty


def summarize_attendance(
    *,
    cycle: PayrollCycle,
    as_of: date,
    entries: Iterable[TimeEntry],
    overrides: Iterable[AttendanceOverride],
    hire_date: date | None,
) -> AttendanceSummary:
    """Count worked, sick, absent and pre-registration days for a cycle.

    Entries and overrides outside the cycle are ignored.  A sick-leave day
    is paid only on a workable day with no time entry, so paid days never
    exceed the cycle's calendar.
    """
    worked_dates = {e.work_date for e in entries if cycle.contains(e.work_date)}
    sick_dates = {
        o.day
        for o in overrides
        if o.status == AttendanceStatus.SICK_LEAVE
        and cycle.contains(o.day)
        and is_workable_day(o.day)
    } - worked_dates

    unjustified = 0
    pre_registration = 0
    for day in cycle.workable_days(until=as_of):
        if hire_date is not None and day < hire_date:
            pre_registration += 1
        elif day not in worked_dates and day not in sick_dates:
            unjustified += 1

    return AttendanceSummary(
        workable_days=cycle.workable_day_count,
        worked_days=len(worked_dates),
        sick_leave_days=len(sick_dates),
        unjustified_absences=unjustified,
        pre_registration_absences=pre_registration,
    )


def calculate_absence_penalty(
    attendance: AttendanceSummary,
    rules: AbsencePenaltyRules,
    absence_penalty_amount: Decimal | None = None,
) -> Decimal:
    """Penalty subtracted from gross under the configured method."""
    if rules.method == AbsencePenaltyMethod.SPLIT_COMPONENTS:
        days = attendance.unjustified_absences + attendance.pre_registration_absences
        return days * (rules.salary_component + rules.transport_component)
    if rules.method == AbsencePenaltyMethod.COMBINED_DAILY_RATE:
        if absence_penalty_amount is None:
            return _ZERO
        return attendance.unjustified_absences * absence_penalty_amount
    return _ZERO


@traced_engine(
    "compensation", "1.0",
    fingerprint_fields=("profile", "cycle", "as_of", "overtime_payout"),
)
def calculate_compensation(
    *,
    profile: Profile,
    cycle: PayrollCycle,
    as_of: date,
    entries: Iterable[TimeEntry],
    overrides: Iterable[AttendanceOverride],
    overtime_payout: Decimal,
    rules: BonusRules | None = None,
    penalty_rules: AbsencePenaltyRules | None = None,
    absence_penalty_amount: Decimal | None = None,
) -> CompensationResult:
    """Compute the earnings side of a payslip.

    Args:
        profile: Employee profile; a missing salary counts as 0.
        cycle: Payroll cycle being computed.
        as_of: Date attendance is counted up to and seniority measured at.
        entries: Time entries (outside-cycle entries are ignored).
        overrides: Attendance overrides (outside-cycle ones are ignored).
        overtime_payout: Total from the overtime bucketer.
        rules: Bonus amounts and rates.
        penalty_rules: Absence penalty policy (default: no penalty).
        absence_penalty_amount: Per-day amount from global settings, used by
            the ``combined_daily_rate`` method.
    """
    rules = rules or BonusRules()
    penalty_rules = penalty_rules or AbsencePenaltyRules()
    base = profile.monthly_base_salary or _ZERO

    hire_date = parse_date_or_none(profile.hire_date, "hire_date")

    seniority_years = 0
    seniority_bonus = _ZERO
    if hire_date is not None:
        years = completed_years(hire_date, as_of)
        if years > 0:
            seniority_years = years
            seniority_bonus = base * rules.seniority_rate_per_year * years

    attendance = summarize_attendance(
        cycle=cycle,
        as_of=as_of,
        entries=entries,
        overrides=overrides,
        hire_date=hire_date,
    )

    attendance_bonus = rules.attendance_bonus
    performance_bonus = rules.performance_bonus
    if attendance.unjustified_absences > 0:
        attendance_bonus = _ZERO
        performance_bonus = _ZERO

    if attendance.workable_days > 0:
        prorated_base = base * attendance.days_worked / attendance.workable_days
    else:
        prorated_base = _ZERO

    transport = (
        rules.monthly_transport_allowance
        / rules.transport_reference_days
        * attendance.days_worked
    )
    housing = prorated_base * rules.housing_rate
    penalty = calculate_absence_penalty(
        attendance, penalty_rules, absence_penalty_amount,
    )

    result = CompensationResult(
        base_salary=base,
        seniority_years=seniority_years,
        seniority_bonus=seniority_bonus,
        attendance=attendance,
        attendance_bonus=attendance_bonus,
        performance_bonus=performance_bonus,
        prorated_base=prorated_base,
        transport_allowance=transport,
        housing_allowance=housing,
        overtime_payout=overtime_payout,
        absence_penalty=penalty,
    )

    logger.info(
        "compensation_calculated",
        extra={
            "cycle_id": cycle.cycle_id,
            "days_worked": attendance.days_worked,
            "workable_days": attendance.workable_days,
            "unjustified_absences": attendance.unjustified_absences,
            "penalty_method": penalty_rules.method.value,
            "gross": str(result.gross),
        },
    )
    return result
