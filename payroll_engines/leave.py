"""
Leave Accrual Calculator (``payroll_engines.leave``).

Responsibility
--------------
Paid-leave arithmetic: days accrued in the current leave cycle, the
seniority surplus, the leave pay allocation, the annual entitlement and
the date an employee returns from leave.

Architecture position
---------------------
**Engines layer** -- pure functions; ``as_of`` is explicit.

Invariants enforced
-------------------
* Accrued days are never negative.
* With seniority fixed, accrued days never decrease as months pass.
* Both surplus formulas are always computed; ``LeaveAccrual`` reports the
  configured one and the alternate side by side.

Failure modes
-------------
* Malformed or missing dates contribute zero (logged by
  ``parse_date_or_none``); nothing is raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_engines.tracer import traced_engine
from payroll_engines.work_calendar import (
    add_working_days,
    calendar_months_between,
    completed_years,
    most_recent_anniversary,
    parse_date_or_none,
)
from payroll_kernel.domain.records import Profile
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.leave")

_ZERO = Decimal("0")


class SurplusFormula(str, Enum):
    """Seniority surplus schedule above the threshold.

    DOUBLED: 2 + floor((years - threshold) / 2) * 2
    SINGLE:  2 + floor((years - threshold) / 2)
    """

    DOUBLED = "doubled"
    SINGLE = "single"


@dataclass(frozen=True)
class LeaveRules:
    """Accrual rate, seniority schedule and entitlement parameters."""

    days_per_month: Decimal = Decimal("1.5")
    seniority_threshold_years: int = 5
    surplus_formula: SurplusFormula = SurplusFormula.DOUBLED
    annual_base_days: int = 18
    leave_pay_divisor: Decimal = Decimal("30")

    def __post_init__(self) -> None:
        if self.days_per_month < 0:
            raise ValueError("days_per_month cannot be negative")
        if self.seniority_threshold_years < 0:
            raise ValueError("seniority_threshold_years cannot be negative")
        if self.annual_base_days < 0:
            raise ValueError("annual_base_days cannot be negative")
        if self.leave_pay_divisor <= 0:
            raise ValueError("leave_pay_divisor must be positive")


def seniority_surplus(
    years: int,
    formula: SurplusFormula = SurplusFormula.DOUBLED,
    threshold: int = 5,
) -> int:
    """Extra leave days earned by seniority (0 below the threshold)."""
    if years < threshold:
        return 0
    steps = (years - threshold) // 2
    if formula == SurplusFormula.DOUBLED:
        return 2 + steps * 2
    return 2 + steps


@dataclass(frozen=True)
class LeaveAccrual:
    """Leave accrued in the current leave cycle."""

    cycle_start: date | None
    months_in_cycle: int
    base_days: Decimal
    seniority_years: int
    surplus_formula: SurplusFormula
    seniority_surplus: int
    alternate_surplus: int

    @property
    def total_days(self) -> Decimal:
        return self.base_days + self.seniority_surplus

    @property
    def surplus_divergence(self) -> int:
        """How far the two surplus schedules disagree for this employee."""
        return self.seniority_surplus - self.alternate_surplus


def _alternate(formula: SurplusFormula) -> SurplusFormula:
    if formula == SurplusFormula.DOUBLED:
        return SurplusFormula.SINGLE
    return SurplusFormula.DOUBLED


@traced_engine("leave", "1.0", fingerprint_fields=("profile", "as_of"))
def calculate_leave_accrual(
    *,
    profile: Profile,
    as_of: date,
    rules: LeaveRules | None = None,
) -> LeaveAccrual:
    """Compute accrued leave as of a date.

    The leave cycle starts at ``profile.leave_start_date`` or, when that is
    absent, at the most recent anniversary of the hire date.  Base days are
    ``days_per_month`` times the calendar months since the cycle start.
    """
    rules = rules or LeaveRules()
    hire_date = parse_date_or_none(profile.hire_date, "hire_date")
    leave_start = parse_date_or_none(profile.leave_start_date, "leave_start_date")

    cycle_start = leave_start
    if cycle_start is None and hire_date is not None:
        cycle_start = most_recent_anniversary(hire_date, as_of)

    months = 0
    base_days = _ZERO
    if cycle_start is not None:
        months = calendar_months_between(cycle_start, as_of)
        if months > 0:
            base_days = rules.days_per_month * months

    years = 0
    if hire_date is not None:
        years = max(0, completed_years(hire_date, as_of))

    threshold = rules.seniority_threshold_years
    accrual = LeaveAccrual(
        cycle_start=cycle_start,
        months_in_cycle=months,
        base_days=base_days,
        seniority_years=years,
        surplus_formula=rules.surplus_formula,
        seniority_surplus=seniority_surplus(years, rules.surplus_formula, threshold),
        alternate_surplus=seniority_surplus(years, _alternate(rules.surplus_formula), threshold),
    )
    if accrual.surplus_divergence:
        logger.debug(
            "leave_surplus_formulas_diverge",
            extra={
                "seniority_years": years,
                "configured": accrual.seniority_surplus,
                "alternate": accrual.alternate_surplus,
            },
        )
    return accrual


def leave_pay_allocation(
    gross: Decimal,
    accrued_days: Decimal,
    rules: LeaveRules | None = None,
) -> Decimal:
    """Leave pay provision: gross / divisor * accrued days."""
    rules = rules or LeaveRules()
    return gross / rules.leave_pay_divisor * accrued_days


def annual_leave_entitlement(
    seniority_years: int,
    rules: LeaveRules | None = None,
) -> int:
    """Days of leave granted for a full year: base days plus surplus."""
    rules = rules or LeaveRules()
    return rules.annual_base_days + seniority_surplus(
        seniority_years, rules.surplus_formula, rules.seniority_threshold_years,
    )


def leave_resume_date(
    leave_start: date,
    seniority_years: int,
    rules: LeaveRules | None = None,
) -> date:
    """Day the employee is back after taking the full annual entitlement."""
    return add_working_days(
        leave_start, annual_leave_entitlement(seniority_years, rules),
    )
