"""
Career Advancement Calculator (``payroll_engines.career``).

Responsibility
--------------
Seniority milestones and salary-grid steps: when an employee's next
advancement falls due, whether it is close enough to alert on, and which
category/echelon (and base salary) the advancement leads to.

Architecture position
---------------------
**Engines layer** -- pure functions over a materialized salary grid;
``as_of`` is explicit.  Fetching and caching the grid is the job of
``payroll_services.salary_grid``.

Invariants enforced
-------------------
* Milestones fall every ``milestone_interval_years`` of seniority; the next
  milestone is always strictly after the seniority already reached.
* The next grid step is the entry following the employee's current
  (category, echelon) in grid order.
* Grid entries are unique per (category, echelon).

Failure modes
-------------
* Profiles without a parseable hire date, a category or an echelon are not
  eligible: ``calculate_career_advancement`` returns None.
* ``NoAdvancementAvailableError`` from ``apply_advancement`` when the
  employee is ungraded or already at the top of the grid.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_engines.tracer import traced_engine
from payroll_engines.work_calendar import (
    add_years,
    completed_months,
    completed_years,
    parse_date_or_none,
)
from payroll_kernel.domain.records import Profile
from payroll_kernel.exceptions import NoAdvancementAvailableError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.career")


@dataclass(frozen=True)
class CareerRules:
    """Milestone spacing and alert window."""

    milestone_interval_years: int = 3
    alert_window_days: int = 30

    def __post_init__(self) -> None:
        if self.milestone_interval_years < 1:
            raise ValueError("milestone_interval_years must be at least 1")
        if self.alert_window_days < 0:
            raise ValueError("alert_window_days cannot be negative")


@dataclass(frozen=True)
class SalaryGridEntry:
    """One (category, echelon) step of the salary grid."""

    category: str
    echelon: str
    monthly_salary: Decimal

    def __post_init__(self) -> None:
        if not self.category or not self.echelon:
            raise ValueError("category and echelon are required")
        if self.monthly_salary < 0:
            raise ValueError("monthly_salary cannot be negative")

    @property
    def grade(self) -> str:
        return f"{self.category}-{self.echelon}"


def validate_salary_grid(grid: Sequence[SalaryGridEntry]) -> None:
    """Raise ValueError if a (category, echelon) pair appears twice."""
    seen: set[tuple[str, str]] = set()
    for entry in grid:
        key = (entry.category, entry.echelon)
        if key in seen:
            raise ValueError(f"Duplicate salary grid entry {entry.grade}")
        seen.add(key)


class GridPosition(str, Enum):
    """Where an employee sits relative to the next grid step."""

    UNGRADED = "ungraded"
    AT_TOP = "at_top"
    NEXT_AVAILABLE = "next_available"


@dataclass(frozen=True)
class GridStep:
    position: GridPosition
    next_entry: SalaryGridEntry | None = None


def next_grid_step(
    grid: Sequence[SalaryGridEntry],
    category: str | None,
    echelon: str | None,
) -> GridStep:
    """Grid entry following (category, echelon).

    A grade missing from the grid is treated like the last entry: there is
    nothing to advance to.
    """
    if not category or not echelon:
        return GridStep(GridPosition.UNGRADED)
    for index, entry in enumerate(grid):
        if entry.category == category and entry.echelon == echelon:
            if index + 1 < len(grid):
                return GridStep(GridPosition.NEXT_AVAILABLE, grid[index + 1])
            break
    return GridStep(GridPosition.AT_TOP)


@dataclass(frozen=True)
class CareerAdvancement:
    """Seniority position and the next advancement for one employee."""

    employee_id: str | None
    hire_date: date
    current_grade: str
    seniority_years: int
    seniority_months: int
    milestone_years_reached: int
    next_milestone_years: int
    next_milestone_date: date
    days_until_next_milestone: int
    is_alert: bool
    step: GridStep

    @property
    def seniority_label(self) -> str:
        return f"{self.seniority_years}a {self.seniority_months}m"

    @property
    def is_early(self) -> bool:
        """Approving now would advance the employee before the milestone."""
        return self.days_until_next_milestone > 0


@traced_engine("career", "1.0", fingerprint_fields=("profile", "grid", "as_of"))
def calculate_career_advancement(
    *,
    profile: Profile,
    grid: Sequence[SalaryGridEntry],
    as_of: date,
    rules: CareerRules | None = None,
) -> CareerAdvancement | None:
    """Next seniority milestone and grid step for a graded employee.

    Returns None when the profile has no usable hire date, category or
    echelon.
    """
    rules = rules or CareerRules()
    hire_date = parse_date_or_none(profile.hire_date, "hire_date")
    if hire_date is None or not profile.category or not profile.echelon:
        logger.debug(
            "career_profile_not_eligible",
            extra={"employee_id": profile.employee_id},
        )
        return None

    interval = rules.milestone_interval_years
    years = max(0, completed_years(hire_date, as_of))
    months = max(0, completed_months(hire_date, as_of)) % 12
    next_years = (years // interval + 1) * interval
    milestone = add_years(hire_date, next_years)
    days_until = (milestone - as_of).days

    return CareerAdvancement(
        employee_id=profile.employee_id,
        hire_date=hire_date,
        current_grade=f"{profile.category}-{profile.echelon}",
        seniority_years=years,
        seniority_months=months,
        milestone_years_reached=(years // interval) * interval,
        next_milestone_years=next_years,
        next_milestone_date=milestone,
        days_until_next_milestone=days_until,
        is_alert=0 <= days_until <= rules.alert_window_days,
        step=next_grid_step(grid, profile.category, profile.echelon),
    )


def partition_alerts(
    advancements: Iterable[CareerAdvancement],
) -> tuple[tuple[CareerAdvancement, ...], tuple[CareerAdvancement, ...]]:
    """Split into (alerting, others), each ordered by hire date."""
    ordered = sorted(advancements, key=lambda a: a.hire_date)
    return (
        tuple(a for a in ordered if a.is_alert),
        tuple(a for a in ordered if not a.is_alert),
    )


def apply_advancement(profile: Profile, advancement: CareerAdvancement) -> Profile:
    """Profile moved to the next grid step, with that step's base salary."""
    step = advancement.step
    if step.position != GridPosition.NEXT_AVAILABLE or step.next_entry is None:
        raise NoAdvancementAvailableError(profile.employee_id, step.position.value)
    return replace(
        profile,
        category=step.next_entry.category,
        echelon=step.next_entry.echelon,
        monthly_base_salary=step.next_entry.monthly_salary,
    )
