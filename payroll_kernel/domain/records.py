"""
Records -- Pure domain input records for the payroll engines.

Responsibility:
    Defines the immutable records that flow into the calculation engines:
    TimeEntry (one clock-in/out session), Shift (schedule template),
    AttendanceOverride (per-day status exception), Profile (employee
    record), OvertimeRates and GlobalSettings (org-wide configuration).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Raw documents from
    the store are converted into these records by
    ``payroll_modules.payroll.documents`` before any engine sees them.

Invariants enforced:
    - TimeEntry: 0 <= overtime_minutes <= duration_minutes.
    - OvertimeRates: no negative multiplier.
    - All monetary and rate fields use ``Decimal`` -- NEVER ``float``.

Failure modes:
    - ValueError on construction with values that break an invariant.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Any


class AttendanceStatus(str, Enum):
    """Administrative status overriding a single day."""

    UNJUSTIFIED_ABSENCE = "unjustified_absence"
    SICK_LEAVE = "sick_leave"


@dataclass(frozen=True)
class Shift:
    """A named work schedule template."""

    shift_id: str
    name: str
    start_time: time
    end_time: time

    @property
    def crosses_midnight(self) -> bool:
        """End at or before start means the shift finishes the next day."""
        return self.end_time <= self.start_time


@dataclass(frozen=True)
class TimeEntry:
    """One closed clock-in/clock-out session."""

    work_date: date
    duration_minutes: int
    overtime_minutes: int
    shift_id: str
    start_time: time | None = None
    end_time: time | None = None
    is_public_holiday: bool = False
    location: str | None = None
    entry_id: str | None = None

    def __post_init__(self) -> None:
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes cannot be negative")
        if self.overtime_minutes < 0:
            raise ValueError("overtime_minutes cannot be negative")
        if self.overtime_minutes > self.duration_minutes:
            raise ValueError(
                f"overtime_minutes ({self.overtime_minutes}) exceeds "
                f"duration_minutes ({self.duration_minutes})"
            )


@dataclass(frozen=True)
class AttendanceOverride:
    """Admin-set status for one calendar day (document id is the date)."""

    day: date
    status: AttendanceStatus


@dataclass(frozen=True)
class Profile:
    """
    Employee record as far as payroll is concerned.

    ``hire_date`` and ``leave_start_date`` stay raw strings: a malformed
    value must degrade to a zero contribution in the affected calculation
    rather than reject the whole profile.
    """

    monthly_base_salary: Decimal | None
    currency: str = "XAF"
    hire_date: str | None = None
    leave_start_date: str | None = None
    employee_id: str | None = None
    name: str | None = None
    profession: str | None = None
    role: str | None = None
    category: str | None = None
    echelon: str | None = None

    def missing_payroll_fields(self) -> tuple[str, ...]:
        """Fields that must be set before a payslip can be computed."""
        missing: list[str] = []
        if self.monthly_base_salary is None or self.monthly_base_salary <= 0:
            missing.append("monthly_base_salary")
        if not self.hire_date or not self.hire_date.strip():
            missing.append("hire_date")
        return tuple(missing)


@dataclass(frozen=True)
class OvertimeRates:
    """Pay multipliers per overtime bucket."""

    tier1: Decimal = Decimal("1.2")
    tier2: Decimal = Decimal("1.3")
    night: Decimal = Decimal("1.4")
    sunday: Decimal = Decimal("1.5")
    holiday: Decimal = Decimal("1.5")

    def __post_init__(self) -> None:
        for name in ("tier1", "tier2", "night", "sunday", "holiday"):
            if getattr(self, name) < 0:
                raise ValueError(f"Overtime rate '{name}' cannot be negative")

    def rate_for(self, bucket: str) -> Decimal:
        """Multiplier for a bucket name (``OvertimeBucket`` values)."""
        return getattr(self, str(bucket))

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None,
        fallback: OvertimeRates | None = None,
    ) -> OvertimeRates:
        """Build rates from a settings mapping; absent keys use ``fallback``."""
        base = fallback or cls()
        if not data:
            return base
        values = {}
        for name in ("tier1", "tier2", "night", "sunday", "holiday"):
            raw = data.get(name)
            values[name] = getattr(base, name) if raw is None else Decimal(str(raw))
        return cls(**values)


@dataclass(frozen=True)
class GlobalSettings:
    """Organisation-wide payroll configuration (singleton document)."""

    overtime_rates: OvertimeRates | None = None
    absence_penalty_amount: Decimal | None = None
    geofence_radius: int | None = None
    break_duration_minutes: int = 0

    def __post_init__(self) -> None:
        if self.break_duration_minutes < 0:
            raise ValueError("break_duration_minutes cannot be negative")
        if self.absence_penalty_amount is not None and self.absence_penalty_amount < 0:
            raise ValueError("absence_penalty_amount cannot be negative")
