"""
Payroll Result Models (``payroll_modules.payroll.models``).

Responsibility
--------------
Frozen value objects returned by ``PayrollService``: the full payroll
breakdown for one employee and cycle, and the result wrapper that
distinguishes a computed payslip from an "insufficient data" outcome,
plus the hours report and the career review.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Composes the
engine result types; adds no arithmetic of its own beyond sums.

Invariants enforced
-------------------
* ``net_pay == gross - total_deductions`` exactly.
* A ``PayslipResult`` carries a breakdown if and only if its status is
  ``COMPUTED``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_engines.career import CareerAdvancement
from payroll_engines.compensation import CompensationResult
from payroll_engines.deductions import StatutoryDeductions
from payroll_engines.hours import DayHours, MonthlyHours
from payroll_engines.leave import LeaveAccrual
from payroll_engines.overtime import OvertimeBreakdown
from payroll_engines.work_calendar import PayrollCycle


class PayslipStatus(str, Enum):
    """Outcome of a payslip calculation."""

    COMPUTED = "computed"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class PayrollBreakdown:
    """Everything that goes on one payslip."""

    employee_id: str | None
    currency: str
    cycle: PayrollCycle
    as_of: date
    overtime: OvertimeBreakdown
    compensation: CompensationResult
    deductions: StatutoryDeductions
    leave: LeaveAccrual
    leave_pay_allocation: Decimal
    config_checksum: str = ""

    @property
    def gross(self) -> Decimal:
        return self.compensation.gross

    @property
    def total_deductions(self) -> Decimal:
        return self.deductions.total

    @property
    def net_pay(self) -> Decimal:
        return self.gross - self.total_deductions

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-friendly representation (amounts as strings)."""
        comp = self.compensation
        att = comp.attendance
        ded = self.deductions
        return {
            "employeeId": self.employee_id,
            "currency": self.currency,
            "cycle": {
                "id": self.cycle.cycle_id,
                "start": self.cycle.start.isoformat(),
                "end": self.cycle.end.isoformat(),
            },
            "asOf": self.as_of.isoformat(),
            "hourlyRate": str(self.overtime.hourly_rate),
            "overtime": {
                line.bucket.value: {
                    "minutes": line.minutes,
                    "rate": str(line.rate),
                    "payout": str(line.payout),
                }
                for line in self.overtime.lines
            },
            "overtimePayout": str(self.overtime.total_payout),
            "attendance": {
                "workableDays": att.workable_days,
                "daysWorked": att.days_worked,
                "sickLeaveDays": att.sick_leave_days,
                "unjustifiedAbsences": att.unjustified_absences,
                "preRegistrationAbsences": att.pre_registration_absences,
            },
            "earnings": {
                "baseSalary": str(comp.base_salary),
                "proratedBase": str(comp.prorated_base),
                "seniorityYears": comp.seniority_years,
                "seniorityBonus": str(comp.seniority_bonus),
                "attendanceBonus": str(comp.attendance_bonus),
                "performanceBonus": str(comp.performance_bonus),
                "transportAllowance": str(comp.transport_allowance),
                "housingAllowance": str(comp.housing_allowance),
                "totalEarnings": str(comp.total_earnings),
                "absencePenalty": str(comp.absence_penalty),
            },
            "gross": str(self.gross),
            "deductions": {
                "pension": str(ded.pension),
                "localTax": str(ded.local_tax),
                "incomeTax": str(ded.income_tax),
                "incomeTaxSurcharge": str(ded.income_tax_surcharge),
                "broadcastFee": str(ded.broadcast_fee),
                "unionDues": str(ded.union_dues),
                "communalTax": str(ded.communal_tax),
            },
            "totalDeductions": str(self.total_deductions),
            "netPay": str(self.net_pay),
            "leave": {
                "cycleStart": self.leave.cycle_start.isoformat() if self.leave.cycle_start else None,
                "months": self.leave.months_in_cycle,
                "baseDays": str(self.leave.base_days),
                "seniorityYears": self.leave.seniority_years,
                "surplusFormula": self.leave.surplus_formula.value,
                "senioritySurplus": self.leave.seniority_surplus,
                "alternateSurplus": self.leave.alternate_surplus,
                "totalDays": str(self.leave.total_days),
                "leavePayAllocation": str(self.leave_pay_allocation),
            },
            "configChecksum": self.config_checksum,
        }


@dataclass(frozen=True)
class PayslipResult:
    """
    Result of ``PayrollService.calculate_payslip``.

    Guarantees:
        - ``breakdown`` is set exactly when ``status`` is COMPUTED.
        - ``missing_fields`` is non-empty exactly when ``status`` is
          INSUFFICIENT_DATA.
    """

    status: PayslipStatus
    breakdown: PayrollBreakdown | None = None
    missing_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if (self.status == PayslipStatus.COMPUTED) != (self.breakdown is not None):
            raise ValueError("breakdown must be present exactly when status is COMPUTED")
        if (self.status == PayslipStatus.INSUFFICIENT_DATA) != bool(self.missing_fields):
            raise ValueError("missing_fields must be set exactly when data is insufficient")

    @property
    def is_computed(self) -> bool:
        return self.status == PayslipStatus.COMPUTED

    @classmethod
    def computed(cls, breakdown: PayrollBreakdown) -> PayslipResult:
        return cls(status=PayslipStatus.COMPUTED, breakdown=breakdown)

    @classmethod
    def insufficient_data(cls, missing_fields: tuple[str, ...]) -> PayslipResult:
        return cls(status=PayslipStatus.INSUFFICIENT_DATA, missing_fields=missing_fields)


@dataclass(frozen=True)
class LeavePlan:
    """Annual leave entitlement and the return date if taken in one block."""

    seniority_years: int
    base_days: int
    seniority_surplus: int
    leave_start: date | None
    resume_date: date | None

    @property
    def total_days(self) -> int:
        return self.base_days + self.seniority_surplus


@dataclass(frozen=True)
class HoursReport:
    """Month-to-date hours and the current week's per-day breakdown."""

    employee_id: str | None
    as_of: date
    month: MonthlyHours
    week: tuple[DayHours, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "asOf": self.as_of.isoformat(),
            "regularHours": str(self.month.regular_hours),
            "overtimeHours": str(self.month.overtime_hours),
            "estimatedPayout": str(self.month.estimated_payout),
            "week": [
                {
                    "date": day.day.isoformat(),
                    "label": day.label,
                    "regular": str(day.regular_hours),
                    "overtime": str(day.overtime_hours),
                }
                for day in self.week
            ],
        }


@dataclass(frozen=True)
class CareerReview:
    """Graded employees split into those due for advancement soon and the rest."""

    as_of: date
    alerts: tuple[CareerAdvancement, ...]
    others: tuple[CareerAdvancement, ...]
    ineligible: tuple[str | None, ...] = ()
