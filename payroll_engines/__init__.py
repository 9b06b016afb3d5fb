"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    payroll calculation engines.  This is the canonical import surface for
    higher layers (payroll_config, payroll_modules, payroll_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel (and sibling engine modules).
    MUST NOT import payroll_config, payroll_modules or payroll_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      "Today" is always an explicit ``as_of`` argument.
    - Decimal-only arithmetic for every amount and rate.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE records with
    engine name, version, input fingerprint and duration.

Usage:
    from payroll_engines.overtime import bucket_overtime, calculate_hourly_rate
    from payroll_engines.compensation import calculate_compensation
    from payroll_engines.deductions import calculate_statutory_deductions
    from payroll_engines.leave import calculate_leave_accrual
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines")

from payroll_engines.compensation import (
    AbsencePenaltyMethod,
    AbsencePenaltyRules,
    AttendanceSummary,
    BonusRules,
    CompensationResult,
    calculate_absence_penalty,
    calculate_compensation,
    summarize_attendance,
)
from payroll_engines.deductions import (
    DEFAULT_INCOME_TAX_BRACKETS,
    StatutoryDeductions,
    StatutoryRules,
    TaxBracket,
    annual_income_tax,
    calculate_statutory_deductions,
    monthly_income_tax,
    validate_brackets,
)
from payroll_engines.leave import (
    LeaveAccrual,
    LeaveRules,
    SurplusFormula,
    annual_leave_entitlement,
    calculate_leave_accrual,
    leave_pay_allocation,
    leave_resume_date,
    seniority_surplus,
)
from payroll_engines.overtime import (
    BucketLine,
    EntryClassification,
    OvertimeBreakdown,
    OvertimeBucket,
    OvertimePolicy,
    bucket_overtime,
    calculate_hourly_rate,
    classify_entry,
)
from payroll_engines.timekeeping import TimekeepingRules, close_time_entry
from payroll_engines.tracer import compute_input_fingerprint, traced_engine
from payroll_engines.work_calendar import (
    PayrollCycle,
    add_working_days,
    calendar_months_between,
    completed_years,
    is_workable_day,
    iso_week_key,
    most_recent_anniversary,
    parse_clock_time,
    parse_date_or_none,
    parse_iso_date,
    payroll_cycle_for,
)

__all__ = [
    "AbsencePenaltyMethod",
    "AbsencePenaltyRules",
    "AttendanceSummary",
    "BonusRules",
    "BucketLine",
    "CompensationResult",
    "DEFAULT_INCOME_TAX_BRACKETS",
    "EntryClassification",
    "LeaveAccrual",
    "LeaveRules",
    "OvertimeBreakdown",
    "OvertimeBucket",
    "OvertimePolicy",
    "PayrollCycle",
    "StatutoryDeductions",
    "StatutoryRules",
    "SurplusFormula",
    "TaxBracket",
    "TimekeepingRules",
    "add_working_days",
    "annual_income_tax",
    "annual_leave_entitlement",
    "bucket_overtime",
    "calculate_absence_penalty",
    "calculate_compensation",
    "calculate_hourly_rate",
    "calculate_leave_accrual",
    "calculate_statutory_deductions",
    "calendar_months_between",
    "classify_entry",
    "close_time_entry",
    "completed_years",
    "compute_input_fingerprint",
    "is_workable_day",
    "iso_week_key",
    "leave_pay_allocation",
    "leave_resume_date",
    "monthly_income_tax",
    "most_recent_anniversary",
    "parse_clock_time",
    "parse_date_or_none",
    "parse_iso_date",
    "payroll_cycle_for",
    "seniority_surplus",
    "summarize_attendance",
    "traced_engine",
    "validate_brackets",
]

logger.debug("engines_package_loaded", extra={"engine_count": 6})
