"""
Payroll Module Service (``payroll_modules.payroll.service``).

Responsibility
--------------
Orchestrates one payslip calculation: precondition check, cycle filtering,
overtime bucketing, compensation, statutory deductions and leave accrual,
by delegating every computation to ``payroll_engines``.  Also produces the
monthly hours report and the career-advancement review.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``PayrollService`` is the sole public entry
point for payslip calculation.  Holds the active ``PayrollRules`` and an
injected ``Clock``; performs no I/O.

Invariants enforced
-------------------
* Missing salary or hire date yields ``INSUFFICIENT_DATA``; it is never
  raised.
* Entries and overrides outside the cycle never reach the engines.
* ``net_pay == gross - total_deductions`` exactly.

Failure modes
-------------
* ``DocumentValidationError`` from ``calculate_payslip_from_documents``
  when a raw document is structurally invalid.
* ``ValueError`` propagates from the engines only for programming errors.
* ``NoAdvancementAvailableError`` from ``approve_advancement`` when the
  employee has no next grid step.

Usage::

    service = PayrollService(rules=get_active_config(), clock=clock)
    result = service.calculate_payslip(
        profile=profile, time_entries=entries,
        settings=settings, overrides=overrides,
    )
    if result.is_computed:
        print(result.breakdown.net_pay)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from payroll_config.schema import PayrollRules
from payroll_engines.career import (
    CareerAdvancement,
    SalaryGridEntry,
    apply_advancement,
    calculate_career_advancement,
    partition_alerts,
)
from payroll_engines.compensation import calculate_compensation
from payroll_engines.deductions import calculate_statutory_deductions
from payroll_engines.hours import summarize_month_hours, summarize_week_hours
from payroll_engines.leave import (
    annual_leave_entitlement,
    calculate_leave_accrual,
    leave_pay_allocation,
    leave_resume_date,
)
from payroll_engines.overtime import bucket_overtime, calculate_hourly_rate
from payroll_engines.work_calendar import (
    PayrollCycle,
    completed_years,
    parse_date_or_none,
    payroll_cycle_for,
)
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.records import (
    AttendanceOverride,
    GlobalSettings,
    Profile,
    Shift,
    TimeEntry,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.payroll.documents import (
    parse_overrides,
    parse_profile,
    parse_settings,
    parse_shifts,
    parse_time_entries,
)
from payroll_modules.payroll.models import (
    CareerReview,
    HoursReport,
    LeavePlan,
    PayrollBreakdown,
    PayslipResult,
)

logger = get_logger("modules.payroll.service")


class PayrollService:
    """
    Payslip calculation facade.

    Contract:
        Every public method is a pure function of its arguments, the
        rules passed at construction and (only when ``as_of`` is omitted)
        the injected clock's current date.

    Guarantees:
        - Same inputs and ``as_of`` always produce the same breakdown.
        - Log records emitted during a call carry employee_id and
          cycle_id through ``LogContext``.

    Non-goals:
        - Fetching or persisting documents; callers supply materialized
          inputs.
    """

    def __init__(
        self,
        rules: PayrollRules | None = None,
        clock: Clock | None = None,
    ):
        self._rules = rules or PayrollRules.with_defaults()
        self._clock = clock or SystemClock()

    @property
    def rules(self) -> PayrollRules:
        return self._rules

    def cycle_for(self, day: date) -> PayrollCycle:
        return payroll_cycle_for(day, self._rules.cycle_start_day)

    def calculate_payslip(
        self,
        profile: Profile,
        time_entries: Iterable[TimeEntry],
        settings: GlobalSettings | None,
        overrides: Iterable[AttendanceOverride],
        cycle: PayrollCycle | None = None,
        as_of: date | None = None,
        shifts: Mapping[str, Shift] | None = None,
    ) -> PayslipResult:
        """
        Compute the payslip for one employee and cycle.

        Args:
            profile: Employee profile.
            time_entries: All known entries; out-of-cycle ones are ignored.
            settings: Global settings; None means built-in defaults.
            overrides: Attendance overrides; out-of-cycle ones are ignored.
            cycle: Cycle to compute.  Defaults to the cycle containing
                ``as_of``.
            as_of: "Today" for attendance and seniority.  Defaults to the
                clock's date.
            shifts: Shift catalog from the document store.  Entries with
                the same id replace the configured shifts.

        Returns:
            PayslipResult -- COMPUTED with a breakdown, or INSUFFICIENT_DATA
            with the missing field names.
        """
        rules = self._rules
        as_of = as_of or self._clock.today()
        cycle = cycle or self.cycle_for(as_of)
        settings = settings or GlobalSettings()

        with LogContext.bind(employee_id=profile.employee_id, cycle_id=cycle.cycle_id):
            missing = profile.missing_payroll_fields()
            if missing:
                logger.info(
                    "payslip_insufficient_data",
                    extra={"missing_fields": list(missing)},
                )
                return PayslipResult.insufficient_data(missing)

            logger.info("payslip_calculation_started", extra={"as_of": as_of})

            entries = tuple(e for e in time_entries if cycle.contains(e.work_date))
            cycle_overrides = tuple(o for o in overrides if cycle.contains(o.day))

            rates = settings.overtime_rates or rules.default_overtime_rates
            hourly_rate = calculate_hourly_rate(profile.monthly_base_salary, rules.overtime)
            overtime = bucket_overtime(
                entries=entries,
                shifts={**rules.shift_catalog, **(shifts or {})},
                rates=rates,
                hourly_rate=hourly_rate,
                policy=rules.overtime,
            )

            compensation = calculate_compensation(
                profile=profile,
                cycle=cycle,
                as_of=as_of,
                entries=entries,
                overrides=cycle_overrides,
                overtime_payout=overtime.total_payout,
                rules=rules.bonuses,
                penalty_rules=rules.absence_penalty,
                absence_penalty_amount=settings.absence_penalty_amount,
            )

            deductions = calculate_statutory_deductions(
                gross=compensation.gross,
                earnings_base=compensation.total_earnings,
                transport_allowance=compensation.transport_allowance,
                housing_allowance=compensation.housing_allowance,
                prorated_base=compensation.prorated_base,
                rules=rules.statutory,
            )

            leave = calculate_leave_accrual(profile=profile, as_of=as_of, rules=rules.leave)
            allocation = leave_pay_allocation(compensation.gross, leave.total_days, rules.leave)

            breakdown = PayrollBreakdown(
                employee_id=profile.employee_id,
                currency=profile.currency or rules.currency,
                cycle=cycle,
                as_of=as_of,
                overtime=overtime,
                compensation=compensation,
                deductions=deductions,
                leave=leave,
                leave_pay_allocation=allocation,
                config_checksum=rules.checksum,
            )

            logger.info(
                "payslip_calculated",
                extra={
                    "gross": str(breakdown.gross),
                    "total_deductions": str(breakdown.total_deductions),
                    "net_pay": str(breakdown.net_pay),
                    "overtime_minutes": overtime.total_minutes,
                },
            )
            return PayslipResult.computed(breakdown)

    def calculate_payslip_from_documents(
        self,
        profile: Mapping[str, Any],
        time_entries: Iterable[Mapping[str, Any]],
        settings: Mapping[str, Any] | None,
        overrides: Iterable[Mapping[str, Any]],
        cycle: PayrollCycle | None = None,
        as_of: date | None = None,
        shifts: Iterable[Mapping[str, Any]] | None = None,
    ) -> PayslipResult:
        """Validate raw store documents, then ``calculate_payslip``.

        Raises:
            DocumentValidationError: a document is structurally invalid.
        """
        return self.calculate_payslip(
            profile=parse_profile(profile),
            time_entries=parse_time_entries(time_entries),
            settings=parse_settings(settings, self._rules.default_overtime_rates),
            overrides=parse_overrides(overrides),
            cycle=cycle,
            as_of=as_of,
            shifts=parse_shifts(shifts) if shifts is not None else None,
        )

    def plan_annual_leave(
        self,
        profile: Profile,
        leave_start: date | None = None,
        as_of: date | None = None,
    ) -> LeavePlan:
        """Annual entitlement and resume date for a leave block.

        ``leave_start`` defaults to the profile's leave start date; with
        neither, no resume date is produced.
        """
        as_of = as_of or self._clock.today()
        hire_date = parse_date_or_none(profile.hire_date, "hire_date")
        years = max(0, completed_years(hire_date, as_of)) if hire_date else 0
        start = leave_start or parse_date_or_none(profile.leave_start_date, "leave_start_date")

        leave_rules = self._rules.leave
        entitlement = annual_leave_entitlement(years, leave_rules)
        plan = LeavePlan(
            seniority_years=years,
            base_days=leave_rules.annual_base_days,
            seniority_surplus=entitlement - leave_rules.annual_base_days,
            leave_start=start,
            resume_date=leave_resume_date(start, years, leave_rules) if start else None,
        )
        logger.info(
            "annual_leave_planned",
            extra={
                "employee_id": profile.employee_id,
                "total_days": plan.total_days,
                "resume_date": plan.resume_date,
            },
        )
        return plan

    def summarize_hours(
        self,
        profile: Profile,
        time_entries: Iterable[TimeEntry],
        settings: GlobalSettings | None = None,
        as_of: date | None = None,
        shifts: Mapping[str, Shift] | None = None,
    ) -> HoursReport:
        """Month-to-date hours with a payout estimate, and this week by day.

        A profile without a salary gets a zero estimate rather than
        ``INSUFFICIENT_DATA``; the hours themselves need no salary.
        """
        rules = self._rules
        as_of = as_of or self._clock.today()
        settings = settings or GlobalSettings()
        entries = tuple(time_entries)

        with LogContext.bind(employee_id=profile.employee_id):
            month = summarize_month_hours(
                entries=entries,
                as_of=as_of,
                shifts={**rules.shift_catalog, **(shifts or {})},
                rates=settings.overtime_rates or rules.default_overtime_rates,
                hourly_rate=calculate_hourly_rate(profile.monthly_base_salary, rules.overtime),
                policy=rules.overtime,
            )
            report = HoursReport(
                employee_id=profile.employee_id,
                as_of=as_of,
                month=month,
                week=summarize_week_hours(entries, as_of),
            )
            logger.info(
                "hours_summarized",
                extra={
                    "regular_hours": str(month.regular_hours),
                    "overtime_hours": str(month.overtime_hours),
                    "estimated_payout": str(month.estimated_payout),
                },
            )
        return report

    def review_career(
        self,
        profiles: Iterable[Profile],
        grid: Sequence[SalaryGridEntry],
        as_of: date | None = None,
    ) -> CareerReview:
        """Next advancement for every graded profile, alerts first."""
        as_of = as_of or self._clock.today()
        advancements = []
        ineligible = []
        for profile in profiles:
            advancement = calculate_career_advancement(
                profile=profile, grid=grid, as_of=as_of, rules=self._rules.career,
            )
            if advancement is None:
                ineligible.append(profile.employee_id)
            else:
                advancements.append(advancement)

        alerts, others = partition_alerts(advancements)
        logger.info(
            "career_reviewed",
            extra={
                "alert_count": len(alerts),
                "other_count": len(others),
                "ineligible_count": len(ineligible),
            },
        )
        return CareerReview(
            as_of=as_of, alerts=alerts, others=others, ineligible=tuple(ineligible),
        )

    def approve_advancement(
        self,
        profile: Profile,
        advancement: CareerAdvancement,
    ) -> Profile:
        """Profile at the next grid step.

        Approval before the milestone date is allowed; it is logged as
        early so the caller can require a confirmation.

        Raises:
            NoAdvancementAvailableError: nothing above the current grade.
        """
        with LogContext.bind(employee_id=profile.employee_id):
            updated = apply_advancement(profile, advancement)
            logger.info(
                "advancement_approved",
                extra={
                    "from_grade": advancement.current_grade,
                    "to_grade": f"{updated.category}-{updated.echelon}",
                    "milestone_years": advancement.next_milestone_years,
                    "early": advancement.is_early,
                    "days_early": max(0, advancement.days_until_next_milestone),
                },
            )
        return updated
