"""
Property-based tests for the payroll engines.

Invariants checked over generated inputs:
- Every overtime minute of an entry lands in exactly one bucket
- Tier-1 minutes never exceed the weekly cap within one ISO week
- Holiday and Sunday entries never produce night minutes
- net == gross - total deductions, for the engine and the full service
- Accrued leave is non-negative and non-decreasing while seniority is fixed
- Income tax is continuous at every bracket boundary
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from conftest import make_entry, make_profile
from payroll_config.schema import DEFAULT_SHIFTS
from payroll_engines.deductions import (
    DEFAULT_INCOME_TAX_BRACKETS,
    annual_income_tax,
    calculate_statutory_deductions,
)
from payroll_engines.leave import calculate_leave_accrual
from payroll_engines.overtime import (
    OvertimeBucket,
    bucket_overtime,
    classify_entry,
)
from payroll_kernel.domain.records import OvertimeRates
from payroll_modules.payroll.service import PayrollService

SHIFTS = {s.shift_id: s for s in DEFAULT_SHIFTS}
WEEK_START = date(2024, 3, 4)  # Monday
_SUPPRESSED = [HealthCheck.too_slow, HealthCheck.function_scoped_fixture]

shift_ids = st.sampled_from(sorted(SHIFTS) + ["unknown"])
overtime_minutes = st.integers(min_value=0, max_value=900)
any_day = st.dates(min_value=date(2023, 1, 1), max_value=date(2025, 12, 31))
amounts = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("5000000"), places=2,
    allow_nan=False, allow_infinity=False,
)


@st.composite
def week_entries(draw):
    """Entries for Monday-Saturday of one ISO week."""
    days = draw(st.lists(st.integers(min_value=0, max_value=5), max_size=12))
    return [
        make_entry(
            WEEK_START + timedelta(days=offset),
            overtime=draw(overtime_minutes),
            shift_id=draw(shift_ids),
        )
        for offset in days
    ]


class TestOvertimeProperties:
    @settings(suppress_health_check=_SUPPRESSED)
    @given(day=any_day, overtime=overtime_minutes, shift_id=shift_ids,
           holiday=st.booleans(), used=st.integers(min_value=0, max_value=1000))
    def test_minutes_conserved(self, day, overtime, shift_id, holiday, used):
        entry = make_entry(day, overtime=overtime, shift_id=shift_id, holiday=holiday)
        classification, _ = classify_entry(entry, SHIFTS, tier1_used=used)
        assert classification.total_minutes == overtime
        assert all(m >= 0 for m in classification.minutes.values())

    @settings(suppress_health_check=_SUPPRESSED)
    @given(day=any_day, overtime=overtime_minutes, shift_id=shift_ids)
    def test_holiday_and_sunday_never_night(self, day, overtime, shift_id):
        entry = make_entry(day, overtime=overtime, shift_id=shift_id, holiday=True)
        classification, _ = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 0

        sunday = day + timedelta(days=(6 - day.weekday()))
        entry = make_entry(sunday, overtime=overtime, shift_id=shift_id)
        classification, _ = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 0
        assert classification.minutes[OvertimeBucket.SUNDAY] == overtime

    @settings(deadline=None, suppress_health_check=_SUPPRESSED)
    @given(entries=week_entries())
    def test_weekly_cap(self, entries):
        breakdown = bucket_overtime(
            entries=entries, shifts=SHIFTS, rates=OvertimeRates(),
            hourly_rate=Decimal("1731"),
        )
        assert breakdown.minutes_for(OvertimeBucket.TIER1) <= 480
        assert breakdown.total_minutes == sum(e.overtime_minutes for e in entries)
        daytime = (
            breakdown.minutes_for(OvertimeBucket.TIER1)
            + breakdown.minutes_for(OvertimeBucket.TIER2)
        )
        if daytime > 480:
            assert breakdown.minutes_for(OvertimeBucket.TIER1) == 480


class TestDeductionProperties:
    @settings(deadline=None, suppress_health_check=_SUPPRESSED)
    @given(gross=amounts, transport=amounts, housing=amounts, base=amounts)
    def test_net_is_gross_minus_total(self, gross, transport, housing, base):
        result = calculate_statutory_deductions(
            gross=gross,
            transport_allowance=transport,
            housing_allowance=housing,
            prorated_base=base,
        )
        assert result.net == gross - result.total
        assert result.income_tax >= 0

    @settings(suppress_health_check=_SUPPRESSED)
    @given(epsilon=st.decimals(
        min_value=Decimal("0.0001"), max_value=Decimal("0.01"), places=4,
    ))
    def test_tax_continuous_at_boundaries(self, epsilon):
        for bracket in DEFAULT_INCOME_TAX_BRACKETS[1:]:
            below = annual_income_tax(bracket.lower)
            above = annual_income_tax(bracket.lower + epsilon)
            assert Decimal("0") <= above - below <= epsilon


class TestLeaveProperties:
    @settings(suppress_health_check=_SUPPRESSED)
    @given(
        first=st.dates(min_value=date(2024, 1, 2), max_value=date(2024, 12, 31)),
        gap=st.integers(min_value=0, max_value=300),
    )
    def test_accrual_monotonic_with_fixed_seniority(self, first, gap):
        profile = make_profile(hire_date="2010-01-01", leave_start_date="2024-01-01")
        second = min(first + timedelta(days=gap), date(2024, 12, 31))
        earlier = calculate_leave_accrual(profile=profile, as_of=first)
        later = calculate_leave_accrual(profile=profile, as_of=second)
        assert earlier.seniority_years == later.seniority_years
        assert Decimal("0") <= earlier.total_days <= later.total_days


class TestPayslipProperties:
    @settings(max_examples=30, deadline=None, suppress_health_check=_SUPPRESSED)
    @given(
        salary=st.integers(min_value=1, max_value=3_000_000),
        worked=st.lists(st.integers(min_value=0, max_value=24), unique=True, max_size=25),
        overtime=overtime_minutes,
    )
    def test_service_net_identity(self, salary, worked, overtime):
        service = PayrollService()
        as_of = date(2024, 3, 25)
        workable = service.cycle_for(as_of).workable_days()
        entries = [make_entry(workable[i], overtime=overtime) for i in worked]
        result = service.calculate_payslip(
            profile=make_profile(salary=str(salary)),
            time_entries=entries, settings=None, overrides=(), as_of=as_of,
        )
        breakdown = result.breakdown
        assert breakdown.net_pay == breakdown.gross - breakdown.total_deductions
        assert breakdown.compensation.attendance.days_worked == len(worked)
