"""Tests for leave accrual, seniority surplus and leave planning helpers."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_profile
from payroll_engines.leave import (
    LeaveRules,
    SurplusFormula,
    annual_leave_entitlement,
    calculate_leave_accrual,
    leave_pay_allocation,
    leave_resume_date,
    seniority_surplus,
)

AS_OF = date(2024, 3, 20)


class TestSenioritySurplus:
    @pytest.mark.parametrize(
        "years,doubled,single",
        [(0, 0, 0), (4, 0, 0), (5, 2, 2), (6, 2, 2), (7, 4, 3), (9, 6, 4), (15, 12, 7)],
    )
    def test_both_formulas(self, years, doubled, single):
        assert seniority_surplus(years, SurplusFormula.DOUBLED) == doubled
        assert seniority_surplus(years, SurplusFormula.SINGLE) == single

    def test_custom_threshold(self):
        assert seniority_surplus(3, SurplusFormula.DOUBLED, threshold=3) == 2


class TestLeaveAccrual:
    def test_accrues_from_last_anniversary(self):
        accrual = calculate_leave_accrual(
            profile=make_profile(hire_date="2015-06-10"), as_of=AS_OF,
        )
        assert accrual.cycle_start == date(2023, 6, 10)
        assert accrual.months_in_cycle == 9
        assert accrual.base_days == Decimal("13.5")
        assert accrual.seniority_years == 8
        assert accrual.seniority_surplus == 4
        assert accrual.alternate_surplus == 3
        assert accrual.surplus_divergence == 1
        assert accrual.total_days == Decimal("17.5")

    def test_single_formula_configured(self):
        rules = LeaveRules(surplus_formula=SurplusFormula.SINGLE)
        accrual = calculate_leave_accrual(
            profile=make_profile(hire_date="2015-06-10"), as_of=AS_OF, rules=rules,
        )
        assert accrual.seniority_surplus == 3
        assert accrual.alternate_surplus == 4

    def test_leave_start_date_takes_precedence(self):
        accrual = calculate_leave_accrual(
            profile=make_profile(hire_date="2015-06-10", leave_start_date="2024-01-05"),
            as_of=AS_OF,
        )
        assert accrual.cycle_start == date(2024, 1, 5)
        assert accrual.base_days == Decimal("3.0")

    def test_future_leave_start_accrues_nothing(self):
        accrual = calculate_leave_accrual(
            profile=make_profile(leave_start_date="2024-06-01"), as_of=AS_OF,
        )
        assert accrual.base_days == Decimal("0")

    def test_malformed_dates_contribute_zero(self):
        accrual = calculate_leave_accrual(
            profile=make_profile(hire_date="??", leave_start_date="never"),
            as_of=AS_OF,
        )
        assert accrual.cycle_start is None
        assert accrual.total_days == Decimal("0")

    def test_junior_employee_has_no_surplus(self):
        accrual = calculate_leave_accrual(
            profile=make_profile(hire_date="2022-01-15"), as_of=AS_OF,
        )
        assert accrual.seniority_years == 2
        assert accrual.seniority_surplus == 0
        assert accrual.base_days == Decimal("3.0")


class TestLeaveHelpers:
    def test_allocation(self):
        assert leave_pay_allocation(Decimal("300000"), Decimal("3")) == Decimal("30000")

    def test_allocation_zero_days(self):
        assert leave_pay_allocation(Decimal("300000"), Decimal("0")) == Decimal("0")

    def test_entitlement(self):
        assert annual_leave_entitlement(0) == 18
        assert annual_leave_entitlement(9) == 24

    def test_resume_date_skips_sundays(self):
        # 18 working days after Monday 4 March 2024
        assert leave_resume_date(date(2024, 3, 4), 0) == date(2024, 3, 25)

    def test_invalid_rules(self):
        with pytest.raises(ValueError):
            LeaveRules(leave_pay_divisor=Decimal("0"))
