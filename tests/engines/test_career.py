"""Tests for seniority milestones and salary-grid advancement."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from conftest import make_profile
from payroll_engines.career import (
    CareerRules,
    GridPosition,
    SalaryGridEntry,
    apply_advancement,
    calculate_career_advancement,
    next_grid_step,
    partition_alerts,
    validate_salary_grid,
)
from payroll_kernel.exceptions import NoAdvancementAvailableError

AS_OF = date(2024, 3, 20)
GRID = (
    SalaryGridEntry("A", "1", Decimal("100000")),
    SalaryGridEntry("A", "2", Decimal("110000")),
    SalaryGridEntry("B", "1", Decimal("130000")),
)


def _graded(hire_date, category="A", echelon="2", employee_id="emp-1"):
    return replace(
        make_profile(hire_date=hire_date),
        category=category,
        echelon=echelon,
        employee_id=employee_id,
    )


def _advance(profile, as_of=AS_OF, rules=None):
    return calculate_career_advancement(profile=profile, grid=GRID, as_of=as_of, rules=rules)


class TestNextGridStep:
    def test_following_entry(self):
        step = next_grid_step(GRID, "A", "2")
        assert step.position == GridPosition.NEXT_AVAILABLE
        assert step.next_entry.grade == "B-1"
        assert step.next_entry.monthly_salary == Decimal("130000")

    def test_last_entry_is_top(self):
        assert next_grid_step(GRID, "B", "1").position == GridPosition.AT_TOP

    def test_unknown_grade_is_top(self):
        step = next_grid_step(GRID, "Z", "9")
        assert step.position == GridPosition.AT_TOP
        assert step.next_entry is None

    def test_missing_grade_is_ungraded(self):
        assert next_grid_step(GRID, None, "1").position == GridPosition.UNGRADED
        assert next_grid_step(GRID, "A", "").position == GridPosition.UNGRADED

    def test_duplicate_grade_rejected(self):
        with pytest.raises(ValueError, match="A-1"):
            validate_salary_grid(GRID + (SalaryGridEntry("A", "1", Decimal("1")),))

    def test_negative_salary_rejected(self):
        with pytest.raises(ValueError):
            SalaryGridEntry("A", "1", Decimal("-1"))


class TestCalculateCareerAdvancement:
    def test_milestone_within_alert_window(self):
        advancement = _advance(_graded("2018-04-10"))
        assert advancement.seniority_years == 5
        assert advancement.seniority_months == 11
        assert advancement.seniority_label == "5a 11m"
        assert advancement.milestone_years_reached == 3
        assert advancement.next_milestone_years == 6
        assert advancement.next_milestone_date == date(2024, 4, 10)
        assert advancement.days_until_next_milestone == 21
        assert advancement.is_alert
        assert advancement.is_early
        assert advancement.current_grade == "A-2"
        assert advancement.step.next_entry.grade == "B-1"

    def test_distant_milestone_no_alert(self):
        advancement = _advance(_graded("2020-01-15"))
        assert advancement.seniority_years == 4
        assert advancement.next_milestone_date == date(2026, 1, 15)
        assert not advancement.is_alert

    def test_milestone_just_reached_points_to_next(self):
        advancement = _advance(_graded("2021-03-20"))
        assert advancement.seniority_years == 3
        assert advancement.next_milestone_years == 6
        assert advancement.days_until_next_milestone == 1095
        assert not advancement.is_alert

    def test_alert_window_edges(self):
        profile = _graded("2018-04-10")
        assert _advance(profile, as_of=date(2024, 3, 11)).days_until_next_milestone == 30
        assert _advance(profile, as_of=date(2024, 3, 11)).is_alert
        assert not _advance(profile, as_of=date(2024, 3, 10)).is_alert

    def test_custom_interval(self):
        rules = CareerRules(milestone_interval_years=2, alert_window_days=0)
        advancement = _advance(_graded("2021-03-21"), rules=rules)
        assert advancement.next_milestone_years == 4
        assert not advancement.is_alert

    @pytest.mark.parametrize("hire_date,category,echelon", [
        (None, "A", "1"),
        ("not-a-date", "A", "1"),
        ("2018-04-10", None, "1"),
        ("2018-04-10", "A", None),
    ])
    def test_ineligible_profiles(self, hire_date, category, echelon):
        profile = replace(make_profile(hire_date=hire_date), category=category, echelon=echelon)
        assert _advance(profile) is None

    def test_emits_engine_trace(self, captured_logs):
        _advance(_graded("2018-04-10"))
        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"]
        assert traces[-1]["engine_name"] == "career"


class TestPartitionAndApply:
    def test_alerts_split_and_ordered_by_hire_date(self):
        later = _advance(_graded("2018-04-12", employee_id="late"))
        earlier = _advance(_graded("2018-04-10", employee_id="early"))
        quiet = _advance(_graded("2020-01-15", employee_id="quiet"))
        alerts, others = partition_alerts([later, quiet, earlier])
        assert [a.employee_id for a in alerts] == ["early", "late"]
        assert [a.employee_id for a in others] == ["quiet"]

    def test_apply_moves_to_next_step(self):
        profile = _graded("2018-04-10")
        updated = apply_advancement(profile, _advance(profile))
        assert (updated.category, updated.echelon) == ("B", "1")
        assert updated.monthly_base_salary == Decimal("130000")
        assert updated.hire_date == profile.hire_date

    def test_apply_at_top_raises(self):
        profile = _graded("2018-04-10", category="B", echelon="1")
        with pytest.raises(NoAdvancementAvailableError) as exc_info:
            apply_advancement(profile, _advance(profile))
        assert exc_info.value.position == "at_top"
