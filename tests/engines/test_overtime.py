"""
Tests for the weekly overtime bucketer.

Covers:
- Hourly rate derivation
- Holiday / Sunday short-circuit
- Night window overlap (evening and after-midnight starts)
- Weekly tier-1 cap with a running counter reset per ISO week
- Payout arithmetic and the reference scenario
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_entry
from payroll_config.schema import DEFAULT_SHIFTS
from payroll_engines.overtime import (
    OvertimeBucket,
    OvertimePolicy,
    bucket_overtime,
    calculate_hourly_rate,
    classify_entry,
)
from payroll_kernel.domain.records import OvertimeRates

SHIFTS = {s.shift_id: s for s in DEFAULT_SHIFTS}
MONDAY = date(2024, 3, 4)
SUNDAY = date(2024, 3, 10)


def _bucket(entries, hourly_rate=Decimal("1731")):
    return bucket_overtime(
        entries=entries,
        shifts=SHIFTS,
        rates=OvertimeRates(),
        hourly_rate=hourly_rate,
    )


class TestHourlyRate:
    def test_rounds_half_up_to_unit(self):
        assert calculate_hourly_rate(Decimal("300000")) == Decimal("1731")

    def test_zero_salary_gives_zero(self):
        assert calculate_hourly_rate(Decimal("0")) == Decimal("0")

    def test_missing_salary_gives_zero(self):
        assert calculate_hourly_rate(None) == Decimal("0")

    def test_custom_divisor(self):
        policy = OvertimePolicy(monthly_hours_divisor=Decimal("200"))
        assert calculate_hourly_rate(Decimal("300000"), policy) == Decimal("1500")


class TestClassifyEntry:
    """Single-entry classification."""

    def test_no_overtime_is_all_zero(self):
        classification, used = classify_entry(make_entry(MONDAY), SHIFTS)
        assert classification.total_minutes == 0
        assert used == 0

    def test_public_holiday_takes_everything(self):
        entry = make_entry(MONDAY, overtime=600, shift_id="afternoon", holiday=True)
        classification, used = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.HOLIDAY] == 600
        assert classification.minutes[OvertimeBucket.NIGHT] == 0
        assert used == 0

    def test_sunday_takes_everything(self):
        entry = make_entry(SUNDAY, overtime=300, shift_id="afternoon")
        classification, used = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.SUNDAY] == 300
        assert classification.minutes[OvertimeBucket.NIGHT] == 0
        assert used == 0

    def test_holiday_wins_over_sunday(self):
        entry = make_entry(SUNDAY, overtime=60, holiday=True)
        classification, _ = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.HOLIDAY] == 60
        assert classification.minutes[OvertimeBucket.SUNDAY] == 0

    def test_afternoon_overtime_into_night(self):
        """Afternoon ends 22:15, so all overtime sits inside 22:00-06:00."""
        entry = make_entry(MONDAY, overtime=120, shift_id="afternoon")
        classification, used = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 120
        assert classification.minutes[OvertimeBucket.TIER1] == 0
        assert used == 0

    def test_afternoon_overtime_past_six(self):
        """22:15 + 540 min = 07:15; 75 minutes fall after the night window."""
        entry = make_entry(MONDAY, overtime=540, shift_id="afternoon")
        classification, used = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 465
        assert classification.minutes[OvertimeBucket.TIER1] == 75
        assert used == 75

    def test_night_shift_overtime_after_six(self):
        """Night shift ends 06:15 next day: overtime starts after the window."""
        entry = make_entry(MONDAY, overtime=90, shift_id="night")
        classification, _ = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 0
        assert classification.minutes[OvertimeBucket.TIER1] == 90

    def test_morning_overtime_reaches_night(self):
        """Morning B ends 16:15; 400 minutes run to 22:55."""
        entry = make_entry(MONDAY, overtime=400)
        classification, _ = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 55
        assert classification.minutes[OvertimeBucket.TIER1] == 345

    def test_unknown_shift_skips_night_split(self):
        entry = make_entry(MONDAY, overtime=120, shift_id="mystery")
        classification, _ = classify_entry(entry, SHIFTS)
        assert classification.minutes[OvertimeBucket.NIGHT] == 0
        assert classification.minutes[OvertimeBucket.TIER1] == 120

    def test_tier1_capacity_respected(self):
        entry = make_entry(MONDAY, overtime=100)
        classification, used = classify_entry(entry, SHIFTS, tier1_used=450)
        assert classification.minutes[OvertimeBucket.TIER1] == 30
        assert classification.minutes[OvertimeBucket.TIER2] == 70
        assert used == 550

    def test_counter_beyond_cap_sends_all_to_tier2(self):
        entry = make_entry(MONDAY, overtime=60)
        classification, used = classify_entry(entry, SHIFTS, tier1_used=600)
        assert classification.minutes[OvertimeBucket.TIER1] == 0
        assert classification.minutes[OvertimeBucket.TIER2] == 60
        assert used == 660


class TestBucketOvertime:
    def test_reference_scenario(self):
        """300,000 salary, Morning B until 20:15: four hours of tier 1."""
        hourly = calculate_hourly_rate(Decimal("300000"))
        breakdown = _bucket([make_entry(MONDAY, overtime=240)], hourly)

        assert breakdown.hourly_rate == Decimal("1731")
        assert breakdown.minutes_for(OvertimeBucket.TIER1) == 240
        assert breakdown.minutes_for(OvertimeBucket.NIGHT) == 0
        assert breakdown.line(OvertimeBucket.TIER1).payout == Decimal("8308.8")
        assert breakdown.total_payout == Decimal("8308.8")

    def test_weekly_cap_spills_into_tier2(self):
        entries = [make_entry(date(2024, 3, 4 + i), overtime=120) for i in range(5)]
        breakdown = _bucket(entries)
        assert breakdown.minutes_for(OvertimeBucket.TIER1) == 480
        assert breakdown.minutes_for(OvertimeBucket.TIER2) == 120

    def test_counter_resets_each_iso_week(self):
        week1 = [make_entry(date(2024, 3, 4 + i), overtime=120) for i in range(5)]
        week2 = [make_entry(date(2024, 3, 11 + i), overtime=120) for i in range(5)]
        breakdown = _bucket(week2 + week1)
        assert breakdown.minutes_for(OvertimeBucket.TIER1) == 960
        assert breakdown.minutes_for(OvertimeBucket.TIER2) == 240

    def test_week_processed_in_date_order(self):
        """Input order must not change which entry lands in tier 2."""
        entries = [
            make_entry(date(2024, 3, 8), overtime=250),
            make_entry(date(2024, 3, 4), overtime=300),
        ]
        breakdown = _bucket(entries)
        by_date = {c.work_date: c for c in breakdown.entries}
        assert by_date[date(2024, 3, 4)].minutes[OvertimeBucket.TIER1] == 300
        assert by_date[date(2024, 3, 8)].minutes[OvertimeBucket.TIER1] == 180
        assert by_date[date(2024, 3, 8)].minutes[OvertimeBucket.TIER2] == 70

    def test_night_minutes_do_not_consume_cap(self):
        """Morning B ends 16:15, so 450 minutes run 105 minutes past 22:00."""
        entries = [
            make_entry(date(2024, 3, 4), overtime=450),
            make_entry(date(2024, 3, 8), overtime=100),
        ]
        breakdown = _bucket(entries)
        by_date = {c.work_date: c for c in breakdown.entries}
        assert by_date[date(2024, 3, 4)].minutes[OvertimeBucket.TIER1] == 345
        assert by_date[date(2024, 3, 4)].minutes[OvertimeBucket.NIGHT] == 105
        assert by_date[date(2024, 3, 8)].minutes[OvertimeBucket.TIER1] == 100
        assert breakdown.minutes_for(OvertimeBucket.TIER2) == 0

    def test_sunday_does_not_consume_cap(self):
        entries = [
            make_entry(date(2024, 3, 4), overtime=240),
            make_entry(date(2024, 3, 5), overtime=240),
            make_entry(SUNDAY, overtime=60),
        ]
        breakdown = _bucket(entries)
        assert breakdown.minutes_for(OvertimeBucket.TIER1) == 480
        assert breakdown.minutes_for(OvertimeBucket.TIER2) == 0
        assert breakdown.minutes_for(OvertimeBucket.NIGHT) == 0
        assert breakdown.minutes_for(OvertimeBucket.SUNDAY) == 60

    def test_year_boundary_uses_iso_year(self):
        """2024-12-30 and 2025-01-02 share ISO week 1 of 2025."""
        entries = [
            make_entry(date(2024, 12, 30), overtime=300),
            make_entry(date(2025, 1, 2), overtime=300),
        ]
        breakdown = _bucket(entries)
        assert breakdown.minutes_for(OvertimeBucket.TIER1) == 480
        assert breakdown.minutes_for(OvertimeBucket.TIER2) == 120

    def test_payout_uses_bucket_rates(self):
        entries = [
            make_entry(SUNDAY, overtime=60),
            make_entry(date(2024, 3, 5), overtime=60, holiday=True),
        ]
        rates = OvertimeRates(sunday=Decimal("2"), holiday=Decimal("3"))
        breakdown = bucket_overtime(
            entries=entries, shifts=SHIFTS, rates=rates, hourly_rate=Decimal("1000"),
        )
        assert breakdown.line(OvertimeBucket.SUNDAY).payout == Decimal("2000")
        assert breakdown.line(OvertimeBucket.HOLIDAY).payout == Decimal("3000")
        assert breakdown.total_payout == Decimal("5000")

    def test_zero_hourly_rate_zero_payout(self):
        breakdown = _bucket([make_entry(MONDAY, overtime=120)], Decimal("0"))
        assert breakdown.total_minutes == 120
        assert breakdown.total_payout == Decimal("0")

    def test_lines_in_bucket_order(self):
        breakdown = _bucket([])
        assert [line.bucket for line in breakdown.lines] == list(OvertimeBucket)
        assert breakdown.total_payout == Decimal("0")

    def test_emits_engine_trace(self, captured_logs):
        _bucket([make_entry(MONDAY, overtime=30)])
        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "overtime"
        assert len(traces[-1]["input_fingerprint"]) == 16


class TestOvertimePolicyValidation:
    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            OvertimePolicy(weekly_tier1_cap_minutes=-1)

    def test_inverted_night_window_rejected(self):
        with pytest.raises(ValueError):
            OvertimePolicy(night_start_hour=5, night_end_hour=6)

    def test_zero_divisor_rejected(self):
        with pytest.raises(ValueError):
            OvertimePolicy(monthly_hours_divisor=Decimal("0"))
