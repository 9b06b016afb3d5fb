"""
Weekly Overtime Bucketer (``payroll_engines.overtime``).

Responsibility
--------------
Split each time entry's overtime minutes into pay buckets and price them:

* **holiday** -- overtime worked on a public holiday.
* **sunday** -- overtime worked on a Sunday.
* **night** -- overtime overlapping the 22:00-06:00 window.
* **tier1** -- remaining daytime overtime, up to a weekly cap.
* **tier2** -- daytime overtime beyond the weekly cap.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Imports only ``payroll_kernel`` and sibling engine modules.

Invariants enforced
-------------------
* Every overtime minute of an entry lands in exactly one bucket.
* Tier-1 minutes never exceed the weekly cap within one ISO week; the cap
  is a running total over the week's entries sorted by date.
* Holiday and Sunday entries never reach the night logic.
* Decimal-only arithmetic for rates and payouts.

Failure modes
-------------
* Unknown shift identifiers are not errors: the night split is skipped and
  all minutes go to the daytime tiers (logged at DEBUG).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from payroll_engines.tracer import traced_engine
from payroll_engines.work_calendar import SUNDAY, iso_week_key
from payroll_kernel.domain.records import OvertimeRates, Shift, TimeEntry
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.overtime")

_ZERO = Decimal("0")
_SIXTY = Decimal("60")


class OvertimeBucket(str, Enum):
    """Overtime pay bucket, in payslip display order."""

    TIER1 = "tier1"
    TIER2 = "tier2"
    NIGHT = "night"
    SUNDAY = "sunday"
    HOLIDAY = "holiday"


@dataclass(frozen=True)
class OvertimePolicy:
    """Weekly cap, night window and hourly-rate divisor."""

    weekly_tier1_cap_minutes: int = 480
    night_start_hour: int = 22
    night_end_hour: int = 6
    monthly_hours_divisor: Decimal = Decimal("173.33")

    def __post_init__(self) -> None:
        if self.weekly_tier1_cap_minutes < 0:
            raise ValueError("weekly_tier1_cap_minutes cannot be negative")
        if not 0 <= self.night_end_hour < self.night_start_hour <= 23:
            raise ValueError(
                "night window must satisfy 0 <= night_end_hour < night_start_hour <= 23"
            )
        if self.monthly_hours_divisor <= 0:
            raise ValueError("monthly_hours_divisor must be positive")


@dataclass(frozen=True)
class EntryClassification:
    """Bucket minutes for a single entry."""

    work_date: date
    minutes: Mapping[OvertimeBucket, int]

    @property
    def total_minutes(self) -> int:
        return sum(self.minutes.values())


@dataclass(frozen=True)
class BucketLine:
    """Minutes, rate and payout for one bucket."""

    bucket: OvertimeBucket
    minutes: int
    rate: Decimal
    payout: Decimal


@dataclass(frozen=True)
class OvertimeBreakdown:
    """Result of bucketing a set of entries."""

    hourly_rate: Decimal
    lines: tuple[BucketLine, ...]
    entries: tuple[EntryClassification, ...] = ()

    @property
    def total_minutes(self) -> int:
        return sum(line.minutes for line in self.lines)

    @property
    def total_payout(self) -> Decimal:
        return sum((line.payout for line in self.lines), _ZERO)

    def line(self, bucket: OvertimeBucket) -> BucketLine:
        for candidate in self.lines:
            if candidate.bucket == bucket:
                return candidate
        raise KeyError(bucket)

    def minutes_for(self, bucket: OvertimeBucket) -> int:
        return self.line(bucket).minutes


def calculate_hourly_rate(
    monthly_base_salary: Decimal | None,
    policy: OvertimePolicy | None = None,
) -> Decimal:
    """Base salary divided by the monthly hours divisor, rounded to a unit.

    Returns 0 when the salary is missing or not positive.
    """
    if monthly_base_salary is None or monthly_base_salary <= 0:
        return _ZERO
    policy = policy or OvertimePolicy()
    return (monthly_base_salary / policy.monthly_hours_divisor).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )


def _night_overlap_minutes(
    entry: TimeEntry,
    shift: Shift,
    policy: OvertimePolicy,
) -> int:
    shift_start = datetime.combine(entry.work_date, shift.start_time)
    shift_end = datetime.combine(entry.work_date, shift.end_time)
    if shift_end <= shift_start:
        shift_end += timedelta(days=1)

    overtime_start = shift_end
    overtime_end = overtime_start + timedelta(minutes=entry.overtime_minutes)
    day_of_overtime = datetime.combine(overtime_start.date(), datetime.min.time())

    if overtime_start.hour < policy.night_end_hour:
        night_start = day_of_overtime - timedelta(days=1) + timedelta(hours=policy.night_start_hour)
        night_end = day_of_overtime + timedelta(hours=policy.night_end_hour)
    else:
        night_start = day_of_overtime + timedelta(hours=policy.night_start_hour)
        night_end = day_of_overtime + timedelta(days=1, hours=policy.night_end_hour)

    overlap = min(overtime_end, night_end) - max(overtime_start, night_start)
    return max(0, int(overlap.total_seconds() // 60))


def classify_entry(
    entry: TimeEntry,
    shifts: Mapping[str, Shift],
    tier1_used: int = 0,
    policy: OvertimePolicy | None = None,
) -> tuple[EntryClassification, int]:
    """Classify one entry's overtime minutes.

    Args:
        entry: The entry to classify.
        shifts: Shift catalog keyed by shift id.
        tier1_used: Daytime overtime minutes already counted this week.
        policy: Cap and night window.

    Returns:
        Tuple of (classification, updated weekly daytime counter).
    """
    policy = policy or OvertimePolicy()
    minutes = {bucket: 0 for bucket in OvertimeBucket}
    remaining = entry.overtime_minutes

    if remaining <= 0:
        return EntryClassification(entry.work_date, minutes), tier1_used

    if entry.is_public_holiday:
        minutes[OvertimeBucket.HOLIDAY] = remaining
        return EntryClassification(entry.work_date, minutes), tier1_used

    if entry.work_date.weekday() == SUNDAY:
        minutes[OvertimeBucket.SUNDAY] = remaining
        return EntryClassification(entry.work_date, minutes), tier1_used

    shift = shifts.get(entry.shift_id)
    if shift is not None:
        night = min(remaining, _night_overlap_minutes(entry, shift, policy))
        minutes[OvertimeBucket.NIGHT] = night
        remaining -= night
    else:
        logger.debug(
            "unknown_shift_night_split_skipped",
            extra={"shift_id": entry.shift_id, "work_date": entry.work_date},
        )

    if remaining > 0:
        capacity = max(0, policy.weekly_tier1_cap_minutes - tier1_used)
        to_tier1 = min(remaining, capacity)
        minutes[OvertimeBucket.TIER1] = to_tier1
        minutes[OvertimeBucket.TIER2] = remaining - to_tier1
        tier1_used += remaining

    return EntryClassification(entry.work_date, minutes), tier1_used


@traced_engine("overtime", "1.0", fingerprint_fields=("entries", "rates", "hourly_rate"))
def bucket_overtime(
    *,
    entries: Iterable[TimeEntry],
    shifts: Mapping[str, Shift],
    rates: OvertimeRates,
    hourly_rate: Decimal,
    policy: OvertimePolicy | None = None,
) -> OvertimeBreakdown:
    """Bucket and price overtime for a set of entries.

    Entries are grouped by ISO week and processed in date order inside each
    week; the weekly daytime counter resets at every week boundary.

    Payout per bucket = minutes / 60 * hourly_rate * bucket rate.
    """
    policy = policy or OvertimePolicy()
    entries = tuple(entries)

    weeks: dict[tuple[int, int], list[TimeEntry]] = defaultdict(list)
    for entry in entries:
        weeks[iso_week_key(entry.work_date)].append(entry)

    totals = {bucket: 0 for bucket in OvertimeBucket}
    classifications: list[EntryClassification] = []

    for week_key in sorted(weeks):
        tier1_used = 0
        for entry in sorted(weeks[week_key], key=lambda e: e.work_date):
            classification, tier1_used = classify_entry(
                entry, shifts, tier1_used, policy,
            )
            classifications.append(classification)
            for bucket, count in classification.minutes.items():
                totals[bucket] += count

    lines = []
    for bucket in OvertimeBucket:
        rate = rates.rate_for(bucket.value)
        payout = Decimal(totals[bucket]) * hourly_rate * rate / _SIXTY
        lines.append(BucketLine(bucket, totals[bucket], rate, payout))

    breakdown = OvertimeBreakdown(
        hourly_rate=hourly_rate,
        lines=tuple(lines),
        entries=tuple(classifications),
    )
    logger.debug(
        "overtime_bucketed",
        extra={
            "entry_count": len(entries),
            "week_count": len(weeks),
            "total_minutes": breakdown.total_minutes,
        },
    )
    return breakdown
