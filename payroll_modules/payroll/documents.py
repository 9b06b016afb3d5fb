"""
Document Boundary Validation (``payroll_modules.payroll.documents``).

Responsibility
--------------
Convert raw document-store payloads (camelCase dicts) into the typed
records of ``payroll_kernel.domain.records``.  Nothing untyped reaches the
engines.

Architecture position
---------------------
**Modules layer** -- the boundary between the external document store and
the pure engines.  No I/O of its own; callers hand in already-fetched dicts.

Invariants enforced
-------------------
* Minute counts are non-negative integers and ``overtime <= duration``.
* Wall-clock times are ``HH:mm``.
* Attendance statuses are one of the known values.
* Amounts are converted to ``Decimal`` through ``str``.

Failure modes
-------------
* Structural problems raise ``DocumentValidationError``.
* Entries and overrides whose date is malformed are skipped with a
  WARNING (zero contribution), matching how the calculations treat
  malformed dates.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from payroll_engines.career import SalaryGridEntry, validate_salary_grid
from payroll_engines.work_calendar import parse_clock_time, parse_iso_date
from payroll_kernel.domain.records import (
    AttendanceOverride,
    AttendanceStatus,
    GlobalSettings,
    OvertimeRates,
    Profile,
    Shift,
    TimeEntry,
)
from payroll_kernel.exceptions import DocumentValidationError, MalformedDateError
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.documents")


def _require_mapping(document_type: str, doc: Any) -> Mapping[str, Any]:
    if not isinstance(doc, Mapping):
        raise DocumentValidationError(document_type, "<document>", doc, "expected a mapping")
    return doc


def _amount(document_type: str, field: str, value: Any) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise DocumentValidationError(document_type, field, value, "expected a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise DocumentValidationError(document_type, field, value, "expected a number") from None
    if not amount.is_finite():
        raise DocumentValidationError(document_type, field, value, "must be finite")
    if amount < 0:
        raise DocumentValidationError(document_type, field, value, "cannot be negative")
    return amount


def _non_negative_int(document_type: str, field: str, value: Any, default: int | None = None) -> int:
    if value is None:
        if default is not None:
            return default
        raise DocumentValidationError(document_type, field, value, "is required")
    if isinstance(value, bool):
        raise DocumentValidationError(document_type, field, value, "expected a whole number")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise DocumentValidationError(document_type, field, value, "expected a whole number")
    if value < 0:
        raise DocumentValidationError(document_type, field, value, "cannot be negative")
    return value


def _optional_str(document_type: str, field: str, value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DocumentValidationError(document_type, field, value, "expected a string")
    return value


def _clock_time(document_type: str, field: str, value: Any):
    if value is None:
        return None
    try:
        return parse_clock_time(value)
    except ValueError:
        raise DocumentValidationError(document_type, field, value, "expected HH:mm") from None


def parse_profile(doc: Any) -> Profile:
    """Build a ``Profile`` from a user document.

    Dates are kept as raw strings; the calculations parse them tolerantly.
    """
    doc = _require_mapping("profile", doc)
    return Profile(
        monthly_base_salary=_amount("profile", "monthlyBaseSalary", doc.get("monthlyBaseSalary")),
        currency=_optional_str("profile", "currency", doc.get("currency")) or "XAF",
        hire_date=_optional_str("profile", "hireDate", doc.get("hireDate")),
        leave_start_date=_optional_str("profile", "leaveStartDate", doc.get("leaveStartDate")),
        employee_id=_optional_str("profile", "id", doc.get("id")),
        name=_optional_str("profile", "name", doc.get("name")),
        profession=_optional_str("profile", "profession", doc.get("profession")),
        role=_optional_str("profile", "role", doc.get("role")),
        category=_optional_str("profile", "category", doc.get("category")),
        echelon=_optional_str("profile", "echelon", doc.get("echelon")),
    )


def parse_time_entry(doc: Any) -> TimeEntry | None:
    """Build a ``TimeEntry``; returns None when the date is malformed."""
    doc = _require_mapping("time_entry", doc)
    try:
        work_date = parse_iso_date(doc.get("date"), "date")
    except MalformedDateError:
        logger.warning(
            "time_entry_skipped_malformed_date",
            extra={"entry_id": doc.get("id"), "value": str(doc.get("date"))},
        )
        return None

    shift_id = doc.get("shiftId")
    if not isinstance(shift_id, str) or not shift_id:
        raise DocumentValidationError("time_entry", "shiftId", shift_id, "is required")

    duration = _non_negative_int("time_entry", "duration", doc.get("duration"))
    overtime = _non_negative_int("time_entry", "overtimeDuration", doc.get("overtimeDuration"), default=0)
    if overtime > duration:
        raise DocumentValidationError(
            "time_entry", "overtimeDuration", overtime,
            f"exceeds duration ({duration})",
        )

    holiday = doc.get("isPublicHoliday", False)
    if not isinstance(holiday, bool):
        raise DocumentValidationError("time_entry", "isPublicHoliday", holiday, "expected a boolean")

    return TimeEntry(
        work_date=work_date,
        duration_minutes=duration,
        overtime_minutes=overtime,
        shift_id=shift_id,
        start_time=_clock_time("time_entry", "startTime", doc.get("startTime")),
        end_time=_clock_time("time_entry", "endTime", doc.get("endTime")),
        is_public_holiday=holiday,
        location=_optional_str("time_entry", "location", doc.get("location")),
        entry_id=_optional_str("time_entry", "id", doc.get("id")),
    )


def parse_time_entries(docs: Iterable[Any]) -> tuple[TimeEntry, ...]:
    entries = (parse_time_entry(doc) for doc in docs)
    return tuple(e for e in entries if e is not None)


def parse_shift(doc: Any) -> Shift:
    doc = _require_mapping("shift", doc)
    shift_id = doc.get("id")
    if not isinstance(shift_id, str) or not shift_id:
        raise DocumentValidationError("shift", "id", shift_id, "is required")
    start = _clock_time("shift", "startTime", doc.get("startTime"))
    end = _clock_time("shift", "endTime", doc.get("endTime"))
    if start is None or end is None:
        raise DocumentValidationError("shift", "startTime/endTime", None, "both are required")
    return Shift(
        shift_id=shift_id,
        name=_optional_str("shift", "name", doc.get("name")) or shift_id,
        start_time=start,
        end_time=end,
    )


def parse_shifts(docs: Iterable[Any]) -> dict[str, Shift]:
    """Shift catalog keyed by id; a later document replaces an earlier one."""
    return {shift.shift_id: shift for shift in map(parse_shift, docs)}


def parse_salary_grid_entry(doc: Any) -> SalaryGridEntry:
    doc = _require_mapping("salary_grid_entry", doc)
    category = _optional_str("salary_grid_entry", "category", doc.get("category"))
    echelon = _optional_str("salary_grid_entry", "echelon", doc.get("echelon"))
    if not category or not echelon:
        raise DocumentValidationError(
            "salary_grid_entry", "category/echelon", doc, "both are required",
        )
    salary = _amount("salary_grid_entry", "sm", doc.get("sm"))
    if salary is None:
        raise DocumentValidationError("salary_grid_entry", "sm", None, "is required")
    return SalaryGridEntry(category=category, echelon=echelon, monthly_salary=salary)


def parse_salary_grid(docs: Iterable[Any]) -> tuple[SalaryGridEntry, ...]:
    """Grid entries in document order; duplicate grades are rejected."""
    grid = tuple(parse_salary_grid_entry(doc) for doc in docs)
    try:
        validate_salary_grid(grid)
    except ValueError as exc:
        raise DocumentValidationError("salary_grid", "entries", None, str(exc)) from None
    return grid


def parse_settings(doc: Any, default_rates: OvertimeRates | None = None) -> GlobalSettings:
    """Build ``GlobalSettings``; a missing document yields the defaults."""
    if doc is None:
        return GlobalSettings(overtime_rates=default_rates or OvertimeRates())
    doc = _require_mapping("settings", doc)

    raw_rates = doc.get("overtimeRates")
    if raw_rates is not None and not isinstance(raw_rates, Mapping):
        raise DocumentValidationError("settings", "overtimeRates", raw_rates, "expected a mapping")
    try:
        rates = OvertimeRates.from_mapping(raw_rates, fallback=default_rates)
    except (InvalidOperation, ValueError) as exc:
        raise DocumentValidationError("settings", "overtimeRates", raw_rates, str(exc)) from exc

    radius = doc.get("geofenceRadius")
    return GlobalSettings(
        overtime_rates=rates,
        absence_penalty_amount=_amount("settings", "absencePenaltyAmount", doc.get("absencePenaltyAmount")),
        geofence_radius=None if radius is None else _non_negative_int("settings", "geofenceRadius", radius),
        break_duration_minutes=_non_negative_int("settings", "breakDuration", doc.get("breakDuration"), default=0),
    )


def parse_override(doc: Any) -> AttendanceOverride | None:
    """Build an ``AttendanceOverride``; returns None when the id is not a date."""
    doc = _require_mapping("attendance_override", doc)
    try:
        day = parse_iso_date(doc.get("id"), "id")
    except MalformedDateError:
        logger.warning(
            "attendance_override_skipped_malformed_date",
            extra={"value": str(doc.get("id"))},
        )
        return None
    status = doc.get("status")
    try:
        return AttendanceOverride(day=day, status=AttendanceStatus(status))
    except ValueError:
        raise DocumentValidationError(
            "attendance_override", "status", status,
            f"expected one of {[s.value for s in AttendanceStatus]}",
        ) from None


def parse_overrides(docs: Iterable[Any]) -> tuple[AttendanceOverride, ...]:
    overrides = (parse_override(doc) for doc in docs)
    return tuple(o for o in overrides if o is not None)
