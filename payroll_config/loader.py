"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads a payroll rule-set YAML file and parses it into the frozen rule
objects consumed by the engines.  Runtime callers go through
``payroll_config.get_active_config()``; this module is the tooling under it.

Architecture position
---------------------
**Config layer** -- sits above ``payroll_engines`` (it builds their rule
objects) and below ``payroll_modules`` / ``payroll_services``.

Invariants enforced
-------------------
* Numbers are parsed into ``Decimal`` via ``str`` so YAML floats never leak
  binary rounding into rates.
* Absent sections fall back to the engine defaults; present sections are
  validated by the rule objects' own ``__post_init__``.
* ``compute_checksum`` is a deterministic SHA-256 over canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad values  -> ``ValueError`` / ``KeyError`` propagate; the caller wraps
  them in ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import DEFAULT_SHIFTS, PayrollRules
from payroll_engines.career import CareerRules
from payroll_engines.compensation import (
    AbsencePenaltyMethod,
    AbsencePenaltyRules,
    BonusRules,
)
from payroll_engines.deductions import (
    DEFAULT_INCOME_TAX_BRACKETS,
    StatutoryRules,
    TaxBracket,
)
from payroll_engines.leave import LeaveRules, SurplusFormula
from payroll_engines.overtime import OvertimePolicy
from payroll_engines.timekeeping import TimekeepingRules
from payroll_engines.work_calendar import DEFAULT_CYCLE_START_DAY, parse_clock_time
from payroll_kernel.domain.records import OvertimeRates, Shift


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}")
    return Decimal(str(value))


def _decimal_fields(data: dict[str, Any], names: tuple[str, ...]) -> dict[str, Decimal]:
    return {name: _decimal(data[name]) for name in names if name in data}


def _int_fields(data: dict[str, Any], names: tuple[str, ...]) -> dict[str, int]:
    return {name: int(data[name]) for name in names if name in data}


def parse_overtime_policy(data: dict[str, Any]) -> OvertimePolicy:
    """Parse the ``overtime`` section (excluding default rates)."""
    return OvertimePolicy(
        **_int_fields(data, ("weekly_tier1_cap_minutes", "night_start_hour", "night_end_hour")),
        **_decimal_fields(data, ("monthly_hours_divisor",)),
    )


def parse_bonus_rules(data: dict[str, Any]) -> BonusRules:
    return BonusRules(
        **_decimal_fields(
            data,
            (
                "seniority_rate_per_year",
                "attendance_bonus",
                "performance_bonus",
                "monthly_transport_allowance",
                "housing_rate",
            ),
        ),
        **_int_fields(data, ("transport_reference_days",)),
    )


def parse_absence_penalty(data: dict[str, Any]) -> AbsencePenaltyRules:
    kwargs: dict[str, Any] = _decimal_fields(
        data, ("salary_component", "transport_component"),
    )
    if "method" in data:
        kwargs["method"] = AbsencePenaltyMethod(data["method"])
    return AbsencePenaltyRules(**kwargs)


def parse_tax_bracket(data: dict[str, Any]) -> TaxBracket:
    upper = data.get("upper")
    return TaxBracket(
        lower=_decimal(data["lower"]),
        upper=None if upper is None else _decimal(upper),
        rate=_decimal(data["rate"]),
        base_tax=_decimal(data.get("base_tax", 0)),
    )


def parse_statutory_rules(data: dict[str, Any]) -> StatutoryRules:
    brackets = DEFAULT_INCOME_TAX_BRACKETS
    if "income_tax_brackets" in data:
        brackets = tuple(parse_tax_bracket(b) for b in data["income_tax_brackets"])
    return StatutoryRules(
        **_decimal_fields(
            data,
            (
                "pension_rate",
                "local_tax_rate",
                "taxable_fraction",
                "surcharge_rate",
                "broadcast_fee",
                "union_dues_rate",
                "communal_tax",
            ),
        ),
        income_tax_brackets=brackets,
    )


def parse_leave_rules(data: dict[str, Any]) -> LeaveRules:
    kwargs: dict[str, Any] = {
        **_decimal_fields(data, ("days_per_month", "leave_pay_divisor")),
        **_int_fields(data, ("seniority_threshold_years", "annual_base_days")),
    }
    if "surplus_formula" in data:
        kwargs["surplus_formula"] = SurplusFormula(data["surplus_formula"])
    return LeaveRules(**kwargs)


def parse_timekeeping_rules(data: dict[str, Any]) -> TimekeepingRules:
    return TimekeepingRules(**_int_fields(data, ("break_threshold_minutes",)))


def parse_career_rules(data: dict[str, Any]) -> CareerRules:
    return CareerRules(
        **_int_fields(data, ("milestone_interval_years", "alert_window_days")),
    )


def parse_shift(data: dict[str, Any]) -> Shift:
    return Shift(
        shift_id=data["id"],
        name=data.get("name", data["id"]),
        start_time=parse_clock_time(data["start"]),
        end_time=parse_clock_time(data["end"]),
    )


def parse_payroll_rules(data: dict[str, Any], checksum: str = "") -> PayrollRules:
    """
    Parse a whole rule-set mapping.

    Postconditions:
        - Returns a frozen ``PayrollRules``; every section absent from
          ``data`` carries the engine defaults.
    """
    overtime = data.get("overtime") or {}
    shifts = DEFAULT_SHIFTS
    if "shifts" in data:
        shifts = tuple(parse_shift(s) for s in data["shifts"])

    return PayrollRules(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        checksum=checksum,
        currency=str(data.get("currency", "XAF")),
        cycle_start_day=int(data.get("cycle_start_day", DEFAULT_CYCLE_START_DAY)),
        default_overtime_rates=OvertimeRates.from_mapping(overtime.get("default_rates")),
        overtime=parse_overtime_policy(overtime),
        bonuses=parse_bonus_rules(data.get("bonuses") or {}),
        absence_penalty=parse_absence_penalty(data.get("absence_penalty") or {}),
        statutory=parse_statutory_rules(data.get("statutory") or {}),
        leave=parse_leave_rules(data.get("leave") or {}),
        timekeeping=parse_timekeeping_rules(data.get("timekeeping") or {}),
        career=parse_career_rules(data.get("career") or {}),
        shifts=shifts,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
