"""
PayrollRules schema.

The frozen, validated rule set every payroll calculation runs under.  YAML
sets are parsed into this type by ``payroll_config.loader``; services hold
one instance for the duration of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Any, Self

from payroll_engines.career import CareerRules
from payroll_engines.compensation import AbsencePenaltyRules, BonusRules
from payroll_engines.deductions import StatutoryRules
from payroll_engines.leave import LeaveRules
from payroll_engines.overtime import OvertimePolicy
from payroll_engines.timekeeping import TimekeepingRules
from payroll_engines.work_calendar import DEFAULT_CYCLE_START_DAY
from payroll_kernel.domain.records import OvertimeRates, Shift
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.schema")

DEFAULT_SHIFTS: tuple[Shift, ...] = (
    Shift("morningA", "Morning A", time(6, 0), time(14, 15)),
    Shift("morningB", "Morning B", time(8, 0), time(16, 15)),
    Shift("afternoon", "Afternoon", time(14, 0), time(22, 15)),
    Shift("night", "Night", time(22, 0), time(6, 15)),
)


@dataclass(frozen=True)
class PayrollRules:
    """
    Complete payroll rule set.

    Contract:
        Built once per run (``get_active_config`` or ``with_defaults``) and
        passed down to services; engines receive the individual rule
        objects, never this aggregate.

    Guarantees:
        - Shift identifiers are unique.
        - Each nested rule object has passed its own validation.
    """

    config_id: str = "default"
    version: int = 1
    checksum: str = ""
    currency: str = "XAF"
    cycle_start_day: int = DEFAULT_CYCLE_START_DAY
    default_overtime_rates: OvertimeRates = field(default_factory=OvertimeRates)
    overtime: OvertimePolicy = field(default_factory=OvertimePolicy)
    bonuses: BonusRules = field(default_factory=BonusRules)
    absence_penalty: AbsencePenaltyRules = field(default_factory=AbsencePenaltyRules)
    statutory: StatutoryRules = field(default_factory=StatutoryRules)
    leave: LeaveRules = field(default_factory=LeaveRules)
    timekeeping: TimekeepingRules = field(default_factory=TimekeepingRules)
    career: CareerRules = field(default_factory=CareerRules)
    shifts: tuple[Shift, ...] = DEFAULT_SHIFTS

    def __post_init__(self) -> None:
        ids = [shift.shift_id for shift in self.shifts]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate shift ids in catalog: {ids}")
        if not 2 <= self.cycle_start_day <= 28:
            raise ValueError("cycle_start_day must be between 2 and 28")
        if self.version < 1:
            raise ValueError("version must be at least 1")

    @property
    def shift_catalog(self) -> dict[str, Shift]:
        return {shift.shift_id: shift for shift in self.shifts}

    @classmethod
    def with_defaults(cls) -> Self:
        """Rule set with the built-in defaults (no file access)."""
        logger.info("payroll_rules_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any], checksum: str = "") -> Self:
        """Build rules from a parsed YAML mapping."""
        from payroll_config.loader import parse_payroll_rules

        logger.info(
            "payroll_rules_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return parse_payroll_rules(data, checksum=checksum)
