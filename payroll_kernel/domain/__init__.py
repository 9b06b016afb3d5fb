"""
Pure domain layer.

Holds the time abstraction and the input records shared by engines and
services.  No ORM, no database, no I/O.
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.records import (
    AttendanceOverride,
    AttendanceStatus,
    GlobalSettings,
    OvertimeRates,
    Profile,
    Shift,
    TimeEntry,
)

__all__ = [
    "AttendanceOverride",
    "AttendanceStatus",
    "Clock",
    "DeterministicClock",
    "GlobalSettings",
    "OvertimeRates",
    "Profile",
    "Shift",
    "SystemClock",
    "TimeEntry",
]
