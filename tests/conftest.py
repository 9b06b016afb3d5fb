"""
Pytest fixtures for the payroll test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- ``captured_logs`` for asserting on emitted JSON log records
- An in-memory SQLite engine for state-store tests
- Record factories and a deterministic clock
"""

import json
import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from io import StringIO

import pytest

from payroll_config import PayrollRules
from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.records import (
    AttendanceOverride,
    AttendanceStatus,
    Profile,
    TimeEntry,
)
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.calculate_payslip(...)
            logs = captured_logs()
            assert any(r["message"] == "payslip_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def sqlite_session_factory():
    """Fresh in-memory SQLite database with the kernel tables."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 3, 20, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def rules():
    return PayrollRules.with_defaults()


def make_entry(
    work_date: date,
    overtime: int = 0,
    shift_id: str = "morningB",
    duration: int | None = None,
    holiday: bool = False,
) -> TimeEntry:
    """Entry factory: duration defaults to a full shift plus the overtime."""
    return TimeEntry(
        work_date=work_date,
        duration_minutes=duration if duration is not None else 495 + overtime,
        overtime_minutes=overtime,
        shift_id=shift_id,
        start_time=time(8, 0),
        is_public_holiday=holiday,
    )


def make_profile(
    salary: str | None = "300000",
    hire_date: str | None = "2020-01-15",
    leave_start_date: str | None = None,
) -> Profile:
    return Profile(
        monthly_base_salary=None if salary is None else Decimal(salary),
        hire_date=hire_date,
        leave_start_date=leave_start_date,
        employee_id="emp-1",
    )


def sick(day: date) -> AttendanceOverride:
    return AttendanceOverride(day=day, status=AttendanceStatus.SICK_LEAVE)
