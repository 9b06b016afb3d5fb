"""
Clock Session Service (``payroll_services.clock_session``).

Responsibility
--------------
Clock-in / clock-out lifecycle for one employee.  The open session is held
in a ``StateStore`` under an explicit schema and TTL so that a client that
crashed between clock-in and clock-out can recover it; clock-out closes the
session into a ``TimeEntry`` via ``payroll_engines.timekeeping``.

Architecture position
---------------------
**Services layer** -- owns the wall clock (injected ``Clock``) and the
state store; delegates all arithmetic to the engines.

Failure modes
-------------
* ``UnknownShiftError`` -- clock-in on a shift not in the catalog.
* ``SessionAlreadyOpenError`` -- clock-in while a session is open.
* ``NoOpenSessionError`` -- clock-out with no open (or an expired) session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from payroll_config.schema import PayrollRules
from payroll_engines.timekeeping import close_time_entry
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.records import TimeEntry
from payroll_kernel.exceptions import (
    NoOpenSessionError,
    SessionAlreadyOpenError,
    UnknownShiftError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.state_store import StateSchema, StateStore

logger = get_logger("services.clock_session")

ACTIVE_SESSION_SCHEMA = StateSchema(
    namespace="clock_session",
    version=1,
    required_fields=("employee_id", "shift_id", "work_date", "start_time", "opened_at"),
    ttl=timedelta(hours=24),
)


@dataclass(frozen=True)
class OpenSession:
    """A clock-in that has not been closed yet."""

    employee_id: str
    shift_id: str
    work_date: date
    start_time: time
    opened_at: datetime
    location: str | None = None
    is_public_holiday: bool = False

    def to_payload(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "shift_id": self.shift_id,
            "work_date": self.work_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "opened_at": self.opened_at.isoformat(),
            "location": self.location,
            "is_public_holiday": self.is_public_holiday,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> OpenSession:
        return cls(
            employee_id=payload["employee_id"],
            shift_id=payload["shift_id"],
            work_date=date.fromisoformat(payload["work_date"]),
            start_time=datetime.strptime(payload["start_time"], "%H:%M").time(),
            opened_at=datetime.fromisoformat(payload["opened_at"]),
            location=payload.get("location"),
            is_public_holiday=bool(payload.get("is_public_holiday", False)),
        )


def _to_minute(moment: datetime) -> time:
    return moment.time().replace(second=0, microsecond=0)


class ClockSessionService:
    """
    Clock-in / clock-out for shift workers.

    Contract:
        At most one open session per employee.  Sessions older than the
        schema TTL are treated as abandoned.
    """

    def __init__(
        self,
        store: StateStore,
        rules: PayrollRules | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._rules = rules or PayrollRules.with_defaults()
        self._clock = clock or SystemClock()

    def current_session(self, employee_id: str) -> OpenSession | None:
        payload = self._store.get(ACTIVE_SESSION_SCHEMA, employee_id)
        if payload is None:
            return None
        return OpenSession.from_payload(payload)

    def clock_in(
        self,
        employee_id: str,
        shift_id: str,
        location: str | None = None,
        is_public_holiday: bool = False,
    ) -> OpenSession:
        with LogContext.bind(employee_id=employee_id):
            if shift_id not in self._rules.shift_catalog:
                raise UnknownShiftError(shift_id)

            existing = self.current_session(employee_id)
            if existing is not None:
                raise SessionAlreadyOpenError(employee_id, existing.opened_at.isoformat())

            now = self._clock.now()
            session = OpenSession(
                employee_id=employee_id,
                shift_id=shift_id,
                work_date=now.date(),
                start_time=_to_minute(now),
                opened_at=now,
                location=location,
                is_public_holiday=is_public_holiday,
            )
            self._store.put(ACTIVE_SESSION_SCHEMA, employee_id, session.to_payload())
            logger.info(
                "clocked_in",
                extra={"shift_id": shift_id, "work_date": session.work_date},
            )
            return session

    def clock_out(self, employee_id: str, break_minutes: int = 0) -> TimeEntry:
        """Close the open session into a ``TimeEntry`` and clear it."""
        with LogContext.bind(employee_id=employee_id):
            session = self.current_session(employee_id)
            if session is None:
                raise NoOpenSessionError(employee_id)

            shift = self._rules.shift_catalog.get(session.shift_id)
            if shift is None:
                raise UnknownShiftError(session.shift_id)

            entry = close_time_entry(
                work_date=session.work_date,
                start=session.start_time,
                end=_to_minute(self._clock.now()),
                shift=shift,
                break_minutes=break_minutes,
                is_public_holiday=session.is_public_holiday,
                location=session.location,
                rules=self._rules.timekeeping,
            )
            self._store.delete(ACTIVE_SESSION_SCHEMA, employee_id)
            logger.info(
                "clocked_out",
                extra={
                    "shift_id": shift.shift_id,
                    "duration_minutes": entry.duration_minutes,
                    "overtime_minutes": entry.overtime_minutes,
                },
            )
            return entry
