"""
payroll_services -- Package init and public API.

Responsibility:
    Stateful services that compose the pure payroll engines with persisted
    state and wall-clock time.  This is the **only** layer that may hold
    database sessions or read the current time outside ``PayrollService``'s
    optional default.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

        payroll_services/ -> payroll_engines/  (allowed)
        payroll_services/ -> payroll_modules/  (allowed)
        payroll_services/ -> payroll_kernel/   (allowed)
        payroll_engines/  -> payroll_services/ (FORBIDDEN)
        payroll_kernel/   -> payroll_services/ (FORBIDDEN)

Failure modes:
    - ImportError at startup if a service's dependency graph is broken.
"""

from payroll_services.clock_session import (
    ACTIVE_SESSION_SCHEMA,
    ClockSessionService,
    OpenSession,
)
from payroll_services.salary_grid import SALARY_GRID_SCHEMA, SalaryGridService
from payroll_services.state_store import (
    InMemoryStateStore,
    SqlStateStore,
    StateSchema,
    StateStore,
)

__all__ = [
    "ACTIVE_SESSION_SCHEMA",
    "ClockSessionService",
    "InMemoryStateStore",
    "OpenSession",
    "SALARY_GRID_SCHEMA",
    "SalaryGridService",
    "SqlStateStore",
    "StateSchema",
    "StateStore",
]
