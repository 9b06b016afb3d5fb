"""
Salary Grid Service (``payroll_services.salary_grid``).

Responsibility
--------------
Serves the current salary grid to the career review.  The grid changes
rarely and lives in the document store, so a fetched copy is kept in a
``StateStore`` under ``SALARY_GRID_SCHEMA`` for 24 hours.

Architecture position
---------------------
**Services layer** -- owns the cache and the injected fetch callable;
parsing goes through ``payroll_modules.payroll.documents``.

Failure modes
-------------
* ``SalaryGridUnavailableError`` -- the cache is empty or expired and the
  fetch failed or returned no entries.
* ``DocumentValidationError`` -- a fetched entry is malformed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import timedelta
from decimal import Decimal
from typing import Any

from payroll_engines.career import SalaryGridEntry
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import SalaryGridUnavailableError
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.documents import parse_salary_grid
from payroll_services.state_store import StateSchema, StateStore

logger = get_logger("services.salary_grid")

SALARY_GRID_SCHEMA = StateSchema(
    namespace="salary_grid",
    version=1,
    required_fields=("entries", "fetched_at"),
    ttl=timedelta(hours=24),
)
CURRENT_GRID_KEY = "current"

GridFetcher = Callable[[], Iterable[Mapping[str, Any]] | None]


def _to_payload(grid: tuple[SalaryGridEntry, ...], fetched_at: str) -> dict[str, Any]:
    return {
        "fetched_at": fetched_at,
        "entries": [
            {
                "category": e.category,
                "echelon": e.echelon,
                "monthly_salary": str(e.monthly_salary),
            }
            for e in grid
        ],
    }


def _from_payload(payload: dict[str, Any]) -> tuple[SalaryGridEntry, ...]:
    return tuple(
        SalaryGridEntry(
            category=e["category"],
            echelon=e["echelon"],
            monthly_salary=Decimal(e["monthly_salary"]),
        )
        for e in payload["entries"]
    )


class SalaryGridService:
    """
    Cached access to the salary grid.

    Contract:
        ``get_grid`` returns the cached grid while it is younger than the
        schema TTL; otherwise it calls ``fetch`` and caches a non-empty
        result.
    """

    def __init__(
        self,
        store: StateStore,
        fetch: GridFetcher,
        clock: Clock | None = None,
    ):
        self._store = store
        self._fetch = fetch
        self._clock = clock or SystemClock()

    def get_grid(self) -> tuple[SalaryGridEntry, ...]:
        payload = self._store.get(SALARY_GRID_SCHEMA, CURRENT_GRID_KEY)
        if payload is not None:
            logger.debug(
                "salary_grid_cache_hit",
                extra={"fetched_at": payload["fetched_at"]},
            )
            return _from_payload(payload)

        try:
            docs = self._fetch()
        except Exception as exc:
            logger.error("salary_grid_fetch_failed", exc_info=True)
            raise SalaryGridUnavailableError(f"fetch failed: {exc}") from exc
        if docs is None:
            raise SalaryGridUnavailableError("no salary grid document")

        grid = parse_salary_grid(docs)
        if not grid:
            raise SalaryGridUnavailableError("salary grid has no entries")

        fetched_at = self._clock.now().isoformat()
        self._store.put(SALARY_GRID_SCHEMA, CURRENT_GRID_KEY, _to_payload(grid, fetched_at))
        logger.info(
            "salary_grid_refreshed",
            extra={"entry_count": len(grid), "fetched_at": fetched_at},
        )
        return grid

    def invalidate(self) -> bool:
        """Drop the cached grid; the next ``get_grid`` fetches again."""
        return self._store.delete(SALARY_GRID_SCHEMA, CURRENT_GRID_KEY)
