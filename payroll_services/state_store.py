"""
State Store (``payroll_services.state_store``).

Responsibility
--------------
Explicit persisted application state with a declared schema and a TTL:
the open clock-in session a crashed client must be able to recover, and
any other small keyed payload.  Replaces ad-hoc client-side storage.

Architecture position
---------------------
**Services layer** -- the only stateful component.  ``SqlStateStore``
scopes one SQLAlchemy session per call through
``payroll_kernel.db.session_scope``; ``InMemoryStateStore`` backs tests and
single-process tools.  Both read time from an injected ``Clock``.

Invariants enforced
-------------------
* A payload is validated against its ``StateSchema`` before it is stored.
* Expired records and records written under another schema version read
  as absent.
* Payloads are JSON objects; callers always receive a copy.

Failure modes
-------------
* ``StateSchemaError`` -- payload lacks a declared field.
* ``StateStoreError`` -- payload is not JSON-serializable.
* SQLAlchemy errors propagate after ``session_scope`` rolls back.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from payroll_kernel.db.engine import session_scope
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import StateSchemaError, StateStoreError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.state_record import StateRecord

logger = get_logger("services.state_store")


@dataclass(frozen=True)
class StateSchema:
    """Shape, version and lifetime of one state namespace."""

    namespace: str
    version: int
    required_fields: tuple[str, ...] = ()
    ttl: timedelta | None = None

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("namespace is required")
        if self.version < 1:
            raise ValueError("version must be at least 1")
        if self.ttl is not None and self.ttl <= timedelta(0):
            raise ValueError("ttl must be positive")

    def validate(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Return a JSON-normalized copy of ``payload``.

        Raises:
            StateSchemaError: a required field is missing.
            StateStoreError: payload is not a JSON-serializable object.
        """
        if not isinstance(payload, dict):
            raise StateStoreError(f"State payload for '{self.namespace}' must be a dict")
        missing = tuple(f for f in self.required_fields if f not in payload)
        if missing:
            raise StateSchemaError(self.namespace, missing)
        try:
            return json.loads(json.dumps(payload))
        except (TypeError, ValueError) as exc:
            raise StateStoreError(
                f"State payload for '{self.namespace}' is not JSON-serializable: {exc}"
            ) from exc

    def expires_at(self, stored_at: datetime) -> datetime | None:
        return None if self.ttl is None else stored_at + self.ttl


class StateStore(ABC):
    """
    Keyed, schema-checked state with expiry.

    Contract:
        ``get`` never returns an expired payload or one written under a
        different schema version.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    @abstractmethod
    def get(self, schema: StateSchema, key: str) -> dict[str, Any] | None:
        """Payload stored under ``key``, or None."""

    @abstractmethod
    def put(self, schema: StateSchema, key: str, payload: dict[str, Any]) -> None:
        """Store ``payload`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, schema: StateSchema, key: str) -> bool:
        """Remove ``key``; True if something was removed."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Remove every expired record; returns the number removed."""


@dataclass
class _Slot:
    version: int
    payload: dict[str, Any]
    stored_at: datetime
    expires_at: datetime | None


class InMemoryStateStore(StateStore):
    """Process-local state store."""

    def __init__(self, clock: Clock | None = None):
        super().__init__(clock)
        self._slots: dict[tuple[str, str], _Slot] = {}

    def get(self, schema: StateSchema, key: str) -> dict[str, Any] | None:
        slot = self._slots.get((schema.namespace, key))
        if slot is None:
            return None
        now = self._clock.now()
        if slot.expires_at is not None and slot.expires_at <= now:
            logger.debug("state_expired", extra={"namespace": schema.namespace, "key": key})
            return None
        if slot.version != schema.version:
            logger.debug(
                "state_version_mismatch",
                extra={"namespace": schema.namespace, "key": key, "stored_version": slot.version},
            )
            return None
        return json.loads(json.dumps(slot.payload))

    def put(self, schema: StateSchema, key: str, payload: dict[str, Any]) -> None:
        normalized = schema.validate(payload)
        now = self._clock.now()
        self._slots[(schema.namespace, key)] = _Slot(
            version=schema.version,
            payload=normalized,
            stored_at=now,
            expires_at=schema.expires_at(now),
        )

    def delete(self, schema: StateSchema, key: str) -> bool:
        return self._slots.pop((schema.namespace, key), None) is not None

    def purge_expired(self) -> int:
        now = self._clock.now()
        expired = [
            slot_key for slot_key, slot in self._slots.items()
            if slot.expires_at is not None and slot.expires_at <= now
        ]
        for slot_key in expired:
            del self._slots[slot_key]
        return len(expired)


class SqlStateStore(StateStore):
    """State store backed by the ``persisted_state`` table."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(clock)
        self._session_factory = session_factory

    def _find(self, session: Session, schema: StateSchema, key: str) -> StateRecord | None:
        stmt = select(StateRecord).where(
            StateRecord.namespace == schema.namespace,
            StateRecord.state_key == key,
        )
        return session.scalars(stmt).first()

    def get(self, schema: StateSchema, key: str) -> dict[str, Any] | None:
        with session_scope(self._session_factory) as session:
            record = self._find(session, schema, key)
            if record is None:
                return None
            if record.is_expired(self._clock.now()):
                logger.debug("state_expired", extra={"namespace": schema.namespace, "key": key})
                return None
            if record.schema_version != schema.version:
                logger.debug(
                    "state_version_mismatch",
                    extra={
                        "namespace": schema.namespace,
                        "key": key,
                        "stored_version": record.schema_version,
                    },
                )
                return None
            return dict(record.payload)

    def put(self, schema: StateSchema, key: str, payload: dict[str, Any]) -> None:
        normalized = schema.validate(payload)
        now = self._clock.now()
        with session_scope(self._session_factory) as session:
            record = self._find(session, schema, key)
            if record is None:
                session.add(StateRecord(
                    namespace=schema.namespace,
                    state_key=key,
                    schema_version=schema.version,
                    payload=normalized,
                    stored_at=now,
                    expires_at=schema.expires_at(now),
                ))
            else:
                record.schema_version = schema.version
                record.payload = normalized
                record.stored_at = now
                record.expires_at = schema.expires_at(now)
        logger.debug("state_stored", extra={"namespace": schema.namespace, "key": key})

    def delete(self, schema: StateSchema, key: str) -> bool:
        with session_scope(self._session_factory) as session:
            result = session.execute(
                delete(StateRecord).where(
                    StateRecord.namespace == schema.namespace,
                    StateRecord.state_key == key,
                )
            )
            return result.rowcount > 0

    def purge_expired(self) -> int:
        now = self._clock.now()
        with session_scope(self._session_factory) as session:
            result = session.execute(
                delete(StateRecord).where(
                    StateRecord.expires_at.is_not(None),
                    StateRecord.expires_at <= now,
                )
            )
            removed = result.rowcount
        logger.info("expired_state_purged", extra={"removed": removed})
        return removed
