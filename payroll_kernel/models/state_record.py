"""
Module: payroll_kernel.models.state_record
Responsibility: ORM persistence for small pieces of application state that
    used to live in ambient client storage (open clock-in session, cached
    lookups).  Each row is one (namespace, key) slot with a schema version
    and an optional expiry.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (namespace, state_key) is unique: a slot holds at most one payload.
    - expires_at, when set, is strictly after stored_at.

Failure modes:
    - IntegrityError on a duplicate (namespace, state_key) insert; the state
      store upserts to avoid it.
"""

from datetime import datetime

from sqlalchemy import JSON, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base, UTCDateTime


class StateRecord(Base):
    """
    One persisted state slot.

    Contract:
        ``payload`` is a JSON object validated against the namespace's
        declared fields before it is written.  Readers compare
        ``schema_version`` with the version they expect and treat a mismatch
        as an absent record.
    """

    __tablename__ = "persisted_state"

    __table_args__ = (
        UniqueConstraint("namespace", "state_key", name="uq_state_slot"),
        Index("idx_state_expiry", "expires_at"),
    )

    namespace: Mapped[str] = mapped_column(String(64), nullable=False)

    state_key: Mapped[str] = mapped_column(String(128), nullable=False)

    schema_version: Mapped[int] = mapped_column(Integer, nullable=False)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    stored_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def is_expired(self, now: datetime) -> bool:
        """True when the record has an expiry at or before ``now``."""
        return self.expires_at is not None and self.expires_at <= now

    def __repr__(self) -> str:
        return f"<StateRecord {self.namespace}:{self.state_key} v{self.schema_version}>"
