"""
Module: provenance_kernel.models.ledger_version
Responsibility: ORM persistence for ledger versions -- one row per put or
    delete against a key.  The current value of a key is its highest
    version, unless that version is a tombstone.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (key, version) is unique; versions of a key are numbered 1, 2, 3, ...
    - Rows are immutable after INSERT (ORM listeners in db/immutability.py).

Failure modes:
    - IntegrityError on a duplicate (key, version), i.e. two writers racing
      on the same key.  Per-key serialization belongs to the caller's
      transaction layer.
    - ImmutabilityViolationError on UPDATE or DELETE attempt.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from provenance_kernel.db.base import Base


class LedgerVersion(Base):
    """
    One append-only version of a ledger key.

    Contract:
        Once INSERTed a row is never updated or deleted.  A delete of the
        key is recorded as a new row with is_delete=True and an empty value.
    """

    __tablename__ = "ledger_versions"

    __table_args__ = (
        UniqueConstraint("key", "version", name="uq_ledger_version_key_version"),
        Index("idx_ledger_version_key", "key"),
        Index("idx_ledger_version_tx", "tx_id"),
    )

    key: Mapped[str] = mapped_column(String(255), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False, default=b"")

    is_delete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    tx_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerVersion {self.key}#{self.version}"
            f"{' (delete)' if self.is_delete else ''}>"
        )
