"""
Module: provenance_kernel.db.sql_ledger
Responsibility: LedgerBackend over the ``ledger_versions`` table.  Every
    put/delete INSERTs one LedgerVersion row; get reads the highest version
    of a key; history_of streams all versions of a key in version order.
Architecture position: Kernel > DB.  May import from db/, models/, domain/clock.

The backend follows the kernel's session convention:
    - Accepts a Session from the caller
    - Uses session.flush() within the transaction
    - Does NOT call session.commit() - the caller controls boundaries

Invariants enforced:
    - Append-only: rows are only INSERTed (ImmutabilityViolationError on
      UPDATE/DELETE via db/immutability.py).
    - Versions of a key are numbered consecutively from 1.

Failure modes:
    - BackendUnavailableError when the database raises OperationalError
      (connection refused, lost connection, lock timeout).  The original
      error is chained as __cause__.
    - ConcurrentWriteError when the INSERT hits the (key, version) primary
      key because another transaction appended the same version first.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from provenance_kernel.db.immutability import register_immutability_listeners
from provenance_kernel.db.ledger import HistoryEntry, LedgerBackend
from provenance_kernel.domain.clock import Clock, SystemClock
from provenance_kernel.exceptions import BackendUnavailableError, ConcurrentWriteError
from provenance_kernel.logging_config import get_logger
from provenance_kernel.models.ledger_version import LedgerVersion

logger = get_logger("db.sql_ledger")


class SqlLedger(LedgerBackend):
    """SQLAlchemy-backed append-only ledger."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()
        register_immutability_listeners()

    def get(self, key: str) -> bytes | None:
        try:
            latest = self._latest(key)
        except OperationalError as e:
            raise self._unavailable("get", key, e) from e
        if latest is None or latest.is_delete:
            return None
        return latest.value

    def put(self, key: str, value: bytes, *, tx_id: str | None = None) -> None:
        try:
            self._append(key, value, is_delete=False, tx_id=tx_id)
        except OperationalError as e:
            raise self._unavailable("put", key, e) from e

    def delete(self, key: str, *, tx_id: str | None = None) -> None:
        try:
            latest = self._latest(key)
            if latest is None or latest.is_delete:
                return
            self._append(key, b"", is_delete=True, tx_id=tx_id)
        except OperationalError as e:
            raise self._unavailable("delete", key, e) from e

    def history_of(self, key: str) -> Iterator[HistoryEntry]:
        stmt = (
            select(LedgerVersion)
            .where(LedgerVersion.key == key)
            .order_by(LedgerVersion.version)
            .execution_options(yield_per=100)
        )
        try:
            for row in self.session.execute(stmt).scalars():
                yield HistoryEntry(
                    key=row.key,
                    version=row.version,
                    value=row.value,
                    is_delete=row.is_delete,
                    tx_id=row.tx_id,
                    timestamp=_as_utc(row.recorded_at),
                )
        except OperationalError as e:
            raise self._unavailable("history_of", key, e) from e

    # =========================================================================
    # Internals
    # =========================================================================

    def _latest(self, key: str) -> LedgerVersion | None:
        stmt = (
            select(LedgerVersion)
            .where(LedgerVersion.key == key)
            .order_by(LedgerVersion.version.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def _next_version(self, key: str) -> int:
        current = self.session.execute(
            select(func.max(LedgerVersion.version)).where(LedgerVersion.key == key)
        ).scalar()
        return (current or 0) + 1

    def _append(self, key: str, value: bytes, *, is_delete: bool, tx_id: str | None) -> None:
        row = LedgerVersion(
            key=key,
            version=self._next_version(key),
            value=value,
            is_delete=is_delete,
            tx_id=tx_id,
            recorded_at=self._clock.now_utc(),
        )
        self.session.add(row)
        try:
            self.session.flush()
        except IntegrityError as e:
            logger.error(
                "ledger_version_conflict",
                extra={"key": key, "version": row.version},
            )
            raise ConcurrentWriteError(key, row.version) from e
        logger.debug(
            "ledger_version_appended",
            extra={"key": key, "version": row.version, "is_delete": is_delete},
        )

    def _unavailable(self, operation: str, key: str, error: OperationalError) -> BackendUnavailableError:
        logger.error(
            "ledger_backend_unavailable",
            extra={"operation": operation, "key": key},
        )
        return BackendUnavailableError(operation, key, str(error.orig))


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes for DateTime(timezone=True)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
