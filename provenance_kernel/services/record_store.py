"""
RecordStore -- existence checks and CRUD for a single record.

Responsibility:
    Reads and writes one Record under one ledger key.  Every mutating
    operation checks existence first and then issues exactly one backend
    write.

Architecture position:
    Kernel > Services.  Leaf service: depends only on the ledger backend
    carried by the LedgerContext.  RelationshipService builds on it.

Invariants enforced:
    - Key uniqueness: create fails on an existing id; update/delete/read
      fail on a missing id.
    - Copy-through: update replaces name, classification code and
      timestamp, and carries inputs/usedBy over verbatim.

Failure modes:
    - RecordAlreadyExistsError, RecordNotFoundError.
    - CorruptRecordError when the stored value does not decode.
    - BackendUnavailableError from the backend, propagated untouched.

Non-goals:
    - delete does not cascade.  RelationRefs in other records that point at
      a deleted id stay as they are (dangling).
"""

from __future__ import annotations

from provenance_kernel.domain.record import Record, decode_record, encode_record
from provenance_kernel.exceptions import RecordAlreadyExistsError, RecordNotFoundError
from provenance_kernel.logging_config import get_logger
from provenance_kernel.services.base import BaseService

logger = get_logger("services.record_store")


class RecordStore(BaseService):
    """Single-record operations against the ledger."""

    def exists(self, record_id: str) -> bool:
        """True iff the backend holds a non-empty value for record_id."""
        value = self.backend.get(record_id)
        return bool(value)

    def create(self, record_id: str, name: str, classification_code: str) -> Record:
        """
        Create a record with empty inputs and usedBy.

        Raises:
            RecordAlreadyExistsError: If a live record exists under record_id.
        """
        if self.exists(record_id):
            raise RecordAlreadyExistsError(record_id)

        record = Record.new(
            record_id=record_id,
            name=name,
            classification_code=classification_code,
            at=self.clock.now_utc(),
        )
        self.write(record)
        logger.info(
            "record_created",
            extra={"record_id": record_id, "classification_code": classification_code},
        )
        return record

    def read(self, record_id: str) -> Record:
        """
        Return the current value of record_id.

        Raises:
            RecordNotFoundError: If no live record exists.
            CorruptRecordError: If the stored value does not decode.
        """
        self.require(record_id)
        return decode_record(record_id, self.backend.get(record_id))

    def update(self, record_id: str, name: str, classification_code: str) -> Record:
        """
        Replace name and classification code; inputs/usedBy are copied through.

        Raises:
            RecordNotFoundError: If no live record exists.
        """
        current = self.read(record_id)
        record = current.with_fields(name, classification_code, self.clock.now_utc())
        self.write(record)
        logger.info(
            "record_updated",
            extra={
                "record_id": record_id,
                "inputs": len(record.inputs),
                "used_by": len(record.used_by),
            },
        )
        return record

    def delete(self, record_id: str) -> None:
        """
        Delete the current value.  History is kept; references elsewhere are not touched.

        Raises:
            RecordNotFoundError: If no live record exists.
        """
        self.require(record_id)
        self.backend.delete(record_id, tx_id=self.ctx.tx_id)
        logger.info("record_deleted", extra={"record_id": record_id})

    # =========================================================================
    # Shared helpers
    # =========================================================================

    def require(self, record_id: str) -> None:
        """Raise RecordNotFoundError unless a live record exists."""
        if not self.exists(record_id):
            raise RecordNotFoundError(record_id)

    def write(self, record: Record) -> None:
        """Put the record's canonical bytes under its id."""
        self.backend.put(record.record_id, encode_record(record), tx_id=self.ctx.tx_id)
