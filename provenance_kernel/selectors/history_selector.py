"""
Module: provenance_kernel.selectors.history_selector
Responsibility: Replays a record's per-key version log into RecordSnapshots.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Order is the backend's native history order (oldest first for both
      shipped backends).  Snapshots are never re-sorted here.
    - Every version appears, including tombstones written by delete.
    - The returned iterator is lazy, finite, and not restartable.

Failure modes:
    - RecordNotFoundError if nothing currently exists under the id.  The
      check is against the CURRENT value: the history of a deleted id is
      only reachable while something has been re-created under it.
    - CorruptRecordError when a stored version does not decode; raised when
      iteration reaches that version.
"""

from __future__ import annotations

from typing import Iterator

from provenance_kernel.domain.record import decode_record
from provenance_kernel.domain.snapshot import RecordSnapshot
from provenance_kernel.exceptions import RecordNotFoundError
from provenance_kernel.logging_config import get_logger
from provenance_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.history")


class HistorySelector(BaseSelector):
    """Per-record change history."""

    def history(self, record_id: str) -> Iterator[RecordSnapshot]:
        """
        Return a lazy iterator over every stored version of record_id.

        The existence check runs immediately; the log is read as the
        iterator is consumed.

        Raises:
            RecordNotFoundError: If no live record exists under record_id.
        """
        if not self.backend.get(record_id):
            raise RecordNotFoundError(record_id)
        return self._replay(record_id)

    def _replay(self, record_id: str) -> Iterator[RecordSnapshot]:
        count = 0
        for entry in self.backend.history_of(record_id):
            count += 1
            yield RecordSnapshot(
                record_id=record_id,
                version=entry.version,
                record=None if entry.is_delete else decode_record(record_id, entry.value),
                is_delete=entry.is_delete,
                tx_id=entry.tx_id,
                timestamp=entry.timestamp,
            )
        logger.debug(
            "history_replayed",
            extra={"record_id": record_id, "versions": count},
        )
