"""
RecordSnapshot -- one decoded version from a record's history log.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from provenance_kernel.domain.record import Record


@dataclass(frozen=True)
class RecordSnapshot:
    """
    A past state of a record.

    ``record`` is None for a tombstone (the version written by a delete).
    ``version`` is the backend's per-key sequence number, starting at 1.
    """

    record_id: str
    version: int
    record: Record | None
    is_delete: bool
    tx_id: str | None
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "version": self.version,
            "txId": self.tx_id,
            "timestamp": self.timestamp.isoformat(),
            "isDelete": self.is_delete,
            "value": self.record.to_dict() if self.record is not None else None,
        }
