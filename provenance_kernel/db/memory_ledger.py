"""
Module: provenance_kernel.db.memory_ledger
Responsibility: In-process LedgerBackend.  Keeps one append-only list of
    HistoryEntry values per key.  Used by the test suite and by embedders
    that do not need persistence.
Architecture position: Kernel > DB.

Invariants enforced:
    - Each get/put/delete/history read runs under one lock, so each call is
      atomic on its own.
    - Versions are never edited or removed; delete appends a tombstone.
    - history_of iterates over a copy taken at call time.
"""

from __future__ import annotations

import threading
from typing import Iterator

from provenance_kernel.db.ledger import HistoryEntry, LedgerBackend
from provenance_kernel.domain.clock import Clock, SystemClock


class MemoryLedger(LedgerBackend):
    """Append-only in-memory ledger."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._versions: dict[str, list[HistoryEntry]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            versions = self._versions.get(key)
            if not versions or versions[-1].is_delete:
                return None
            return versions[-1].value

    def put(self, key: str, value: bytes, *, tx_id: str | None = None) -> None:
        with self._lock:
            self._append(key, value, is_delete=False, tx_id=tx_id)

    def delete(self, key: str, *, tx_id: str | None = None) -> None:
        with self._lock:
            versions = self._versions.get(key)
            if not versions or versions[-1].is_delete:
                return
            self._append(key, b"", is_delete=True, tx_id=tx_id)

    def history_of(self, key: str) -> Iterator[HistoryEntry]:
        with self._lock:
            versions = list(self._versions.get(key, ()))
        return iter(versions)

    def _append(self, key: str, value: bytes, *, is_delete: bool, tx_id: str | None) -> None:
        versions = self._versions.setdefault(key, [])
        versions.append(
            HistoryEntry(
                key=key,
                version=len(versions) + 1,
                value=value,
                is_delete=is_delete,
                tx_id=tx_id,
                timestamp=self._clock.now_utc(),
            )
        )
