"""
Module: provenance_kernel.db.ledger
Responsibility: The boundary between the kernel and the external key-value
    ledger.  Defines the abstract LedgerBackend (get / put / delete /
    history_of) and the HistoryEntry value the history reader yields.
Architecture position: Kernel > DB.  Lowest import target for services and
    selectors.  MUST NOT import from services/, selectors/, or contract.

Invariants enforced (by every implementation):
    - Per-key atomicity: each individual get/put/delete is atomic.
    - Append-only history: put and delete append a new version; no version
      is ever edited or removed.  delete appends a tombstone.
    - history_of yields versions oldest-first, in the backend's native order.

Failure modes:
    - BackendUnavailableError when the underlying store cannot serve a call.

Non-goals:
    - Multi-key transactions.  Two puts issued back to back are two separate
      atomic steps; nothing here makes them atomic together.
    - Query by anything but the key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator


@dataclass(frozen=True)
class HistoryEntry:
    """One stored version of a key."""

    key: str
    version: int
    value: bytes
    is_delete: bool
    tx_id: str | None
    timestamp: datetime


class LedgerBackend(ABC):
    """
    Abstract key-value ledger with a per-key version log.

    Contract:
        Implementations are injected into the kernel through a LedgerContext.
        The kernel holds no ledger state of its own.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the current value for key, or None when absent or deleted."""
        ...

    @abstractmethod
    def put(self, key: str, value: bytes, *, tx_id: str | None = None) -> None:
        """Append a new version holding value as the key's current state."""
        ...

    @abstractmethod
    def delete(self, key: str, *, tx_id: str | None = None) -> None:
        """Append a tombstone.  No-op when the key has no current value."""
        ...

    @abstractmethod
    def history_of(self, key: str) -> Iterator[HistoryEntry]:
        """Yield every stored version of key, oldest first."""
        ...
