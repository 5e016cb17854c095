"""
LedgerContext -- everything one contract invocation needs, passed explicitly.

The kernel keeps no process-wide ledger state.  The caller builds a
LedgerContext per invocation (usually per transaction) and hands it to every
contract operation; services read the backend, clock and tx_id from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from provenance_kernel.db.ledger import LedgerBackend
from provenance_kernel.domain.clock import Clock, SystemClock


@dataclass(frozen=True)
class LedgerContext:
    """
    Invocation context.

    Attributes:
        backend: The key-value ledger collaborator.
        clock: Source of createdOrUpdatedAt timestamps.
        tx_id: Stamped on every version written through this context.
    """

    backend: LedgerBackend
    clock: Clock = field(default_factory=SystemClock)
    tx_id: str = field(default_factory=lambda: str(uuid4()))
