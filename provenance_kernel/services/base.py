"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor for every write-side service.  Services
    receive a LedgerContext from the caller and use its backend for every
    read and write.

Architecture position:
    Kernel > Services -- imperative shell over the ledger backend.

Invariants enforced:
    - Services never retry, batch, or reorder backend calls.  Each
      operation reads fresh state, builds a new value, and writes it.
    - Services hold no state between calls beyond the injected context.
"""

from abc import ABC

from provenance_kernel.context import LedgerContext


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle; for the SQL backend the
          caller owns commit/rollback.
        - Does NOT provide history reads -- those belong in
          ``provenance_kernel/selectors/``.
    """

    def __init__(self, ctx: LedgerContext):
        """
        Args:
            ctx: Invocation context carrying the ledger backend and clock.
        """
        self.ctx = ctx
        self.backend = ctx.backend
        self.clock = ctx.clock
