"""
Module: provenance_kernel.selectors.base
Responsibility: Common constructor for read-side query objects.
Architecture position: Kernel > Selectors.  May import from context, db/
    and domain/; never from services/ or contract.

Selectors only call ``get`` and ``history_of`` on the backend and hand back
decoded domain values.
"""

from abc import ABC

from provenance_kernel.context import LedgerContext


class BaseSelector(ABC):
    """Read-only view over the ledger carried by a LedgerContext."""

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx
        self.backend = ctx.backend
