"""
ProvenanceContract -- the externally invocable operations of the kernel.

Responsibility:
    One method per use case.  Each method checks that required inputs are
    present, binds the invocation's log context, and dispatches to exactly
    one service or selector call.  No method retries, batches, or performs
    reads/writes beyond what the underlying service specifies.

Architecture position:
    Kernel > Contract -- the top of the kernel.  Callers (an RPC binding,
    the CLI in scripts/cli, tests) build a LedgerContext and pass it as the
    first argument of every call.

    exists / create / read / update / delete   -> RecordStore
    attach_input                               -> RelationshipService
    find_missing_back_references / reconcile   -> RelationshipService
    history                                    -> HistorySelector

Failure modes:
    - MissingFieldError for an empty identifier or a None name/code.
    - Whatever the service raises, re-raised unchanged after a
      ``contract_operation_failed`` log line.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from provenance_kernel.context import LedgerContext
from provenance_kernel.domain.record import Record
from provenance_kernel.domain.snapshot import RecordSnapshot
from provenance_kernel.exceptions import MissingFieldError, ProvenanceKernelError
from provenance_kernel.logging_config import LogContext, get_logger
from provenance_kernel.selectors.history_selector import HistorySelector
from provenance_kernel.services.record_store import RecordStore
from provenance_kernel.services.relationship_service import (
    MissingBackReference,
    ReconciliationReport,
    RelationshipService,
)

logger = get_logger("contract")


def _require_id(field_name: str, value: str | None) -> None:
    if not isinstance(value, str) or not value:
        raise MissingFieldError(field_name)


def _require_text(field_name: str, value: str | None) -> None:
    if not isinstance(value, str):
        raise MissingFieldError(field_name)


class ProvenanceContract:
    """Contract surface for the traceability record store."""

    @contextmanager
    def _invocation(self, operation: str, ctx: LedgerContext, record_id: str):
        with LogContext.bind(record_id=record_id, tx_id=ctx.tx_id):
            try:
                yield
            except ProvenanceKernelError:
                logger.warning(
                    "contract_operation_failed",
                    extra={"operation": operation},
                    exc_info=True,
                )
                raise

    # =========================================================================
    # Record operations
    # =========================================================================

    def exists(self, ctx: LedgerContext, record_id: str) -> bool:
        _require_id("record_id", record_id)
        with self._invocation("exists", ctx, record_id):
            return RecordStore(ctx).exists(record_id)

    def create(
        self,
        ctx: LedgerContext,
        record_id: str,
        name: str,
        classification_code: str,
    ) -> Record:
        _require_id("record_id", record_id)
        _require_text("name", name)
        _require_text("classification_code", classification_code)
        with self._invocation("create", ctx, record_id):
            return RecordStore(ctx).create(record_id, name, classification_code)

    def read(self, ctx: LedgerContext, record_id: str) -> Record:
        _require_id("record_id", record_id)
        with self._invocation("read", ctx, record_id):
            return RecordStore(ctx).read(record_id)

    def update(
        self,
        ctx: LedgerContext,
        record_id: str,
        name: str,
        classification_code: str,
    ) -> Record:
        _require_id("record_id", record_id)
        _require_text("name", name)
        _require_text("classification_code", classification_code)
        with self._invocation("update", ctx, record_id):
            return RecordStore(ctx).update(record_id, name, classification_code)

    def delete(self, ctx: LedgerContext, record_id: str) -> None:
        _require_id("record_id", record_id)
        with self._invocation("delete", ctx, record_id):
            RecordStore(ctx).delete(record_id)

    # =========================================================================
    # Relationship operations
    # =========================================================================

    def attach_input(
        self,
        ctx: LedgerContext,
        owner_id: str,
        input_id: str,
        input_name: str,
        input_code: str,
    ) -> None:
        """Declare that owner_id consumed input_id.  Two writes, not atomic together."""
        _require_id("owner_id", owner_id)
        _require_id("input_id", input_id)
        _require_text("input_name", input_name)
        _require_text("input_code", input_code)
        with self._invocation("attach_input", ctx, owner_id):
            RelationshipService(ctx).attach_input(owner_id, input_id, input_name, input_code)

    def find_missing_back_references(
        self, ctx: LedgerContext, owner_id: str
    ) -> tuple[MissingBackReference, ...]:
        _require_id("owner_id", owner_id)
        with self._invocation("find_missing_back_references", ctx, owner_id):
            return RelationshipService(ctx).find_missing_back_references(owner_id)

    def reconcile_back_references(
        self, ctx: LedgerContext, owner_id: str
    ) -> ReconciliationReport:
        _require_id("owner_id", owner_id)
        with self._invocation("reconcile_back_references", ctx, owner_id):
            return RelationshipService(ctx).reconcile_back_references(owner_id)

    # =========================================================================
    # History
    # =========================================================================

    def history(self, ctx: LedgerContext, record_id: str) -> Iterator[RecordSnapshot]:
        """
        Lazy, non-restartable iterator over every stored version of record_id.

        The existence check runs immediately.  Each later step runs under
        the same record_id / tx_id log context as the other operations, so a
        version that fails to decode is logged as a failed ``history`` call.
        """
        _require_id("record_id", record_id)
        with self._invocation("history", ctx, record_id):
            snapshots = HistorySelector(ctx).history(record_id)
        return self._replay(ctx, record_id, snapshots)

    def _replay(
        self, ctx: LedgerContext, record_id: str, snapshots: Iterator[RecordSnapshot]
    ) -> Iterator[RecordSnapshot]:
        # context is bound per step, never across a yield
        while True:
            with self._invocation("history", ctx, record_id):
                snapshot = next(snapshots, None)
            if snapshot is None:
                return
            yield snapshot
