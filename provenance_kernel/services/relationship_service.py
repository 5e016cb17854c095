"""
RelationshipService -- the two-sided "input-of" relation between records.

===============================================================================
THE PROTOCOL
===============================================================================

attach_input(owner, input) records that the owner lot consumed the input lot.
It takes two single-key writes:

    1. owner.inputs  += {input_id, input_name, input_code}    (write owner)
    2. input.usedBy  += {owner_id, owner_name, owner_code}    (write input,
                                                               creating it
                                                               if absent)

The owner must already exist.  The input may not: it is created lazily by
step 2 with the caller-supplied name/code and a single usedBy entry.  When
the input does exist, its own name/code are kept and the caller-supplied
ones are ignored.

===============================================================================
CONSISTENCY GAP
===============================================================================

The two writes are NOT atomic together.  The ledger offers no multi-key
transaction and this service does not pretend to have one.  The owner is
written first, so a failure between the steps leaves a forward reference
with no matching back-reference:

    owner.inputs  -> [input]        input.usedBy -> []

That state is detectable and repairable, never fatal:

    find_missing_back_references(owner_id)   read-only check
    reconcile_back_references(owner_id)      explicit repair pass

Neither runs implicitly.

===============================================================================
DUPLICATES
===============================================================================

Relations are appended, not upserted.  Calling attach_input twice with the
same arguments appends the RelationRef twice on both sides.  The
reconciliation pass therefore compares counts, not presence.

===============================================================================
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from provenance_kernel.domain.record import Record, RelationRef, decode_record
from provenance_kernel.logging_config import get_logger
from provenance_kernel.services.base import BaseService
from provenance_kernel.services.record_store import RecordStore

logger = get_logger("services.relationship")


@dataclass(frozen=True)
class MissingBackReference:
    """
    A forward reference from owner.inputs with too few matching usedBy entries.

    ``input_ref`` is the first forward RelationRef to the input, used to
    create the counterpart when it does not exist.
    """

    owner_id: str
    input_ref: RelationRef
    forward_count: int
    back_count: int
    input_exists: bool

    @property
    def shortfall(self) -> int:
        return self.forward_count - self.back_count


@dataclass(frozen=True)
class ReconciliationReport:
    """Outcome of reconcile_back_references."""

    owner_id: str
    repaired: tuple[MissingBackReference, ...] = ()

    @property
    def writes(self) -> int:
        return len(self.repaired)

    @property
    def appended(self) -> int:
        return sum(m.shortfall for m in self.repaired)

    @property
    def created(self) -> tuple[str, ...]:
        return tuple(m.input_ref.record_id for m in self.repaired if not m.input_exists)

    @property
    def is_clean(self) -> bool:
        return not self.repaired


class RelationshipService(BaseService):
    """Builds and repairs the inputs / usedBy relation."""

    @property
    def store(self) -> RecordStore:
        return RecordStore(self.ctx)

    def attach_input(
        self,
        owner_id: str,
        input_id: str,
        input_name: str,
        input_code: str,
    ) -> None:
        """
        Record that owner_id's product consumed input_id.

        Raises:
            RecordNotFoundError: If the owner does not exist.
        """
        store = self.store
        owner = store.read(owner_id)

        input_ref = RelationRef(
            record_id=input_id,
            name=input_name,
            classification_code=input_code,
        )
        owner = owner.with_input(input_ref, self.clock.now_utc())
        store.write(owner)
        logger.info(
            "input_attached",
            extra={
                "owner_id": owner_id,
                "input_id": input_id,
                "inputs": len(owner.inputs),
            },
        )

        self.notify_used_as_input(
            input_id,
            input_name,
            input_code,
            owner.record_id,
            owner.name,
            owner.classification_code,
        )

    def notify_used_as_input(
        self,
        input_id: str,
        input_name: str,
        input_code: str,
        owner_id: str,
        owner_name: str,
        owner_code: str,
    ) -> None:
        """
        Append the back-reference {owner} to input_id's usedBy.

        Creates input_id with input_name/input_code when it does not exist.
        When it exists, its stored name/code are kept.
        """
        store = self.store
        back_ref = RelationRef(
            record_id=owner_id,
            name=owner_name,
            classification_code=owner_code,
        )
        now = self.clock.now_utc()

        if not store.exists(input_id):
            record = Record.new(
                record_id=input_id,
                name=input_name,
                classification_code=input_code,
                at=now,
                used_by=(back_ref,),
            )
            store.write(record)
            logger.info(
                "back_reference_created",
                extra={"input_id": input_id, "owner_id": owner_id, "input_created": True},
            )
            return

        record = store.read(input_id).with_used_by(back_ref, at=now)
        store.write(record)
        logger.info(
            "back_reference_created",
            extra={
                "input_id": input_id,
                "owner_id": owner_id,
                "input_created": False,
                "used_by": len(record.used_by),
            },
        )

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def find_missing_back_references(self, owner_id: str) -> tuple[MissingBackReference, ...]:
        """
        Compare owner.inputs against each counterpart's usedBy.

        Read-only.  Returns one entry per input id whose forward reference
        count exceeds the number of usedBy entries pointing back at owner_id.

        Raises:
            RecordNotFoundError: If the owner does not exist.
        """
        store = self.store
        owner = store.read(owner_id)

        forward = Counter(ref.record_id for ref in owner.inputs)
        first_ref: dict[str, RelationRef] = {}
        for ref in owner.inputs:
            first_ref.setdefault(ref.record_id, ref)

        missing = []
        for input_id, forward_count in forward.items():
            value = self.backend.get(input_id)
            if value:
                counterpart = decode_record(input_id, value)
                back_count = sum(
                    1 for ref in counterpart.used_by if ref.record_id == owner_id
                )
                input_exists = True
            else:
                back_count = 0
                input_exists = False
            if back_count < forward_count:
                missing.append(
                    MissingBackReference(
                        owner_id=owner_id,
                        input_ref=first_ref[input_id],
                        forward_count=forward_count,
                        back_count=back_count,
                        input_exists=input_exists,
                    )
                )
        return tuple(missing)

    def reconcile_back_references(self, owner_id: str) -> ReconciliationReport:
        """
        Append every missing back-reference for owner_id's inputs.

        One write per counterpart with a shortfall; zero writes when the
        owner is consistent.  Back-references carry the owner's current
        name/code.  Counterparts that do not exist are created from the
        forward RelationRef snapshot.  This is a separate repair pass; it
        does not make attach_input atomic.

        Raises:
            RecordNotFoundError: If the owner does not exist.
        """
        missing = self.find_missing_back_references(owner_id)
        if not missing:
            logger.info(
                "reconciliation_completed",
                extra={"owner_id": owner_id, "writes": 0},
            )
            return ReconciliationReport(owner_id=owner_id)

        store = self.store
        owner = store.read(owner_id)
        back_ref = owner.as_relation_ref()
        now = self.clock.now_utc()

        for item in missing:
            refs = (back_ref,) * item.shortfall
            if item.input_exists:
                record = store.read(item.input_ref.record_id).with_used_by(*refs, at=now)
            else:
                record = Record.new(
                    record_id=item.input_ref.record_id,
                    name=item.input_ref.name,
                    classification_code=item.input_ref.classification_code,
                    at=now,
                    used_by=refs,
                )
            store.write(record)
            logger.warning(
                "back_reference_repaired",
                extra={
                    "owner_id": owner_id,
                    "input_id": item.input_ref.record_id,
                    "appended": item.shortfall,
                    "input_created": not item.input_exists,
                },
            )

        report = ReconciliationReport(owner_id=owner_id, repaired=missing)
        logger.info(
            "reconciliation_completed",
            extra={
                "owner_id": owner_id,
                "writes": report.writes,
                "appended": report.appended,
            },
        )
        return report
