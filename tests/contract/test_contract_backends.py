"""
Contract scenarios run against both ledger backends.

The in-memory ledger and the SQLAlchemy ledger must give the same answers
for attach, lazy creation, duplicate attaches, reconciliation and history.
SQL runs use one open session per test; nothing is committed.
"""

import pytest

from provenance_kernel.domain.record import RelationRef
from provenance_kernel.services.record_store import RecordStore

CHOCOLATE = RelationRef("LOTE-001", "Chocolate", "1806")
CACAU = RelationRef("LOTE-777", "Cacau", "1801")


@pytest.fixture(params=["memory", "sql"])
def make_context(request):
    """Context factory over the in-memory ledger or the SQL ledger."""
    if request.param == "memory":
        return request.getfixturevalue("new_context")
    return request.getfixturevalue("new_sql_context")


@pytest.fixture
def chocolate(contract, make_context):
    return contract.create(make_context(), "LOTE-001", "Chocolate", "1806")


class TestAttachOnEitherBackend:
    def test_attach_creates_input_lazily(self, contract, make_context, chocolate):
        contract.attach_input(make_context(), "LOTE-001", "LOTE-777", "Cacau", "1801")

        cacau = contract.read(make_context(), "LOTE-777")
        assert (cacau.name, cacau.classification_code) == ("Cacau", "1801")
        assert cacau.inputs == ()
        assert cacau.used_by == (CHOCOLATE,)
        assert contract.read(make_context(), "LOTE-001").inputs == (CACAU,)

    def test_existing_input_keeps_its_own_fields(self, contract, make_context, chocolate):
        contract.create(make_context(), "LOTE-777", "Cacau fino", "1801.00")

        contract.attach_input(make_context(), "LOTE-001", "LOTE-777", "Cacau", "1801")

        cacau = contract.read(make_context(), "LOTE-777")
        assert (cacau.name, cacau.classification_code) == ("Cacau fino", "1801.00")
        assert cacau.used_by == (CHOCOLATE,)

    def test_duplicate_attach_appends(self, contract, make_context, chocolate):
        for _ in range(2):
            contract.attach_input(make_context(), "LOTE-001", "LOTE-777", "Cacau", "1801")

        assert contract.read(make_context(), "LOTE-001").inputs == (CACAU, CACAU)
        assert contract.read(make_context(), "LOTE-777").used_by == (CHOCOLATE, CHOCOLATE)

    def test_update_copies_relations_through(self, contract, make_context, chocolate):
        contract.attach_input(make_context(), "LOTE-001", "LOTE-777", "Cacau", "1801")

        updated = contract.update(make_context(), "LOTE-001", "Chocolate amargo", "1806.32")

        assert updated.inputs == (CACAU,)
        assert contract.read(make_context(), "LOTE-001") == updated
        assert contract.read(make_context(), "LOTE-777").used_by == (CHOCOLATE,)


class TestReconcileOnEitherBackend:
    def test_forward_only_write_repaired_once(self, contract, make_context, chocolate):
        store = RecordStore(make_context())
        owner = store.read("LOTE-001")
        store.write(owner.with_input(CACAU, store.clock.now_utc()))

        (missing,) = contract.find_missing_back_references(make_context(), "LOTE-001")
        assert missing.input_ref == CACAU
        assert (missing.forward_count, missing.back_count) == (1, 0)

        first = contract.reconcile_back_references(make_context(), "LOTE-001")
        second = contract.reconcile_back_references(make_context(), "LOTE-001")

        assert first.writes == 1
        assert first.created == ("LOTE-777",)
        assert second.writes == 0
        assert contract.read(make_context(), "LOTE-777").used_by == (CHOCOLATE,)


class TestHistoryOnEitherBackend:
    def test_tombstone_between_lives(self, contract, make_context, deterministic_clock):
        contract.create(make_context("tx-create"), "LOTE-001", "Chocolate", "1806")
        deterministic_clock.advance(60)
        contract.delete(make_context("tx-delete"), "LOTE-001")
        deterministic_clock.advance(60)
        contract.create(make_context("tx-again"), "LOTE-001", "Chocolate amargo", "1806.32")

        snapshots = list(contract.history(make_context(), "LOTE-001"))

        assert [s.version for s in snapshots] == [1, 2, 3]
        assert [s.is_delete for s in snapshots] == [False, True, False]
        assert [s.tx_id for s in snapshots] == ["tx-create", "tx-delete", "tx-again"]
        assert snapshots[1].record is None
        assert snapshots[2].record.name == "Chocolate amargo"
        assert snapshots[0].timestamp < snapshots[1].timestamp < snapshots[2].timestamp
