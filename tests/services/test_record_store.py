"""
Tests for RecordStore: existence checks and single-record CRUD.

Every mutating operation issues exactly one backend write; failures leave
the ledger untouched.
"""

import pytest

from provenance_kernel.domain.record import RelationRef, decode_record, encode_record
from provenance_kernel.exceptions import (
    CorruptRecordError,
    RecordAlreadyExistsError,
    RecordNotFoundError,
)
from provenance_kernel.services.record_store import RecordStore


@pytest.fixture
def store(ledger_context) -> RecordStore:
    return RecordStore(ledger_context)


def _version_count(ledger, key):
    return len(list(ledger.history_of(key)))


class TestExists:
    def test_absent(self, store):
        assert store.exists("LOTE-001") is False

    def test_present(self, store):
        store.create("LOTE-001", "Chocolate", "1806")
        assert store.exists("LOTE-001") is True

    def test_empty_value_counts_as_absent(self, store, memory_ledger):
        memory_ledger.put("LOTE-001", b"")
        assert store.exists("LOTE-001") is False

    def test_deleted_is_absent(self, store):
        store.create("LOTE-001", "Chocolate", "1806")
        store.delete("LOTE-001")
        assert store.exists("LOTE-001") is False


class TestCreate:
    def test_create_stores_record(self, store, memory_ledger, deterministic_clock):
        record = store.create("LOTE-001", "Chocolate", "1806")

        stored = decode_record("LOTE-001", memory_ledger.get("LOTE-001"))
        assert stored == record
        assert record.inputs == ()
        assert record.used_by == ()
        assert record.created_or_updated_at == deterministic_clock.now_utc()

    def test_create_stamps_tx_id(self, store, memory_ledger, ledger_context):
        store.create("LOTE-001", "Chocolate", "1806")
        entry = next(memory_ledger.history_of("LOTE-001"))
        assert entry.tx_id == ledger_context.tx_id

    def test_create_duplicate_rejected(self, store, memory_ledger):
        store.create("LOTE-001", "Chocolate", "1806")

        with pytest.raises(RecordAlreadyExistsError) as exc_info:
            store.create("LOTE-001", "Other", "0000")

        assert exc_info.value.record_id == "LOTE-001"
        assert _version_count(memory_ledger, "LOTE-001") == 1

    def test_create_after_delete_allowed(self, store):
        store.create("LOTE-001", "Chocolate", "1806")
        store.delete("LOTE-001")
        record = store.create("LOTE-001", "Chocolate", "1806")
        assert record.record_id == "LOTE-001"

    def test_create_logs(self, store, captured_logs):
        store.create("LOTE-001", "Chocolate", "1806")
        assert any(r["message"] == "record_created" for r in captured_logs())


class TestRead:
    def test_read_missing(self, store):
        with pytest.raises(RecordNotFoundError):
            store.read("LOTE-404")

    def test_read_corrupt(self, store, memory_ledger):
        memory_ledger.put("LOTE-001", b"{garbage")
        with pytest.raises(CorruptRecordError):
            store.read("LOTE-001")


class TestUpdate:
    def test_update_replaces_fields(self, store, deterministic_clock):
        store.create("LOTE-001", "Chocolate", "1806")
        deterministic_clock.advance(30)

        record = store.update("LOTE-001", "Chocolate amargo", "1806.32")

        assert record.name == "Chocolate amargo"
        assert record.classification_code == "1806.32"
        assert record.created_or_updated_at == deterministic_clock.now_utc()
        assert store.read("LOTE-001") == record

    def test_update_copies_relations_through(self, store, memory_ledger):
        cacau = RelationRef("LOTE-777", "Cacau", "1801")
        record = store.create("LOTE-001", "Chocolate", "1806").with_input(
            cacau, store.clock.now_utc()
        )
        store.write(record)

        updated = store.update("LOTE-001", "Chocolate amargo", "1806")

        assert updated.inputs == (cacau,)
        assert updated.used_by == ()

    def test_update_missing(self, store, memory_ledger):
        with pytest.raises(RecordNotFoundError):
            store.update("LOTE-404", "X", "0000")
        assert _version_count(memory_ledger, "LOTE-404") == 0


class TestDelete:
    def test_delete_missing(self, store):
        with pytest.raises(RecordNotFoundError):
            store.delete("LOTE-404")

    def test_delete_keeps_history(self, store, memory_ledger):
        store.create("LOTE-001", "Chocolate", "1806")
        store.delete("LOTE-001")

        entries = list(memory_ledger.history_of("LOTE-001"))
        assert [e.is_delete for e in entries] == [False, True]

    def test_delete_does_not_cascade(self, store, memory_ledger):
        cacau = store.create("LOTE-777", "Cacau", "1801")
        owner = store.create("LOTE-001", "Chocolate", "1806")
        store.write(owner.with_input(cacau.as_relation_ref(), owner.created_or_updated_at))
        before = memory_ledger.get("LOTE-001")

        store.delete("LOTE-777")

        assert memory_ledger.get("LOTE-001") == before
        assert store.read("LOTE-001").inputs[0].record_id == "LOTE-777"

    def test_write_uses_canonical_encoding(self, store, memory_ledger):
        record = store.create("LOTE-001", "Chocolate", "1806")
        assert memory_ledger.get("LOTE-001") == encode_record(record)
