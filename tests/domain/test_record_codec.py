"""
Tests for the Record value type and its stored JSON form.

Covers:
- encode/decode of the canonical field names
- copy-through of relation lists on field updates
- strict decoding: every malformed shape raises CorruptRecordError
"""

import json
from datetime import datetime, timezone

import pytest

from provenance_kernel.domain.record import (
    RECORD_FIELDS,
    Record,
    RelationRef,
    decode_record,
    encode_record,
)
from provenance_kernel.exceptions import CorruptRecordError

AT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
CACAU = RelationRef(record_id="LOTE-777", name="Cacau", classification_code="1801")
CHOCOLATE = RelationRef(record_id="LOTE-001", name="Chocolate", classification_code="1806")


def _stored(**overrides) -> bytes:
    data = {
        "id": "LOTE-001",
        "createdOrUpdatedAt": AT.isoformat(),
        "name": "Chocolate",
        "classificationCode": "1806",
        "inputs": [],
        "usedBy": [],
    }
    data.update(overrides)
    return json.dumps(data).encode("utf-8")


class TestStoredForm:
    """The JSON field names are part of the history format."""

    def test_encoded_field_names(self):
        record = Record.new("LOTE-001", "Chocolate", "1806", AT).with_input(CACAU, AT)
        data = json.loads(encode_record(record))

        assert set(data) == set(RECORD_FIELDS)
        assert data["id"] == "LOTE-001"
        assert data["classificationCode"] == "1806"
        assert data["inputs"] == [
            {"id": "LOTE-777", "name": "Cacau", "classificationCode": "1801"}
        ]
        assert data["usedBy"] == []

    def test_encoding_is_canonical(self):
        """Same record always yields the same bytes (sorted keys, compact)."""
        record = Record.new("LOTE-001", "Chocolate", "1806", AT)
        encoded = encode_record(record)

        assert encoded == encode_record(record)
        assert b" " not in encoded.replace(b"Chocolate", b"")
        assert encoded.index(b'"classificationCode"') < encoded.index(b'"id"')

    def test_decode_restores_record(self):
        record = (
            Record.new("LOTE-777", "Cacau", "1801", AT)
            .with_used_by(CHOCOLATE, CHOCOLATE, at=AT)
        )

        decoded = decode_record("LOTE-777", encode_record(record))

        assert decoded == record
        assert decoded.created_or_updated_at.tzinfo is not None

    def test_non_ascii_names_survive(self):
        record = Record.new("LOTE-002", "Açúcar mascavo", "1701", AT)
        assert decode_record("LOTE-002", encode_record(record)).name == "Açúcar mascavo"

    def test_empty_name_and_code_allowed(self):
        record = Record.new("LOTE-003", "", "", AT)
        decoded = decode_record("LOTE-003", encode_record(record))
        assert decoded.name == ""
        assert decoded.classification_code == ""


class TestRecordTransitions:
    """Frozen-value transitions used by the services."""

    def test_with_fields_copies_relations_through(self):
        later = datetime(2024, 2, 1, tzinfo=timezone.utc)
        record = (
            Record.new("LOTE-001", "Chocolate", "1806", AT)
            .with_input(CACAU, AT)
            .with_used_by(CHOCOLATE, at=AT)
        )

        updated = record.with_fields("Chocolate 70%", "1806.32", later)

        assert updated.name == "Chocolate 70%"
        assert updated.classification_code == "1806.32"
        assert updated.created_or_updated_at == later
        assert updated.inputs == record.inputs
        assert updated.used_by == record.used_by

    def test_with_input_appends_duplicates(self):
        record = Record.new("LOTE-001", "Chocolate", "1806", AT)
        record = record.with_input(CACAU, AT).with_input(CACAU, AT)
        assert record.inputs == (CACAU, CACAU)

    def test_as_relation_ref(self):
        record = Record.new("LOTE-001", "Chocolate", "1806", AT)
        assert record.as_relation_ref() == CHOCOLATE

    def test_record_is_frozen(self):
        record = Record.new("LOTE-001", "Chocolate", "1806", AT)
        with pytest.raises(AttributeError):
            record.name = "Other"  # type: ignore[misc]


class TestStrictDecode:
    """Malformed stored values never reach the services."""

    def test_invalid_json(self):
        with pytest.raises(CorruptRecordError) as exc_info:
            decode_record("LOTE-001", b"{not json")
        assert exc_info.value.record_id == "LOTE-001"

    def test_invalid_utf8(self):
        with pytest.raises(CorruptRecordError):
            decode_record("LOTE-001", b"\xff\xfe\xfd")

    def test_not_an_object(self):
        with pytest.raises(CorruptRecordError, match="not an object"):
            decode_record("LOTE-001", b"[1, 2, 3]")

    @pytest.mark.parametrize("field_name", RECORD_FIELDS)
    def test_missing_field(self, field_name):
        data = json.loads(_stored())
        del data[field_name]
        with pytest.raises(CorruptRecordError, match=field_name):
            decode_record("LOTE-001", json.dumps(data).encode())

    def test_wrong_field_type(self):
        with pytest.raises(CorruptRecordError, match="'name'"):
            decode_record("LOTE-001", _stored(name=42))

    def test_id_mismatch(self):
        with pytest.raises(CorruptRecordError, match="does not match key"):
            decode_record("LOTE-999", _stored())

    def test_bad_timestamp(self):
        with pytest.raises(CorruptRecordError, match="ISO-8601"):
            decode_record("LOTE-001", _stored(createdOrUpdatedAt="yesterday"))

    def test_relations_not_a_list(self):
        with pytest.raises(CorruptRecordError, match="'inputs' is not a list"):
            decode_record("LOTE-001", _stored(inputs={"id": "LOTE-777"}))

    def test_malformed_relation_entry(self):
        bad = [{"id": "LOTE-002", "name": "Leite"}]
        with pytest.raises(CorruptRecordError, match=r"usedBy\[0\]"):
            decode_record("LOTE-001", _stored(usedBy=bad))
