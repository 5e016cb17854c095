"""
Record - One tracked product/lot and its two relation lists.

===============================================================================
PURPOSE
===============================================================================

A Record is the unit stored under one ledger key. It names a product/lot,
carries its tariff/classification code, and holds two ordered lists of
RelationRef snapshots:

    inputs   - the lots consumed to produce this lot
    usedBy   - the downstream lots that consumed this lot

Example:
    LOTE-001 "Chocolate" (1806)
        inputs = [LOTE-777 "Cacau" (1801)]
    LOTE-777 "Cacau" (1801)
        usedBy = [LOTE-001 "Chocolate" (1806)]

===============================================================================
STORED FORM
===============================================================================

Records are stored as canonical JSON with these field names. The names are
part of the history format: old versions must keep decoding, so they never
change.

    {
      "id": "LOTE-001",
      "createdOrUpdatedAt": "2024-01-01T12:00:00+00:00",
      "name": "Chocolate",
      "classificationCode": "1806",
      "inputs": [{"id": ..., "name": ..., "classificationCode": ...}],
      "usedBy": [{"id": ..., "name": ..., "classificationCode": ...}]
    }

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY FROZEN DATACLASSES WITH TUPLES?
   Every mutation is "read fresh state, build a new value, write once".
   Frozen values make the copy-through of inputs/usedBy explicit: a plain
   field update cannot accidentally clear or reorder them.

2. WHY A STRICT DECODE STEP?
   Stored bytes come from an external ledger. decode_record() checks every
   field's presence and type and raises CorruptRecordError rather than
   handing a half-shaped dict to the rest of the kernel.

3. WHY ARE RelationRefs SNAPSHOTS?
   A RelationRef copies the counterpart's name/code at the moment the edge
   is created. Later edits to the counterpart are not propagated.

===============================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from provenance_kernel.exceptions import CorruptRecordError
from provenance_kernel.utils.hashing import canonicalize_json

RECORD_FIELDS = (
    "id",
    "createdOrUpdatedAt",
    "name",
    "classificationCode",
    "inputs",
    "usedBy",
)
RELATION_REF_FIELDS = ("id", "name", "classificationCode")


@dataclass(frozen=True)
class RelationRef:
    """
    Denormalized snapshot of a counterpart record's identity.

    Not independently addressable; lives only inside a Record's inputs or
    usedBy list.
    """

    record_id: str
    name: str
    classification_code: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.record_id,
            "name": self.name,
            "classificationCode": self.classification_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> RelationRef:
        return cls(
            record_id=data["id"],
            name=data["name"],
            classification_code=data["classificationCode"],
        )


@dataclass(frozen=True)
class Record:
    """
    A tracked product/lot.

    Invariants:
        - record_id is immutable once assigned.
        - inputs/used_by only grow through relationship operations; field
          updates copy them through verbatim.
    """

    record_id: str
    created_or_updated_at: datetime
    name: str
    classification_code: str
    inputs: tuple[RelationRef, ...] = ()
    used_by: tuple[RelationRef, ...] = ()

    @classmethod
    def new(
        cls,
        record_id: str,
        name: str,
        classification_code: str,
        at: datetime,
        used_by: tuple[RelationRef, ...] = (),
    ) -> Record:
        """Build a freshly created record with empty inputs."""
        return cls(
            record_id=record_id,
            created_or_updated_at=at,
            name=name,
            classification_code=classification_code,
            inputs=(),
            used_by=used_by,
        )

    def as_relation_ref(self) -> RelationRef:
        """Snapshot of this record's identifying fields."""
        return RelationRef(
            record_id=self.record_id,
            name=self.name,
            classification_code=self.classification_code,
        )

    def with_fields(self, name: str, classification_code: str, at: datetime) -> Record:
        """Replace name/code/timestamp; relation lists are carried over unchanged."""
        return replace(
            self,
            name=name,
            classification_code=classification_code,
            created_or_updated_at=at,
        )

    def with_input(self, ref: RelationRef, at: datetime) -> Record:
        return replace(self, inputs=self.inputs + (ref,), created_or_updated_at=at)

    def with_used_by(self, *refs: RelationRef, at: datetime) -> Record:
        return replace(self, used_by=self.used_by + refs, created_or_updated_at=at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.record_id,
            "createdOrUpdatedAt": self.created_or_updated_at.isoformat(),
            "name": self.name,
            "classificationCode": self.classification_code,
            "inputs": [ref.to_dict() for ref in self.inputs],
            "usedBy": [ref.to_dict() for ref in self.used_by],
        }


# =============================================================================
# Codec
# =============================================================================


def encode_record(record: Record) -> bytes:
    """Serialize a record to its canonical stored bytes."""
    return canonicalize_json(record.to_dict()).encode("utf-8")


def decode_record(record_id: str, value: bytes) -> Record:
    """
    Decode stored bytes into a Record.

    Args:
        record_id: The ledger key the bytes were read from.
        value: Stored bytes.

    Raises:
        CorruptRecordError: If the bytes are not a well-formed record stored
            under ``record_id``.
    """
    try:
        data = json.loads(value.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptRecordError(record_id, f"not valid UTF-8 JSON: {e}") from e

    if not isinstance(data, dict):
        raise CorruptRecordError(record_id, "stored value is not an object")

    missing = [f for f in RECORD_FIELDS if f not in data]
    if missing:
        raise CorruptRecordError(record_id, f"missing fields {missing}")

    for field_name in ("id", "name", "classificationCode", "createdOrUpdatedAt"):
        if not isinstance(data[field_name], str):
            raise CorruptRecordError(record_id, f"field '{field_name}' is not a string")

    if data["id"] != record_id:
        raise CorruptRecordError(
            record_id, f"stored id '{data['id']}' does not match key"
        )

    try:
        at = datetime.fromisoformat(data["createdOrUpdatedAt"])
    except ValueError as e:
        raise CorruptRecordError(
            record_id, "field 'createdOrUpdatedAt' is not an ISO-8601 timestamp"
        ) from e

    return Record(
        record_id=data["id"],
        created_or_updated_at=at,
        name=data["name"],
        classification_code=data["classificationCode"],
        inputs=_decode_refs(record_id, "inputs", data["inputs"]),
        used_by=_decode_refs(record_id, "usedBy", data["usedBy"]),
    )


def _decode_refs(record_id: str, field_name: str, raw: Any) -> tuple[RelationRef, ...]:
    if not isinstance(raw, list):
        raise CorruptRecordError(record_id, f"field '{field_name}' is not a list")
    refs = []
    for position, item in enumerate(raw):
        if not isinstance(item, dict) or not all(
            isinstance(item.get(f), str) for f in RELATION_REF_FIELDS
        ):
            raise CorruptRecordError(
                record_id, f"malformed relation at {field_name}[{position}]"
            )
        refs.append(RelationRef.from_dict(item))
    return tuple(refs)
