"""
Canonical JSON and content hashing.

Stored record bytes and configuration checksums have to be reproducible
byte for byte, so both go through canonicalize_json(): sorted keys, no
insignificant whitespace, UTF-8 text kept as-is.
"""

import hashlib
import json
from datetime import date
from typing import Any


def _encode_extra(obj: Any) -> Any:
    # date covers datetime as well
    if isinstance(obj, date):
        return obj.isoformat()
    raise TypeError(f"{type(obj).__name__} has no canonical JSON form")


def canonicalize_json(data: Any) -> str:
    """Deterministic JSON text for data."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_encode_extra,
    )


def hash_payload(payload: Any) -> str:
    """Hex SHA-256 of the canonical JSON of payload."""
    return hashlib.sha256(canonicalize_json(payload).encode("utf-8")).hexdigest()
