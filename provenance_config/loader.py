"""
Configuration Loader (``provenance_config.loader``).

Responsibility
--------------
Loads a YAML configuration file, applies environment overrides, and parses
the result into the typed dataclasses of ``provenance_config.schema``.
This is internal tooling; the single public entry point is
``provenance_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown sections or keys raise ``ValueError``; no silent acceptance.
* Missing required keys (``database.url``) raise ``KeyError``.
* ``compute_checksum`` produces a deterministic SHA-256 of the resolved
  settings.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad value types  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from provenance_config.schema import (
    LOG_LEVELS,
    DatabaseSettings,
    LoggingSettings,
    ProvenanceConfig,
)
from provenance_kernel.utils.hashing import hash_payload

ENV_DATABASE_URL = "PROVENANCE_DATABASE_URL"
ENV_DB_ECHO = "PROVENANCE_DB_ECHO"
ENV_LOG_LEVEL = "PROVENANCE_LOG_LEVEL"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{key}: expected a boolean, got {value!r}")


def parse_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key}: expected an integer, got {value!r}") from e


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of data with PROVENANCE_* environment overrides applied."""
    merged = {section: dict(values or {}) for section, values in data.items()}
    if environ.get(ENV_DATABASE_URL):
        merged.setdefault("database", {})["url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_DB_ECHO):
        merged.setdefault("database", {})["echo"] = environ[ENV_DB_ECHO]
    if environ.get(ENV_LOG_LEVEL):
        merged.setdefault("logging", {})["level"] = environ[ENV_LOG_LEVEL]
    return merged


def _check_keys(section: str, values: dict[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {unknown}")


def parse_database(values: dict[str, Any]) -> DatabaseSettings:
    _check_keys("database", values, {f.name for f in fields(DatabaseSettings)})
    url = values["url"]
    if not isinstance(url, str) or not url:
        raise ValueError("database.url: expected a non-empty string")
    return DatabaseSettings(
        url=url,
        echo=parse_bool(values.get("echo", False), "database.echo"),
        pool_size=parse_int(values.get("pool_size", 20), "database.pool_size"),
        max_overflow=parse_int(values.get("max_overflow", 10), "database.max_overflow"),
        pool_timeout=parse_int(values.get("pool_timeout", 30), "database.pool_timeout"),
        pool_recycle=parse_int(values.get("pool_recycle", 1800), "database.pool_recycle"),
    )


def parse_logging(values: dict[str, Any]) -> LoggingSettings:
    _check_keys("logging", values, {f.name for f in fields(LoggingSettings)})
    level = str(values.get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"logging.level: expected one of {LOG_LEVELS}, got {level!r}")
    return LoggingSettings(level=level)


def parse_config(data: dict[str, Any], source: str) -> ProvenanceConfig:
    """Parse a merged configuration mapping into a ProvenanceConfig."""
    _check_keys("<root>", data, {"database", "logging"})
    database = parse_database(data["database"])
    logging_settings = parse_logging(data.get("logging") or {})
    checksum = compute_checksum(
        {"database": asdict(database), "logging": asdict(logging_settings)}
    )
    return ProvenanceConfig(
        database=database,
        logging=logging_settings,
        source=source,
        checksum=checksum,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of data."""
    return hash_payload(data)
