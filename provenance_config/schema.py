"""
Provenance configuration schema.

Frozen dataclasses parsed from YAML by ``provenance_config.loader``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the SQL ledger backend."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class ProvenanceConfig:
    """Resolved runtime configuration."""

    database: DatabaseSettings
    logging: LoggingSettings
    source: str
    checksum: str

    def to_dict(self) -> dict[str, Any]:
        return {"database": asdict(self.database), "logging": asdict(self.logging)}
