"""
provenance_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Callers (the CLI, an embedding service) never
    read configuration files or PROVENANCE_* environment variables
    themselves.

Architecture position:
    Configuration -- sits beside ``provenance_kernel``.  The kernel MUST NEVER
    import from ``provenance_config``: the kernel receives a LedgerContext,
    and only the outer layer turns configuration into an engine and context.

Failure modes:
    - ``FileNotFoundError`` -- the requested YAML file does not exist.
    - ``ValueError`` / ``KeyError`` -- schema violations.

Audit relevance:
    Every successful ``get_active_config()`` call logs ``config_loaded``
    with the source path and checksum of the resolved settings.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from provenance_config.loader import apply_env_overrides, load_yaml_file, parse_config
from provenance_config.schema import DatabaseSettings, LoggingSettings, ProvenanceConfig

_logger = logging.getLogger("provenance_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "LoggingSettings",
    "ProvenanceConfig",
    "get_active_config",
]


def get_active_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ProvenanceConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``.
        environ: Environment mapping for overrides.  Defaults to
            ``os.environ``.

    Returns:
        ProvenanceConfig with a checksum of the resolved settings.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = apply_env_overrides(
        load_yaml_file(path),
        os.environ if environ is None else environ,
    )
    config = parse_config(data, source=str(path))

    _logger.info(
        "config_loaded",
        extra={
            "source": config.source,
            "checksum": config.checksum,
            "log_level": config.logging.level,
        },
    )
    return config
