"""
hoa_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables.

Architecture position:
    Configuration.  Sits beside ``hoa_kernel`` and below ``hoa_services``.
    The kernel MUST NEVER import from ``hoa_config``; the services layer
    passes config values into kernel constructors.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- out-of-range settings.
    - ``KeyError`` -- required keys missing.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEDGER_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying ledger activity to the configuration that governed it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from hoa_config.loader import load_yaml_file, parse_config
from hoa_config.schema import AccountSeed, DatabaseConfig, LedgerConfig

_logger = logging.getLogger("hoa_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

DATABASE_URL_ENV = "HOA_LEDGER_DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to hoa_config/sets/default.yaml.

    Returns:
        A frozen, validated ``LedgerConfig``.  When the
        ``HOA_LEDGER_DATABASE_URL`` environment variable is set it replaces
        ``database.url``.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If configuration validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(path))

    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        config = replace(config, database=replace(config.database, url=env_url))

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
            "default_account_count": len(config.default_accounts),
        },
    )
    return config


__all__ = [
    "AccountSeed",
    "DATABASE_URL_ENV",
    "DatabaseConfig",
    "LedgerConfig",
    "get_active_config",
]
