"""
Configuration loader (``hoa_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen dataclasses of
``hoa_config.schema``.  Runtime callers go through
``hoa_config.get_active_config()`` instead of calling this module.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Amounts are parsed as ``Decimal`` from their string form.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from hoa_config.schema import AccountSeed, DatabaseConfig, LedgerConfig

_ACCOUNT_TYPES = frozenset({"asset", "liability", "equity", "revenue", "expense"})
_NORMAL_BALANCES = frozenset({"debit", "credit"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def parse_account_seed(data: dict[str, Any]) -> AccountSeed:
    """Parse one default-chart account, validating its type and side."""
    seed = AccountSeed(
        account_code=str(data["code"]),
        account_name=data["name"],
        account_type=data["type"],
        normal_balance=data["normal_balance"],
        account_subtype=data.get("subtype"),
        description=data.get("description"),
        is_system_account=bool(data.get("system", True)),
    )
    if seed.account_type not in _ACCOUNT_TYPES:
        raise ValueError(f"Account {seed.account_code}: unknown type {seed.account_type!r}")
    if seed.normal_balance not in _NORMAL_BALANCES:
        raise ValueError(
            f"Account {seed.account_code}: unknown normal balance {seed.normal_balance!r}"
        )
    return seed


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """
    Build a ``LedgerConfig`` from the parsed YAML document.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if a value is out of range.
    """
    ledger = data["ledger"]
    numbering = ledger.get("entry_number", {})
    db = data.get("database", {})

    config = LedgerConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        balance_tolerance=parse_decimal(ledger.get("balance_tolerance", "0.01"), "balance_tolerance"),
        min_lines=int(ledger.get("min_lines", 2)),
        entry_number_prefix=str(numbering.get("prefix", "JE")),
        entry_number_width=int(numbering.get("width", 4)),
        money_decimal_places=int(ledger.get("money_decimal_places", 2)),
        database=DatabaseConfig(
            url=db.get("url", "sqlite:///:memory:"),
            echo=bool(db.get("echo", False)),
            pool_size=int(db.get("pool_size", 20)),
            max_overflow=int(db.get("max_overflow", 10)),
        ),
        default_accounts=tuple(
            parse_account_seed(item) for item in data.get("default_accounts", [])
        ),
        checksum=compute_checksum(data),
    )
    validate_config(config)
    return config


def validate_config(config: LedgerConfig) -> None:
    """Raise ``ValueError`` listing every out-of-range setting."""
    errors = []
    if config.balance_tolerance < 0:
        errors.append("balance_tolerance must not be negative")
    if config.min_lines < 2:
        errors.append("min_lines must be at least 2")
    if not re.fullmatch(r"[A-Za-z]+", config.entry_number_prefix):
        errors.append("entry_number.prefix must be letters only")
    if config.entry_number_width < 1:
        errors.append("entry_number.width must be at least 1")
    if config.money_decimal_places < 0:
        errors.append("money_decimal_places must not be negative")
    codes = [seed.account_code for seed in config.default_accounts]
    if len(codes) != len(set(codes)):
        errors.append("default_accounts contains duplicate codes")
    if errors:
        raise ValueError(
            "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
