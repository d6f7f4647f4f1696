"""
Ledger configuration schema.

Frozen dataclasses that the loader fills from YAML.  ``LedgerConfig`` is the
only runtime artifact; services receive its values as constructor arguments
and never see YAML.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class AccountSeed:
    """One account of the default chart created for a new association."""

    account_code: str
    account_name: str
    account_type: str
    normal_balance: str
    account_subtype: str | None = None
    description: str | None = None
    is_system_account: bool = True


@dataclass(frozen=True)
class LedgerConfig:
    """Validated, immutable ledger configuration."""

    config_id: str
    version: int
    balance_tolerance: Decimal
    min_lines: int
    entry_number_prefix: str
    entry_number_width: int
    money_decimal_places: int
    database: DatabaseConfig
    default_accounts: tuple[AccountSeed, ...] = field(default_factory=tuple)
    checksum: str = ""
