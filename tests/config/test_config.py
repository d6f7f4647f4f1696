"""
Configuration loading tests.

get_active_config() is the only runtime entrypoint.  These tests load the
shipped default set and small YAML files written to tmp_path.
"""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest
import yaml

from hoa_config import DATABASE_URL_ENV, get_active_config
from hoa_config.loader import compute_checksum, parse_account_seed, parse_config

MINIMAL = {
    "config_id": "test-set",
    "version": 3,
    "ledger": {
        "balance_tolerance": "0.05",
        "min_lines": 2,
        "entry_number": {"prefix": "GJ", "width": 5},
    },
    "database": {"url": "sqlite:///:memory:"},
    "default_accounts": [
        {"code": "1000", "name": "Cash", "type": "asset", "normal_balance": "debit"},
        {"code": "4000", "name": "Dues", "type": "revenue", "normal_balance": "credit"},
    ],
}


def _write(tmp_path, data) -> str:
    path = tmp_path / "ledger.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestDefaultConfig:
    def test_default_set(self, monkeypatch):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = get_active_config()

        assert config.config_id == "hoa-default"
        assert config.balance_tolerance == Decimal("0.01")
        assert config.min_lines == 2
        assert config.entry_number_prefix == "JE"
        assert config.entry_number_width == 4
        assert config.money_decimal_places == 2
        assert config.database.url == "sqlite:///hoa_ledger.db"
        assert len(config.checksum) == 64

    def test_default_chart(self):
        config = get_active_config()
        codes = [seed.account_code for seed in config.default_accounts]

        assert codes == sorted(codes)
        assert {"1000", "1100", "2000", "3000", "4000", "6000"} <= set(codes)
        cash = config.default_accounts[0]
        assert cash.account_name == "Cash - Operating"
        assert cash.account_type == "asset"
        assert cash.normal_balance == "debit"
        assert cash.is_system_account

    def test_is_frozen(self):
        config = get_active_config()
        with pytest.raises(FrozenInstanceError):
            config.min_lines = 3

    def test_env_overrides_database_url(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://hoa@db/ledger")
        assert get_active_config().database.url == "postgresql://hoa@db/ledger"

    def test_emits_config_trace(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "hoa-default"
        assert traces[0]["checksum"] == config.checksum


class TestCustomConfig:
    def test_loads_file(self, tmp_path):
        config = get_active_config(_write(tmp_path, MINIMAL))

        assert config.config_id == "test-set"
        assert config.version == 3
        assert config.balance_tolerance == Decimal("0.05")
        assert config.entry_number_prefix == "GJ"
        assert config.entry_number_width == 5
        assert len(config.default_accounts) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")

    def test_missing_required_key(self, tmp_path):
        data = {k: v for k, v in MINIMAL.items() if k != "config_id"}
        with pytest.raises(KeyError):
            get_active_config(_write(tmp_path, data))

    @pytest.mark.parametrize(
        "ledger_overrides, message",
        [
            ({"min_lines": 1}, "min_lines"),
            ({"balance_tolerance": "-0.01"}, "balance_tolerance"),
            ({"entry_number": {"prefix": "J-E", "width": 4}}, "prefix"),
            ({"entry_number": {"prefix": "JE", "width": 0}}, "width"),
        ],
    )
    def test_out_of_range_values(self, tmp_path, ledger_overrides, message):
        data = dict(MINIMAL, ledger=dict(MINIMAL["ledger"], **ledger_overrides))
        with pytest.raises(ValueError, match=message):
            get_active_config(_write(tmp_path, data))

    def test_non_numeric_tolerance(self):
        data = dict(MINIMAL, ledger=dict(MINIMAL["ledger"], balance_tolerance="a cent"))
        with pytest.raises(ValueError):
            parse_config(data)

    def test_duplicate_account_codes(self):
        accounts = MINIMAL["default_accounts"] + [MINIMAL["default_accounts"][0]]
        with pytest.raises(ValueError, match="duplicate"):
            parse_config(dict(MINIMAL, default_accounts=accounts))

    def test_every_error_reported(self):
        data = dict(MINIMAL, ledger={"min_lines": 0, "balance_tolerance": "-1"})
        with pytest.raises(ValueError) as exc_info:
            parse_config(data)
        assert "min_lines" in str(exc_info.value)
        assert "balance_tolerance" in str(exc_info.value)


class TestAccountSeed:
    def test_unknown_type(self):
        with pytest.raises(ValueError):
            parse_account_seed({"code": "1", "name": "x", "type": "income", "normal_balance": "credit"})

    def test_unknown_side(self):
        with pytest.raises(ValueError):
            parse_account_seed({"code": "1", "name": "x", "type": "asset", "normal_balance": "up"})

    def test_numeric_code_becomes_string(self):
        seed = parse_account_seed(
            {"code": 1000, "name": "Cash", "type": "asset", "normal_balance": "debit", "system": False}
        )
        assert seed.account_code == "1000"
        assert seed.is_system_account is False


class TestChecksum:
    def test_deterministic(self):
        assert compute_checksum(MINIMAL) == compute_checksum(dict(MINIMAL))

    def test_changes_with_content(self):
        assert compute_checksum(MINIMAL) != compute_checksum(dict(MINIMAL, version=4))
