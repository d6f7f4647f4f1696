"""Entry number formatting and parsing."""

import pytest

from hoa_kernel.domain.entry_number import (
    EntryNumber,
    format_entry_number,
    parse_entry_number,
    sequence_name,
    year_prefix,
)


class TestFormat:
    def test_default_format(self):
        assert format_entry_number(2024, 1) == "JE-2024-0001"

    def test_pads_to_width(self):
        assert format_entry_number(2024, 42) == "JE-2024-0042"
        assert format_entry_number(2024, 9999) == "JE-2024-9999"

    def test_sequence_wider_than_width_is_not_truncated(self):
        assert format_entry_number(2024, 10000) == "JE-2024-10000"

    def test_custom_prefix_and_width(self):
        assert format_entry_number(2025, 7, prefix="ADJ", width=6) == "ADJ-2025-000007"

    @pytest.mark.parametrize("sequence", [0, -1])
    def test_non_positive_sequence_rejected(self, sequence):
        with pytest.raises(ValueError):
            format_entry_number(2024, sequence)


class TestParse:
    def test_parse_round_trip(self):
        assert parse_entry_number("JE-2024-0042") == EntryNumber("JE", 2024, 42)

    def test_parse_wide_sequence(self):
        assert parse_entry_number("JE-2024-10000").sequence == 10000

    @pytest.mark.parametrize(
        "value",
        ["", "JE-2024", "JE-24-0001", "2024-0001", "JE-2024-00A1", "JE-2024-0001-x"],
    )
    def test_parse_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_entry_number(value)


class TestNames:
    def test_year_prefix(self):
        assert year_prefix(2024) == "JE-2024-"
        assert format_entry_number(2024, 3).startswith(year_prefix(2024))

    def test_sequence_name_is_per_association_and_year(self):
        assert sequence_name("assoc-1", 2024) == "journal_entry:assoc-1:2024"
        assert sequence_name("assoc-1", 2024) != sequence_name("assoc-2", 2024)
        assert sequence_name("assoc-1", 2024) != sequence_name("assoc-1", 2025)
