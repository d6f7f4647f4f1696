"""Entry number formatting: ``<prefix>-<year>-<zero-padded sequence>``, e.g. ``JE-2024-0001``."""

import re
from dataclasses import dataclass

DEFAULT_PREFIX = "JE"
DEFAULT_WIDTH = 4


@dataclass(frozen=True)
class EntryNumber:
    prefix: str
    year: int
    sequence: int


def format_entry_number(
    year: int,
    sequence: int,
    prefix: str = DEFAULT_PREFIX,
    width: int = DEFAULT_WIDTH,
) -> str:
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    return f"{prefix}-{year}-{sequence:0{width}d}"


def year_prefix(year: int, prefix: str = DEFAULT_PREFIX) -> str:
    """The leading part shared by every number issued in ``year``."""
    return f"{prefix}-{year}-"


def parse_entry_number(value: str) -> EntryNumber:
    """
    Split an entry number into its parts.

    Sequences wider than the configured width (``JE-2024-10000``) parse too.

    Raises:
        ValueError: If value does not look like an entry number.
    """
    match = re.fullmatch(r"([A-Za-z]+)-(\d{4})-(\d+)", value)
    if match is None:
        raise ValueError(f"Not an entry number: {value!r}")
    return EntryNumber(
        prefix=match.group(1),
        year=int(match.group(2)),
        sequence=int(match.group(3)),
    )


def sequence_name(association_id: str, year: int) -> str:
    """Counter row name for an association's entries in a year."""
    return f"journal_entry:{association_id}:{year}"
