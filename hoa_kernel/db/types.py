"""
Module: hoa_kernel.db.types
Responsibility: Money conversion and rounding helpers used by DTOs, services
    and selectors, so precision and rounding are defined once.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  Inputs are converted through ``str`` before they
      become Decimal, so ``0.1`` becomes ``Decimal("0.1")`` rather than its
      binary expansion.
    - round_money() is the only sanctioned rounding function.

Failure modes:
    - ValueError on a value that is not a number.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0")


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """
    Convert an amount supplied by a caller to Decimal.

    None and the empty string are treated as zero (an unused side of a line).

    Raises:
        ValueError: If value is not numeric or not finite.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return result


def money_from_int(value: int, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """
    Create a Money value from minor units.

    Example:
        money_from_int(1050, 2) -> Decimal("10.50")
    """
    return Decimal(value) / (Decimal(10) ** decimal_places)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for financial values.
    """
    return value.quantize(Decimal(1).scaleb(-decimal_places), rounding=rounding)
