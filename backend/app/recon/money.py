"""
Recon - fixed-point money helpers.

Design notes:
- Every amount that enters the engine goes through to_money() so balances are
  accumulated as Decimal, never float.
- Rounding to the currency minor unit happens once, at the edge of a
  computation (quantize_money), not on intermediate values.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """
    Coerce a raw amount into a Decimal.

    Floats are routed through str() so 0.1 becomes Decimal("0.1") rather than
    its binary expansion. Strings may carry thousands separators ("1,234.50").

    Raises ValueError for None, blanks, bools, non-finite or unparseable input.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"not a monetary amount: {value!r}")

    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        d = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            raise ValueError("blank monetary amount")
        try:
            d = Decimal(cleaned)
        except InvalidOperation as e:
            raise ValueError(f"unparseable monetary amount: {value!r}") from e
    else:
        raise ValueError(f"unsupported monetary type: {type(value).__name__}")

    if not d.is_finite():
        raise ValueError(f"non-finite monetary amount: {value!r}")
    return d


def quantize_money(value: Decimal, minor_unit: Decimal = CENT) -> Decimal:
    return value.quantize(minor_unit, rounding=ROUND_HALF_UP)
