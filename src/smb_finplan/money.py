# SMB FinPlan - Financial projection engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Monetary helpers shared by the engine modules.

All amounts are handled as ``decimal.Decimal``. Values coming from
configuration files, CSV readers or callers may be int, float, str or
Decimal; they are converted through their string representation so that
a float such as 0.1 becomes Decimal("0.1") and not its binary expansion.

The smallest reporting unit is one cent. Rounding rules:

- ``floor_to_unit`` is used for per-period shares (amortization charges,
  allocation amounts) so that the residue can be pushed to the last
  period and the total is preserved exactly,
- ``round_to_unit`` (half-up) is used for computed amounts such as taxes.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert ``value`` to a Decimal.

    Raises:
        ValidationError: if the value is None, a bool, not numeric, NaN or
            infinite.
    """
    if isinstance(value, Decimal):
        result = value
    elif value is None or isinstance(value, bool):
        raise ValidationError(f"Invalid numeric value for {field!r}: {value!r}")
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(
                f"Invalid numeric value for {field!r}: {value!r}"
            ) from exc

    if not result.is_finite():
        raise ValidationError(f"Non-finite value for {field!r}: {value!r}")
    return result


def floor_to_unit(value: Decimal) -> Decimal:
    """Round ``value`` down to the cent."""
    return value.quantize(CENT, rounding=ROUND_FLOOR)


def round_to_unit(value: Decimal) -> Decimal:
    """Round ``value`` half-up to the cent."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
