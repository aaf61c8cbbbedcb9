"""AXM fixed-point amount helpers.

AXM is an 18-decimal ERC-20 token. Settlement math works in integer base
units; ``Decimal`` is only used at the edges (price strings in, display out).
"""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Union

AXM_DECIMALS = 18
AXM_SYMBOL = "AXM"
BASE_UNITS_PER_AXM = 10**AXM_DECIMALS
BPS_DENOMINATOR = 10_000

AmountLike = Union[str, int, Decimal]


def to_decimal(value: AmountLike) -> Decimal:
    """Convert a price string, int or Decimal to Decimal without float drift."""
    if isinstance(value, float):
        raise TypeError("float amounts are not accepted; pass a str or Decimal")
    try:
        result = Decimal(value) if not isinstance(value, Decimal) else value
    except InvalidOperation as e:
        raise ValueError(f"invalid AXM amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"invalid AXM amount: {value!r}")
    return result


def to_base_units(amount: AmountLike) -> int:
    """Convert a whole-token amount to base units.

    Digits beyond the 18th decimal are truncated, matching how the wallet UI
    pads or cuts the fractional part before signing.
    """
    value = to_decimal(amount)
    if value < 0:
        raise ValueError("amount cannot be negative")
    scaled = (value * BASE_UNITS_PER_AXM).quantize(Decimal("1"), rounding=ROUND_DOWN)
    return int(scaled)


def from_base_units(base_units: int) -> Decimal:
    """Convert base units to a whole-token Decimal."""
    return Decimal(base_units) / Decimal(BASE_UNITS_PER_AXM)


def format_axm(base_units: int, places: int = 2) -> str:
    """Render base units for display, e.g. ``1,234.50``.

    The fractional part is truncated, never rounded up, so the display
    never overstates a balance.
    """
    sign = "-" if base_units < 0 else ""
    integer_part, fractional_part = divmod(abs(base_units), BASE_UNITS_PER_AXM)
    fractional = str(fractional_part).rjust(AXM_DECIMALS, "0")[:places]
    if places <= 0:
        return f"{sign}{integer_part:,}"
    return f"{sign}{integer_part:,}.{fractional}"


def apply_bps(amount_base_units: int, bps: int) -> int:
    """Return ``round(amount * bps / 10000)`` using half-up integer rounding."""
    if bps < 0 or bps > BPS_DENOMINATOR:
        raise ValueError("basis points must be between 0 and 10000")
    return (amount_base_units * bps + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR
