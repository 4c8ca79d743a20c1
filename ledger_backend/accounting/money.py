# accounting/money.py

"""
Money helpers shared by the ledger.

All amounts are Decimal with exactly 2 places. Input with finer precision
is refused rather than rounded, and so is float input.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
MIN_AMOUNT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Parse str/int/Decimal into a 2dp Decimal. Raises ValueError on junk or sub-cent precision."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, (bool, float)):
        raise ValueError(f"Money must be Decimal, int or str, not {type(value).__name__}")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValueError(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise ValueError(f"Invalid money value: {value!r}")

    money = amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    if money != amt:
        raise ValueError(f"Money has more than 2 decimal places: {value!r}")
    return money


def q2(amount: Decimal | None) -> Decimal:
    return (amount or ZERO).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_minor_int(amount: Decimal | None) -> int:
    return int((q2(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
