from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def resolve_amount_cents(
    manual_input: str | float | int | None = None,
    stored_cents: int | None = None,
    quoted_total: str | float | int | None = None,
) -> int | None:
    """
    Pick the amount to charge for an occurrence, in minor units.

    Precedence: manual input (major units, as typed) > amount already stored on
    the occurrence (cents) > quoted total (major units). The first present,
    finite, positive value wins. Returns None when nothing qualifies.
    """
    manual = to_cents(manual_input)
    if manual is not None:
        return manual

    if stored_cents is not None and _is_positive_finite(stored_cents):
        return int(stored_cents)

    return to_cents(quoted_total)


def to_cents(value: str | float | int | None) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("$")
        if not value:
            return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return cents if cents > 0 else None


def format_amount(cents: int | None, currency_symbol: str = "$") -> str:
    if cents is None:
        return ""
    return f"{currency_symbol}{Decimal(cents) / 100:.2f}"


def _is_positive_finite(value: int | float) -> bool:
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False
