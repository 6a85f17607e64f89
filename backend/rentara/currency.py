# Overview: Ringgit formatting/parsing and the standard Malaysian deposit structure.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CURRENCY_SYMBOL = "RM"
CURRENCY_CODE = "MYR"
CURRENCY_NAME = "Malaysian Ringgit"

_CENT = Decimal("0.01")


def _to_decimal(amount: Any) -> Decimal | None:
    if amount is None or isinstance(amount, bool):
        return None
    if isinstance(amount, float):
        amount = repr(amount)
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def format_currency(
    amount: Any,
    *,
    show_symbol: bool = True,
    show_code: bool = False,
    decimals: int = 2,
) -> str:
    """
    Format a ringgit amount for display: 1500 -> "RM1,500.00".

    Missing, zero or unparsable amounts render as zero.
    """
    value = _to_decimal(amount)
    if not value:
        formatted = f"{Decimal(0):,.{decimals}f}"
    else:
        quantum = Decimal(1).scaleb(-decimals)
        formatted = f"{value.quantize(quantum, rounding=ROUND_HALF_UP):,.{decimals}f}"

    result = f"{CURRENCY_SYMBOL}{formatted}" if show_symbol else formatted
    if show_code:
        result = f"{result} {CURRENCY_CODE}"
    return result


def format_ringgit(amount: Any, *, show_symbol: bool = True, decimals: int = 2) -> str:
    """
    Like format_currency but with a space after the symbol ("RM 1,500.00").

    Returns "" for missing or unparsable input; zero is still formatted.
    """
    value = _to_decimal(amount)
    if value is None:
        return ""
    quantum = Decimal(1).scaleb(-decimals)
    formatted = f"{value.quantize(quantum, rounding=ROUND_HALF_UP):,.{decimals}f}"
    return f"{CURRENCY_SYMBOL} {formatted}" if show_symbol else formatted


def parse_currency(value: Any) -> Decimal:
    """Strip RM/MYR and thousands separators: "RM 1,234.50" -> Decimal("1234.50")."""
    if not value:
        return Decimal(0)
    cleaned = (
        str(value)
        .replace(CURRENCY_SYMBOL, "")
        .replace(CURRENCY_CODE, "")
        .replace(",", "")
        .strip()
    )
    parsed = _to_decimal(cleaned)
    return parsed if parsed is not None else Decimal(0)


def cents_to_ringgit(cents: int | None) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(_CENT)


def ringgit_to_cents(amount: Any) -> int:
    value = _to_decimal(amount) or Decimal(0)
    return int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def money(cents: int | None) -> str:
    """JSON representation of a cents column: 150000 -> "1500.00"."""
    return str(cents_to_ringgit(cents))


def calculate_deposit(monthly_rent: Any) -> dict[str, Decimal]:
    """
    Standard Malaysian rental deposit structure (2 + 1 + 0.5 months).

    calculate_deposit(1000) ->
        {"security_deposit": 2000, "advance_rental": 1000,
         "utility_deposit": 500, "total": 3500}
    """
    rent = _to_decimal(monthly_rent) or Decimal(0)
    return {
        "security_deposit": rent * 2,
        "advance_rental": rent * 1,
        "utility_deposit": rent * Decimal("0.5"),
        "total": rent * Decimal("3.5"),
    }
