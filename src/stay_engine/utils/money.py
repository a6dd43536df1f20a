"""Defensive numeric coercion for untrusted upstream amounts."""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")

ZERO = Decimal("0")

# ISO 4217 currencies without a minor unit; everything else rounds to cents.
_ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)
_THREE_DECIMAL_CURRENCIES = frozenset({"BHD", "IQD", "JOD", "KWD", "LYD", "OMR", "TND"})


def to_amount(value: Any) -> Decimal:
    """Coerce ``value`` to a :class:`Decimal`, returning 0 for anything unusable.

    Strings such as ``"$1,250.00"`` or ``"CAD 99"`` keep only digits, signs and
    decimal points before parsing.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        cleaned = _NON_NUMERIC_RE.sub("", str(value))
        if not cleaned:
            return ZERO
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def to_int(value: Any) -> int:
    """Coerce ``value`` to an integer by truncating its numeric value."""
    return int(to_amount(value))


def minor_unit_exponent(currency: str) -> Decimal:
    code = (currency or "").upper()
    if code in _ZERO_DECIMAL_CURRENCIES:
        return Decimal("1")
    if code in _THREE_DECIMAL_CURRENCIES:
        return Decimal("0.001")
    return Decimal("0.01")


def _digits_needed(amounts: Iterable[Decimal], exponent: int) -> int:
    return max((amount.adjusted() for amount in amounts), default=0) - exponent + 2


def quantize_amount(amount: Decimal, currency: str) -> Decimal:
    """Round ``amount`` to the currency's minor-unit precision.

    The working precision grows with the amount so very large upstream values
    quantize exactly instead of raising :class:`~decimal.InvalidOperation`.
    """
    exponent = minor_unit_exponent(currency)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, _digits_needed([amount], exponent.adjusted()))
        return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Exact sum of ``amounts``; the default 28-digit context would round."""
    values = list(amounts)
    smallest = min((amount.as_tuple().exponent for amount in values), default=0)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, _digits_needed(values, min(smallest, 0)) + len(values))
        return sum(values, ZERO)
