from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional


CENT = Decimal("0.01")
ZERO = Decimal("0")

# Leading numeric prefix, the way a browser's parseFloat reads "12.5abc".
_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def decimal_amount(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_money(amount: Decimal) -> str:
    return str(quantize(amount))


def _finite(value: Decimal) -> Optional[Decimal]:
    # Values beyond float range count as infinite.
    if not value.is_finite() or not math.isfinite(float(value)):
        return None
    return value


def parse_amount(raw) -> Optional[Decimal]:
    """Return ``raw`` as a finite Decimal, or ``None`` when it is not numeric.

    ``None``, blank strings, booleans, NaN, infinities and values too large for
    a float all count as absent.
    Strings are read up to the end of their leading number, so ``"250 baht"``
    parses as 250.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        try:
            value = decimal_amount(raw)
        except InvalidOperation:
            return None
        return _finite(value)

    match = _NUMBER_PREFIX.match(str(raw).strip())
    if match is None:
        return None
    try:
        value = Decimal(match.group(0))
    except InvalidOperation:
        return None
    return _finite(value)


def amount_or_zero(raw) -> Decimal:
    value = parse_amount(raw)
    return ZERO if value is None else value
