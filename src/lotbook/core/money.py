"""Fixed-precision money helpers.

Quantities, prices and amounts are ``Decimal`` everywhere. Intermediate
results keep full context precision; rounding to currency places happens
only when a figure leaves an engine.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import CurrencyMismatchError
from .types import Numeric

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Numeric, field_name: str = "value") -> Decimal:
    """Coerce ints, floats and strings to Decimal via ``str`` so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"{field_name} must be numeric, got bool")
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"{field_name} is not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite, got {value!r}")
    return result


def round_money(value: Decimal, places: int = 2) -> Decimal:
    """Round half-up to ``places`` decimals."""
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def ensure_same_currency(currencies: Iterable[str]) -> str | None:
    """Return the single currency in ``currencies`` (None when empty).

    Raises:
        CurrencyMismatchError: if more than one currency appears.
    """
    seen = list(dict.fromkeys(currencies))
    if len(seen) > 1:
        raise CurrencyMismatchError(seen)
    return seen[0] if seen else None


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """``part`` as a percentage of ``whole``; 0 when ``whole`` is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED
