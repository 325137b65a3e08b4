"""Money-weighted return of a position.

XIRR over the position's actual trades plus its projected cashflows gives
the yield the holder can expect if everything is paid as scheduled.

Pure math on floats; amounts come in as Decimal and are converted once.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from ..ledger.models import Side, Trade
from .models import ProjectedCashflow

_INITIAL_GUESSES = (0.05, 0.1, 0.01, -0.1, 0.2)
_MAX_ITERATIONS = 200


def xirr(amounts: Sequence[float | Decimal], dates: Sequence[date]) -> float | None:
    """Annualized internal rate of return for irregularly dated cashflows.

    Uses Newton-Raphson on an actual/365 NPV, restarting from several
    initial guesses.

    Args:
        amounts: Signed cashflows (negative = money paid out).
        dates: Date of each cashflow, same length as ``amounts``.

    Returns:
        The rate as a fraction (0.08 for 8%), or None if the flows have no
        sign change or no guess converges.
    """
    if len(amounts) != len(dates):
        raise ValueError(f"Got {len(amounts)} amounts but {len(dates)} dates")
    if len(amounts) < 2:
        return None

    flows = [float(a) for a in amounts]
    if not (any(a > 0 for a in flows) and any(a < 0 for a in flows)):
        return None

    day0 = min(dates)
    years = [(d - day0).days / 365.0 for d in dates]

    def npv(rate: float) -> float:
        return sum(a / (1 + rate) ** t for a, t in zip(flows, years))

    def d_npv(rate: float) -> float:
        return sum(-t * a / (1 + rate) ** (t + 1) for a, t in zip(flows, years))

    for guess in _INITIAL_GUESSES:
        rate = guess
        try:
            for _ in range(_MAX_ITERATIONS):
                slope = d_npv(rate)
                if abs(slope) < 1e-12:
                    break
                new_rate = rate - npv(rate) / slope
                if not math.isfinite(new_rate) or new_rate <= -1:
                    break
                if abs(new_rate - rate) < 1e-9:
                    rate = new_rate
                    break
                rate = new_rate

            if math.isfinite(rate) and rate > -1 and abs(npv(rate)) < 1e-4:
                return round(rate, 10)
        except (OverflowError, ZeroDivisionError):
            continue

    return None


def position_cashflows(
    trades: Sequence[Trade],
    projected: Sequence[ProjectedCashflow] = (),
) -> list[tuple[date, Decimal]]:
    """Signed cashflows of a position, oldest first.

    Buys are outflows including commission, sells are inflows net of
    commission, projected coupons and amortizations are inflows.
    """
    flows: list[tuple[date, Decimal]] = []
    for trade in trades:
        sign = -1 if trade.side is Side.BUY else 1
        flows.append((trade.date, sign * trade.net_amount))
    flows.extend((cf.date, cf.amount) for cf in projected)
    flows.sort(key=lambda f: f[0])
    return flows


def expected_yield(
    trades: Sequence[Trade],
    projected: Sequence[ProjectedCashflow] = (),
) -> float | None:
    """XIRR of ``position_cashflows``."""
    flows = position_cashflows(trades, projected)
    if not flows:
        return None
    return xirr([amount for _, amount in flows], [d for d, _ in flows])
