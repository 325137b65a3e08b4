"""Amortization schedule resolution.

Turns a security's amortization mode into the ordered list of principal
checkpoints the projector walks. Custom schedules are validated, never
repaired: a schedule that does not add up to 100% is a configuration error
the user has to fix.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from loguru import logger

from ..core.dates import add_months
from ..core.exceptions import ScheduleInvariantViolation
from ..core.money import ONE, ZERO, to_decimal
from .models import AmortizationCheckpoint, AmortizationMode, Security

DEFAULT_TOLERANCE = Decimal("0.000001")


def coupon_schedule(anchor: date, frequency_months: int, maturity_date: date) -> list[date]:
    """Coupon dates after ``anchor`` every ``frequency_months`` up to maturity inclusive.

    Each date is computed from the anchor rather than from the previous date,
    so month-end clamping does not drift (Jan 31 -> Feb 29 -> Mar 31). When
    maturity is off the grid it closes the schedule as a short last period.
    """
    if frequency_months < 1:
        raise ValueError(f"frequency_months must be >= 1, got {frequency_months}")
    if maturity_date <= anchor:
        raise ValueError(f"Maturity {maturity_date} must be after {anchor}")

    dates = []
    k = 1
    while True:
        d = add_months(anchor, k * frequency_months)
        if d >= maturity_date:
            break
        dates.append(d)
        k += 1
    dates.append(maturity_date)
    return dates


def resolve(
    mode: AmortizationMode | str,
    maturity_date: date,
    checkpoints: Sequence[AmortizationCheckpoint] = (),
    *,
    payment_dates: Sequence[date] = (),
    tolerance: Decimal | float = DEFAULT_TOLERANCE,
    security_id: str = "",
) -> tuple[AmortizationCheckpoint, ...]:
    """Resolve an amortization mode into ordered principal checkpoints.

    Args:
        mode: BULLET, LINEAR or CUSTOM.
        maturity_date: Final repayment date.
        checkpoints: Explicit checkpoints, used by CUSTOM only.
        payment_dates: Coupon dates, used by LINEAR only.
        tolerance: Allowed distance of the fraction total from 1.
        security_id: Included in error messages.

    Raises:
        ScheduleInvariantViolation: CUSTOM checkpoints are empty, unordered,
            duplicated, past maturity, or do not sum to 1. Fractions outside
            (0, 1] already fail when the checkpoint is built.
    """
    mode = AmortizationMode.parse(mode)

    if mode is AmortizationMode.BULLET:
        return (AmortizationCheckpoint(maturity_date, ONE),)

    if mode is AmortizationMode.LINEAR:
        return _linear(payment_dates, maturity_date)

    resolved = tuple(checkpoints)
    validate_checkpoints(resolved, maturity_date, to_decimal(tolerance, "tolerance"), security_id)
    logger.debug(f"Resolved {len(resolved)} custom checkpoints for {security_id or 'security'}")
    return resolved


def resolve_for_security(
    security: Security,
    anchor: date | None = None,
    *,
    tolerance: Decimal | float = DEFAULT_TOLERANCE,
) -> tuple[AmortizationCheckpoint, ...]:
    """Resolve ``security``'s schedule, building the coupon grid LINEAR needs.

    Args:
        security: A fixed-income security.
        anchor: Grid anchor when the security has no emission date.
        tolerance: Allowed distance of the fraction total from 1.
    """
    if security.maturity_date is None:
        raise ScheduleInvariantViolation("security has no maturity date", security.security_id)

    payment_dates: list[date] = []
    if security.amortization is AmortizationMode.LINEAR:
        start = security.emission_date or anchor
        if start is None:
            raise ScheduleInvariantViolation(
                "linear amortization needs an emission date or an explicit anchor", security.security_id
            )
        payment_dates = coupon_schedule(start, security.frequency_months, security.maturity_date)

    return resolve(
        security.amortization,
        security.maturity_date,
        security.checkpoints,
        payment_dates=payment_dates,
        tolerance=tolerance,
        security_id=security.security_id,
    )


def _linear(payment_dates: Sequence[date], maturity_date: date) -> tuple[AmortizationCheckpoint, ...]:
    if not payment_dates:
        return (AmortizationCheckpoint(maturity_date, ONE),)

    n = len(payment_dates)
    part = ONE / n
    checkpoints = [AmortizationCheckpoint(d, part) for d in payment_dates[:-1]]
    # Last installment takes the remainder so the total is exactly one.
    checkpoints.append(AmortizationCheckpoint(payment_dates[-1], ONE - part * (n - 1)))
    return tuple(checkpoints)


def validate_checkpoints(
    checkpoints: Sequence[AmortizationCheckpoint],
    maturity_date: date,
    tolerance: Decimal = DEFAULT_TOLERANCE,
    security_id: str = "",
) -> None:
    """Reject a schedule that is empty, unordered, past maturity, or does not sum to 1.

    Fraction ranges are enforced by ``AmortizationCheckpoint`` itself.
    """
    if not checkpoints:
        raise ScheduleInvariantViolation("amortization schedule has no checkpoints", security_id)

    previous: date | None = None
    for cp in checkpoints:
        if previous is not None and cp.payment_date <= previous:
            kind = "duplicated" if cp.payment_date == previous else "out of order"
            raise ScheduleInvariantViolation(
                f"checkpoint dated {cp.payment_date.isoformat()} is {kind}", security_id
            )
        previous = cp.payment_date

    if checkpoints[-1].payment_date > maturity_date:
        raise ScheduleInvariantViolation(
            f"last checkpoint {checkpoints[-1].payment_date.isoformat()} falls after maturity "
            f"{maturity_date.isoformat()}",
            security_id,
        )

    total = sum((cp.principal_fraction for cp in checkpoints), ZERO)
    if abs(total - ONE) > tolerance:
        raise ScheduleInvariantViolation(f"checkpoint fractions sum to {total}, expected 1", security_id)
