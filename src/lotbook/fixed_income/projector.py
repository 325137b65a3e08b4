"""Forward cashflow projection for coupon-bearing securities.

Given the holder's open quantity, the coupon terms and a resolved
amortization schedule, produce every interest and principal payment from
``horizon_start`` through the last repayment. The output replaces any
previously projected rows for the security in full; nothing here patches
or remembers earlier projections.

Interest on a payment date accrues on the principal outstanding *before*
that date's amortization:

    interest(D) = outstanding(D-) * coupon_rate * frequency_months / 12
    outstanding(D+) = outstanding(D-) - amortization(D)
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from loguru import logger

from ..core.dates import add_months, days_between, first_of_month
from ..core.exceptions import DegradedProjection, ScheduleInvariantViolation
from ..core.money import HUNDRED, ONE, ZERO, round_money, to_decimal
from ..core.types import Numeric
from .models import AmortizationCheckpoint, CashflowKind, ProjectedCashflow, Security
from .schedule import DEFAULT_TOLERANCE, coupon_schedule, resolve_for_security, validate_checkpoints

MONTHS_PER_YEAR = Decimal(12)


@dataclass(frozen=True)
class ProjectionResult:
    """Complete replacement set of projected cashflows for one security.

    Attributes:
        cashflows: Events ordered by date; interest precedes amortization on the same date.
        warnings: Non-fatal conditions the caller should show the user.
        degraded: True when payment dates were approximated.
    """

    cashflows: tuple[ProjectedCashflow, ...] = ()
    warnings: tuple[DegradedProjection, ...] = field(default=(), compare=False)
    degraded: bool = False

    def __len__(self) -> int:
        return len(self.cashflows)

    @property
    def total_interest(self) -> Decimal:
        return sum((cf.amount for cf in self.cashflows if cf.kind is CashflowKind.INTEREST), ZERO)

    @property
    def total_amortization(self) -> Decimal:
        return sum((cf.amount for cf in self.cashflows if cf.kind is CashflowKind.AMORTIZATION), ZERO)


def project(
    open_quantity: Numeric,
    coupon_rate_annual: Numeric,
    frequency_months: int,
    checkpoints: Sequence[AmortizationCheckpoint],
    emission_date: date | None,
    horizon_start: date,
    *,
    maturity_date: date | None = None,
    face_value: Numeric = ONE,
    security_id: str = "",
    currency: str = "USD",
    money_places: int = 2,
    tolerance: Numeric = DEFAULT_TOLERANCE,
) -> ProjectionResult:
    """Project interest and amortization payments from ``horizon_start`` onwards.

    Args:
        open_quantity: Units currently held (from the lot ledger).
        coupon_rate_annual: Annual coupon as a fraction.
        frequency_months: Months between coupons.
        checkpoints: Resolved amortization checkpoints (see ``schedule.resolve``).
        emission_date: Coupon grid anchor. None switches to degraded mode,
            anchoring on the first day of ``horizon_start``'s month.
        horizon_start: Payments dated before this are history and are not emitted.
        maturity_date: Defaults to the last checkpoint date.
        face_value: Principal per unit.
        security_id: Copied onto every cashflow.
        currency: Copied onto every cashflow.
        money_places: Rounding of emitted amounts.
        tolerance: Allowed distance of the checkpoint total from 1.

    Raises:
        ScheduleInvariantViolation: no checkpoints, dates duplicated or out
            of order, fractions off 1, or a checkpoint after maturity.
        ValueError: negative quantity or a maturity not after the emission date.
    """
    quantity = to_decimal(open_quantity, "open_quantity")
    if quantity < 0:
        raise ValueError(f"open_quantity cannot be negative: {quantity}")
    if quantity == 0:
        return ProjectionResult()

    checkpoints = tuple(checkpoints)
    if not checkpoints:
        raise ScheduleInvariantViolation("no amortization checkpoints to project", security_id)
    maturity = maturity_date or max(cp.payment_date for cp in checkpoints)
    validate_checkpoints(checkpoints, maturity, to_decimal(tolerance, "tolerance"), security_id)

    warnings: list[DegradedProjection] = []
    if emission_date is None:
        anchor = first_of_month(horizon_start)
        warning = DegradedProjection(security_id, anchor)
        logger.warning(str(warning))
        warnings.append(warning)
        if maturity <= anchor:
            return ProjectionResult(warnings=tuple(warnings), degraded=True)
    else:
        anchor = emission_date

    rate = to_decimal(coupon_rate_annual, "coupon_rate_annual")
    principal = quantity * to_decimal(face_value, "face_value")
    pay_dates = coupon_schedule(anchor, frequency_months, maturity)

    # Checkpoints are paid on the first coupon date on or after them;
    # anything on or before the anchor was settled before the grid starts.
    outstanding = principal
    due: dict[date, Decimal] = {}
    for cp in checkpoints:
        if cp.payment_date <= anchor:
            outstanding -= round_money(principal * cp.principal_fraction, money_places)
            continue
        pay_on = pay_dates[bisect_left(pay_dates, cp.payment_date)]
        due[pay_on] = due.get(pay_on, ZERO) + cp.principal_fraction

    if outstanding <= 0 or not due:
        return ProjectionResult(warnings=tuple(warnings), degraded=bool(warnings))
    last_due = max(due)

    cashflows: list[ProjectedCashflow] = []
    for i, pay_date in enumerate(pay_dates):
        period_start = anchor if i == 0 else pay_dates[i - 1]
        accrual = _accrual_fraction(anchor, i, period_start, pay_date, frequency_months)
        interest = outstanding * rate * accrual
        residual_share = outstanding / principal

        fraction = due.get(pay_date)
        closing = pay_date == last_due
        if fraction is None:
            amortization = ZERO
        elif closing:
            amortization = outstanding
        else:
            amortization = round_money(principal * fraction, money_places)
        residual_after = outstanding - amortization

        if pay_date >= horizon_start:
            if interest > 0:
                cashflows.append(
                    ProjectedCashflow(
                        security_id=security_id,
                        date=pay_date,
                        kind=CashflowKind.INTEREST,
                        amount=round_money(interest, money_places),
                        currency=currency,
                        capital_residual=round_money(residual_after, money_places),
                        description=f"Interest ({residual_share * HUNDRED:.0f}% outstanding)",
                    )
                )
            if amortization > 0:
                cashflows.append(
                    ProjectedCashflow(
                        security_id=security_id,
                        date=pay_date,
                        kind=CashflowKind.AMORTIZATION,
                        amount=round_money(amortization, money_places),
                        currency=currency,
                        capital_residual=round_money(residual_after, money_places),
                        description=f"Amortization ({amortization / principal * HUNDRED:.2f}%)",
                    )
                )

        outstanding = residual_after
        if closing:
            break

    logger.debug(f"Projected {len(cashflows)} cashflows for {security_id or 'security'} from {horizon_start}")
    return ProjectionResult(cashflows=tuple(cashflows), warnings=tuple(warnings), degraded=bool(warnings))


def project_security(
    security: Security,
    open_quantity: Numeric,
    horizon_start: date,
    *,
    money_places: int = 2,
    tolerance: Numeric = DEFAULT_TOLERANCE,
) -> ProjectionResult:
    """Resolve ``security``'s schedule and project its cashflows.

    Securities without a maturity date have nothing to project.
    """
    if not security.is_fixed_income:
        return ProjectionResult()
    if to_decimal(open_quantity, "open_quantity") == 0:
        return ProjectionResult()

    anchor = security.emission_date or first_of_month(horizon_start)
    if security.emission_date is None and security.maturity_date <= anchor:
        # Nothing left to pay; let project() report the degraded anchor.
        checkpoints: tuple[AmortizationCheckpoint, ...] = (AmortizationCheckpoint(security.maturity_date, ONE),)
    else:
        checkpoints = resolve_for_security(security, anchor, tolerance=tolerance)

    return project(
        open_quantity,
        security.coupon_rate,
        security.frequency_months,
        checkpoints,
        security.emission_date,
        horizon_start,
        maturity_date=security.maturity_date,
        face_value=security.face_value,
        security_id=security.security_id,
        currency=security.currency,
        money_places=money_places,
        tolerance=tolerance,
    )


def _accrual_fraction(anchor: date, index: int, period_start: date, pay_date: date, frequency_months: int) -> Decimal:
    """Year fraction for coupon ``index``; a short final period is pro-rated by days."""
    regular = Decimal(frequency_months) / MONTHS_PER_YEAR
    nominal_end = add_months(anchor, (index + 1) * frequency_months)
    if pay_date == nominal_end:
        return regular
    full_days = days_between(period_start, nominal_end)
    return regular * Decimal(days_between(period_start, pay_date)) / Decimal(full_days)

