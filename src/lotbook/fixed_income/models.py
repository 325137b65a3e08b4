"""Fixed-income security terms and projected cashflow records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from ..core.dates import coerce_date
from ..core.exceptions import ScheduleInvariantViolation
from ..core.money import ONE, ZERO, to_decimal


class AmortizationMode(Enum):
    """How principal is repaid."""

    BULLET = "bullet"  # Everything at maturity
    LINEAR = "linear"  # Equal parts on every coupon date
    CUSTOM = "custom"  # Explicit checkpoints

    @classmethod
    def parse(cls, value: str | AmortizationMode) -> AmortizationMode:
        if isinstance(value, cls):
            return value
        token = str(value).strip().lower()
        for mode in cls:
            if mode.value == token:
                return mode
        raise ValueError(f"Unknown amortization mode: {value!r}")


class CashflowKind(Enum):
    INTEREST = "interest"
    AMORTIZATION = "amortization"


class CashflowStatus(Enum):
    """Settlement state of a cashflow.

    The projector only emits PROJECTED. Callers that record settlement mark
    a row PAID themselves, e.g. ``dataclasses.replace(cf, status=CashflowStatus.PAID)``.
    """

    PROJECTED = "projected"
    PAID = "paid"


@dataclass(frozen=True)
class AmortizationCheckpoint:
    """Share of the original principal repaid on ``payment_date``.

    Raises:
        ScheduleInvariantViolation: the fraction is outside (0, 1].
    """

    payment_date: date
    principal_fraction: Decimal

    def __post_init__(self):
        object.__setattr__(self, "payment_date", coerce_date(self.payment_date, "payment_date"))
        object.__setattr__(
            self, "principal_fraction", to_decimal(self.principal_fraction, "principal_fraction")
        )
        if not ZERO < self.principal_fraction <= ONE:
            raise ScheduleInvariantViolation(
                f"checkpoint {self.payment_date.isoformat()} fraction {self.principal_fraction} is outside (0, 1]"
            )


@dataclass(frozen=True)
class Security:
    """Contract terms of a held security.

    A security without ``maturity_date`` is treated as equity-like: it has
    a lot ledger but no projected cashflows.

    Attributes:
        security_id: Stable identifier.
        currency: ISO code for all amounts.
        maturity_date: Final repayment date, None for equities.
        coupon_rate: Annual coupon as a fraction (0.08 for 8%).
        frequency_months: Months between coupon payments.
        emission_date: Issue date anchoring the coupon grid; None when unknown.
        amortization: Principal repayment mode.
        checkpoints: Repayment checkpoints for CUSTOM mode.
        face_value: Principal per unit held.
        ticker: Display label.
    """

    security_id: str
    currency: str = "USD"
    maturity_date: date | None = None
    coupon_rate: Decimal = ZERO
    frequency_months: int = 12
    emission_date: date | None = None
    amortization: AmortizationMode = AmortizationMode.BULLET
    checkpoints: tuple[AmortizationCheckpoint, ...] = field(default_factory=tuple)
    face_value: Decimal = ONE
    ticker: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "currency", str(self.currency).strip().upper())
        object.__setattr__(self, "coupon_rate", to_decimal(self.coupon_rate, "coupon_rate"))
        object.__setattr__(self, "face_value", to_decimal(self.face_value, "face_value"))
        object.__setattr__(self, "amortization", AmortizationMode.parse(self.amortization))
        object.__setattr__(self, "checkpoints", tuple(self.checkpoints))
        if self.maturity_date is not None:
            object.__setattr__(self, "maturity_date", coerce_date(self.maturity_date, "maturity_date"))
        if self.emission_date is not None:
            object.__setattr__(self, "emission_date", coerce_date(self.emission_date, "emission_date"))

        if self.coupon_rate < 0:
            raise ValueError(f"Security {self.security_id} has negative coupon rate: {self.coupon_rate}")
        if self.face_value <= 0:
            raise ValueError(f"Security {self.security_id} face value must be positive")
        if int(self.frequency_months) != self.frequency_months or self.frequency_months < 1:
            raise ValueError(f"Security {self.security_id} frequency must be a whole number of months >= 1")
        if self.emission_date and self.maturity_date and self.maturity_date <= self.emission_date:
            raise ValueError(f"Security {self.security_id} matures on or before its emission date")

    @property
    def is_fixed_income(self) -> bool:
        return self.maturity_date is not None

    @property
    def label(self) -> str:
        return self.ticker or self.security_id


@dataclass(frozen=True)
class ProjectedCashflow:
    """One future interest or principal payment for the holder's position."""

    security_id: str
    date: date
    kind: CashflowKind
    amount: Decimal
    currency: str
    status: CashflowStatus = CashflowStatus.PROJECTED
    capital_residual: Decimal = ZERO
    description: str = ""
