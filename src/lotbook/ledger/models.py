"""Trade, lot and realized-gain records.

Trades are the only input; lots and gain events are derived by the FIFO
engine and never mutated after they leave it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from ..core.dates import coerce_date
from ..core.money import ZERO, percent, round_money, to_decimal


class Side(Enum):
    """Direction of a trade."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: str | Side) -> Side:
        if isinstance(value, cls):
            return value
        token = str(value).strip().lower()
        for side in cls:
            if side.value == token:
                return side
        raise ValueError(f"Unknown trade side: {value!r} (expected 'buy' or 'sell')")


@dataclass(frozen=True)
class Trade:
    """A single buy or sell of one security.

    Attributes:
        trade_id: Caller-assigned identifier, echoed on lots and gain events.
        security_id: Security the trade belongs to.
        side: Buy or sell.
        date: Trade date.
        quantity: Units traded, always positive.
        unit_price: Price per unit, excluding commission.
        commission: Total commission for the trade.
        currency: ISO currency code of price and commission.
    """

    trade_id: str
    security_id: str
    side: Side
    date: date
    quantity: Decimal
    unit_price: Decimal
    commission: Decimal = ZERO
    currency: str = "USD"

    def __post_init__(self):
        object.__setattr__(self, "side", Side.parse(self.side))
        object.__setattr__(self, "date", coerce_date(self.date, "trade date"))
        for field_name in ["quantity", "unit_price", "commission"]:
            object.__setattr__(self, field_name, to_decimal(getattr(self, field_name), field_name))
        object.__setattr__(self, "currency", str(self.currency).strip().upper())

        if self.quantity <= 0:
            raise ValueError(f"Trade {self.trade_id} quantity must be positive, got {self.quantity}")
        if self.unit_price < 0:
            raise ValueError(f"Negative price for trade {self.trade_id}: {self.unit_price}")
        if self.commission < 0:
            raise ValueError(f"Negative commission for trade {self.trade_id}: {self.commission}")
        if not self.currency:
            raise ValueError(f"Trade {self.trade_id} has no currency")

    @property
    def gross_amount(self) -> Decimal:
        """Quantity times price, before commission."""
        return self.quantity * self.unit_price

    @property
    def net_amount(self) -> Decimal:
        """Cash paid (buy) or received (sell) after commission, unsigned."""
        if self.side is Side.BUY:
            return self.gross_amount + self.commission
        return self.gross_amount - self.commission


@dataclass(frozen=True)
class Lot:
    """Open inventory left over from one buy trade.

    ``unit_cost`` folds the buy commission into the price and is kept at full
    precision; round only when presenting.
    """

    origin_trade_id: str
    remaining_quantity: Decimal
    unit_cost: Decimal
    open_date: date
    original_quantity: Decimal
    original_commission: Decimal = ZERO
    currency: str = "USD"

    @property
    def cost_basis(self) -> Decimal:
        return round_money(self.remaining_quantity * self.unit_cost)

    @property
    def buy_commission(self) -> Decimal:
        """Share of the original commission attributable to the units still open."""
        if self.original_quantity == 0:
            return ZERO
        return self.original_commission * self.remaining_quantity / self.original_quantity

    @property
    def is_partial(self) -> bool:
        return self.remaining_quantity < self.original_quantity


@dataclass(frozen=True)
class RealizedGainEvent:
    """Gain or loss from closing (part of) one lot against one sell."""

    sell_trade_id: str
    matched_lot_origin_id: str
    quantity_closed: Decimal
    cost_basis: Decimal
    proceeds: Decimal
    gain: Decimal
    close_date: date
    open_date: date
    holding_period_days: int
    currency: str = "USD"

    @property
    def gain_percent(self) -> Decimal:
        return percent(self.gain, self.cost_basis)


@dataclass(frozen=True)
class SaleSummary:
    """All gain events of one sell trade rolled up."""

    sell_trade_id: str
    close_date: date
    quantity: Decimal
    cost_basis: Decimal
    proceeds: Decimal
    gain: Decimal
    currency: str
    lots_matched: int

    @property
    def average_unit_cost(self) -> Decimal:
        if self.quantity == 0:
            return ZERO
        return self.cost_basis / self.quantity

    @property
    def gain_percent(self) -> Decimal:
        return percent(self.gain, self.cost_basis)
