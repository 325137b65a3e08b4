"""FIFO tax-lot matching.

Turns the ordered trade history of one security into realized gain events
and the inventory of lots still open. The engine is a pure function of its
input: it keeps no state between calls, never re-sorts, and never invents
negative inventory.

Rounding policy: unit costs keep full Decimal precision; cost basis and
proceeds are rounded to currency places only when an event is emitted, and
the gain is the difference of those rounded figures so gains always add up.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import groupby

from loguru import logger

from ..core.exceptions import DataProcessingError, InsufficientInventory, InvalidTradeOrdering
from ..core.money import ZERO, ensure_same_currency, round_money
from .models import Lot, RealizedGainEvent, SaleSummary, Side, Trade


@dataclass
class _OpenLot:
    """Mutable queue entry; frozen into a ``Lot`` on the way out."""

    trade: Trade
    remaining: Decimal
    unit_cost: Decimal

    def freeze(self) -> Lot:
        return Lot(
            origin_trade_id=self.trade.trade_id,
            remaining_quantity=self.remaining,
            unit_cost=self.unit_cost,
            open_date=self.trade.date,
            original_quantity=self.trade.quantity,
            original_commission=self.trade.commission,
            currency=self.trade.currency,
        )


@dataclass(frozen=True)
class FifoResult:
    """Output of ``compute_fifo``.

    Attributes:
        realized: Gain events in the order they were produced.
        open_lots: Lots still held, oldest first.
        error: Set when a sell could not be fully matched; ``realized`` then
            holds everything matched up to and including that sell.
    """

    realized: tuple[RealizedGainEvent, ...] = ()
    open_lots: tuple[Lot, ...] = ()
    error: InsufficientInventory | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def open_quantity(self) -> Decimal:
        return sum((lot.remaining_quantity for lot in self.open_lots), ZERO)

    @property
    def total_gain(self) -> Decimal:
        return sum((event.gain for event in self.realized), ZERO)

    def summaries(self) -> list[SaleSummary]:
        """Roll gain events up to one summary per sell trade."""
        return summarize_sales(self.realized)


def compute_fifo(trades: Sequence[Trade], *, money_places: int = 2) -> FifoResult:
    """Match sells against buys first-in-first-out.

    Args:
        trades: Trades of a single security, sorted by date ascending by the
            caller. Ties keep the caller's order.
        money_places: Decimal places for cost basis and proceeds.

    Returns:
        FifoResult with realized events, open lots, and an
        ``InsufficientInventory`` error if a sell ran the queue dry.

    Raises:
        InvalidTradeOrdering: a trade is dated before its predecessor.
        DataProcessingError: trades span several securities.
        CurrencyMismatchError: trades span several currencies.
    """
    if not trades:
        return FifoResult()

    security_ids = {t.security_id for t in trades}
    if len(security_ids) > 1:
        raise DataProcessingError(f"compute_fifo expects one security, got {sorted(security_ids)}")
    ensure_same_currency(t.currency for t in trades)
    _check_ordering(trades)

    queue: deque[_OpenLot] = deque()
    realized: list[RealizedGainEvent] = []

    for trade in trades:
        if trade.side is Side.BUY:
            unit_cost = (trade.unit_price * trade.quantity + trade.commission) / trade.quantity
            queue.append(_OpenLot(trade=trade, remaining=trade.quantity, unit_cost=unit_cost))
            logger.debug(f"Opened lot {trade.trade_id}: {trade.quantity} @ {unit_cost}")
            continue

        unmatched = _match_sell(trade, queue, realized, money_places)
        if unmatched > 0:
            error = InsufficientInventory(trade.trade_id, unmatched)
            logger.debug(str(error))
            return FifoResult(realized=tuple(realized), open_lots=(), error=error)

    return FifoResult(
        realized=tuple(realized),
        open_lots=tuple(entry.freeze() for entry in queue),
    )


def _check_ordering(trades: Sequence[Trade]) -> None:
    previous = trades[0]
    for trade in trades[1:]:
        if trade.date < previous.date:
            raise InvalidTradeOrdering(trade.trade_id, previous.date, trade.date)
        previous = trade


def _match_sell(
    sell: Trade,
    queue: deque[_OpenLot],
    realized: list[RealizedGainEvent],
    money_places: int,
) -> Decimal:
    """Consume lots for ``sell``; returns the quantity left unmatched."""
    to_match = sell.quantity
    while to_match > 0 and queue:
        entry = queue[0]
        consumed = min(to_match, entry.remaining)

        cost_basis = round_money(consumed * entry.unit_cost, money_places)
        sell_commission = sell.commission * consumed / sell.quantity
        proceeds = round_money(consumed * sell.unit_price - sell_commission, money_places)

        realized.append(
            RealizedGainEvent(
                sell_trade_id=sell.trade_id,
                matched_lot_origin_id=entry.trade.trade_id,
                quantity_closed=consumed,
                cost_basis=cost_basis,
                proceeds=proceeds,
                gain=proceeds - cost_basis,
                close_date=sell.date,
                open_date=entry.trade.date,
                holding_period_days=(sell.date - entry.trade.date).days,
                currency=sell.currency,
            )
        )

        entry.remaining -= consumed
        to_match -= consumed
        if entry.remaining == 0:
            queue.popleft()
            logger.debug(f"Closed lot {entry.trade.trade_id} against {sell.trade_id}")

    return to_match


def summarize_sales(events: Sequence[RealizedGainEvent]) -> list[SaleSummary]:
    """Aggregate consecutive events of the same sell into ``SaleSummary`` rows."""
    summaries = []
    for sell_id, group in groupby(events, key=lambda e: e.sell_trade_id):
        items = list(group)
        summaries.append(
            SaleSummary(
                sell_trade_id=sell_id,
                close_date=items[0].close_date,
                quantity=sum((e.quantity_closed for e in items), ZERO),
                cost_basis=sum((e.cost_basis for e in items), ZERO),
                proceeds=sum((e.proceeds for e in items), ZERO),
                gain=sum((e.gain for e in items), ZERO),
                currency=items[0].currency,
                lots_matched=len(items),
            )
        )
    return summaries
