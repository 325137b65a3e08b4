"""FIFO lot ledger: realized gains and open inventory from a trade history."""

from .fifo import FifoResult, compute_fifo, summarize_sales
from .models import Lot, RealizedGainEvent, SaleSummary, Side, Trade

__all__ = [
    "FifoResult",
    "Lot",
    "RealizedGainEvent",
    "SaleSummary",
    "Side",
    "Trade",
    "compute_fifo",
    "summarize_sales",
]
