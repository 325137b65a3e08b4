"""
Lotbook exception hierarchy.

All lotbook exceptions inherit from LotbookError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
Engine errors carry the offending values as attributes so callers can surface
them to the user without parsing messages.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal


class LotbookError(Exception):
    """Base exception class for all lotbook errors."""


class ConfigurationError(LotbookError):
    """Raised for configuration errors (missing keys, invalid values, bad portfolio files)."""


class DataProcessingError(LotbookError):
    """Raised for malformed engine input."""


class CurrencyMismatchError(DataProcessingError):
    """Raised when amounts in different currencies would be combined."""

    def __init__(self, currencies: list[str]):
        self.currencies = sorted(set(currencies))
        super().__init__(f"Cannot mix currencies: {', '.join(self.currencies)}")


class LedgerError(DataProcessingError):
    """Raised by the FIFO lot ledger."""


class InsufficientInventory(LedgerError):
    """A sell trade exceeds the quantity held in open lots."""

    def __init__(self, trade_id: str, unmatched_quantity: Decimal):
        self.trade_id = trade_id
        self.unmatched_quantity = unmatched_quantity
        super().__init__(f"Sell {trade_id!r} exceeds open inventory by {unmatched_quantity}")


class InvalidTradeOrdering(LedgerError):
    """Trades were not supplied in ascending date order."""

    def __init__(self, trade_id: str, previous_date: date, trade_date: date):
        self.trade_id = trade_id
        self.previous_date = previous_date
        self.date = trade_date
        super().__init__(
            f"Trade {trade_id!r} dated {trade_date.isoformat()} follows a trade dated {previous_date.isoformat()}"
        )


class ScheduleInvariantViolation(LotbookError):
    """An amortization schedule is unordered, out of range, or does not sum to 100%."""

    def __init__(self, message: str, security_id: str = ""):
        self.security_id = security_id
        prefix = f"[{security_id}] " if security_id else ""
        super().__init__(f"{prefix}{message}")


class LotbookWarning(UserWarning):
    """Base class for non-fatal conditions returned alongside engine output."""


class DegradedProjection(LotbookWarning):
    """Cashflows were projected from an approximate anchor because the emission date is unknown."""

    def __init__(self, security_id: str, anchor: date):
        self.security_id = security_id
        self.anchor = anchor
        super().__init__(
            f"Security {security_id!r} has no emission date; "
            f"payment dates anchored on {anchor.isoformat()} are approximate"
        )
