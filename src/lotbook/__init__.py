"""Lotbook: FIFO tax lots and fixed-income cashflow projection for a personal investment ledger."""

__version__ = "0.1.0"
