"""Portfolio file loading."""

from .portfolio import Portfolio, load_portfolio, parse_portfolio

__all__ = ["Portfolio", "load_portfolio", "parse_portfolio"]
