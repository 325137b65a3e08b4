"""YAML portfolio files.

A portfolio file lists securities and the trades made in them::

    securities:
      - id: ON-XYZ
        currency: USD
        coupon_rate: 0.08
        frequency_months: 6
        emission_date: 2024-01-01
        maturity_date: 2026-01-01
        face_value: 100
        amortization: custom
        checkpoints:
          - {date: 2025-01-01, fraction: 0.5}
          - {date: 2026-01-01, fraction: 0.5}
    trades:
      - {id: t1, security: ON-XYZ, side: buy, date: 2024-01-01, quantity: 10, price: 100}

Trades keep their file order within each security; sorting is the
author's job, and the ledger reports out-of-order dates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..core.exceptions import ConfigurationError, ScheduleInvariantViolation
from ..core.types import PathLike
from ..fixed_income.models import AmortizationCheckpoint, Security
from ..ledger.models import Trade


@dataclass
class Portfolio:
    """Securities plus their trades grouped by security id."""

    securities: list[Security] = field(default_factory=list)
    trades: dict[str, list[Trade]] = field(default_factory=dict)

    def get(self, security_id: str) -> Security | None:
        return next((s for s in self.securities if s.security_id == security_id), None)


def load_portfolio(path: PathLike, default_currency: str = "USD") -> Portfolio:
    """Read a portfolio YAML file.

    Raises:
        ConfigurationError: the file is missing, unparsable, or holds invalid records.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Portfolio file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e

    portfolio = parse_portfolio(data, default_currency=default_currency)
    logger.debug(
        f"Loaded {len(portfolio.securities)} securities and "
        f"{sum(len(t) for t in portfolio.trades.values())} trades from {path}"
    )
    return portfolio


def parse_portfolio(data: dict[str, Any], default_currency: str = "USD") -> Portfolio:
    """Build a ``Portfolio`` from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise ConfigurationError("Portfolio must be a mapping with 'securities' and 'trades'")

    portfolio = Portfolio()
    for i, raw in enumerate(data.get("securities") or []):
        security = _parse_security(raw, i, default_currency)
        if portfolio.get(security.security_id) is not None:
            raise ConfigurationError(f"Duplicate security id: {security.security_id}")
        portfolio.securities.append(security)
        portfolio.trades[security.security_id] = []

    for i, raw in enumerate(data.get("trades") or []):
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Trade #{i + 1} must be a mapping")
        security_id = str(raw.get("security", ""))
        security = portfolio.get(security_id)
        if security is None:
            raise ConfigurationError(f"Trade #{i + 1} refers to unknown security {security_id!r}")
        try:
            trade = Trade(
                trade_id=str(raw.get("id") or f"{security_id}-{i + 1}"),
                security_id=security_id,
                side=raw["side"],
                date=raw["date"],
                quantity=raw["quantity"],
                unit_price=raw["price"],
                commission=raw.get("commission", 0),
                currency=raw.get("currency") or security.currency,
            )
        except KeyError as e:
            raise ConfigurationError(f"Trade #{i + 1} is missing field {e.args[0]!r}") from e
        except ValueError as e:
            raise ConfigurationError(f"Trade #{i + 1}: {e}") from e
        portfolio.trades[security_id].append(trade)

    return portfolio


def _parse_security(raw: Any, index: int, default_currency: str) -> Security:
    if not isinstance(raw, dict) or not raw.get("id"):
        raise ConfigurationError(f"Security #{index + 1} must be a mapping with an 'id'")

    sid = str(raw["id"])
    try:
        checkpoints = tuple(
            AmortizationCheckpoint(payment_date=cp["date"], principal_fraction=cp["fraction"])
            for cp in raw.get("checkpoints") or []
        )
        return Security(
            security_id=sid,
            currency=raw.get("currency") or default_currency,
            maturity_date=raw.get("maturity_date"),
            coupon_rate=raw.get("coupon_rate", 0),
            frequency_months=int(raw.get("frequency_months", 12)),
            emission_date=raw.get("emission_date"),
            amortization=raw.get("amortization", "bullet"),
            checkpoints=checkpoints,
            face_value=raw.get("face_value", 1),
            ticker=raw.get("ticker"),
        )
    except (KeyError, TypeError) as e:
        raise ConfigurationError(f"Security {sid}: malformed checkpoint ({e})") from e
    except (ValueError, ScheduleInvariantViolation) as e:
        raise ConfigurationError(f"Security {sid}: {e}") from e
