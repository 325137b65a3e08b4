"""Shared test fixtures for lotbook."""

import os
import tempfile
from datetime import date

import pytest

from lotbook.ledger.models import Side, Trade


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "ledger": {"money_places": 2, "default_currency": "usd"},
        "schedule": {"tolerance": 1e-6},
        "logging": {"level": "debug"},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def make_trade():
    """Factory for trades of security ``SEC`` with sensible defaults."""
    counter = {"n": 0}

    def _make(side, when, quantity, price, commission=0, security_id="SEC", currency="USD", trade_id=None):
        counter["n"] += 1
        return Trade(
            trade_id=trade_id or f"t{counter['n']}",
            security_id=security_id,
            side=side,
            date=when,
            quantity=quantity,
            unit_price=price,
            commission=commission,
            currency=currency,
        )

    return _make


@pytest.fixture
def scenario_trades(make_trade):
    """Buy 100 @ 10, buy 50 @ 20, sell 120 @ 30."""
    return [
        make_trade(Side.BUY, date(2023, 1, 1), 100, 10, trade_id="b1"),
        make_trade(Side.BUY, date(2023, 2, 1), 50, 20, trade_id="b2"),
        make_trade(Side.SELL, date(2023, 3, 1), 120, 30, trade_id="s1"),
    ]
