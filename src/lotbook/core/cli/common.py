"""Shared setup logic for CLI commands."""

from __future__ import annotations

import sys
from datetime import date

import click

from lotbook.core.config import Config
from lotbook.core.config_schema import LotbookConfig
from lotbook.core.exceptions import ConfigurationError
from lotbook.core.utils.logging import setup_logging


def load_settings(config_file: str | None, log_level: str | None) -> LotbookConfig:
    """Load and validate config, then configure logging."""
    try:
        config = Config(config_file=config_file)
        if log_level:
            config.set("logging.level", log_level)
        settings = config.validated()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    setup_logging(settings.logging)
    return settings


def run_portfolio(settings: LotbookConfig, portfolio_path: str, as_of: date):
    """Load the portfolio file and recompute every security in it."""
    from lotbook.io.portfolio import load_portfolio
    from lotbook.recompute import recompute_portfolio

    try:
        portfolio = load_portfolio(portfolio_path, default_currency=settings.ledger.default_currency)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    results = recompute_portfolio(portfolio.securities, portfolio.trades, as_of, settings=settings)
    return portfolio, results


def report_problems(results) -> bool:
    """Print errors and warnings; returns True when any security failed."""
    failed = False
    for sid, result in results.items():
        for warning in result.warnings:
            click.echo(f"WARNING [{sid}]: {warning}", err=True)
        for error in result.errors:
            click.echo(f"ERROR [{sid}]: {type(error).__name__}: {error}", err=True)
            failed = True
    return failed
