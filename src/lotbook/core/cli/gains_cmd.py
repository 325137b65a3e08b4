"""lotbook gains / lotbook lots: realized gains and open inventory."""

from __future__ import annotations

import sys
from datetime import date

import click


@click.command()
@click.argument("portfolio", type=click.Path(exists=True, dir_okay=False))
@click.option("--by-sale", is_flag=True, help="One row per sell instead of one per matched lot.")
@click.pass_obj
def gains(settings, portfolio: str, by_sale: bool) -> None:
    """Show realized gains matched first-in-first-out."""
    from .common import report_problems, run_portfolio

    _, results = run_portfolio(settings, portfolio, date.today())

    for sid, result in results.items():
        if result.fifo is None or not result.fifo.realized:
            continue
        click.echo(f"\n{sid}")
        if by_sale:
            click.echo(f"  {'Sell':<12} {'Date':<11} {'Qty':>12} {'Cost':>14} {'Proceeds':>14} {'Gain':>14} {'%':>8}")
            for s in result.fifo.summaries():
                click.echo(
                    f"  {s.sell_trade_id:<12} {s.close_date.isoformat():<11} {s.quantity:>12} "
                    f"{s.cost_basis:>14,.2f} {s.proceeds:>14,.2f} {s.gain:>14,.2f} {s.gain_percent:>7.2f}%"
                )
        else:
            click.echo(f"  {'Sell':<12} {'Lot':<12} {'Qty':>12} {'Cost':>14} {'Proceeds':>14} {'Gain':>14} {'Days':>6}")
            for e in result.fifo.realized:
                click.echo(
                    f"  {e.sell_trade_id:<12} {e.matched_lot_origin_id:<12} {e.quantity_closed:>12} "
                    f"{e.cost_basis:>14,.2f} {e.proceeds:>14,.2f} {e.gain:>14,.2f} {e.holding_period_days:>6}"
                )
        click.echo(f"  Total realized: {result.fifo.total_gain:,.2f}")

    if report_problems(results):
        sys.exit(1)


@click.command()
@click.argument("portfolio", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def lots(settings, portfolio: str) -> None:
    """Show open lots still held."""
    from .common import report_problems, run_portfolio

    _, results = run_portfolio(settings, portfolio, date.today())

    for sid, result in results.items():
        if result.fifo is None or not result.fifo.open_lots:
            continue
        click.echo(f"\n{sid}  (open: {result.fifo.open_quantity})")
        click.echo(f"  {'Lot':<12} {'Opened':<11} {'Remaining':>12} {'Unit cost':>14} {'Cost basis':>14}")
        for lot in result.fifo.open_lots:
            click.echo(
                f"  {lot.origin_trade_id:<12} {lot.open_date.isoformat():<11} {lot.remaining_quantity:>12} "
                f"{lot.unit_cost:>14,.4f} {lot.cost_basis:>14,.2f}"
            )

    if report_problems(results):
        sys.exit(1)
