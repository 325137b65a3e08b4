"""lotbook cashflows: projected coupons and amortizations."""

from __future__ import annotations

import sys

import click


@click.command()
@click.argument("portfolio", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--as-of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Projection horizon start (YYYY-MM-DD). Defaults to today.",
)
@click.pass_obj
def cashflows(settings, portfolio: str, as_of) -> None:
    """Show projected interest and amortization payments."""
    from datetime import date

    from lotbook.fixed_income.returns import expected_yield

    from .common import report_problems, run_portfolio

    horizon = as_of.date() if as_of else date.today()
    loaded, results = run_portfolio(settings, portfolio, horizon)

    for sid, result in results.items():
        if result.projection is None or not result.projection.cashflows:
            continue
        projection = result.projection
        click.echo(f"\n{sid}{'  (approximate dates)' if projection.degraded else ''}")
        click.echo(f"  {'Date':<11} {'Kind':<13} {'Amount':>14} {'Residual':>14}  Description")
        for cf in projection.cashflows:
            click.echo(
                f"  {cf.date.isoformat():<11} {cf.kind.value:<13} {cf.amount:>14,.2f} "
                f"{cf.capital_residual:>14,.2f}  {cf.description}"
            )
        click.echo(
            f"  Interest: {projection.total_interest:,.2f}  Amortization: {projection.total_amortization:,.2f}"
        )
        rate = expected_yield(loaded.trades.get(sid, []), projection.cashflows)
        if rate is not None:
            click.echo(f"  Expected yield (XIRR): {rate * 100:.2f}%")

    if report_problems(results):
        sys.exit(1)
