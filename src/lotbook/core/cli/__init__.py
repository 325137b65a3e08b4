"""Lotbook CLI: entry point for the gains, lots and cashflows reports."""

import click

from lotbook import __version__


@click.group()
@click.version_option(version=__version__, package_name="lotbook")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="YAML or JSON config file.")
@click.option("--log-level", default=None, help="Override logging.level (DEBUG, INFO, WARNING, ...).")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, log_level: str | None) -> None:
    """Lotbook: FIFO gains and bond cashflow projections for your portfolio."""
    from .common import load_settings

    ctx.obj = load_settings(config_file, log_level)


# Register subcommands
from .cashflows_cmd import cashflows
from .gains_cmd import gains, lots

main.add_command(gains)
main.add_command(lots)
main.add_command(cashflows)
