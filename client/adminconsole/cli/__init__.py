"""Command-line interface for the admin console client."""

from __future__ import annotations

import logging

import click

from adminconsole.factory import ConsoleClient, create_client

from .account import account_cli
from .resources import customers_cli, dashboard_command, items_cli, sales_orders_cli
from .session import login_command, logout_command, status_command

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    """Raise logging verbosity for the client packages when requested."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("adminconsole").setLevel(level)
    LOGGER.setLevel(level)


@click.group("adminconsole")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Admin console API client."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if "client" not in ctx.obj:
        client: ConsoleClient = create_client()
        ctx.obj["client"] = client
        ctx.call_on_close(client.close)
    _configure_logging(verbose)


cli.add_command(login_command)
cli.add_command(logout_command)
cli.add_command(status_command)
cli.add_command(customers_cli)
cli.add_command(items_cli)
cli.add_command(sales_orders_cli)
cli.add_command(dashboard_command)
cli.add_command(account_cli)


def main() -> None:
    """Console-script entry point."""
    cli(obj={})
