"""Read-only resource commands (customers, items, sales orders, dashboard)."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

import click

from adminconsole.services._shared.dto import PaginationIn
from adminconsole.services.dashboard.dto import DateRangeIn

from ._common import echo_json, handle_errors, permitted_client


@click.group("customers")
def customers_cli() -> None:
    """Customer records."""


@customers_cli.command("list")
@click.pass_context
@handle_errors
def customers_list(ctx: click.Context) -> None:
    echo_json(permitted_client(ctx, "customer").customers.list())


@customers_cli.command("show")
@click.argument("customer_id")
@click.pass_context
@handle_errors
def customers_show(ctx: click.Context, customer_id: str) -> None:
    """Show a customer with its orders."""
    echo_json(asdict(permitted_client(ctx, "customer").customers.get_with_orders(customer_id)))


@click.group("items")
def items_cli() -> None:
    """Inventory items."""


@items_cli.command("list")
@click.pass_context
@handle_errors
def items_list(ctx: click.Context) -> None:
    echo_json(permitted_client(ctx, "item").items.list())


@items_cli.command("show")
@click.argument("item_id")
@click.pass_context
@handle_errors
def items_show(ctx: click.Context, item_id: str) -> None:
    echo_json(permitted_client(ctx, "item").items.get(item_id))


@click.group("sales-orders")
def sales_orders_cli() -> None:
    """Sales orders."""


@sales_orders_cli.command("list")
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--limit", default=10, show_default=True, type=click.IntRange(min=1))
@click.pass_context
@handle_errors
def sales_orders_list(ctx: click.Context, page: int, limit: int) -> None:
    """List one page of sales orders."""
    orders = permitted_client(ctx, "sales").sales_orders
    result = orders.list_page(PaginationIn(page=page, limit=limit))
    echo_json(result.rows)
    if result.meta is not None:
        meta = result.meta
        click.echo(f"Page {meta.page} (limit {meta.limit}, total {meta.total})")


@sales_orders_cli.command("show")
@click.argument("order_id")
@click.pass_context
@handle_errors
def sales_orders_show(ctx: click.Context, order_id: str) -> None:
    echo_json(permitted_client(ctx, "sales").sales_orders.get(order_id))


@click.command("dashboard")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), help="First day (YYYY-MM-DD).")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), help="Last day (YYYY-MM-DD).")
@click.pass_context
@handle_errors
def dashboard_command(ctx: click.Context, start: datetime | None, end: datetime | None) -> None:
    """Show sales and inventory aggregates, optionally for a date window."""
    if (start is None) != (end is None):
        raise click.UsageError("--start and --end must be given together.")
    service = permitted_client(ctx, "dashboard").dashboard
    if start is None or end is None:
        out = service.summary()
    else:
        try:
            window = DateRangeIn(start=start.date(), end=end.date())
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--end") from exc
        out = service.summary_between(window)
    echo_json(asdict(out))
