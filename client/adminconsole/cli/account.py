"""Account commands of the signed-in operator."""

from __future__ import annotations

import click

from adminconsole.schemas.auth import PERMISSIONS
from adminconsole.services.auth.dto import ChangePasswordIn, EmployeeIn, ProfileIn

from ._common import echo_json, get_client, handle_errors


@click.group("account")
def account_cli() -> None:
    """Profile, password and employee accounts."""


@account_cli.command("profile")
@click.option("--name", help="New display name.")
@click.option("--email", help="New login email.")
@click.pass_context
@handle_errors
def account_profile(ctx: click.Context, name: str | None, email: str | None) -> None:
    """Show the profile, or update it when --name or --email is given."""
    auth = get_client(ctx).auth
    user = auth.current_user
    if user is None:
        raise click.ClickException("Not signed in. Please sign in.")
    if name is not None or email is not None:
        dto = ProfileIn(name=(name or user.name).strip(), email=(email or user.email).strip())
        user = auth.update_profile(dto)
        click.echo("Profile updated")
    echo_json(user.to_mapping())


@account_cli.command("change-password")
@click.option("--current-password", prompt=True, hide_input=True)
@click.option("--new-password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_context
@handle_errors
def account_change_password(ctx: click.Context, current_password: str, new_password: str) -> None:
    """Replace the password of the signed-in operator."""
    get_client(ctx).auth.change_password(
        ChangePasswordIn(
            current_password=current_password,
            new_password=new_password,
            confirm_password=new_password,
        )
    )
    click.echo("Password changed")


@account_cli.command("create-employee")
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option(
    "--permission",
    "permissions",
    multiple=True,
    required=True,
    type=click.Choice(PERMISSIONS),
    help="Screen granted to the employee; repeat for several.",
)
@click.pass_context
@handle_errors
def account_create_employee(
    ctx: click.Context, name: str, email: str, password: str, permissions: tuple[str, ...]
) -> None:
    """Create an employee account (admins only)."""
    created = get_client(ctx).auth.create_employee(
        EmployeeIn(
            name=name.strip(), email=email.strip(), password=password, permissions=permissions
        )
    )
    click.echo("Employee created")
    echo_json(created)
