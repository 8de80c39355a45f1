"""Sign-in related commands."""

from __future__ import annotations

import click

from adminconsole.services.auth.dto import LoginIn

from ._common import get_client, handle_errors


@click.command("login")
@click.option("--email", prompt=True, help="Operator email.")
@click.option("--password", prompt=True, hide_input=True, help="Operator password.")
@click.pass_context
@handle_errors
def login_command(ctx: click.Context, email: str, password: str) -> None:
    """Sign in and persist the credential."""
    out = get_client(ctx).auth.login(LoginIn(email=email.strip(), password=password))
    click.echo(f"Signed in as {out.user.name} <{out.user.email}> ({out.user.role})")


@click.command("logout")
@click.pass_context
@handle_errors
def logout_command(ctx: click.Context) -> None:
    """Sign out and discard the stored credential."""
    get_client(ctx).auth.logout()
    click.echo("Signed out")


@click.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """Show the session state, the signed-in operator and token expiries."""
    client = get_client(ctx)
    click.echo(f"State: {client.lifecycle.state.value}")
    user = client.auth.current_user
    if user is not None:
        click.echo(f"Signed in as {user.name} <{user.email}> ({user.role})")
    credential = client.store.get()
    if credential is None:
        return
    click.echo(f"Access token expires:  {credential.access_expires_at.isoformat()}")
    click.echo(f"Refresh token expires: {credential.refresh_expires_at.isoformat()}")
