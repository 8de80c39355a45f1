"""Helpers shared by the CLI command modules."""

from __future__ import annotations

import json
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import click
import requests
from marshmallow import ValidationError

from adminconsole.core.errors import APIError
from adminconsole.factory import ConsoleClient
from adminconsole.services._shared.errors import ServiceError

F = TypeVar("F", bound=Callable[..., Any])


def get_client(ctx: click.Context) -> ConsoleClient:
    return ctx.find_root().obj["client"]


def echo_json(data: Any) -> None:
    """Pretty-print an API payload."""
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def _format_validation(messages: Any) -> str:
    if not isinstance(messages, dict):
        return str(messages)
    parts = []
    for field, errs in messages.items():
        text = ", ".join(map(str, errs)) if isinstance(errs, list) else str(errs)
        parts.append(f"{field}: {text}")
    return "; ".join(parts)


def handle_errors(fn: F) -> F:
    """Report client failures as :class:`click.ClickException`."""

    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ValidationError as exc:
            raise click.ClickException(f"Invalid input: {_format_validation(exc.messages)}") from exc
        except APIError as exc:
            raise click.ClickException(f"{exc.message} ({exc.status_code})") from exc
        except ServiceError as exc:
            raise click.ClickException(str(exc)) from exc
        except requests.RequestException as exc:
            raise click.ClickException(f"Network error: {exc.__class__.__name__}") from exc

    return wrapper  # type: ignore[return-value]


def permitted_client(ctx: click.Context, permission: str) -> ConsoleClient:
    """Return the client once the signed-in operator may open ``permission``."""
    client = get_client(ctx)
    client.auth.require_permission(permission)
    return client
