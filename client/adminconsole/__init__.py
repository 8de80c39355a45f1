"""Expose the client factory at package level.

Provide convenient access to :func:`adminconsole.factory.create_client` so
callers can ``from adminconsole import create_client``.
"""

from __future__ import annotations

from .factory import ConsoleClient, create_client

__all__ = ["ConsoleClient", "create_client"]
