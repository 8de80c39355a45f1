"""
adminconsole.services._shared.ports
===================================

Collection of *ports* (hexagonal interfaces) that define the contracts the
session core depends on.

Modules
-------
- :mod:`credential_store`:
    Defines :class:`~.CredentialStore`, owner of the current token pair,
    plus the in-memory implementation and the record codec shared by
    persistent backends.

- :mod:`auth_gateway`:
    Defines :class:`~.AuthGateway`, abstraction for the upstream login,
    refresh and logout endpoints.

Design Notes
------------
Concrete adapters (Redis, JSON file, HTTP) implement these interfaces under
``adminconsole.infra``.
"""

from __future__ import annotations

from .auth_gateway import AuthGateway, StubAuthGateway
from .credential_store import (
    CredentialStore,
    InMemoryCredentialStore,
    SessionMeta,
    credential_from_record,
    credential_to_record,
    meta_from_record,
    meta_to_record,
)

__all__ = [
    "AuthGateway",
    "StubAuthGateway",
    "CredentialStore",
    "InMemoryCredentialStore",
    "SessionMeta",
    "credential_from_record",
    "credential_to_record",
    "meta_from_record",
    "meta_to_record",
]
