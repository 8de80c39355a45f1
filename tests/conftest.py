"""Global pytest fixtures for the admin console client."""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import timedelta

import pytest
import responses

os.environ.setdefault("APP_ENV", "testing")

from adminconsole.infra.http.pipeline import RequestPipeline  # noqa: E402
from adminconsole.infra.http.transport import HttpTransport  # noqa: E402
from adminconsole.services._shared.ports import (  # noqa: E402
    InMemoryCredentialStore,
    StubAuthGateway,
)
from adminconsole.services.auth.dto import Credential  # noqa: E402
from adminconsole.services.session.coordinator import RefreshCoordinator  # noqa: E402
from adminconsole.services.session.lifecycle import SessionLifecycle  # noqa: E402

from tests.factories.credential import CredentialFactory  # noqa: E402
from tests.helpers.http import API_URL  # noqa: E402


@pytest.fixture()
def store() -> InMemoryCredentialStore:
    """Return an empty in-memory credential store with a 5 second grace window."""

    return InMemoryCredentialStore(grace=timedelta(seconds=5))


@pytest.fixture()
def gateway() -> StubAuthGateway:
    """Return a deterministic auth gateway counting refresh calls."""

    return StubAuthGateway()


@pytest.fixture()
def lifecycle(store: InMemoryCredentialStore) -> SessionLifecycle:
    """Return a signed-out session lifecycle without idle tracking."""

    return SessionLifecycle(store)


@pytest.fixture()
def coordinator(
    store: InMemoryCredentialStore, gateway: StubAuthGateway, lifecycle: SessionLifecycle
) -> RefreshCoordinator:
    """Return a refresh coordinator wired to the stub gateway."""

    return RefreshCoordinator(store=store, gateway=gateway, lifecycle=lifecycle, wait_timeout=5)


@pytest.fixture()
def transport() -> Generator[HttpTransport, None, None]:
    """Return an HTTP transport pointed at the fake API host."""

    http = HttpTransport(API_URL, timeout=2)
    yield http
    http.close()


@pytest.fixture()
def pipeline(
    transport: HttpTransport,
    store: InMemoryCredentialStore,
    coordinator: RefreshCoordinator,
    lifecycle: SessionLifecycle,
) -> RequestPipeline:
    """Return a request pipeline sharing the store, coordinator and lifecycle fixtures."""

    return RequestPipeline(
        transport=transport, store=store, coordinator=coordinator, lifecycle=lifecycle
    )


@pytest.fixture()
def mocked_responses() -> Generator[responses.RequestsMock, None, None]:
    """Activate ``responses`` for the test and fail on unused registrations."""

    with responses.RequestsMock(assert_all_requests_are_fired=True) as rsps:
        yield rsps


@pytest.fixture()
def signed_in(lifecycle: SessionLifecycle) -> Credential:
    """Sign the lifecycle in with a fresh credential and return it."""

    credential = CredentialFactory()
    lifecycle.sign_in(credential)
    return credential
