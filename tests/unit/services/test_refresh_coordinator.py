"""Unit tests for the single-flight refresh coordinator."""

from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest
import requests

from adminconsole.core.errors import Unauthorized
from adminconsole.services._shared.errors import NoRefreshToken, RefreshFailed, RefreshTimeout
from adminconsole.services._shared.ports import InMemoryCredentialStore, StubAuthGateway
from adminconsole.services.auth.dto import Credential
from adminconsole.services.session.coordinator import RefreshCoordinator
from adminconsole.services.session.lifecycle import SessionLifecycle, SessionState

from tests.factories.credential import CredentialFactory
from tests.helpers.assertions import assert_signed_out


def _wait_until(predicate, timeout: float = 5.0) -> None:
    """Poll ``predicate`` until it holds or fail the test."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not reached in time")
        time.sleep(0.005)


def _run_concurrently(
    coordinator: RefreshCoordinator, gateway: StubAuthGateway, callers: int
) -> tuple[list[Credential], list[BaseException]]:
    """
    Start one issuer, attach ``callers - 1`` waiters, then let the refresh finish.
    """
    results: list[Credential] = []
    errors: list[BaseException] = []
    lock = threading.Lock()

    def call() -> None:
        try:
            credential = coordinator.refresh()
        except BaseException as exc:  # noqa: BLE001 - collected for assertions
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(credential)

    gateway.release = threading.Event()
    threads = [threading.Thread(target=call) for _ in range(callers)]
    threads[0].start()
    assert gateway.entered.wait(timeout=5)
    for thread in threads[1:]:
        thread.start()
    _wait_until(lambda: coordinator.waiters == callers - 1)
    gateway.release.set()
    for thread in threads:
        thread.join(timeout=5)
    return results, errors


def test_refresh_rotates_credential(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    # Act
    credential = coordinator.refresh()

    # Assert
    assert credential.access_token == "access.1"
    assert store.get() == credential
    assert lifecycle.state is SessionState.ACTIVE
    assert gateway.refresh_calls == 1
    assert coordinator.pending is False


def test_concurrent_callers_share_one_refresh(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    """N callers needing a refresh at once produce exactly one upstream call."""

    results, errors = _run_concurrently(coordinator, gateway, callers=8)

    assert errors == []
    assert gateway.refresh_calls == 1
    assert len(results) == 8
    assert len({id(c) for c in results}) == 1
    assert store.get() is results[0]


def test_concurrent_callers_share_the_same_failure(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    """Every attached caller receives the same failure instance."""

    # Arrange
    gateway.refresh_error = Unauthorized("Invalid refresh token")

    # Act
    results, errors = _run_concurrently(coordinator, gateway, callers=5)

    # Assert
    assert results == []
    assert len(errors) == 5
    assert all(isinstance(err, RefreshFailed) for err in errors)
    assert len({id(err) for err in errors}) == 1
    assert gateway.refresh_calls == 1
    assert_signed_out(lifecycle, store)


def test_missing_refresh_token_fails_without_network(
    coordinator: RefreshCoordinator, lifecycle: SessionLifecycle, gateway: StubAuthGateway
) -> None:
    with pytest.raises(NoRefreshToken):
        coordinator.refresh()

    assert gateway.refresh_calls == 0
    assert lifecycle.state is SessionState.SIGNED_OUT


def test_expired_refresh_token_signs_out_without_network(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
) -> None:
    # Arrange
    lifecycle.sign_in(
        CredentialFactory(access_ttl=timedelta(hours=-2), refresh_ttl=timedelta(hours=-1))
    )

    # Act
    with pytest.raises(NoRefreshToken):
        coordinator.refresh()

    # Assert
    assert gateway.refresh_calls == 0
    assert_signed_out(lifecycle, store)


def test_network_error_passes_through_and_keeps_session(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    """Transport failures surface unchanged; the credential is kept for a later retry."""

    gateway.refresh_error = requests.ConnectionError("connection refused")

    with pytest.raises(requests.ConnectionError):
        coordinator.refresh()

    assert store.get() == signed_in
    assert lifecycle.state is SessionState.ACTIVE
    assert coordinator.pending is False


def test_stale_token_reuses_already_rotated_credential(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    """A caller rejected with an old token picks up the rotation it missed."""

    rotated = coordinator.refresh()

    again = coordinator.refresh(stale_access_token=signed_in.access_token)

    assert again is rotated
    assert gateway.refresh_calls == 1


def test_stale_token_matching_current_credential_refreshes(
    coordinator: RefreshCoordinator, gateway: StubAuthGateway, signed_in: Credential
) -> None:
    coordinator.refresh(stale_access_token=signed_in.access_token)

    assert gateway.refresh_calls == 1


def test_sign_out_cancels_pending_refresh(
    coordinator: RefreshCoordinator,
    store: InMemoryCredentialStore,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    """Waiters are released with RefreshFailed and the late result is discarded."""

    # Arrange
    gateway.release = threading.Event()
    outcomes: list[BaseException | Credential] = []

    def call() -> None:
        try:
            outcomes.append(coordinator.refresh())
        except RefreshFailed as exc:
            outcomes.append(exc)

    issuer = threading.Thread(target=call)
    waiter = threading.Thread(target=call)
    issuer.start()
    assert gateway.entered.wait(timeout=5)
    waiter.start()
    _wait_until(lambda: coordinator.waiters == 1)

    # Act
    lifecycle.force_sign_out("logout")
    gateway.release.set()
    issuer.join(timeout=5)
    waiter.join(timeout=5)

    # Assert
    assert len(outcomes) == 2
    assert all(isinstance(item, RefreshFailed) for item in outcomes)
    assert_signed_out(lifecycle, store)
    assert coordinator.pending is False


def test_cancel_without_pending_refresh_is_noop(coordinator: RefreshCoordinator) -> None:
    assert coordinator.cancel("logout") is False


def test_waiter_gives_up_after_timeout(
    store: InMemoryCredentialStore,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    coordinator = RefreshCoordinator(
        store=store, gateway=gateway, lifecycle=lifecycle, wait_timeout=0.05
    )
    gateway.release = threading.Event()
    issuer = threading.Thread(target=coordinator.refresh)
    issuer.start()
    assert gateway.entered.wait(timeout=5)

    try:
        with pytest.raises(RefreshTimeout):
            coordinator.refresh()
    finally:
        gateway.release.set()
        issuer.join(timeout=5)

    # The cycle itself went on and rotated the credential.
    assert gateway.refresh_calls == 1
    assert store.get() != signed_in
    assert lifecycle.state is SessionState.ACTIVE


class _FailingWritesStore(InMemoryCredentialStore):
    """In-memory store whose ``set`` fails once armed."""

    def __init__(self) -> None:
        super().__init__(grace=timedelta(seconds=5))
        self.write_error: Exception | None = None

    def set(self, credential: Credential) -> None:
        if self.write_error is not None:
            raise self.write_error
        super().set(credential)


def test_store_write_failure_releases_every_caller_with_the_same_error(
    gateway: StubAuthGateway,
) -> None:
    """A failed write settles the cycle: nobody waits for a timeout, nobody stays refreshing."""

    # Arrange
    store = _FailingWritesStore()
    lifecycle = SessionLifecycle(store)
    coordinator = RefreshCoordinator(
        store=store, gateway=gateway, lifecycle=lifecycle, wait_timeout=30
    )
    original = CredentialFactory()
    lifecycle.sign_in(original)
    store.write_error = OSError("disk full")

    # Act
    started = time.monotonic()
    results, errors = _run_concurrently(coordinator, gateway, callers=2)
    elapsed = time.monotonic() - started

    # Assert
    assert results == []
    assert len(errors) == 2
    assert isinstance(errors[0], OSError)
    assert errors[0] is errors[1]
    assert elapsed < 5
    assert lifecycle.state is SessionState.ACTIVE
    assert store.get() == original
    assert coordinator.pending is False


def test_failing_listener_does_not_block_attached_callers(
    coordinator: RefreshCoordinator,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    def listener(previous: SessionState, current: SessionState) -> None:
        if previous is SessionState.REFRESHING:
            raise RuntimeError("listener bug")

    lifecycle.subscribe(listener)

    results, errors = _run_concurrently(coordinator, gateway, callers=3)

    assert errors == []
    assert len(results) == 3
    assert len({id(credential) for credential in results}) == 1
    assert lifecycle.state is SessionState.ACTIVE


def test_listeners_run_after_the_refresh_settled(
    coordinator: RefreshCoordinator,
    lifecycle: SessionLifecycle,
    gateway: StubAuthGateway,
    signed_in: Credential,
) -> None:
    """A listener may hand work to another thread that calls refresh() again."""

    # Arrange
    outcomes: list[Credential] = []

    def listener(previous: SessionState, current: SessionState) -> None:
        if previous is not SessionState.REFRESHING:
            return
        worker = threading.Thread(
            target=lambda: outcomes.append(
                coordinator.refresh(stale_access_token=signed_in.access_token)
            )
        )
        worker.start()
        worker.join(timeout=5)

    lifecycle.subscribe(listener)

    # Act
    credential = coordinator.refresh()

    # Assert
    assert outcomes == [credential]
    assert gateway.refresh_calls == 1


class _InterruptedGateway(StubAuthGateway):
    """Gateway whose refresh is interrupted once a caller has attached."""

    coordinator: RefreshCoordinator

    def refresh(self, dto):
        self.refresh_calls += 1
        self.entered.set()
        _wait_until(lambda: self.coordinator.waiters == 1)
        raise KeyboardInterrupt


def test_interrupted_issuer_still_releases_attached_callers(
    store: InMemoryCredentialStore, lifecycle: SessionLifecycle, signed_in: Credential
) -> None:
    # Arrange
    gateway = _InterruptedGateway()
    coordinator = RefreshCoordinator(
        store=store, gateway=gateway, lifecycle=lifecycle, wait_timeout=30
    )
    gateway.coordinator = coordinator
    outcomes: list[BaseException] = []

    def attach() -> None:
        assert gateway.entered.wait(timeout=5)
        try:
            coordinator.refresh()
        except RefreshFailed as exc:
            outcomes.append(exc)

    waiter = threading.Thread(target=attach)
    waiter.start()

    # Act
    with pytest.raises(KeyboardInterrupt):
        coordinator.refresh()
    waiter.join(timeout=5)

    # Assert
    assert [str(exc) for exc in outcomes] == ["Session refresh interrupted"]
    assert coordinator.pending is False
    assert lifecycle.state is SessionState.ACTIVE
    assert store.get() == signed_in
