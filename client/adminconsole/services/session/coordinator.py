"""
Single-flight refresh coordination.

However many requests discover an unusable access token at the same time,
at most one call reaches the upstream refresh endpoint. Every other caller
attaches to the pending cycle and receives the same outcome: the same new
:class:`Credential`, or the same exception instance.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from adminconsole.core.errors import APIError
from adminconsole.services._shared.errors import (
    IllegalTransition,
    NoRefreshToken,
    RefreshFailed,
    RefreshTimeout,
    ServiceError,
    SessionError,
)
from adminconsole.services._shared.ports.auth_gateway import AuthGateway
from adminconsole.services._shared.ports.credential_store import CredentialStore, utcnow
from adminconsole.services.auth.dto import Credential, RefreshIn
from adminconsole.services.session.lifecycle import SessionLifecycle

log = logging.getLogger(__name__)

_UNSET: Any = object()


class _PendingRefresh:
    """Handle for the refresh in flight; settled exactly once."""

    __slots__ = ("_done", "credential", "error", "waiters")

    def __init__(self) -> None:
        self._done = threading.Event()
        self.credential: Credential | None = None
        self.error: BaseException | None = None
        self.waiters = 0

    def settle(
        self, credential: Credential | None = None, error: BaseException | None = None
    ) -> None:
        if self._done.is_set():
            return
        self.credential = credential
        self.error = error
        self._done.set()

    def wait(self, timeout: float | None) -> Credential:
        if not self._done.wait(timeout):
            raise RefreshTimeout()
        return self.result()

    def result(self) -> Credential:
        if self.error is not None:
            raise self.error
        assert self.credential is not None
        return self.credential


class RefreshCoordinator:
    """
    Guarantee at most one outstanding refresh call.

    :param store: Credential store read for the refresh token and written on success.
    :param gateway: Upstream credential-issuing endpoints.
    :param lifecycle: Session state machine driven through ``REFRESHING``.
    :param wait_timeout: Seconds an attached caller waits before giving up.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        gateway: AuthGateway,
        lifecycle: SessionLifecycle,
        wait_timeout: float | None = 30.0,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.lifecycle = lifecycle
        self.wait_timeout = wait_timeout
        self._pending: _PendingRefresh | None = None
        # Re-entrant: lifecycle hooks may call cancel() while a cycle settles.
        self._lock = threading.RLock()
        lifecycle.on_sign_out(self.cancel)

    @property
    def pending(self) -> bool:
        """``True`` while a refresh cycle is in flight."""
        with self._lock:
            return self._pending is not None

    @property
    def waiters(self) -> int:
        """Number of callers attached to the pending cycle (issuer excluded)."""
        with self._lock:
            return self._pending.waiters if self._pending is not None else 0

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, *, stale_access_token: str | None = _UNSET) -> Credential:
        """
        Return a freshly issued credential, sharing one upstream call.

        :param stale_access_token: Access token (or ``None``) the caller was
            rejected with. When the store already holds a different, unexpired
            credential, it is returned without a new refresh.
        :returns: The new credential.
        :raises NoRefreshToken: No usable refresh token; no network call made.
        :raises RefreshFailed: Upstream rejected the refresh, or the cycle was
            cancelled by a sign-out.
        :raises RefreshTimeout: This caller stopped waiting; the cycle goes on.
        """
        with self._lock:
            pending = self._pending
            if pending is not None:
                pending.waiters += 1
                issuer = False
            else:
                if stale_access_token is not _UNSET:
                    current = self.store.get()
                    if (
                        current is not None
                        and current.access_token != stale_access_token
                        and not current.access_expired(utcnow(), self.store.grace)
                    ):
                        log.debug("Credential already rotated by another caller")
                        return current
                pending = self._pending = _PendingRefresh()
                issuer = True

        if not issuer:
            log.debug("Attached to pending refresh")
            return pending.wait(self.wait_timeout)

        credential: Credential | None = None
        error: BaseException | None = None
        try:
            credential = self._issue()
        except Exception as exc:
            error = exc
        except BaseException:
            # Interrupted issuer: release the attached callers, keep the session.
            self._settle(
                pending, error=RefreshFailed("Session refresh interrupted"), sign_out=False
            )
            raise
        self._settle(pending, credential=credential, error=error)
        return pending.result()

    def cancel(self, reason: str = "signed out") -> bool:
        """
        Release every caller of the pending cycle with :class:`RefreshFailed`.

        A result arriving later for the cancelled cycle is discarded.

        :returns: ``True`` if a pending cycle was cancelled.
        """
        with self._lock:
            pending = self._pending
            if pending is None:
                return False
            self._pending = None
            pending.settle(error=RefreshFailed(f"Session refresh cancelled: {reason}"))
        log.info("Pending refresh cancelled: %s", reason)
        return True

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _issue(self) -> Credential:
        current = self.store.get()
        if current is None or current.refresh_expired(utcnow(), self.store.grace):
            raise NoRefreshToken()

        try:
            self.lifecycle.begin_refresh()
        except IllegalTransition as exc:
            raise NoRefreshToken("Session is not active. Please sign in.") from exc

        log.info("Refreshing session credential")
        try:
            return self.gateway.refresh(RefreshIn(refresh_token=current.refresh_token))
        except (requests.ConnectionError, requests.Timeout):
            # Transport failures surface unchanged.
            raise
        except APIError as exc:
            raise RefreshFailed(f"Refresh rejected: {exc.message}") from exc
        except SessionError:
            raise
        except ServiceError as exc:
            raise RefreshFailed(f"Refresh failed: {exc}") from exc

    def _settle(
        self,
        pending: _PendingRefresh,
        *,
        credential: Credential | None = None,
        error: BaseException | None = None,
        sign_out: bool | None = None,
    ) -> None:
        """
        Record the outcome of ``pending`` and release every attached caller.

        The store write happens under the coordinator lock, so a concurrent
        :meth:`cancel` either wins before it or finds nothing to cancel.
        Listeners see the resulting transition only after the callers were
        released and the lock was dropped.
        """
        if sign_out is None:
            sign_out = isinstance(error, SessionError)
        with self.lifecycle.deferred_notifications():
            with self._lock:
                if self._pending is not pending:
                    log.info("Discarding outcome of cancelled refresh")
                    return
                self._pending = None
                try:
                    if error is None:
                        assert credential is not None
                        try:
                            self.store.set(credential)
                        except Exception as exc:
                            log.warning(
                                "Storing refreshed credential failed: %s", exc.__class__.__name__
                            )
                            credential, error = None, exc
                    if error is None:
                        self.lifecycle.end_refresh()
                        log.info("Session credential refreshed", extra={"state": "active"})
                    elif sign_out:
                        log.warning("Session refresh failed: %s", error)
                        self.lifecycle.force_sign_out(str(error))
                    else:
                        log.warning("Session refresh aborted: %s", error.__class__.__name__)
                        self.lifecycle.end_refresh()
                finally:
                    pending.settle(credential, error)
