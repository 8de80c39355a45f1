"""
Request pipeline: every resource call goes through :meth:`RequestPipeline.send`.

The pipeline attaches the current access token, and on a 401 routes through
the refresh coordinator before retrying the original request exactly once.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, NoReturn

import requests

from adminconsole.core.errors import APIError
from adminconsole.core.logger import request_scope
from adminconsole.infra.http.transport import HttpTransport
from adminconsole.services._shared.errors import RefreshTimeout, SessionError
from adminconsole.services._shared.ports import CredentialStore
from adminconsole.services._shared.ports.credential_store import utcnow
from adminconsole.services.session.coordinator import RefreshCoordinator
from adminconsole.services.session.lifecycle import SessionLifecycle, SessionState

log = logging.getLogger(__name__)


class RequestPipeline:
    """
    Credential-aware request sender.

    :param transport: Builds and sends the HTTP calls.
    :param store: Read for the current access token (never written here).
    :param coordinator: Single-flight refresh shared by all callers.
    :param lifecycle: Session state consulted before and updated after sends.
    :param preflight_refresh: Refresh an expired access token before sending
        instead of letting the server answer 401.
    """

    #: Authorization retries per original request.
    MAX_AUTH_RETRIES = 1

    def __init__(
        self,
        *,
        transport: HttpTransport,
        store: CredentialStore,
        coordinator: RefreshCoordinator,
        lifecycle: SessionLifecycle,
        preflight_refresh: bool = False,
    ) -> None:
        self.transport = transport
        self.store = store
        self.coordinator = coordinator
        self.lifecycle = lifecycle
        self.preflight_refresh = preflight_refresh

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Build a request for ``path`` under the API root and :meth:`send` it."""
        return self.send(self.transport.build(method, path, **kwargs))

    def send(self, request: requests.Request) -> requests.Response:
        """
        Send ``request`` with the current credential.

        :returns: The response, untouched, for anything but a final 401.
        :raises adminconsole.core.errors.Unauthorized: The request was rejected
            and the refresh-and-retry policy is exhausted. The session is
            signed out before this is raised.
        :raises requests.RequestException: Transport failures, unchanged.
        """
        with request_scope():
            access_token = self._preflight()
            return self._dispatch(request, attempt=0, access_token=access_token)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _preflight(self) -> str | None:
        """Pick the access token for the first attempt (``None`` sends unauthenticated)."""
        self.lifecycle.check_idle()
        self.lifecycle.check_expiry()
        self.lifecycle.touch()

        state = self.lifecycle.state
        if state is SessionState.REFRESHING:
            # Wait for the coordinated outcome before using any credential.
            try:
                return self.coordinator.refresh(stale_access_token=None).access_token
            except SessionError:
                return None
        if state is not SessionState.ACTIVE:
            return None

        credential = self.store.get()
        if credential is None:
            return None
        if not credential.access_expired(utcnow(), self.store.grace):
            return credential.access_token
        if self.preflight_refresh:
            try:
                return self.coordinator.refresh(
                    stale_access_token=credential.access_token
                ).access_token
            except SessionError:
                return None
        return None

    def _dispatch(
        self, request: requests.Request, *, attempt: int, access_token: str | None
    ) -> requests.Response:
        response = self.transport.send(request, access_token=access_token, attempt=attempt)
        if response.status_code != HTTPStatus.UNAUTHORIZED:
            return response

        if attempt >= self.MAX_AUTH_RETRIES:
            self._give_up(response, "Request rejected after session refresh")

        try:
            credential = self.coordinator.refresh(stale_access_token=access_token)
        except RefreshTimeout as exc:
            # The shared cycle may still succeed; only this request gives up.
            log.warning("Gave up waiting for the session refresh")
            raise APIError.from_response(response) from exc
        except SessionError as exc:
            self._give_up(response, str(exc), cause=exc)

        log.debug("Retrying request with refreshed credential", extra={"attempt": attempt + 1})
        return self._dispatch(request, attempt=attempt + 1, access_token=credential.access_token)

    def _give_up(
        self, response: requests.Response, reason: str, *, cause: BaseException | None = None
    ) -> NoReturn:
        self.lifecycle.force_sign_out(reason)
        raise APIError.from_response(response) from cause
