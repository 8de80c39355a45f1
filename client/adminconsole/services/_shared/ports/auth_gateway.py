from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from typing import Protocol

from adminconsole.services._shared.errors import ServiceError
from adminconsole.services.auth.dto import (
    AuthTokenConfig,
    Credential,
    LoginIn,
    LoginOut,
    RefreshIn,
    UserOut,
)


class AuthGateway(Protocol):
    """Port for the upstream credential-issuing endpoints."""

    def login(self, dto: LoginIn) -> LoginOut: ...

    def refresh(self, dto: RefreshIn) -> Credential: ...

    def logout(self, access_token: str | None) -> None: ...


class StubAuthGateway(AuthGateway):
    """
    Deterministic gateway used in unit tests.

    Tokens look like ``access.<n>`` / ``refresh.<n>``. ``refresh_calls`` counts
    upstream refreshes; ``release`` can hold refreshes open until a test sets
    it, which lets concurrent callers pile up on the pending cycle.
    """

    def __init__(
        self,
        *,
        token_cfg: AuthTokenConfig | None = None,
        password: str = "password123",
    ) -> None:
        self.cfg = token_cfg or AuthTokenConfig(
            access_expires=timedelta(hours=1),
            refresh_expires=timedelta(days=7),
        )
        self.password = password
        self.refresh_calls = 0
        self.logout_calls: list[str | None] = []
        self.refresh_error: Exception | None = None
        self.release: threading.Event | None = None
        self.entered = threading.Event()
        self._seq = 0
        self._lock = threading.Lock()

    def _issue(self) -> Credential:
        with self._lock:
            self._seq += 1
            seq = self._seq
        now = datetime.now(UTC)
        return Credential(
            access_token=f"access.{seq}",
            refresh_token=f"refresh.{seq}",
            access_expires_at=now + self.cfg.access_expires,
            refresh_expires_at=now + self.cfg.refresh_expires,
        )

    def login(self, dto: LoginIn) -> LoginOut:
        if dto.password != self.password:
            raise ServiceError("Invalid credentials")
        user = UserOut(id="u-1", name="Operator", email=dto.email, role="admin")
        return LoginOut(user=user, credential=self._issue())

    def refresh(self, dto: RefreshIn) -> Credential:
        with self._lock:
            self.refresh_calls += 1
        self.entered.set()
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self._issue()

    def logout(self, access_token: str | None) -> None:
        self.logout_calls.append(access_token)
