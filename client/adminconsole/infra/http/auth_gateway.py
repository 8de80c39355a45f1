from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from adminconsole.core.errors import raise_for_status
from adminconsole.infra.http.transport import HttpTransport
from adminconsole.schemas.auth import LoginPayloadSchema, TokenPayloadSchema
from adminconsole.schemas.common import load_payload, unwrap
from adminconsole.services._shared.errors import EnvelopeError
from adminconsole.services._shared.ports import AuthGateway
from adminconsole.services.auth.dto import (
    AuthTokenConfig,
    Credential,
    LoginIn,
    LoginOut,
    RefreshIn,
    UserOut,
    epoch_ms_to_datetime,
)


class HttpAuthGateway(AuthGateway):
    """
    Auth endpoints of the remote API.

    Calls go straight through the transport: a 401 from these endpoints
    means bad credentials, never "refresh and retry".

    :param transport: Shared HTTP transport.
    :param token_cfg: Lifetimes assumed when the API omits expiries.
    """

    LOGIN_PATH = "/auth/login"
    REFRESH_PATH = "/auth/refresh-token"
    LOGOUT_PATH = "/auth/logout"

    def __init__(self, transport: HttpTransport, *, token_cfg: AuthTokenConfig | None = None) -> None:
        self.transport = transport
        self.cfg = token_cfg or AuthTokenConfig()

    def login(self, dto: LoginIn) -> LoginOut:
        request = self.transport.build(
            "POST", self.LOGIN_PATH, json={"email": dto.email, "password": dto.password}
        )
        response = self.transport.send(request)
        payload = load_payload(LoginPayloadSchema(), unwrap(response), response)
        user = payload["user"]
        return LoginOut(
            user=UserOut(
                id=user["id"],
                name=user["name"],
                email=user["email"],
                role=user["role"],
                permissions=tuple(user["permissions"]),
            ),
            credential=self._credential(payload, self.LOGIN_PATH),
        )

    def refresh(self, dto: RefreshIn) -> Credential:
        request = self.transport.build(
            "POST", self.REFRESH_PATH, json={"refreshToken": dto.refresh_token}
        )
        response = self.transport.send(request)
        payload = load_payload(TokenPayloadSchema(), unwrap(response), response)
        return self._credential(payload, self.REFRESH_PATH)

    def logout(self, access_token: str | None) -> None:
        request = self.transport.build("POST", self.LOGOUT_PATH)
        response = self.transport.send(request, access_token=access_token)
        raise_for_status(response)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _credential(self, payload: dict[str, Any], path: str) -> Credential:
        """Build a credential, filling omitted expiries from the configured lifetimes."""
        now = datetime.now(UTC)
        access_exp = epoch_ms_to_datetime(payload.get("access_token_expiry"))
        refresh_exp = epoch_ms_to_datetime(payload.get("refresh_token_expiry"))
        try:
            return Credential(
                access_token=payload["access_token"],
                refresh_token=payload["refresh_token"],
                access_expires_at=access_exp or now + self.cfg.access_expires,
                refresh_expires_at=refresh_exp or now + self.cfg.refresh_expires,
            )
        except ValueError as exc:
            raise EnvelopeError(path, str(exc)) from exc
