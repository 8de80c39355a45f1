# adminconsole/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (sent once, never stored).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Opaque refresh token.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class ProfileIn:
    """
    Input DTO for updating the signed-in operator's profile.

    :param name: New display name.
    :param email: New login email.
    """

    name: str
    email: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Input DTO for a password change.

    :param current_password: Password in use.
    :param new_password: Replacement password.
    :param confirm_password: Must repeat ``new_password``.
    """

    current_password: str
    new_password: str
    confirm_password: str


@dataclass(frozen=True, slots=True)
class EmployeeIn:
    """
    Input DTO for creating an employee account.

    :param name: Display name.
    :param email: Login email.
    :param password: Initial password.
    :param permissions: Screens granted (at least one).
    """

    name: str
    email: str
    password: str
    permissions: tuple[str, ...] = ()


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class Credential:
    """
    Access/refresh token pair with absolute expiries.

    :param access_token: Opaque access token attached to requests.
    :type access_token: str
    :param refresh_token: Opaque token used solely to obtain a new access token.
    :type refresh_token: str
    :param access_expires_at: Access expiry (timezone-aware UTC).
    :type access_expires_at: datetime
    :param refresh_expires_at: Refresh expiry, never earlier than the access expiry.
    :type refresh_expires_at: datetime
    :raises ValueError: If the expiry pair breaks the ordering invariant.
    """

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime

    def __post_init__(self) -> None:
        if not self.access_token or not self.refresh_token:
            raise ValueError("Credential tokens must be non-empty.")
        if self.access_expires_at.tzinfo is None or self.refresh_expires_at.tzinfo is None:
            raise ValueError("Credential expiries must be timezone-aware.")
        if self.refresh_expires_at < self.access_expires_at:
            raise ValueError("Refresh expiry must not precede access expiry.")

    def access_expired(self, now: datetime, grace: timedelta = timedelta(0)) -> bool:
        """Return ``True`` once ``now`` is within ``grace`` of the access expiry."""
        return now + grace >= self.access_expires_at

    def refresh_expired(self, now: datetime, grace: timedelta = timedelta(0)) -> bool:
        """Return ``True`` once ``now`` is within ``grace`` of the refresh expiry."""
        return now + grace >= self.refresh_expires_at


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public profile of the signed-in operator.

    :param id: Server identifier (``_id`` on the wire).
    :param name: Display name.
    :param email: Login email.
    :param role: ``admin``, ``manager`` or ``employee``.
    :param permissions: Screens the operator may open.
    """

    id: str
    name: str
    email: str
    role: str
    permissions: tuple[str, ...] = field(default_factory=tuple)

    def has_permission(self, permission: str) -> bool:
        """Admins open every screen; other roles need ``permission`` granted."""
        return self.role == "admin" or permission in self.permissions

    def to_mapping(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "permissions": list(self.permissions),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> UserOut:
        """
        Rebuild a profile stored with :meth:`to_mapping`.

        :raises KeyError: When a required member is missing.
        """
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            role=str(data["role"]),
            permissions=tuple(data.get("permissions") or ()),
        )


@dataclass(frozen=True, slots=True)
class LoginOut:
    """
    Result of a successful login.

    :param user: Signed-in operator.
    :param credential: Token pair now held by the credential store.
    """

    user: UserOut
    credential: Credential


# ------------------------ Config DTO (optional) --------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Fallback lifetimes applied when the API omits token expiries.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta = timedelta(days=1)
    refresh_expires: timedelta = timedelta(days=7)


def epoch_ms_to_datetime(value: Any) -> datetime | None:
    """Convert an epoch-milliseconds wire value to an aware UTC datetime."""
    if value is None or value == "":
        return None
    return datetime.fromtimestamp(float(value) / 1000.0, tz=UTC)
