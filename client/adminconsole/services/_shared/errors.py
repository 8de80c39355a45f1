"""
Service-level exceptions used by the session core and resource services.

These exceptions are **transport-agnostic**: they never carry a
``requests.Response`` and are raised from the session machinery, not from
HTTP status handling. HTTP-level failures live in ``adminconsole.core.errors``.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The request pipeline converts session failures into
      :class:`adminconsole.core.errors.Unauthorized` for its callers.
    """

    pass


class SessionError(ServiceError):
    """Base class for failures that end the current session."""


# --------------------------------------------------------------------------- #
# Session errors
# --------------------------------------------------------------------------- #


class NoRefreshToken(SessionError):
    """
    Raised when a refresh is needed but no usable refresh credential exists.

    Forces sign-out; never retried.
    """

    def __init__(self, message: str = "No valid refresh token. Please sign in.") -> None:
        super().__init__(message)


class RefreshFailed(SessionError):
    """
    Raised when the upstream refresh call was rejected, cancelled or timed out.

    Every caller attached to the same refresh cycle receives the same instance.
    """

    def __init__(self, message: str = "Unable to refresh the session. Please sign in.") -> None:
        super().__init__(message)


class RefreshTimeout(RefreshFailed):
    """
    Raised to one caller that stopped waiting for a refresh still in flight.

    The cycle itself carries on for the issuer and the other callers.
    """

    def __init__(self, message: str = "Timed out waiting for the session refresh.") -> None:
        super().__init__(message)


@dataclass(slots=True)
class IllegalTransition(ServiceError):
    """
    Raised when the session lifecycle is asked to skip a state.

    :param current: State the lifecycle was in.
    :type current: str
    :param target: State that was requested.
    :type target: str
    """

    current: str
    target: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Illegal session transition: {self.current} -> {self.target}"


# --------------------------------------------------------------------------- #
# Contract errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class EnvelopeError(ServiceError):
    """
    Raised when a response body does not follow the canonical envelope.

    :param path: Request path whose response was malformed.
    :type path: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    path: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Malformed response from {self.path}: {self.detail}"


# --------------------------------------------------------------------------- #
# Access errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class PermissionDenied(ServiceError):
    """
    Raised before a call the signed-in operator may not make.

    :param permission: Screen permission (or ``admin``) that is missing.
    :type permission: str
    """

    permission: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Permission denied: {self.permission} access is required"
