"""HTTP-level errors raised from API responses.

The remote API reports failures either with the canonical envelope
(``{"success": false, "message": ...}``) or with an RFC 7807 problem body;
both are normalized into :class:`APIError` instances here.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

import requests

log = logging.getLogger(__name__)


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _safe_json(response: requests.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class APIError(Exception):
    """
    Represent an error answered by the remote API.

    Parameters
    ----------
    message : str
        Human-readable description (server-provided when available).
    status_code : int, optional
        HTTP status code of the response. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier, typically snake_case. Defaults to
        ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Optional structured payload (e.g., validation messages) from the body.
    response : requests.Response | None, optional
        Raw response, kept for callers that need headers or the body.

    Attributes
    ----------
    message : str
        Error summary.
    status_code : int
        HTTP status code returned by the server.
    code : str
        Stable machine-readable identifier.
    details : dict[str, Any]
        Arbitrary context specific to the error instance.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
        response: requests.Response | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}
        self.response = response

    @classmethod
    def from_response(cls, response: requests.Response) -> APIError:
        """
        Build the most specific error for ``response``.

        :param response: Non-2xx HTTP response.
        :returns: Instance of the subclass registered for the status code.
        :rtype: APIError
        """
        status = int(response.status_code)
        body = _safe_json(response)
        code = str(body.get("code") or _http_status_to_code(status))
        message = body.get("message") or body.get("detail")
        if not message:
            try:
                message = HTTPStatus(status).phrase
            except ValueError:
                message = f"HTTP {status}"
        details = body.get("details") if isinstance(body.get("details"), dict) else None

        error_cls = _STATUS_ERRORS.get(status)
        if error_cls is None:
            return APIError(
                str(message), status_code=status, code=code, details=details, response=response
            )
        return error_cls(str(message), code=code, details=details, response=response)


# Domain conveniences
class NotFound(APIError):
    """404 when resources are missing."""

    def __init__(self, message: str = "Resource not found", **kwargs: Any) -> None:
        kwargs.setdefault("code", "not_found")
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, **kwargs)


class Conflict(APIError):
    """409 for uniqueness/constraint collisions."""

    def __init__(self, message: str = "Conflict", **kwargs: Any) -> None:
        kwargs.setdefault("code", "conflict")
        super().__init__(message, status_code=HTTPStatus.CONFLICT, **kwargs)


class Unauthorized(APIError):
    """401 that survived the refresh-and-retry policy."""

    def __init__(self, message: str = "Unauthorized", **kwargs: Any) -> None:
        kwargs.setdefault("code", "unauthorized")
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, **kwargs)


class Forbidden(APIError):
    """403 when authorization denies access."""

    def __init__(self, message: str = "Forbidden", **kwargs: Any) -> None:
        kwargs.setdefault("code", "forbidden")
        super().__init__(message, status_code=HTTPStatus.FORBIDDEN, **kwargs)


class TooManyRequests(APIError):
    """429 when the API throttles the caller (e.g. repeated login attempts)."""

    def __init__(
        self, message: str = "Too many attempts. Please try again later.", **kwargs: Any
    ) -> None:
        kwargs.setdefault("code", "too_many_requests")
        super().__init__(message, status_code=HTTPStatus.TOO_MANY_REQUESTS, **kwargs)


_STATUS_ERRORS: dict[int, type[APIError]] = {
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    409: Conflict,
    429: TooManyRequests,
}


def raise_for_status(response: requests.Response) -> None:
    """
    Raise the matching :class:`APIError` for a non-2xx response.

    4xx are logged as warnings, 5xx as errors.
    """
    if response.status_code < 400:
        return
    err = APIError.from_response(response)
    level = log.error if err.status_code >= 500 else log.warning
    level(
        "APIError: code=%s status=%s msg=%s",
        err.code,
        err.status_code,
        err.message,
    )
    raise err
