"""Thin ``requests`` wrapper shared by the pipeline and the auth gateway."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

import requests

from adminconsole.core.logger import REQUEST_ID_HEADER, current_request_id

log = logging.getLogger(__name__)


class HttpTransport:
    """
    Build and send HTTP requests against the API base URL.

    Requests are described with :class:`requests.Request` and prepared anew
    for every send, so the caller's description is never mutated.

    :param base_url: API root, e.g. ``http://localhost:5000/api``.
    :param timeout: Per-call timeout in seconds.
    :param session: Optional pre-configured :class:`requests.Session`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    def url(self, path: str) -> str:
        """Join ``path`` onto the base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def build(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Request:
        """Describe a request; nothing is sent."""
        return requests.Request(
            method=method.upper(),
            url=self.url(path),
            json=json,
            params=params,
            files=files,
            data=data,
            headers=dict(headers or {}),
        )

    def send(
        self,
        request: requests.Request,
        *,
        access_token: str | None = None,
        attempt: int = 0,
    ) -> requests.Response:
        """
        Prepare and send ``request``.

        :param access_token: Bearer token attached to this attempt only.
        :param attempt: ``0`` for the original call, ``1`` for the auth retry.
        :raises requests.RequestException: Transport failures, unchanged.
        """
        prepared = self.session.prepare_request(request)
        if access_token:
            prepared.headers["Authorization"] = f"Bearer {access_token}"
        prepared.headers.setdefault(REQUEST_ID_HEADER, current_request_id() or str(uuid4()))

        path = urlsplit(prepared.url or "").path
        started = time.perf_counter()
        try:
            response = self.session.send(prepared, timeout=self.timeout)
        except requests.RequestException as exc:
            log.warning(
                "HTTP %s %s failed: %s",
                prepared.method,
                path,
                exc.__class__.__name__,
                extra={"method": prepared.method, "path": path, "attempt": attempt},
            )
            raise
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        log.info(
            "HTTP %s %s -> %s",
            prepared.method,
            path,
            response.status_code,
            extra={
                "method": prepared.method,
                "path": path,
                "status": response.status_code,
                "attempt": attempt,
                "elapsed_ms": elapsed_ms,
            },
        )
        return response

    def close(self) -> None:
        self.session.close()
