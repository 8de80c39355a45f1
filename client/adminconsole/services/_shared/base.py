# adminconsole/services/_shared/base.py
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from marshmallow import Schema

from adminconsole.schemas.common import load_envelope, unwrap
from adminconsole.services._shared.dto import PageMeta, PageOut, PaginationIn
from adminconsole.services._shared.errors import EnvelopeError

if TYPE_CHECKING:
    from adminconsole.infra.http.pipeline import RequestPipeline


class BaseService:
    """
    Base class for resource services.

    Responsibilities
    ----------------
    * Route every call through the shared :class:`RequestPipeline`, so
      credentials, refresh and retry are handled in one place.
    * Unwrap the canonical response envelope.
    * Offer client-side payload validation against the form schemas.

    Notes
    -----
    - Services stay thin; no session or token handling happens here.
    - Validation failures raise :class:`marshmallow.ValidationError` before
      anything is sent.
    """

    def __init__(self, *, pipeline: RequestPipeline) -> None:
        """
        :param pipeline: Credential-aware request sender.
        :type pipeline: RequestPipeline
        """
        self.pipeline = pipeline

    # ------------------------- HTTP helpers ---------------------------------

    def call(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send a request and return the envelope's ``data``.

        :param method: HTTP verb.
        :param path: Path under the API root.
        :returns: Unwrapped payload.
        :raises adminconsole.core.errors.APIError: Non-2xx responses.
        :raises EnvelopeError: Body is not the canonical envelope.
        """
        return unwrap(self.pipeline.request(method, path, **kwargs))

    def call_page(self, path: str, pagination: PaginationIn) -> PageOut:
        """
        Fetch one page of a collection whose envelope carries ``meta``.

        :param path: Collection path.
        :param pagination: Requested page.
        :returns: Rows plus metadata (``meta`` is ``None`` if the API omitted it).
        """
        envelope = load_envelope(
            self.pipeline.request("GET", path, params=pagination.as_params())
        )
        rows = self.expect_list(envelope["data"], path)
        meta = envelope["meta"]
        return PageOut(rows=rows, meta=PageMeta(**meta) if meta else None)

    # ----------------------- Validation utilities ---------------------------

    def validate(
        self, schema: Schema, payload: Mapping[str, Any], *, partial: bool = False
    ) -> dict[str, Any]:
        """
        Validate a wire-shaped payload and return it normalized for sending.

        :param schema: Form schema to validate against.
        :param payload: Payload using the API's field names.
        :param partial: Skip required-field checks (PATCH bodies).
        :returns: Serialized payload with unset optional fields dropped.
        :raises marshmallow.ValidationError: On invalid input.
        """
        loaded = schema.load(dict(payload), partial=partial)
        return {k: v for k, v in schema.dump(loaded).items() if v is not None}

    @staticmethod
    def expect_mapping(data: Any, path: str) -> dict[str, Any]:
        """Ensure an unwrapped payload is a JSON object."""
        if not isinstance(data, dict):
            raise EnvelopeError(path, "expected an object in data")
        return data

    @staticmethod
    def expect_list(data: Any, path: str) -> list[Any]:
        """Ensure an unwrapped payload is a JSON array."""
        if not isinstance(data, list):
            raise EnvelopeError(path, "expected a list in data")
        return data


class ResourceService(BaseService):
    """
    CRUD over one REST collection.

    Subclasses set :attr:`PATH` and :attr:`SCHEMA`.
    """

    PATH: str = ""
    SCHEMA: type[Schema] = Schema

    def _item_path(self, resource_id: str) -> str:
        if not resource_id:
            raise ValueError("resource id must not be empty")
        return f"{self.PATH}/{resource_id}"

    def list(self, **params: Any) -> list[dict[str, Any]]:
        """
        :param params: Optional query-string filters.
        :returns: Collection rows.
        """
        data = self.call("GET", self.PATH, params=params or None)
        return self.expect_list(data, self.PATH)

    def get(self, resource_id: str) -> dict[str, Any]:
        path = self._item_path(resource_id)
        return self.expect_mapping(self.call("GET", path), path)

    def create(self, payload: Mapping[str, Any]) -> Any:
        """
        :param payload: Form values using the API's field names.
        :returns: Created resource as returned by the API.
        """
        body = self.validate(self.SCHEMA(), payload)
        return self.call("POST", self.PATH, json=body)

    def update(self, resource_id: str, payload: Mapping[str, Any]) -> Any:
        """Partially update a resource (``PATCH``); only given fields are validated."""
        path = self._item_path(resource_id)
        body = self.validate(self.SCHEMA(), payload, partial=True)
        return self.call("PATCH", path, json=body)

    def delete(self, resource_id: str) -> Any:
        return self.call("DELETE", self._item_path(resource_id))
