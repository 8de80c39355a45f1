"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import requests
from marshmallow import EXCLUDE, Schema, ValidationError, fields

from adminconsole.core.errors import raise_for_status
from adminconsole.services._shared.errors import EnvelopeError


class MetaSchema(Schema):
    """Metadata block for paginated list responses."""

    class Meta:
        unknown = EXCLUDE

    total = fields.Integer(required=True)
    page = fields.Integer(required=True)
    limit = fields.Integer(required=True)


class EnvelopeSchema(Schema):
    """Canonical wrapper of every API response body."""

    class Meta:
        unknown = EXCLUDE

    success = fields.Boolean(required=True)
    message = fields.String(load_default="")
    data = fields.Raw(required=True, allow_none=True)
    meta = fields.Nested(MetaSchema, load_default=None, allow_none=True)


def _path_of(response: requests.Response) -> str:
    return urlsplit(response.url or "").path or "<unknown>"


def load_envelope(response: requests.Response) -> dict[str, Any]:
    """
    Validate a response against the canonical envelope.

    :raises adminconsole.core.errors.APIError: For non-2xx responses.
    :raises EnvelopeError: When the body is not the canonical envelope, or
        reports ``success: false`` with a 2xx status.
    """
    raise_for_status(response)
    path = _path_of(response)
    try:
        body = response.json()
    except ValueError as exc:
        raise EnvelopeError(path, "body is not JSON") from exc
    if not isinstance(body, dict):
        raise EnvelopeError(path, "body is not an object")
    try:
        envelope = EnvelopeSchema().load(body)
    except ValidationError as exc:
        raise EnvelopeError(path, f"invalid envelope: {exc.messages}") from exc
    if not envelope["success"]:
        raise EnvelopeError(path, envelope["message"] or "success flag is false")
    return envelope


def unwrap(response: requests.Response) -> Any:
    """Return the ``data`` member of a successful enveloped response."""
    return load_envelope(response)["data"]


def load_payload(schema: Schema, data: Any, response: requests.Response) -> Any:
    """Validate an unwrapped payload, reporting failures as contract violations."""
    try:
        return schema.load(data)
    except ValidationError as exc:
        raise EnvelopeError(_path_of(response), f"invalid payload: {exc.messages}") from exc
