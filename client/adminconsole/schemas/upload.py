"""Upload Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class UploadResultSchema(Schema):
    """Reference to a stored file."""

    class Meta:
        unknown = EXCLUDE

    url = fields.Url(required=True)
    key = fields.String(required=True)
