"""Inventory item Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class ItemSchema(Schema):
    """Create/update payload for an inventory item."""

    name = fields.String(required=True, validate=validate.Length(min=1))
    quantity = fields.Integer(required=True, validate=validate.Range(min=0))
    warranty = fields.String(load_default=None, allow_none=True)
    price = fields.Float(required=True, validate=validate.Range(min=0))
