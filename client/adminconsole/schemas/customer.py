"""Customer Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, validate, validates_schema


class CustomerSchema(Schema):
    """Create/update payload for a customer.

    Business customers must carry both an email and an address.
    """

    customer_name = fields.String(
        required=True, data_key="customerName", validate=validate.Length(min=1)
    )
    contact_number = fields.String(
        required=True, data_key="contactNumber", validate=validate.Length(min=1)
    )
    email = fields.Email(load_default=None)
    address = fields.String(load_default=None)
    customer_type = fields.String(
        required=True,
        data_key="customerType",
        validate=validate.OneOf(["Business", "Individual"]),
    )

    @validates_schema
    def require_business_contact(self, data: dict[str, Any], **_: Any) -> None:
        if data.get("customer_type") != "Business":
            return
        errors: dict[str, list[str]] = {}
        if not data.get("email"):
            errors["email"] = ["Email is required for Business customers"]
        if not data.get("address"):
            errors["address"] = ["Address is required for Business customers"]
        if errors:
            raise ValidationError(errors)
