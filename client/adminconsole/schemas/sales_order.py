"""Sales order Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

ORDER_STATUSES = ["Draft", "Confirmed", "Shipped", "Delivered", "Cancelled"]


class SalesItemSchema(Schema):
    """One order line."""

    item = fields.String(required=True, validate=validate.Length(min=1))
    quantity = fields.Integer(required=True, validate=validate.Range(min=1))
    rate = fields.Float(required=True, validate=validate.Range(min=0))
    amount = fields.Float(required=True, validate=validate.Range(min=0))
    discount = fields.Float(load_default=None, allow_none=True)


class DiscountSchema(Schema):
    """Order-level discount."""

    type = fields.String(required=True, validate=validate.OneOf(["percentage", "fixed"]))
    value = fields.Float(required=True, validate=validate.Range(min=0))


class SalesOrderSchema(Schema):
    """Create/update payload for a sales order."""

    customer = fields.String(required=True, validate=validate.Length(min=1))
    reference = fields.String(load_default=None)
    sales_order_date = fields.Date(required=True, data_key="salesOrderDate")
    payment_terms = fields.String(load_default=None, data_key="paymentTerms")
    delivery_method = fields.String(load_default=None, data_key="deliveryMethod")
    sales_person = fields.String(load_default=None, data_key="salesPerson")
    items = fields.List(
        fields.Nested(SalesItemSchema),
        required=True,
        validate=validate.Length(min=1, error="At least one item is required"),
    )
    discount = fields.Nested(DiscountSchema, required=True)
    shipping_charges = fields.Float(
        required=True, data_key="shippingCharges", validate=validate.Range(min=0)
    )
    adjustment = fields.Float(required=True)
    customer_notes = fields.String(load_default=None, data_key="customerNotes")
    terms_and_conditions = fields.String(load_default=None, data_key="termsAndConditions")
    status = fields.String(required=True, validate=validate.OneOf(ORDER_STATUSES))
    payment = fields.Float(required=True, validate=validate.Range(min=0))
