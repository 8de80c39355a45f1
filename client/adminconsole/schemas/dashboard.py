"""Dashboard Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class _Loose(Schema):
    class Meta:
        unknown = EXCLUDE


class SalesPointSchema(_Loose):
    """Revenue of one day (ISO date string)."""

    date = fields.String(required=True)
    total = fields.Float(required=True)


class StatusTotalSchema(_Loose):
    status = fields.String(required=True)
    count = fields.Integer(required=True)
    total = fields.Float(load_default=0.0)


class DashboardSchema(_Loose):
    """Aggregates behind the dashboard screen."""

    total_customers = fields.Integer(required=True, data_key="totalCustomers")
    total_items = fields.Integer(required=True, data_key="totalItems")
    total_orders = fields.Integer(required=True, data_key="totalOrders")
    total_revenue = fields.Float(required=True, data_key="totalRevenue")
    recent_orders = fields.List(fields.Dict(), load_default=list, data_key="recentOrders")
    sales_over_time = fields.List(
        fields.Nested(SalesPointSchema), load_default=list, data_key="salesOverTime"
    )
    top_customers = fields.List(fields.Dict(), load_default=list, data_key="topCustomers")
    top_items = fields.List(fields.Dict(), load_default=list, data_key="topItems")
    sales_by_status = fields.List(
        fields.Nested(StatusTotalSchema), load_default=list, data_key="salesByStatus"
    )
