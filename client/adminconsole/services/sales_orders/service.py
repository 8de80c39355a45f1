# comments in English; reST docstrings
from __future__ import annotations

from typing import Any

from marshmallow import ValidationError

from adminconsole.schemas.sales_order import ORDER_STATUSES, SalesOrderSchema
from adminconsole.services._shared.base import ResourceService
from adminconsole.services._shared.dto import PageOut, PaginationIn


class SalesOrderService(ResourceService):
    """
    Sales orders collection (``/sales-orders``).

    Listing is paginated; the envelope carries a ``meta`` block next to
    ``data``.
    """

    PATH = "/sales-orders"
    SCHEMA = SalesOrderSchema

    def list_page(self, pagination: PaginationIn | None = None) -> PageOut:
        """
        Fetch one page of sales orders.

        :param pagination: Requested page (defaults to the first page).
        :returns: Rows and pagination metadata.
        """
        return self.call_page(self.PATH, pagination or PaginationIn())

    def update_status(self, order_id: str, status: str) -> Any:
        """
        Move an order to another status.

        :param order_id: Order identifier.
        :param status: One of :data:`ORDER_STATUSES`.
        :raises marshmallow.ValidationError: For an unknown status.
        """
        if status not in ORDER_STATUSES:
            raise ValidationError({"status": [f"Must be one of: {', '.join(ORDER_STATUSES)}."]})
        return self.call("PATCH", self._item_path(order_id), json={"status": status})
