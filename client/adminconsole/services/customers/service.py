# comments in English; reST docstrings
from __future__ import annotations

from adminconsole.schemas.customer import CustomerSchema
from adminconsole.services._shared.base import ResourceService
from adminconsole.services._shared.errors import EnvelopeError
from adminconsole.services.customers.dto import CustomerWithOrders


class CustomerService(ResourceService):
    """
    Customers collection (``/customers``).

    Notes
    -----
    - Business customers must carry an email and an address; this is checked
      before anything is sent.
    - The detail endpoint embeds the customer's orders.
    """

    PATH = "/customers"
    SCHEMA = CustomerSchema

    def get_with_orders(self, customer_id: str) -> CustomerWithOrders:
        """
        Fetch a customer and its orders.

        :param customer_id: Customer identifier.
        :returns: Customer plus orders (``orders`` defaults to empty).
        :raises EnvelopeError: When ``data`` lacks the ``customer`` member.
        """
        data = self.get(customer_id)
        customer = data.get("customer")
        if not isinstance(customer, dict):
            raise EnvelopeError(self._item_path(customer_id), "missing customer in data")
        return CustomerWithOrders(customer=customer, orders=list(data.get("orders") or []))
