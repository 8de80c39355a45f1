# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class CustomerWithOrders:
    """
    Customer profile together with its sales orders.

    :param customer: Customer document as returned by the API.
    :type customer: dict[str, Any]
    :param orders: Orders placed by the customer (may be empty).
    :type orders: list[dict[str, Any]]
    """

    customer: dict[str, Any]
    orders: list[dict[str, Any]] = field(default_factory=list)
