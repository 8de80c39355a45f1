# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True, slots=True)
class DateRangeIn:
    """
    Inclusive reporting window.

    :param start: First day.
    :type start: date
    :param end: Last day, not before ``start``.
    :type end: date
    :raises ValueError: If ``end`` precedes ``start``.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("end date must not precede start date")

    def as_params(self) -> dict[str, str]:
        return {"startDate": self.start.isoformat(), "endDate": self.end.isoformat()}


@dataclass(frozen=True, slots=True)
class DashboardOut:
    """
    Dashboard aggregates.

    ``sales_over_time`` is ordered by date.
    """

    total_customers: int
    total_items: int
    total_orders: int
    total_revenue: float
    recent_orders: list[dict[str, Any]] = field(default_factory=list)
    sales_over_time: list[dict[str, Any]] = field(default_factory=list)
    top_customers: list[dict[str, Any]] = field(default_factory=list)
    top_items: list[dict[str, Any]] = field(default_factory=list)
    sales_by_status: list[dict[str, Any]] = field(default_factory=list)
