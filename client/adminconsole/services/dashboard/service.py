# comments in English; reST docstrings
from __future__ import annotations

from typing import Any

from marshmallow import ValidationError

from adminconsole.schemas.dashboard import DashboardSchema
from adminconsole.services._shared.base import BaseService
from adminconsole.services._shared.errors import EnvelopeError
from adminconsole.services.dashboard.dto import DashboardOut, DateRangeIn


class DashboardService(BaseService):
    """Sales and inventory aggregates (``/dashboard/data``)."""

    PATH = "/dashboard/data"
    RANGE_PATH = "/dashboard/data/date-range"

    def summary(self) -> DashboardOut:
        """Aggregates over all recorded sales."""
        return self._load(self.PATH, self.call("GET", self.PATH))

    def summary_between(self, window: DateRangeIn) -> DashboardOut:
        """
        Aggregates restricted to a date window.

        :param window: Inclusive start and end dates.
        """
        data = self.call("GET", self.RANGE_PATH, params=window.as_params())
        return self._load(self.RANGE_PATH, data)

    def _load(self, path: str, data: Any) -> DashboardOut:
        try:
            loaded = DashboardSchema().load(self.expect_mapping(data, path))
        except ValidationError as exc:
            raise EnvelopeError(path, f"invalid payload: {exc.messages}") from exc
        loaded["sales_over_time"] = sorted(loaded["sales_over_time"], key=lambda p: p["date"])
        return DashboardOut(**loaded)
