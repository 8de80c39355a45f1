# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class PaginationIn:
    """
    Input pagination contract.

    :param page: 1-based page number.
    :type page: int
    :param limit: Page size (> 0).
    :type limit: int
    """

    page: int = 1
    limit: int = 10

    def as_params(self) -> dict[str, int]:
        """Query-string form, clamped to sane minimums."""
        return {"page": max(1, int(self.page)), "limit": max(1, int(self.limit))}


@dataclass(frozen=True, slots=True)
class PageMeta:
    """
    Output pagination metadata.

    :param page: Current page (1-based).
    :type page: int
    :param limit: Page size.
    :type limit: int
    :param total: Total rows available.
    :type total: int
    """

    page: int
    limit: int
    total: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total


@dataclass(frozen=True, slots=True)
class PageOut:
    """
    One page of a paginated collection.

    :param rows: Rows as returned by the API.
    :param meta: Pagination metadata, when the API sent it.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    meta: PageMeta | None = None
