"""Pagination descriptors and page-window helpers for list views.

Server responses describe pagination with camelCase keys
(``page``, ``perPage``, ``totalItems``, ``totalPages``, ``hasNext``,
``hasPrev``). :class:`Pagination` keeps the same information with the
navigation flags always derived from ``page`` and ``total_pages`` so a
descriptor can never claim a next page that does not exist.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Generic, List, Mapping, Sequence, Tuple, TypeVar

from .constants import DEFAULT_PAGE, DEFAULT_PER_PAGE, MAX_PAGE_BUTTONS

Row = TypeVar("Row")

_PAYLOAD_FIELDS = {
    "page": "page",
    "perPage": "per_page",
    "per_page": "per_page",
    "totalItems": "total_items",
    "total_items": "total_items",
    "totalPages": "total_pages",
    "total_pages": "total_pages",
}


def _to_int(value: Any, minimum: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return minimum
    return max(number, minimum)


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_PER_PAGE
    total_items: int = 0
    total_pages: int = 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @classmethod
    def compute(
        cls, total_items: int, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE
    ) -> "Pagination":
        """Return a descriptor computed client-side from ``total_items``.

        ``total_pages`` is never below one and ``page`` is clamped into
        ``[1, total_pages]``.
        """

        per_page = _to_int(per_page, 1)
        total_items = _to_int(total_items, 0)
        total_pages = max(1, math.ceil(total_items / per_page))
        page = min(_to_int(page, 1), total_pages)
        return cls(
            page=page,
            per_page=per_page,
            total_items=total_items,
            total_pages=total_pages,
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "Pagination":
        """Build a descriptor from a server pagination envelope."""
        return cls().merge(payload or {})

    def merge(self, patch: Mapping[str, Any]) -> "Pagination":
        """Return a copy with ``patch`` shallow-merged over this descriptor.

        Keys may use the server's camelCase or the attribute names. The
        ``hasNext``/``hasPrev`` flags in a patch are ignored since they are
        derived, and unrecognised keys are skipped.
        """

        updates: Dict[str, int] = {}
        for key, value in patch.items():
            name = _PAYLOAD_FIELDS.get(key)
            if name is None:
                continue
            minimum = 1 if name in ("page", "per_page") else 0
            updates[name] = _to_int(value, minimum)
        if not updates:
            return self
        return replace(self, **updates)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "perPage": self.per_page,
            "totalItems": self.total_items,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }

    @property
    def pages(self) -> List[int]:
        return get_pages(self.page, self.total_pages)


@dataclass(frozen=True)
class PaginatedCollection(Generic[Row]):
    rows: Tuple[Row, ...] = ()
    pagination: Pagination = field(default_factory=Pagination)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def with_rows(self, rows: Sequence[Row]) -> "PaginatedCollection[Row]":
        return replace(self, rows=tuple(rows))

    def with_pagination(self, patch: Mapping[str, Any]) -> "PaginatedCollection[Row]":
        return replace(self, pagination=self.pagination.merge(patch))


def get_pages(page: int, total_pages: int) -> List[int]:
    """Return the page numbers shown as buttons for ``page``.

    Every page is listed when there are at most three. Otherwise a window of
    three pages is shown: the first three on page one, the last three on the
    final page, and the neighbours of ``page`` anywhere in between.
    """

    if total_pages <= MAX_PAGE_BUTTONS:
        return list(range(1, total_pages + 1))
    if page <= 1:
        return [1, 2, 3]
    if page >= total_pages:
        return [total_pages - 2, total_pages - 1, total_pages]
    return [page - 1, page, page + 1]


def paginate_rows(
    rows: Sequence[Row], page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE
) -> PaginatedCollection[Row]:
    """Slice ``rows`` locally for screens without server-side paging."""

    pagination = Pagination.compute(len(rows), page, per_page)
    start_idx = (pagination.page - 1) * pagination.per_page
    end_idx = start_idx + pagination.per_page
    return PaginatedCollection(rows=tuple(rows[start_idx:end_idx]), pagination=pagination)


__all__ = ["Pagination", "PaginatedCollection", "get_pages", "paginate_rows"]
