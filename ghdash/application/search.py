from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Literal

from ghdash.application.state import noop
from ghdash.domain.entities import T

SortDirection = Literal["asc", "desc"]

DEFAULT_SORT_FIELD = "id"
DEFAULT_SORT_DIRECTION: SortDirection = "asc"
DEFAULT_PAGE_SIZE = 10

@dataclass(frozen=True)
class SearchCriteria:
    """
    One search request. Fields left as None keep whatever the
    search state already holds.
    """
    query:          str | None = None
    sort_by:        str | None = None
    sort_direction: SortDirection | None = None
    filters:        dict[str, Any] | None = None
    page:           int | None = None
    page_size:      int | None = None


class SearchState(Generic[T]):
    """
    Query, sort, filters, pagination and the last materialised results.

    current_page and page_size never drop below 1, and total_pages is at
    least 1 even with no results. Until a sort is requested the results
    keep collection order; ("id", "asc") is only what is reported.
    """

    def __init__(self, on_change: Callable[[], None] = noop) -> None:
        self._on_change = on_change
        self._reset_fields()

    def _reset_fields(self) -> None:
        self._query = ""
        self._sort_field = DEFAULT_SORT_FIELD
        self._sort_direction: SortDirection = DEFAULT_SORT_DIRECTION
        self._sort_requested = False
        self._filters: dict[str, Any] = {}
        self._current_page = 1
        self._page_size = DEFAULT_PAGE_SIZE
        self._results: list[T] = []

    @property
    def query(self) -> str:
        return self._query

    @property
    def sort_field(self) -> str:
        return self._sort_field

    @property
    def sort_direction(self) -> SortDirection:
        return self._sort_direction

    @property
    def sort_requested(self) -> bool:
        return self._sort_requested

    @property
    def filters(self) -> dict[str, Any]:
        return dict(self._filters)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def search_results(self) -> list[T]:
        return list(self._results)

    @property
    def total_results(self) -> int:
        return len(self._results)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_results / self._page_size))

    @property
    def paginated_results(self) -> list[T]:
        start = (self._current_page - 1) * self._page_size
        return self._results[start:start + self._page_size]

    def set_search_query(self, query: str) -> None:
        self._query = query
        self._on_change()

    def set_sort_by(self, field: str, direction: SortDirection = "asc") -> None:
        if direction not in ("asc", "desc"):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")
        self._sort_field = field
        self._sort_direction = direction
        self._sort_requested = True
        self._on_change()

    def set_filters(self, filters: dict[str, Any]) -> None:
        self._filters = dict(filters)
        self._on_change()

    def set_pagination(self, page: int, page_size: int) -> None:
        self._current_page = max(1, page)
        self._page_size = max(1, page_size)
        self._on_change()

    def set_results(self, results: list[T]) -> None:
        self._results = list(results)
        self._on_change()

    def apply(self, criteria: SearchCriteria) -> None:
        if criteria.query is not None:
            self.set_search_query(criteria.query)
        if criteria.sort_by is not None:
            self.set_sort_by(criteria.sort_by, criteria.sort_direction or "asc")
        elif criteria.sort_direction is not None:
            self.set_sort_by(self._sort_field, criteria.sort_direction)
        if criteria.filters is not None:
            self.set_filters(criteria.filters)
        if criteria.page is not None or criteria.page_size is not None:
            self.set_pagination(
                criteria.page if criteria.page is not None else self._current_page,
                criteria.page_size if criteria.page_size is not None else self._page_size,
            )

    def reset(self) -> None:
        self._reset_fields()
        self._on_change()

def _sort_key(value: Any) -> tuple:
    # None sorts after everything in ascending order; strings ignore case
    if value is None:
        return (1, 0)
    if isinstance(value, str):
        return (0, value.casefold())
    return (0, value)

def sort_entities(
    items: list[T],
    field: str,
    direction: SortDirection,
    value_of: Callable[[T, str], Any],
) -> list[T]:
    """Stable sort: entities with equal values keep their collection order."""
    if direction == "asc":
        return sorted(items, key=lambda item: _sort_key(value_of(item, field)))

    # sorted(reverse=True) keeps ties in original order, but would also
    # float the None values to the top; split them out first.
    present = [item for item in items if value_of(item, field) is not None]
    missing = [item for item in items if value_of(item, field) is None]
    return sorted(present, key=lambda item: _sort_key(value_of(item, field)), reverse=True) + missing

def contains_text(query: str, *candidates: str | None) -> bool:
    """Case-insensitive substring match against any of the candidates."""
    needle = query.strip().casefold()
    if not needle:
        return True
    return any(candidate and needle in candidate.casefold() for candidate in candidates)
