"""
EntityStore — the shared base every feature store is built on.

A store owns exactly one Collection and composes the primitives around
it instead of inheriting them:

    EntityStore
      ├── loading : LoadingState      busy flag + last error
      ├── cache   : CacheState        last-fetched stamp + TTL
      ├── search  : SearchState       query / sort / filters / pages
      └── items   : Collection        the entities themselves

Local operations (get/update/delete/set_items/search) are synchronous.
Only create() and the refresh path touch the network, always through the
injected IGraphQLExecutor, and the collection is mutated strictly after
the remote call succeeded.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic

from ghdash.application.collection import Collection
from ghdash.application.search import (
    SearchCriteria,
    SortDirection,
    SearchState,
    sort_entities,
)
from ghdash.application.state import CACHE_TTL_SECONDS, CacheState, LoadingState, Observable, R
from ghdash.domain.entities import T
from ghdash.domain.errors import TransportError
from ghdash.domain.interfaces import IGraphQLExecutor

log = logging.getLogger(__name__)


class EntityStore(Observable, ABC, Generic[T]):

    name = "entities"

    def __init__(
        self,
        executor: IGraphQLExecutor,
        cache_ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._executor = executor
        self.loading = LoadingState(on_change=self._notify)
        self.cache = CacheState(self.loading, ttl=cache_ttl, clock=clock)
        self.search_state: SearchState[T] = SearchState(on_change=self._notify)
        self.items: Collection[T] = Collection(on_change=self._notify)

    # Loading / error

    @property
    def is_loading(self) -> bool:
        return self.loading.is_loading

    @property
    def error(self) -> Exception | None:
        return self.loading.error

    def set_loading(self, is_loading: bool) -> None:
        self.loading.set_loading(is_loading)

    def set_error(self, error: Exception | None) -> None:
        self.loading.set_error(error)

    # Cache

    def is_cache_valid(self) -> bool:
        return self.cache.is_cache_valid()

    def update_cache_timestamp(self) -> None:
        self.cache.update_cache_timestamp()

    async def execute_with_cache(self, operation: Callable[[], Awaitable[R]], force_refresh: bool = False) -> R:
        return await self.cache.execute_with_cache(operation, force_refresh)

    async def fetch_all(self, force_refresh: bool = False) -> list[T]:
        """
        Refresh the collection from GitHub unless the cache is still fresh.
        A failed refresh leaves both the collection and the stamp untouched.
        """
        if not force_refresh and self.is_cache_valid():
            log.debug("%s cache fresh, serving %d cached items", self.name, len(self.items))
            return self.get_all()

        async def refresh() -> list[T]:
            fetched = await self._fetch_remote()
            self.set_items(fetched)
            log.info("%s refreshed | %d items", self.name, len(fetched))
            return self.get_all()

        return await self.execute_with_cache(refresh, force_refresh=True)

    @abstractmethod
    async def _fetch_remote(self) -> list[T]:
        """Query GitHub and map the response into entities. No local mutation."""
        ...

    # CRUD

    def get_all(self) -> list[T]:
        return self.items.get_all()

    def get_by_id(self, entity_id: str) -> T | None:
        return self.items.get_by_id(entity_id)

    @abstractmethod
    async def create(self, draft: Any) -> T:
        """Create remotely, then append the server-confirmed entity."""
        ...

    def update(self, entity_id: str, changes: dict[str, Any] | None = None, **fields: Any) -> T | None:
        merged = {**(changes or {}), **fields}
        return self.items.update(entity_id, merged)

    def delete(self, entity_id: str) -> bool:
        return self.items.delete(entity_id)

    def set_items(self, items: list[T]) -> None:
        self.items.set_items(items)

    # Search

    def set_search_query(self, query: str) -> None:
        self.search_state.set_search_query(query)

    def set_sort_by(self, field: str, direction: SortDirection = "asc") -> None:
        self.search_state.set_sort_by(field, direction)

    def set_filters(self, filters: dict[str, Any]) -> None:
        self.search_state.set_filters(filters)

    def set_pagination(self, page: int, page_size: int) -> None:
        self.search_state.set_pagination(page, page_size)

    @property
    def search_results(self) -> list[T]:
        return self.search_state.search_results

    @property
    def total_results(self) -> int:
        return self.search_state.total_results

    @property
    def total_pages(self) -> int:
        return self.search_state.total_pages

    @property
    def paginated_results(self) -> list[T]:
        return self.search_state.paginated_results

    def search(self, criteria: SearchCriteria | None = None) -> list[T]:
        """
        Materialise results over the live collection: text match, then
        filters, then a stable sort once one was requested. Never touches
        the network.
        """
        if criteria is not None:
            self.search_state.apply(criteria)

        state = self.search_state
        filters = state.filters
        matched = [
            item for item in self.items
            if self.matches(item, state.query) and self.passes_filters(item, filters)
        ]
        results = matched
        if state.sort_requested:
            results = sort_entities(matched, state.sort_field, state.sort_direction, self.sort_value)
        state.set_results(results)
        return results

    @abstractmethod
    def matches(self, entity: T, query: str) -> bool:
        """Per-entity free-text predicate. An empty query matches everything."""
        ...

    def passes_filters(self, entity: T, filters: dict[str, Any]) -> bool:
        for key, expected in filters.items():
            if expected is None:
                continue
            actual = getattr(entity, key, None)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if actual not in expected:
                    return False
            elif actual != expected:
                return False
        return True

    def sort_value(self, entity: T, field: str) -> Any:
        return getattr(entity, field, None)

    # Lifecycle

    def reset(self) -> None:
        """Back to a freshly constructed store: empty, stale, idle."""
        self.items.clear()
        self.search_state.reset()
        self.loading.reset()
        self.cache.invalidate()

    # Remote helpers

    async def _remote(self, operation: str, variables: dict[str, Any] | None, failure: str) -> dict[str, Any]:
        """
        Run one remote operation and return its data.

        Any error payload counts as failure, even with partial data alongside,
        so callers only mutate the collection after a clean response.
        """
        result = await self._executor.execute(operation, variables)
        if result.error is not None:
            raise TransportError(f"{failure}: {result.error}") from result.error
        if result.data is None:
            raise TransportError(f"{failure}: no data returned")
        return result.data

    async def _mutate(self, operation: Callable[[], Any]) -> Any:
        return await self.loading.track(operation)


def dig(data: dict[str, Any] | None, *path: str) -> Any:
    """Walk nested GraphQL payloads; None as soon as a level is missing."""
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
