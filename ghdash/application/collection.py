from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Generic, Iterable, Iterator

from ghdash.application.state import noop
from ghdash.domain.entities import T

log = logging.getLogger(__name__)


class Collection(Generic[T]):
    """
    Authoritative in-memory list of entities, unique by id.

    Insertion order is kept but carries no meaning; sorting is derived
    by the search layer. All operations are local and synchronous.
    """

    def __init__(self, on_change: Callable[[], None] = noop) -> None:
        self._items: list[T] = []
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, entity_id: object) -> bool:
        return any(item.id == entity_id for item in self._items)

    def get_all(self) -> list[T]:
        return list(self._items)

    def get_by_id(self, entity_id: str) -> T | None:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def _index_of(self, entity_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.id == entity_id:
                return index
        return -1

    def add(self, entity: T) -> T:
        """Append a server-confirmed entity; an entity with the same id is replaced in place."""
        index = self._index_of(entity.id)
        if index == -1:
            self._items.append(entity)
        else:
            self._items[index] = entity
        self._on_change()
        return entity

    def update(self, entity_id: str, changes: dict[str, Any]) -> T | None:
        """
        Shallow-merge `changes` over the entity and keep its position.
        Returns None (and changes nothing) when the id is absent.
        """
        if "id" in changes and changes["id"] != entity_id:
            raise ValueError("Entity ids are assigned remotely and cannot change")

        index = self._index_of(entity_id)
        if index == -1:
            return None

        merged = dataclasses.replace(self._items[index], **changes)
        self._items[index] = merged
        self._on_change()
        return merged

    def delete(self, entity_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != entity_id]
        removed = len(self._items) != before
        if removed:
            self._on_change()
        return removed

    def set_items(self, items: Iterable[T]) -> None:
        items = list(items)
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                raise ValueError(f"Duplicate entity id in collection: {item.id}")
            seen.add(item.id)

        self._items = items
        log.debug("Collection replaced with %d items", len(items))
        self._on_change()

    def clear(self) -> None:
        self._items = []
        self._on_change()
