from __future__ import annotations

from typing import Any

from ghdash.application.search import contains_text
from ghdash.application.store import EntityStore, dig
from ghdash.domain.entities import User
from ghdash.domain.errors import UnsupportedOperation
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_user


class UserStore(EntityStore[User]):
    """Holds the authenticated viewer."""

    name = "users"

    @property
    def viewer(self) -> User | None:
        users = self.get_all()
        return users[0] if users else None

    async def _fetch_remote(self) -> list[User]:
        data = await self._remote(operations.GET_VIEWER, None, "Failed to fetch viewer")
        user = map_user(dig(data, "viewer"))
        return [user] if user is not None else []

    async def create(self, draft: Any) -> User:
        raise UnsupportedOperation("GitHub users cannot be created through the API")

    def matches(self, user: User, query: str) -> bool:
        return contains_text(query, user.login, user.name)
