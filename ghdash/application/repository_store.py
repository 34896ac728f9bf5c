from __future__ import annotations

import logging
from typing import Any

from ghdash.application.search import contains_text
from ghdash.application.store import EntityStore, dig
from ghdash.domain.entities import Repository, RepositoryDraft
from ghdash.domain.errors import TransportError
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_repositories, map_repository

log = logging.getLogger(__name__)

VISIBILITIES = ("PUBLIC", "PRIVATE", "INTERNAL")

_UPDATABLE = {
    "name":        "name",
    "description": "description",
}


class RepositoryStore(EntityStore[Repository]):
    """The viewer's repositories, most recently updated first."""

    name = "repositories"

    async def _fetch_remote(self) -> list[Repository]:
        data = await self._remote(operations.GET_REPOSITORIES, None, "Failed to fetch repositories")
        return map_repositories(dig(data, "viewer", "repositories", "nodes"))

    def find(self, owner: str, name: str) -> Repository | None:
        for repo in self.items:
            if repo.owner_login == owner and repo.name == name:
                return repo
        return None

    async def create(self, draft: RepositoryDraft) -> Repository:
        visibility = draft.visibility.upper()
        if visibility not in VISIBILITIES:
            raise ValueError(f"Unknown repository visibility: {draft.visibility}")

        async def run() -> Repository:
            remote_input: dict[str, Any] = {"name": draft.name, "visibility": visibility}
            if draft.description:
                remote_input["description"] = draft.description
            data = await self._remote(operations.CREATE_REPOSITORY, {"input": remote_input}, "Failed to create repository")
            repository = map_repository(dig(data, "createRepository", "repository"))
            if repository is None:
                raise TransportError("Failed to create repository: no repository returned")
            self.items.add(repository)
            log.info("Repository created | %s (%s)", repository.name_with_owner, repository.id)
            return repository

        return await self._mutate(run)

    async def save(self, repository_id: str, **changes: Any) -> Repository | None:
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Repository fields cannot be updated remotely: {sorted(unknown)}")

        async def run() -> Repository | None:
            remote_input = {"repositoryId": repository_id}
            remote_input.update({_UPDATABLE[key]: value for key, value in changes.items()})
            await self._remote(operations.UPDATE_REPOSITORY, {"input": remote_input}, "Failed to update repository")
            return self.update(repository_id, changes)

        return await self._mutate(run)

    async def remove(self, repository_id: str) -> bool:
        """
        GitHub's GraphQL API cannot delete repositories; archive it and
        drop it from the working set.
        """
        async def run() -> bool:
            await self._remote(
                operations.ARCHIVE_REPOSITORY,
                {"input": {"repositoryId": repository_id}},
                "Failed to archive repository",
            )
            return self.delete(repository_id)

        return await self._mutate(run)

    def matches(self, repository: Repository, query: str) -> bool:
        return contains_text(query, repository.name, repository.description, repository.owner_login)

    def passes_filters(self, repository: Repository, filters: dict[str, Any]) -> bool:
        filters = dict(filters)
        visibility = (filters.pop("visibility", None) or "all").lower()
        if visibility == "private" and not repository.is_private:
            return False
        if visibility == "public" and repository.is_private:
            return False
        return super().passes_filters(repository, filters)
