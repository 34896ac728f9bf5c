from __future__ import annotations

import logging

from ghdash.application.search import contains_text
from ghdash.application.store import EntityStore, dig
from ghdash.domain.entities import Collaborator, CollaboratorDraft
from ghdash.domain.errors import TransportError
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_repositories

log = logging.getLogger(__name__)

# Repository permission → ProjectV2Roles
PROJECT_ROLES = {
    "READ":  "READER",
    "WRITE": "WRITER",
    "ADMIN": "ADMIN",
}


class CollaboratorStore(EntityStore[Collaborator]):
    """
    Everyone with access to at least one of the viewer's repositories,
    one entry per user; permission is the first one seen.

    Collaborators are granted and revoked on a project board through
    updateProjectV2Collaborators. Removal is the NONE role.
    """

    name = "collaborators"

    async def _fetch_remote(self) -> list[Collaborator]:
        data = await self._remote(operations.GET_REPOSITORIES, None, "Failed to fetch collaborators")
        seen: dict[str, Collaborator] = {}
        for repo in map_repositories(dig(data, "viewer", "repositories", "nodes")):
            for collaborator in repo.collaborators:
                seen.setdefault(collaborator.id, collaborator)
        return list(seen.values())

    async def _set_project_role(self, project_id: str, user_id: str, role: str, failure: str) -> None:
        data = await self._remote(
            operations.UPDATE_PROJECT_COLLABORATORS,
            {"input": {"projectId": project_id, "collaborators": [{"userId": user_id, "role": role}]}},
            failure,
        )
        if dig(data, "updateProjectV2Collaborators") is None:
            raise TransportError(f"{failure}: no result returned")

    async def create(self, draft: CollaboratorDraft) -> Collaborator:
        """Look the login up, then grant it a role on the project."""
        permission = draft.permission.upper()
        if permission not in PROJECT_ROLES:
            raise ValueError(f"Unknown collaborator permission: {draft.permission}")

        async def run() -> Collaborator:
            data = await self._remote(operations.GET_USER, {"login": draft.login}, "Failed to add collaborator")
            user = dig(data, "user")
            if not isinstance(user, dict) or not user.get("id"):
                raise TransportError(f"Failed to add collaborator: no GitHub user {draft.login!r}")

            await self._set_project_role(draft.project_id, user["id"], PROJECT_ROLES[permission],
                                         "Failed to add collaborator")
            collaborator = Collaborator(
                id         = user["id"],
                login      = user.get("login") or draft.login,
                avatar_url = user.get("avatarUrl") or "",
                permission = permission,
            )
            self.items.add(collaborator)
            log.info("Collaborator added | %s → %s (%s)", collaborator.login, draft.project_id, permission)
            return collaborator

        return await self._mutate(run)

    async def remove(self, project_id: str, collaborator_id: str) -> bool:
        async def run() -> bool:
            await self._set_project_role(project_id, collaborator_id, "NONE", "Failed to remove collaborator")
            return self.delete(collaborator_id)

        return await self._mutate(run)

    def matches(self, collaborator: Collaborator, query: str) -> bool:
        return contains_text(query, collaborator.login)
