from __future__ import annotations

import dataclasses
import logging
from typing import Any

from ghdash.application.search import contains_text
from ghdash.application.store import EntityStore, dig
from ghdash.domain.entities import Project, ProjectDraft, RepositorySummary
from ghdash.domain.errors import TransportError
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_project, map_projects

log = logging.getLogger(__name__)

# Local field name → UpdateProjectV2Input field
_UPDATABLE = {
    "name":        "title",
    "description": "shortDescription",
    "closed":      "closed",
}


class ProjectStore(EntityStore[Project]):
    """Projects v2 boards owned by the viewer."""

    name = "projects"

    async def _fetch_remote(self) -> list[Project]:
        data = await self._remote(operations.GET_PROJECTS, None, "Failed to fetch projects")
        return map_projects(dig(data, "viewer", "projectsV2", "nodes"))

    async def create(self, draft: ProjectDraft) -> Project:
        async def run() -> Project:
            data = await self._remote(
                operations.CREATE_PROJECT,
                {"input": {"ownerId": draft.owner_id, "title": draft.title}},
                "Failed to create project",
            )
            project = map_project(dig(data, "createProjectV2", "projectV2"))
            if project is None:
                raise TransportError("Failed to create project: no project returned")
            # CreateProjectV2Input has no description; keep the caller's locally
            if draft.description and not project.description:
                project = dataclasses.replace(project, description=draft.description)
            self.items.add(project)
            log.info("Project created | %s (%s)", project.name, project.id)
            return project

        return await self._mutate(run)

    async def save(self, project_id: str, **changes: Any) -> Project | None:
        """Push `changes` to GitHub, then merge them locally."""
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Project fields cannot be updated remotely: {sorted(unknown)}")

        async def run() -> Project | None:
            remote_input = {"projectId": project_id}
            remote_input.update({_UPDATABLE[key]: value for key, value in changes.items()})
            await self._remote(operations.UPDATE_PROJECT, {"input": remote_input}, "Failed to update project")
            return self.update(project_id, changes)

        return await self._mutate(run)

    async def remove(self, project_id: str) -> bool:
        async def run() -> bool:
            data = await self._remote(
                operations.DELETE_PROJECT,
                {"input": {"projectId": project_id}},
                "Failed to delete project",
            )
            if dig(data, "deleteProjectV2", "projectV2") is None:
                return False
            return self.delete(project_id)

        return await self._mutate(run)

    async def link_repository(self, project_id: str, repository_id: str) -> Project | None:
        async def run() -> Project | None:
            data = await self._remote(
                operations.LINK_REPOSITORY_TO_PROJECT,
                {"input": {"projectId": project_id, "repositoryId": repository_id}},
                "Failed to link repository",
            )
            repo = dig(data, "linkProjectV2ToRepository", "repository") or {}
            project = self.get_by_id(project_id)
            if project is None or not repo.get("id"):
                return project
            if any(existing.id == repo["id"] for existing in project.repositories):
                return project
            summary = RepositorySummary(
                id=repo["id"],
                name=repo.get("name") or "",
                owner_login=(repo.get("owner") or {}).get("login") or "",
            )
            return self.update(project_id, repositories=project.repositories + (summary,))

        return await self._mutate(run)

    def matches(self, project: Project, query: str) -> bool:
        return (
            contains_text(query, project.name, project.description, project.owner_login, project.creator_login)
            or contains_text(query, *(label.name for label in project.labels))
            or contains_text(query, *(repo.name for repo in project.repositories))
        )

    def passes_filters(self, project: Project, filters: dict[str, Any]) -> bool:
        filters = dict(filters)
        label_ids = filters.pop("labels", None)
        statuses = filters.pop("status", None)
        if label_ids and not any(label.id in label_ids for label in project.labels):
            return False
        if statuses and not any(column.type in statuses for column in project.columns):
            return False
        return super().passes_filters(project, filters)

    def sort_value(self, project: Project, field: str) -> Any:
        if field == "repository_count":
            return len(project.repositories)
        if field == "issue_count":
            return len(project.issues)
        return super().sort_value(project, field)
