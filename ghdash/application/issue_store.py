from __future__ import annotations

import dataclasses
import logging
from typing import Any

from ghdash.application.search import contains_text
from ghdash.application.store import EntityStore, dig
from ghdash.domain.entities import Issue, IssueDraft, IssueState
from ghdash.domain.errors import TransportError, UnsupportedOperation
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_draft_issue, map_issue, map_projects

log = logging.getLogger(__name__)

_UPDATABLE = {
    "title": "title",
    "body":  "body",
    "state": "state",
}


class IssueStore(EntityStore[Issue]):
    """Issues that sit on the viewer's project boards, one per id."""

    name = "issues"

    async def _fetch_remote(self) -> list[Issue]:
        data = await self._remote(operations.GET_PROJECTS, None, "Failed to fetch issues")
        seen: dict[str, Issue] = {}
        for project in map_projects(dig(data, "viewer", "projectsV2", "nodes")):
            for issue in project.issues:
                seen.setdefault(issue.id, issue)
        return list(seen.values())

    async def create(self, draft: IssueDraft) -> Issue:
        """
        Open the issue in its repository and, when a project is given,
        put it on that board too. Nothing is stored locally unless both
        calls succeed.
        """
        async def run() -> Issue:
            data = await self._remote(
                operations.CREATE_ISSUE,
                {"input": {"repositoryId": draft.repository_id, "title": draft.title, "body": draft.body}},
                "Failed to create issue",
            )
            issue = map_issue(dig(data, "createIssue", "issue"))
            if issue is None:
                raise TransportError("Failed to create issue: no issue returned")

            if draft.project_id:
                added = await self._remote(
                    operations.ADD_PROJECT_ITEM,
                    {"input": {"projectId": draft.project_id, "contentId": issue.id}},
                    "Failed to add issue to project",
                )
                item_id = dig(added, "addProjectV2ItemById", "item", "id")
                if item_id:
                    issue = dataclasses.replace(issue, project_item_id=item_id)

            self.items.add(issue)
            log.info("Issue created | #%d %s (%s)", issue.number, issue.title, issue.id)
            return issue

        return await self._mutate(run)

    async def create_draft(self, project_id: str, title: str, body: str = "") -> Issue:
        """Add a draft issue straight to a board; it has no repository yet."""
        async def run() -> Issue:
            data = await self._remote(
                operations.CREATE_DRAFT_ISSUE,
                {"input": {"projectId": project_id, "title": title, "body": body}},
                "Failed to create draft issue",
            )
            item = dig(data, "addProjectV2DraftIssue", "projectItem")
            issue = map_draft_issue(item, (item or {}).get("content") or {"title": title, "body": body})
            if issue is None:
                raise TransportError("Failed to create draft issue: no project item returned")
            self.items.add(issue)
            log.info("Draft issue created | %s (%s)", issue.title, issue.id)
            return issue

        return await self._mutate(run)

    def _reject_draft(self, issue_id: str, action: str) -> None:
        issue = self.get_by_id(issue_id)
        if issue is not None and issue.is_draft:
            raise UnsupportedOperation(f"Cannot {action} a draft issue; convert it to an issue first")

    async def save(self, issue_id: str, **changes: Any) -> Issue | None:
        self._reject_draft(issue_id, "update")
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Issue fields cannot be updated remotely: {sorted(unknown)}")
        if "state" in changes:
            changes["state"] = IssueState(changes["state"])

        async def run() -> Issue | None:
            remote_input: dict[str, Any] = {"id": issue_id}
            for key, value in changes.items():
                remote_input[_UPDATABLE[key]] = value.value if isinstance(value, IssueState) else value
            await self._remote(operations.UPDATE_ISSUE, {"input": remote_input}, "Failed to update issue")
            return self.update(issue_id, changes)

        return await self._mutate(run)

    async def remove(self, issue_id: str) -> bool:
        self._reject_draft(issue_id, "delete")

        async def run() -> bool:
            await self._remote(operations.DELETE_ISSUE, {"input": {"issueId": issue_id}}, "Failed to delete issue")
            return self.delete(issue_id)

        return await self._mutate(run)

    async def move(self, issue_id: str, project_id: str, field_id: str, option_id: str) -> Issue | None:
        """Set the board status (single-select option) of the issue's project item."""
        issue = self.get_by_id(issue_id)
        if issue is None or not issue.project_item_id:
            return None

        async def run() -> Issue | None:
            data = await self._remote(
                operations.UPDATE_ITEM_STATUS,
                {"input": {
                    "projectId": project_id,
                    "itemId":    issue.project_item_id,
                    "fieldId":   field_id,
                    "value":     {"singleSelectOptionId": option_id},
                }},
                "Failed to move issue",
            )
            item = dig(data, "updateProjectV2ItemFieldValue", "projectV2Item")
            if item is None:
                return None
            return self.update(issue_id, status=dig(item, "fieldValueByName", "name"))

        return await self._mutate(run)

    def matches(self, issue: Issue, query: str) -> bool:
        return (
            contains_text(query, issue.title, issue.body, str(issue.number))
            or contains_text(query, *(label.name for label in issue.labels))
        )

    def passes_filters(self, issue: Issue, filters: dict[str, Any]) -> bool:
        filters = dict(filters)
        label_ids = filters.pop("labels", None)
        if label_ids and not any(label.id in label_ids for label in issue.labels):
            return False
        return super().passes_filters(issue, filters)
