"""Shared fakes: a scripted GraphQL executor, a controllable clock, sample payloads."""

from __future__ import annotations

from typing import Any

import pytest

from ghdash.application.container import build_stores
from ghdash.domain.interfaces import GraphQLResult, IGraphQLExecutor


class FakeExecutor(IGraphQLExecutor):
    """Returns queued results in order and records every call."""

    def __init__(self, *results: GraphQLResult) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def queue(self, *results: GraphQLResult) -> None:
        self.results.extend(results)

    async def execute(self, operation: str, variables: dict[str, Any] | None = None) -> GraphQLResult:
        self.calls.append((operation, variables))
        if not self.results:
            raise AssertionError("FakeExecutor ran out of scripted results")
        return self.results.pop(0)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def issue_node(issue_id: str, title: str, labels: list[dict] | None = None, number: int = 1) -> dict:
    return {
        "id": issue_id,
        "number": number,
        "title": title,
        "body": None,
        "state": "OPEN",
        "url": f"https://github.com/octo/demo/issues/{number}",
        "createdAt": "2024-03-01T10:00:00Z",
        "updatedAt": "2024-03-02T10:00:00Z",
        "assignees": {"nodes": [{"id": "U_1", "login": "octocat", "avatarUrl": "a.png"}]},
        "labels": {"nodes": labels or []},
    }


BUG = {"id": "L_bug", "name": "bug", "color": "d73a4a", "description": "Something is broken"}
DOCS = {"id": "L_docs", "name": "docs", "color": "0075ca", "description": None}


def viewer_payload() -> dict:
    """A trimmed GetAllInitialData response with overlapping issues and labels."""
    return {
        "viewer": {
            "id": "U_1",
            "login": "octocat",
            "avatarUrl": "https://avatars.example/octocat.png",
            "name": "The Octocat",
            "bio": None,
            "location": "San Francisco",
            "company": None,
            "email": "",
            "websiteUrl": None,
            "twitterUsername": None,
            "repositories": {
                "nodes": [
                    {
                        "id": "R_1",
                        "name": "demo",
                        "description": "Demo repository",
                        "url": "https://github.com/octocat/demo",
                        "createdAt": "2023-01-01T00:00:00Z",
                        "updatedAt": "2024-01-01T00:00:00Z",
                        "isPrivate": False,
                        "visibility": "PUBLIC",
                        "owner": {"login": "octocat", "avatarUrl": "a.png"},
                        "collaborators": {"edges": [
                            {"permission": "ADMIN", "node": {"id": "U_1", "login": "octocat", "avatarUrl": "a.png"}},
                            {"permission": "WRITE", "node": {"id": "U_2", "login": "hubot", "avatarUrl": "h.png"}},
                        ]},
                    },
                    None,
                    {
                        "id": "R_2",
                        "name": "secret",
                        "description": None,
                        "url": "https://github.com/octocat/secret",
                        "createdAt": "2023-06-01T00:00:00Z",
                        "updatedAt": None,
                        "isPrivate": True,
                        "visibility": "PRIVATE",
                        "owner": {"login": "octocat", "avatarUrl": "a.png"},
                        "collaborators": {"edges": [
                            {"permission": "READ", "node": {"id": "U_2", "login": "hubot", "avatarUrl": "h.png"}},
                        ]},
                    },
                ],
            },
            "projectsV2": {
                "nodes": [
                    {
                        "id": "PVT_1",
                        "number": 1,
                        "title": "Roadmap",
                        "shortDescription": "What is next",
                        "url": "https://github.com/users/octocat/projects/1",
                        "closed": False,
                        "createdAt": "2024-01-01T00:00:00Z",
                        "updatedAt": "2024-02-01T00:00:00Z",
                        "owner": {"id": "U_1", "login": "octocat"},
                        "creator": {"login": "octocat", "avatarUrl": "a.png"},
                        "repositories": {"nodes": [{"id": "R_1", "name": "demo", "owner": {"login": "octocat"}}]},
                        "fields": {"nodes": [
                            {"id": "F_title", "name": "Title", "dataType": "TITLE"},
                            {"id": "F_status", "name": "In Progress", "dataType": "SINGLE_SELECT",
                             "options": [{"id": "O_1", "name": "Todo", "color": "GRAY"}]},
                        ]},
                        "items": {"nodes": [
                            {"id": "PVTI_1", "fieldValueByName": {"name": "Todo"},
                             "content": {"__typename": "Issue", **issue_node("I_1", "Fix login", [BUG], 1)}},
                            {"id": "PVTI_2", "fieldValueByName": None,
                             "content": {"__typename": "Issue", **issue_node("I_2", "Write guide", [BUG, DOCS], 2)}},
                            {"id": "PVTI_3", "content": {"__typename": "DraftIssue", "title": "Draft"}},
                            None,
                        ]},
                    },
                    {
                        "id": "PVT_2",
                        "number": 2,
                        "title": "Bugs",
                        "shortDescription": None,
                        "url": "https://github.com/users/octocat/projects/2",
                        "closed": False,
                        "createdAt": "2024-01-05T00:00:00Z",
                        "updatedAt": "2024-01-06T00:00:00Z",
                        "owner": {"id": "U_1", "login": "octocat"},
                        "creator": None,
                        "repositories": None,
                        "fields": None,
                        "items": {"nodes": [
                            {"id": "PVTI_9", "fieldValueByName": {"name": "Done"},
                             "content": {"__typename": "Issue", **issue_node("I_1", "Fix login", [BUG], 1)}},
                        ]},
                    },
                ],
            },
        }
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def stores(executor: FakeExecutor, clock: FakeClock):
    return build_stores(executor, clock=clock)
