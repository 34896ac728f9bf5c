"""
Anti-corruption layer
---------------------
Translates GitHub's nested GraphQL shapes into our flat domain entities.

GitHub sends:            We hold as:
  "avatarUrl"        →   avatar_url
  "shortDescription" →   description
  "title" (project)  →   name

If GitHub renames a field, fix it HERE only - nowhere else.

Every function is pure: optional connections may be null, nodes may be
null, and the answer for missing input is always an empty list.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, TypeVar

from ghdash.domain.entities import (
    Collaborator,
    Column,
    ColumnOption,
    ColumnType,
    Issue,
    IssueState,
    Label,
    Project,
    Repository,
    RepositorySummary,
    User,
    ViewerSlices,
)

log = logging.getLogger(__name__)

E = TypeVar("E")


def parse_datetime(value: str | None) -> datetime | None:
    """Convert GitHub's ISO datetime string to Python datetime."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.debug("Unparseable timestamp %r", value)
        return None


def _nodes(connection: Any) -> list[dict]:
    """`{nodes: [...]}` → the non-null dict nodes, tolerating null everywhere."""
    if not isinstance(connection, dict):
        return []
    return [node for node in connection.get("nodes") or [] if isinstance(node, dict)]


def _map_each(nodes: Iterable[dict], mapper: Callable[[dict], E | None]) -> list[E]:
    return [mapped for node in nodes if (mapped := mapper(node)) is not None]


def _dedupe(entities: Iterable[E]) -> list[E]:
    """Keep the first entity seen for each id, in first-seen order."""
    by_id: dict[str, E] = {}
    for entity in entities:
        by_id.setdefault(entity.id, entity)
    return list(by_id.values())


def map_user(node: dict | None) -> User | None:
    if not isinstance(node, dict) or not node.get("login"):
        return None
    return User(
        id               = node.get("id") or "",
        login            = node["login"],
        avatar_url       = node.get("avatarUrl") or "",
        name             = node.get("name"),
        bio              = node.get("bio"),
        location         = node.get("location"),
        company          = node.get("company"),
        email            = node.get("email") or None,
        website_url      = node.get("websiteUrl") or node.get("url"),
        twitter_username = node.get("twitterUsername"),
    )


def map_label(node: dict | None) -> Label | None:
    if not isinstance(node, dict) or not node.get("id"):
        log.debug("Skipping malformed label node: %s", node)
        return None
    return Label(
        id          = node["id"],
        name        = node.get("name") or "",
        color       = node.get("color") or "",
        description = node.get("description") or None,
    )


def map_labels(items: list[dict] | None) -> list[Label]:
    """
    Collect labels across every project item's content, one per id.
    The same label typically appears on many issues.
    """
    labels: list[Label] = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, dict):
            continue
        labels.extend(_map_each(_nodes(content.get("labels")), map_label))
    return _dedupe(labels)


def map_collaborators(edges: list[dict] | None) -> list[Collaborator]:
    collaborators = []
    for edge in edges or []:
        if not isinstance(edge, dict):
            continue
        node = edge.get("node")
        if not isinstance(node, dict) or not node.get("id"):
            continue
        collaborators.append(Collaborator(
            id         = node["id"],
            login      = node.get("login") or "",
            avatar_url = node.get("avatarUrl") or "",
            permission = edge.get("permission") or "READ",
        ))
    return collaborators


def determine_column_type(name: str) -> ColumnType:
    lowered = name.lower()
    if "done" in lowered or "completed" in lowered:
        return ColumnType.DONE
    if "progress" in lowered or "doing" in lowered:
        return ColumnType.IN_PROGRESS
    if "backlog" in lowered:
        return ColumnType.BACKLOG
    return ColumnType.TODO


def map_columns(fields: Any) -> list[Column]:
    columns = []
    for field in _nodes(fields):
        if not field.get("id"):
            continue
        name = field.get("name") or ""
        options = tuple(
            ColumnOption(id=option["id"], name=option.get("name") or "", color=option.get("color"))
            for option in field.get("options") or []
            if isinstance(option, dict) and option.get("id")
        )
        columns.append(Column(
            id       = field["id"],
            name     = name,
            type     = determine_column_type(name),
            field_id = field["id"],
            options  = options,
        ))
    return columns


def _issue_state(value: str | None) -> IssueState:
    try:
        return IssueState(value or "OPEN")
    except ValueError:
        return IssueState.OPEN


def map_issue(node: dict | None, project_item_id: str | None = None, status: str | None = None) -> Issue | None:
    if not isinstance(node, dict) or not node.get("id"):
        log.debug("Skipping malformed issue node: %s", node)
        return None
    return Issue(
        id              = node["id"],
        title           = node.get("title") or "",
        number          = node.get("number") or 0,
        state           = _issue_state(node.get("state")),
        body            = node.get("body"),
        url             = node.get("url") or "",
        created_at      = parse_datetime(node.get("createdAt")),
        updated_at      = parse_datetime(node.get("updatedAt")),
        labels          = tuple(_map_each(_nodes(node.get("labels")), map_label)),
        assignees       = tuple(_map_each(_nodes(node.get("assignees")), map_user)),
        project_item_id = project_item_id,
        status          = status,
    )


def map_issues(nodes: list[dict] | None) -> list[Issue]:
    return _map_each((n for n in nodes or [] if isinstance(n, dict)), map_issue)


def map_draft_issue(item: dict | None, content: dict | None = None, status: str | None = None) -> Issue | None:
    """
    A draft lives only on its board, so the project item id is its id.
    `content` defaults to the item's own content.
    """
    if not isinstance(item, dict) or not item.get("id"):
        return None
    if content is None:
        content = item.get("content") or {}
    return Issue(
        id              = item["id"],
        title           = content.get("title") or "",
        body            = content.get("body"),
        created_at      = parse_datetime(content.get("createdAt")),
        updated_at      = parse_datetime(content.get("updatedAt")),
        project_item_id = item["id"],
        status          = status,
        is_draft        = True,
    )


def map_project_items_to_issues(items: list[dict] | None) -> list[Issue]:
    """Issues and draft issues on a board; pull requests are skipped."""
    issues = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, dict):
            continue
        status = (item.get("fieldValueByName") or {}).get("name")
        kind = content.get("__typename")
        if kind == "Issue":
            issue = map_issue(content, project_item_id=item.get("id"), status=status)
        elif kind == "DraftIssue":
            issue = map_draft_issue(item, content, status)
        else:
            continue
        if issue is not None:
            issues.append(issue)
    return issues


def map_repository(node: dict | None) -> Repository | None:
    if not isinstance(node, dict) or not node.get("id"):
        log.debug("Skipping malformed repository node: %s", node)
        return None
    owner = node.get("owner") or {}
    visibility = node.get("visibility") or ("PRIVATE" if node.get("isPrivate") else "PUBLIC")
    return Repository(
        id               = node["id"],
        name             = node.get("name") or "",
        owner_login      = owner.get("login") or "",
        owner_avatar_url = owner.get("avatarUrl") or "",
        description      = node.get("description") or None,
        url              = node.get("url") or "",
        created_at       = parse_datetime(node.get("createdAt")),
        updated_at       = parse_datetime(node.get("updatedAt")),
        is_private       = bool(node.get("isPrivate")) or visibility == "PRIVATE",
        visibility       = visibility,
        collaborators    = tuple(map_collaborators((node.get("collaborators") or {}).get("edges"))),
    )


def map_repositories(nodes: list[dict] | None) -> list[Repository]:
    return _dedupe(_map_each((n for n in nodes or [] if isinstance(n, dict)), map_repository))


def _map_repository_summary(node: dict) -> RepositorySummary | None:
    if not node.get("id"):
        return None
    return RepositorySummary(
        id          = node["id"],
        name        = node.get("name") or "",
        owner_login = (node.get("owner") or {}).get("login") or "",
    )


def map_project(node: dict | None) -> Project | None:
    if not isinstance(node, dict) or not node.get("id"):
        log.debug("Skipping malformed project node: %s", node)
        return None
    items = _nodes(node.get("items"))
    owner = node.get("owner") or {}
    creator = node.get("creator") or {}
    return Project(
        id            = node["id"],
        name          = node.get("title") or "",
        number        = node.get("number") or 0,
        description   = node.get("shortDescription") or None,
        url           = node.get("url") or "",
        closed        = bool(node.get("closed")),
        created_at    = parse_datetime(node.get("createdAt")),
        updated_at    = parse_datetime(node.get("updatedAt")),
        owner_login   = owner.get("login"),
        creator_login = creator.get("login") or owner.get("login"),
        repositories  = tuple(_map_each(_nodes(node.get("repositories")), _map_repository_summary)),
        columns       = tuple(map_columns(node.get("fields"))),
        issues        = tuple(map_project_items_to_issues(items)),
        labels        = tuple(map_labels(items)),
    )


def map_projects(nodes: list[dict] | None) -> list[Project]:
    return _dedupe(_map_each((n for n in nodes or [] if isinstance(n, dict)), map_project))


def map_viewer(data: dict | None) -> ViewerSlices:
    """
    Split the aggregated startup payload into one slice per store.

    Issues, labels and collaborators are embedded in many parents;
    each slice holds one entity per id.
    """
    viewer = (data or {}).get("viewer")
    if not isinstance(viewer, dict):
        return ViewerSlices(user=None)

    repo_nodes = _nodes(viewer.get("repositories"))
    project_nodes = _nodes(viewer.get("projectsV2"))
    repositories = map_repositories(repo_nodes)
    projects = map_projects(project_nodes)

    all_items: list[dict] = []
    for project_node in project_nodes:
        all_items.extend(_nodes(project_node.get("items")))

    return ViewerSlices(
        user          = map_user(viewer),
        repositories  = repositories,
        projects      = projects,
        issues        = _dedupe(map_project_items_to_issues(all_items)),
        labels        = map_labels(all_items),
        collaborators = _dedupe(c for repo in repositories for c in repo.collaborators),
    )
