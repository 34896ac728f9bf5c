from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from ghdash.application.collaborator_store import CollaboratorStore
from ghdash.application.issue_store import IssueStore
from ghdash.application.label_store import LabelStore
from ghdash.application.project_store import ProjectStore
from ghdash.application.repository_store import RepositoryStore
from ghdash.application.state import CACHE_TTL_SECONDS
from ghdash.application.store import EntityStore
from ghdash.application.user_store import UserStore
from ghdash.domain.interfaces import IGraphQLExecutor


@dataclass
class AppStores:
    """
    One store per feature for the whole session. Built once by the
    composition root and handed to whoever needs it; nothing is global.
    """
    users:         UserStore
    repositories:  RepositoryStore
    projects:      ProjectStore
    issues:        IssueStore
    labels:        LabelStore
    collaborators: CollaboratorStore

    def all(self) -> tuple[EntityStore, ...]:
        return (self.users, self.repositories, self.projects, self.issues, self.labels, self.collaborators)

    def by_name(self, name: str) -> EntityStore:
        for store in self.all():
            if store.name == name:
                return store
        raise KeyError(name)

    def reset(self) -> None:
        for store in self.all():
            store.reset()


def build_stores(
    executor: IGraphQLExecutor,
    cache_ttl: float = CACHE_TTL_SECONDS,
    clock: Callable[[], float] = time.time,
) -> AppStores:
    return AppStores(
        users         = UserStore(executor, cache_ttl, clock),
        repositories  = RepositoryStore(executor, cache_ttl, clock),
        projects      = ProjectStore(executor, cache_ttl, clock),
        issues        = IssueStore(executor, cache_ttl, clock),
        labels        = LabelStore(executor, cache_ttl, clock),
        collaborators = CollaboratorStore(executor, cache_ttl, clock),
    )
