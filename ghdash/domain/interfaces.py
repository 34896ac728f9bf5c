"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
The stores depend on THESE, never on httpx or on GitHub's endpoint.

Benefit: you can swap GitHubGraphQLClient for a FakeExecutor in tests
without changing a single line of store code.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GraphQLResult:
    """
    Outcome of one remote operation.

    `error` is set whenever the call failed or GitHub reported errors;
    `data` may still carry whatever partial payload came back.
    """
    data:  dict[str, Any] | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class IGraphQLExecutor(ABC):
    """
    Contract that any GitHub API client must fulfil.
    Transport details (headers, endpoint, retries) stay behind it.
    """

    @abstractmethod
    async def execute(self, operation: str, variables: dict[str, Any] | None = None) -> GraphQLResult:
        """
        Run one query or mutation.

        Never raises for transport problems: they come back as
        GraphQLResult.error with a human-readable message.
        """
        ...
