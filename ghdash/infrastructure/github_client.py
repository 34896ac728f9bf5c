from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ghdash.domain.errors import RateLimitError, TransportError
from ghdash.domain.interfaces import GraphQLResult, IGraphQLExecutor

log = logging.getLogger(__name__)

GITHUB_API_URL   = "https://api.github.com/graphql"
RATE_LIMIT_SLEEP = 60
MAX_RETRIES      = 5
REQUEST_TIMEOUT  = 30.0


class GitHubGraphQLClient(IGraphQLExecutor):
    """
    Concrete implementation of IGraphQLExecutor for GitHub's GraphQL API.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. This lets callers control the client lifecycle
    and makes testing trivial — just pass in a client on a MockTransport.
    """

    def __init__(
        self,
        token: str,
        client: httpx.AsyncClient,
        url: str = GITHUB_API_URL,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        self._client = client
        self._url = url
        self._max_retries = max_retries
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type":  "application/json",
        }

    @staticmethod
    def _malformed(detail: object) -> GraphQLResult:
        log.warning("Malformed response from GitHub: %s", detail)
        return GraphQLResult(error=TransportError(f"Malformed response from GitHub: {detail}"))

    @staticmethod
    def _error_messages(errors: list[dict]) -> str:
        return "; ".join(err.get("message") or str(err) for err in errors)

    async def execute(self, operation: str, variables: dict[str, Any] | None = None) -> GraphQLResult:
        """
        POST one operation with retry logic.

        HTTP and connection failures back off exponentially; RATE_LIMITED
        errors wait out the window. Any other GraphQL error is handed back
        as the result's error, with whatever partial data came along.
        """
        payload: dict[str, Any] = {"query": operation}
        if variables:
            payload["variables"] = variables

        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.post(
                    self._url,
                    headers=self._headers,
                    json=payload,
                    timeout=REQUEST_TIMEOUT,
                )
                if response.status_code == 401:
                    return GraphQLResult(error=TransportError("Authentication failed. Check your GitHub token."))
                response.raise_for_status()
                body = response.json()
                if not isinstance(body, dict):
                    return self._malformed(f"expected a JSON object, got {type(body).__name__}")

                # GraphQL-level errors (different from HTTP errors)
                errors = body.get("errors")
                if errors and (not isinstance(errors, list) or not all(isinstance(err, dict) for err in errors)):
                    return self._malformed("errors is not a list of objects")
                if body.get("data") is not None and not isinstance(body["data"], dict):
                    return self._malformed("data is not an object")
                if errors:
                    if any(err.get("type") == "RATE_LIMITED" for err in errors):
                        raise RateLimitError(self._error_messages(errors))
                    log.warning("GraphQL errors: %s", self._error_messages(errors))
                    return GraphQLResult(
                        data=body.get("data"),
                        error=TransportError(f"GraphQL errors: {self._error_messages(errors)}"),
                    )

                return GraphQLResult(data=body.get("data"))

            except RateLimitError as exc:
                last_error = exc
                log.info("Rate limited - sleeping %ds before retry …", RATE_LIMIT_SLEEP)
                await asyncio.sleep(RATE_LIMIT_SLEEP)

            except (httpx.HTTPStatusError, httpx.RequestError) as exc:
                last_error = exc
                wait = 2 ** attempt   # exponential backoff: 1s, 2s, 4s, 8s, 16s
                log.warning("HTTP error attempt %d/%d: %s — retrying in %ds", attempt + 1, self._max_retries, exc, wait)
                await asyncio.sleep(wait)

            except ValueError as exc:
                # body was not JSON; retrying will not change that
                return self._malformed(exc)

        return GraphQLResult(
            error=TransportError(f"Exhausted {self._max_retries} retries: {last_error}")
        )
