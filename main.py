"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
This file has ONE job: wire all the pieces together and run the app.

It does NOT contain any business logic. It just:
  1. Reads configuration from environment variables and flags
  2. Creates the GitHub client and every feature store
  3. Injects them into the AppInitializer
  4. Hydrates all stores with one aggregated query
  5. Runs a search against one store and reports a page of results

Dependency graph (what depends on what):
                         main.py  (wires everything)
                            │
              ┌─────────────┼──────────────┐
              ▼             ▼              ▼
       AppInitializer   AppStores   GitHubGraphQLClient
              │             │              ▲
              └──────┬──────┘              │
                     ▼                     │
            EntityStore (×6) ── IGraphQLExecutor
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import httpx

from ghdash.application.container import build_stores
from ghdash.application.initializer import AppInitializer
from ghdash.application.search import SearchCriteria
from ghdash.application.state import CACHE_TTL_SECONDS
from ghdash.infrastructure.github_client import GITHUB_API_URL, GitHubGraphQLClient

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

FEATURES = ("projects", "repositories", "issues", "labels", "collaborators", "users")


def _read_env() -> tuple[str, str, float]:
    """
    Read environment variables.
    Fails fast with a clear error if the token is missing.
    """
    token = os.environ.get("GITHUB_TOKEN")
    url   = os.environ.get("GITHUB_GRAPHQL_URL", GITHUB_API_URL)
    ttl   = os.environ.get("GHDASH_CACHE_TTL_SECONDS", str(CACHE_TTL_SECONDS))

    if not token:
        log.error("GITHUB_TOKEN environment variable is required")
        sys.exit(1)

    try:
        cache_ttl = float(ttl)
    except ValueError:
        log.error("GHDASH_CACHE_TTL_SECONDS must be a number, got %r", ttl)
        sys.exit(1)

    return token, url, cache_ttl


# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------

async def build_and_run(token: str, url: str, cache_ttl: float, args: argparse.Namespace) -> int:
    """
    Wires all dependencies together, hydrates the stores, and prints
    one page of the requested feature.
    """
    client = httpx.AsyncClient()

    try:
        executor    = GitHubGraphQLClient(token=token, client=client, url=url)
        stores      = build_stores(executor, cache_ttl=cache_ttl)
        initializer = AppInitializer(executor=executor, stores=stores)

        try:
            snapshot = await initializer.initialize()
        except Exception as exc:
            log.error("❌ Startup failed: %s", exc)
            if args.retry:
                log.info("Retrying once …")
                try:
                    snapshot = await initializer.retry()
                except Exception as retry_exc:
                    log.error("❌ Retry failed: %s", retry_exc)
                    return 1
            else:
                return 1

        viewer = snapshot.user.login if snapshot.user else "unknown"
        log.info("✅ Signed in as %s", viewer)

        store = stores.by_name(args.feature)
        store.search(SearchCriteria(
            query          = args.query,
            sort_by        = args.sort,
            sort_direction = args.direction,
            page           = args.page,
            page_size      = args.page_size,
        ))

        log.info(
            "%s | %d matches | page %d/%d",
            args.feature,
            store.total_results,
            store.search_state.current_page,
            store.total_pages,
        )
        for entity in store.paginated_results:
            label = getattr(entity, "name", None) or getattr(entity, "title", None) or getattr(entity, "login", "")
            print(f"{entity.id}\t{label}")
        return 0

    finally:
        # Always clean up the HTTP client, even if an exception occurred
        await client.aclose()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Browse your GitHub repositories and Projects v2 boards"
    )
    parser.add_argument("--feature", choices=FEATURES, default="projects", help="Which store to list (default: projects)")
    parser.add_argument("--query", default="", help="Case-insensitive text filter")
    parser.add_argument("--sort", default="name", help="Field to sort by (default: name)")
    parser.add_argument("--direction", choices=("asc", "desc"), default="asc")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=10)
    parser.add_argument("--retry", action="store_true", help="Retry once if startup fails")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    token, url, cache_ttl = _read_env()
    sys.exit(asyncio.run(build_and_run(token, url, cache_ttl, args)))


if __name__ == "__main__":
    main()
