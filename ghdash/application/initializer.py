from __future__ import annotations

import asyncio
import logging
import time
from contextlib import ExitStack
from enum import Enum

from ghdash.application.container import AppStores
from ghdash.application.state import LoadingState, Observable
from ghdash.domain.entities import AppSnapshot, ViewerSlices
from ghdash.domain.errors import InvalidStateTransition, TransportError
from ghdash.domain.interfaces import IGraphQLExecutor
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_viewer

log = logging.getLogger(__name__)


class InitState(str, Enum):
    IDLE    = "idle"
    LOADING = "loading"
    READY   = "ready"
    FAILED  = "failed"


class AppInitializer(Observable):
    """
    Hydrates every feature store from ONE aggregated query.

        idle ──initialize──▶ loading ──▶ ready
                               │  ▲
                               ▼  │ retry
                             failed

    Hydration is all-or-nothing: the whole response is fetched and mapped
    before the first set_items call, so a failure never leaves some stores
    filled and others empty. Later refreshes belong to the stores.
    """

    def __init__(self, executor: IGraphQLExecutor, stores: AppStores) -> None:
        super().__init__()
        self._executor = executor
        self._stores = stores
        self._state = InitState.IDLE
        self._snapshot: AppSnapshot | None = None
        self._inflight: asyncio.Task | None = None
        self.loading = LoadingState(on_change=self._notify)

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self.loading.is_loading

    @property
    def error(self) -> Exception | None:
        return self.loading.error

    @property
    def snapshot(self) -> AppSnapshot | None:
        return self._snapshot

    def _set_state(self, state: InitState) -> None:
        log.debug("Initializer %s → %s", self._state.value, state.value)
        self._state = state
        self._notify()

    async def initialize(self) -> AppSnapshot:
        if self._state is InitState.READY and self._snapshot is not None:
            return self._snapshot
        if self._state is InitState.LOADING and self._inflight is not None:
            return await asyncio.shield(self._inflight)
        if self._state is InitState.FAILED:
            raise InvalidStateTransition(self._state.value, "initialize")
        return await self._start()

    async def retry(self) -> AppSnapshot:
        if self._state is not InitState.FAILED:
            raise InvalidStateTransition(self._state.value, "retry")
        log.info("Retrying app initialization")
        return await self._start()

    async def _start(self) -> AppSnapshot:
        self._set_state(InitState.LOADING)
        self._inflight = asyncio.ensure_future(self._attempt())
        # a cancelled caller must not cancel the attempt other callers share
        return await asyncio.shield(self._inflight)

    async def _attempt(self) -> AppSnapshot:
        """
        One hydration attempt. It settles the state itself, so the outcome
        lands even when every caller awaiting it has gone away.
        """
        task = asyncio.current_task()
        try:
            snapshot = await self.loading.track(self._hydrate)
        except Exception as exc:
            if self._inflight is task:
                log.error("App initialization failed: %s", exc)
                self._set_state(InitState.FAILED)
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        self._snapshot = snapshot
        self._set_state(InitState.READY)
        return snapshot

    async def _hydrate(self) -> AppSnapshot:
        started = time.monotonic()

        result = await self._executor.execute(operations.GET_ALL_INITIAL_DATA)
        if result.error is not None:
            raise TransportError(f"Failed to fetch initial data: {result.error}") from result.error
        if result.data is None or not isinstance(result.data.get("viewer"), dict):
            raise TransportError("Failed to fetch initial data: no viewer in response")

        # Map everything first; stores are touched only once this succeeded
        slices = map_viewer(result.data)
        self._apply(slices)

        elapsed = time.monotonic() - started
        snapshot = AppSnapshot(
            user          = slices.user,
            repositories  = len(slices.repositories),
            projects      = len(slices.projects),
            issues        = len(slices.issues),
            labels        = len(slices.labels),
            collaborators = len(slices.collaborators),
            elapsed_secs  = elapsed,
        )
        log.info(
            "App initialized | %d repos | %d projects | %d issues | %d labels | %d collaborators | %.2fs",
            snapshot.repositories, snapshot.projects, snapshot.issues,
            snapshot.labels, snapshot.collaborators, elapsed,
        )
        return snapshot

    def _apply(self, slices: ViewerSlices) -> None:
        """Fill every store, then let listeners see the finished result."""
        stores = self._stores
        with ExitStack() as held:
            for store in stores.all():
                held.enter_context(store.batch())
            stores.users.set_items([slices.user] if slices.user is not None else [])
            stores.repositories.set_items(slices.repositories)
            stores.projects.set_items(slices.projects)
            stores.issues.set_items(slices.issues)
            stores.labels.set_items(slices.labels)
            stores.collaborators.set_items(slices.collaborators)
            for store in stores.all():
                store.update_cache_timestamp()

    def reset(self) -> None:
        """Logout: forget everything and go back to idle."""
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None
        self._stores.reset()
        self._snapshot = None
        self.loading.reset()
        self._set_state(InitState.IDLE)
