from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, TypeVar

log = logging.getLogger(__name__)

R = TypeVar("R")

CACHE_TTL_SECONDS = 5 * 60

Listener = Callable[[object], None]


def noop() -> None:
    pass


class Observable:
    """
    Minimal synchronous pub/sub. Listeners are called with the source
    object right after every change, in subscription order.

    A listener that raises is logged and skipped; it never interrupts the
    change that triggered it or the listeners after it.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._held = 0
        self._pending = False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Hold notifications until the block exits, then send at most one."""
        self._held += 1
        try:
            yield
        finally:
            self._held -= 1
        if not self._held and self._pending:
            self._pending = False
            self._notify()

    def _notify(self, *_: object) -> None:
        if self._held:
            self._pending = True
            return
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                log.error("Listener %r failed on %s", listener, type(self).__name__, exc_info=True)


class LoadingState:
    """
    Busy flag + last error. Pure state holder: it never fails,
    it only records failures reported by callers.
    """

    def __init__(self, on_change: Callable[[], None] = noop) -> None:
        self._is_loading = False
        self._error: Exception | None = None
        self._on_change = on_change

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Exception | None:
        return self._error

    def set_loading(self, is_loading: bool) -> None:
        self._is_loading = is_loading
        self._on_change()

    def set_error(self, error: Exception | None) -> None:
        self._error = error
        self._on_change()

    async def track(self, operation: Callable[[], Awaitable[R]]) -> R:
        """
        Run `operation` inside the loading/error bracket.

        The error is recorded AND re-raised, so both the state and an
        awaiting caller see it. Loading is cleared exactly once, always.
        """
        self.set_loading(True)
        self.set_error(None)
        try:
            return await operation()
        except Exception as exc:
            self.set_error(exc)
            raise
        finally:
            self.set_loading(False)

    def reset(self) -> None:
        self._is_loading = False
        self._error = None
        self._on_change()


class CacheState:
    """
    Last-fetched stamp with a fixed TTL.

    A stamp is valid iff now - stamp < ttl. A missing stamp is never valid.
    The stamp only moves after a successful fetch.
    """

    def __init__(
        self,
        loading: LoadingState,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._loading = loading
        self._ttl = ttl
        self._clock = clock
        self._last_fetched: float | None = None

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def last_fetched(self) -> float | None:
        return self._last_fetched

    def is_cache_valid(self) -> bool:
        if self._last_fetched is None:
            return False
        return self._clock() - self._last_fetched < self._ttl

    def update_cache_timestamp(self) -> None:
        self._last_fetched = self._clock()

    def invalidate(self) -> None:
        self._last_fetched = None

    async def execute_with_cache(self, operation: Callable[[], Awaitable[R]], force_refresh: bool = False) -> R:
        """
        With a fresh cache the operation still runs, just outside the
        loading bracket and without re-stamping. Callers that want to skip
        the network consult is_cache_valid() first (see EntityStore.fetch_all).
        """
        if not force_refresh and self.is_cache_valid():
            return await operation()

        result = await self._loading.track(operation)
        self.update_cache_timestamp()
        return result
