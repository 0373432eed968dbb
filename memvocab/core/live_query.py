"""Live queries: reads that re-run after every write to the tables they observe.

Repositories call :meth:`LiveQueryRegistry.notify` once a write has been
committed. Every subscription observing one of the notified collections
re-runs its read and pushes the new result to its ``on_change`` callback.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, TypeVar

from memvocab.core.store import Store

logger = logging.getLogger(__name__)

T = TypeVar("T")

CARDS = "cards"
DECKS = "decks"
ALL_COLLECTIONS = frozenset({CARDS, DECKS})

QueryFn = Callable[[], Awaitable[T]]
ChangeCallback = Callable[[T], Any]


class LiveQuery(Generic[T]):
    """Handle returned by :meth:`LiveQueryRegistry.subscribe`."""

    def __init__(
        self,
        registry: "LiveQueryRegistry",
        collections: frozenset[str],
        query: QueryFn,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self.collections = collections
        self.value: T | None = None
        self.error: Exception | None = None
        self._registry = registry
        self._query = query
        self._on_change = on_change
        self._issued = 0
        self._delivered = 0
        self._latest: asyncio.Task | None = None
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def is_loading(self) -> bool:
        return not self._disposed and self._delivered < self._issued

    def refresh(self) -> asyncio.Task | None:
        """Schedule a re-run of the read; a newer run supersedes older ones."""
        if self._disposed:
            return None
        self._issued += 1
        self._latest = self._registry._spawn(self._run(self._issued))
        return self._latest

    def rebind(self, query: QueryFn) -> asyncio.Task | None:
        """Replace the read, e.g. after its search string changed.

        The previous parameter's value is dropped and results still in
        flight for it are discarded.
        """
        self._query = query
        self.value = None
        self.error = None
        return self.refresh()

    async def wait(self) -> T | None:
        """Wait for the most recently scheduled run and return the value."""
        while self._latest is not None and not self._latest.done():
            await asyncio.wait({self._latest})
        return self.value

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._on_change = None
        self._registry._unregister(self)
        if self._latest is not None and not self._latest.done():
            self._latest.cancel()

    async def _run(self, run: int) -> None:
        try:
            result = await self._query()
        except Exception as exc:
            if self._disposed or run != self._issued:
                return
            logger.warning("Live query failed: %s", exc)
            self.error = exc
            self._delivered = run
            return

        # Only the latest run may publish its result
        if self._disposed or run != self._issued:
            return
        self.value = result
        self.error = None
        self._delivered = run
        await self._deliver(result)

    async def _deliver(self, result: T) -> None:
        callback = self._on_change
        if callback is None:
            return
        try:
            outcome = callback(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Live query subscriber raised")


class LiveQueryRegistry:
    def __init__(self) -> None:
        self._subscriptions: set[LiveQuery] = set()
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        collections: Iterable[str],
        query: QueryFn,
        on_change: ChangeCallback | None = None,
    ) -> LiveQuery:
        live = LiveQuery(self, frozenset(collections), query, on_change)
        self._subscriptions.add(live)
        live.refresh()
        return live

    def notify(self, *collections: str) -> int:
        """Re-run every subscription observing one of ``collections``."""
        changed = set(collections)
        matching = [
            live for live in list(self._subscriptions)
            if live.collections & changed
        ]
        for live in matching:
            live.refresh()
        return len(matching)

    async def flush(self) -> None:
        """Wait until no refresh is pending, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        for live in list(self._subscriptions):
            live.dispose()

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _unregister(self, live: LiveQuery) -> None:
        self._subscriptions.discard(live)


class ExternalChangeWatcher:
    """Notify all collections when another store instance commits to the file.

    Two processes or two store objects on the same SQLite file do not share
    a registry; the watcher polls SQLite's ``data_version`` instead.
    """

    def __init__(
        self,
        store: Store,
        registry: LiveQueryRegistry,
        interval: float = 0.5,
    ) -> None:
        self.store = store
        self.registry = registry
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._last_version: int | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._last_version = await self.store.data_version()
        self._task = asyncio.get_running_loop().create_task(self._poll())

    async def check(self) -> bool:
        """Compare the change counter once; notify when it moved."""
        version = await self.store.data_version()
        if version == self._last_version:
            return False
        self._last_version = version
        self.registry.notify(*ALL_COLLECTIONS)
        return True

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.check()
            except Exception:
                logger.exception("Checking for external changes failed")
