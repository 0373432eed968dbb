import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from memvocab.core.exceptions import MemVocabError
from memvocab.core.live_query import LiveQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors an action records in ``error``; anything else is a bug and propagates
ACTION_ERRORS = (MemVocabError, ValueError)


class StoreStatus(str, enum.Enum):
    uninitialized = "uninitialized"
    loading = "loading"
    ready = "ready"
    error = "error"


class StateStore:
    """In-memory cache of one table, with loading and error flags.

    ``uninitialized -> loading -> ready | error``; ``retry()`` re-runs the
    last failed action.
    """

    def __init__(self) -> None:
        self.status = StoreStatus.uninitialized
        self.error: str | None = None
        self.has_initialized = False
        self._retry_action: Callable[[], Awaitable] | None = None
        self._live: LiveQuery | None = None
        self._initializing: asyncio.Task | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is StoreStatus.loading

    @property
    def is_watching(self) -> bool:
        return self._live is not None and not self._live.is_disposed

    def _start(self) -> None:
        self.status = StoreStatus.loading
        self.error = None

    def _settled_status(self) -> StoreStatus:
        return StoreStatus.ready if self.has_initialized else StoreStatus.uninitialized

    def _abort(self) -> None:
        # Cancelled mid-flight: leave loading so the next call can run again
        if self.status is StoreStatus.loading:
            self.status = self._settled_status()

    def _finish(self) -> None:
        self.status = StoreStatus.ready
        self._retry_action = None

    def _fail(
        self,
        exc: Exception,
        message: str,
        retry: Callable[[], Awaitable] | None = None,
    ) -> None:
        self.error = str(exc) or message
        self.status = StoreStatus.error
        self._retry_action = retry

    async def _run(
        self,
        action: Callable[[], Awaitable[T]],
        message: str,
        reraise: bool = True,
        default: T | None = None,
    ) -> T | None:
        """Run ``action`` through ``loading``; record failures, re-raise if asked."""
        self._start()
        try:
            result = await action()
        except ACTION_ERRORS as exc:
            logger.warning("%s: %s", message, exc)
            self._fail(
                exc, message,
                retry=lambda: self._run(action, message, reraise, default),
            )
            if reraise:
                raise
            return default
        except BaseException:
            self._abort()
            raise
        self._finish()
        return result

    async def _initialize_once(self, load: Callable[[], Awaitable[None]]) -> None:
        """Run ``load`` until it succeeds once; concurrent callers share a run.

        A caller that is cancelled stops waiting but does not stop the shared
        run, so the other callers still see its outcome.
        """
        if self.has_initialized:
            return
        if self._initializing is None or self._initializing.done():
            self._initializing = asyncio.get_running_loop().create_task(
                self._guarded(load)
            )
        await asyncio.shield(self._initializing)

    async def _guarded(self, load: Callable[[], Awaitable[None]]) -> None:
        self._start()
        try:
            await load()
        except BaseException:
            self._abort()
            raise

    async def retry(self) -> None:
        if self._retry_action is None:
            return
        action, self._retry_action = self._retry_action, None
        await action()

    def clear_error(self) -> None:
        self.error = None
        if self.status is StoreStatus.error:
            self.status = self._settled_status()

    def unwatch(self) -> None:
        if self._live is not None:
            self._live.dispose()
            self._live = None
