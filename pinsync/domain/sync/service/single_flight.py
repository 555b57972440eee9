"""SingleFlight - de-duplicates concurrent async computations by key."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pinsync.domain.shared.error import CacheKeyFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """An in-flight or completed computation for one key."""

    key: str
    task: asyncio.Task[T]
    started_at: float
    completed_at: float | None = None

    @property
    def in_flight(self) -> bool:
        return not self.task.done()


class SingleFlight:
    """Keyed cache of asyncio tasks guaranteeing one computation per key at a time.

    - Callers arriving while a computation for the key is in flight await that
      same task instead of starting another one.
    - Successful results stay cached until invalidated or, if ``ttl`` is set,
      until they are older than ``ttl`` seconds.
    - A failed computation is evicted and every waiter receives the same
      CacheKeyFailure instance, so the next call starts a fresh attempt.
    - Waiters await a shielded task: cancelling a caller (e.g. a timeout) does
      not cancel the shared work, whose result is still cached.

    Constructed explicitly and injected; there is no process-wide instance.
    """

    def __init__(
        self,
        ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = asyncio.Lock()

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        *,
        refresh: bool = False,
    ) -> T:
        """Return the result for key, starting factory() only if no usable entry exists.

        Args:
            key: Logical cache key (e.g. "sync-luminaire").
            factory: Zero-argument coroutine function producing the value.
            refresh: Drop a completed entry first. An in-flight entry is still joined.

        Raises:
            CacheKeyFailure: The computation failed (wraps the original error).
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not entry.in_flight and (refresh or self._expired(entry)):
                logger.debug("Dropping completed entry for %s (refresh=%s)", key, refresh)
                del self._entries[key]
                entry = None

            if entry is None:
                task = asyncio.create_task(self._execute(key, factory), name=f"single-flight:{key}")
                task.add_done_callback(self._on_done)
                entry = CacheEntry(key=key, task=task, started_at=self._clock())
                self._entries[key] = entry
                logger.debug("Started computation for %s", key)
            else:
                logger.debug("Joining existing entry for %s (in_flight=%s)", key, entry.in_flight)

        return await asyncio.shield(entry.task)

    def invalidate(self, key: str) -> bool:
        """Forget a completed entry. In-flight entries are left alone.

        Returns:
            True if an entry was removed.
        """
        entry = self._entries.get(key)
        if entry is None or entry.in_flight:
            return False
        del self._entries[key]
        return True

    def get(self, key: str) -> CacheEntry[Any] | None:
        return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: CacheEntry[Any]) -> bool:
        if self._ttl is None or entry.completed_at is None:
            return False
        return self._clock() - entry.completed_at >= self._ttl

    def _evict(self, key: str, task: asyncio.Task[Any] | None) -> None:
        entry = self._entries.get(key)
        if entry is not None and entry.task is task:
            del self._entries[key]

    async def _execute(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        task = asyncio.current_task()
        try:
            result = await factory()
        except asyncio.CancelledError:
            self._evict(key, task)
            raise
        except Exception as e:
            self._evict(key, task)
            logger.warning("Computation for %s failed, entry evicted: %s", key, e)
            raise CacheKeyFailure(key, e) from e

        entry = self._entries.get(key)
        if entry is not None and entry.task is task:
            entry.completed_at = self._clock()
        return result

    @staticmethod
    def _on_done(task: asyncio.Task[Any]) -> None:
        # Retrieve the exception so a failure nobody awaited (all callers timed
        # out) is not reported as "never retrieved".
        if not task.cancelled():
            task.exception()
