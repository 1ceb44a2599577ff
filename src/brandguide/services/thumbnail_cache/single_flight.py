"""
Keyed coalescing and locking of concurrent coroutine calls.

All callers asking for the same key while a call is in flight await one
shared task and observe the same result or exception. The shared work runs
in its own task, so a caller that is cancelled or gives up waiting does not
cancel it for the others.

``KeyedLock`` serializes work per key where coalescing is not wanted.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class SingleFlight(Generic[K, T]):
    """Run at most one flight per key at a time."""

    def __init__(self) -> None:
        self._flights: dict[K, asyncio.Task[T]] = {}

    def in_flight(self, key: K) -> bool:
        """Whether a flight for ``key`` is currently running."""
        task = self._flights.get(key)
        return task is not None and not task.done()

    def keys(self) -> list[K]:
        """Keys with a running flight."""
        return [key for key, task in self._flights.items() if not task.done()]

    async def do(self, key: K, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` for ``key`` or join the flight already running for it.

        Parameters
        ----------
        key : K
            Coalescing key.
        fn : Callable[[], Awaitable[T]]
            Zero-argument coroutine factory; only invoked when no flight for
            ``key`` is running.

        Returns
        -------
        T
            Result of the shared flight.
        """
        task = self._flights.get(key)
        if task is None or task.done():
            task = asyncio.create_task(self._run(fn))
            self._flights[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug("Joining in-flight work for %s", key)
        return await asyncio.shield(task)

    async def shutdown(self) -> None:
        """Cancel every in-flight task and wait for them to unwind."""
        tasks = [task for task in self._flights.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Cancelling %d in-flight thumbnail fetch(es)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)
        self._flights.clear()

    @staticmethod
    async def _run(fn: Callable[[], Awaitable[T]]) -> T:
        return await fn()

    def _forget(self, key: K, task: asyncio.Task[T]) -> None:
        if self._flights.get(key) is task:
            del self._flights[key]
        # Mark the exception retrieved when every caller has gone away
        if not task.cancelled():
            task.exception()


class KeyedLock(Generic[K]):
    """Mutual exclusion per key.

    Locks are created on first use and dropped once no holder or waiter
    remains, so the registry only ever contains keys under contention.
    """

    def __init__(self) -> None:
        self._locks: dict[K, asyncio.Lock] = {}
        self._users: dict[K, int] = {}

    def locked(self, key: K) -> bool:
        """Whether ``key`` is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @contextlib.asynccontextmanager
    async def hold(self, *keys: K) -> AsyncIterator[None]:
        """Hold the locks for ``keys`` for the duration of the block.

        Several keys are acquired in sorted order, so two holders of
        overlapping key sets cannot deadlock.
        """
        ordered = sorted(set(keys))  # type: ignore[type-var]
        for key in ordered:
            self._users[key] = self._users.get(key, 0) + 1
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    self._locks.pop(key, None)
