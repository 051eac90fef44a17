"""Single-flight memoization for coroutines.

``SingleFlight`` maps a key to one shared ``asyncio.Task``. Concurrent callers
with the same key await the same task; later callers get the completed
result without re-running the operation. A task that raised, was cancelled,
or produced a result rejected by ``keep`` is evicted so the next call retries.

Usage:
    downloads: SingleFlight[str, Result[Path, PublishError]] = SingleFlight(
        keep=lambda result: isinstance(result, Ok)
    )
    path = await downloads.do(key, lambda: fetch(url))
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable

__all__ = ["SingleFlight"]


def _keep_everything(_value: object) -> bool:
    return True


class SingleFlight[K: Hashable, V]:
    def __init__(self, *, keep: Callable[[V], bool] = _keep_everything) -> None:
        self._keep = keep
        self._tasks: dict[K, asyncio.Task[V]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    async def do(self, key: K, fn: Callable[[], Awaitable[V]]) -> V:
        """Run ``fn`` once per key and share its outcome.

        The shared task is awaited through ``asyncio.shield``: cancelling one
        caller does not cancel the operation other callers are waiting on.
        """
        task = self._tasks.get(key)
        if task is not None and task.done() and not self._reusable(task):
            self._evict(key, task)
            task = None

        if task is None:
            task = asyncio.ensure_future(fn())
            self._tasks[key] = task
            task.add_done_callback(lambda t, k=key: self._settle(k, t))

        return await asyncio.shield(task)

    def forget(self, key: K) -> None:
        self._tasks.pop(key, None)

    def clear(self) -> None:
        self._tasks.clear()

    def _reusable(self, task: asyncio.Task[V]) -> bool:
        if task.cancelled() or task.exception() is not None:
            return False
        return self._keep(task.result())

    def _settle(self, key: K, task: asyncio.Task[V]) -> None:
        if not self._reusable(task):
            self._evict(key, task)

    def _evict(self, key: K, task: asyncio.Task[V]) -> None:
        # A newer task may already own the key after a retry.
        if self._tasks.get(key) is task:
            del self._tasks[key]
