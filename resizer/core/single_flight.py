"""
Per-key in-flight registry so concurrent cache misses share one computation.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Tuple


class InFlightRegistry:
    def __init__(self) -> None:
        self._pending: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._pending)

    async def run(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
    ) -> Tuple[Any, bool]:
        """
        Run `producer` for `key` unless a run is already in flight.

        Returns `(result, joined)`; `joined` is True when the result came from
        another caller's run. The run belongs to the registry, so cancelling any
        caller leaves the others waiting on it. Exceptions reach every waiter
        and are not remembered.
        """
        task = self._pending.get(key)
        joined = task is not None
        if task is None:
            task = asyncio.ensure_future(producer())
            self._pending[key] = task
            task.add_done_callback(lambda done: self._finish(key, done))
        return await asyncio.shield(task), joined

    def _finish(self, key: str, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled():
            # mark as retrieved when every caller has gone away
            task.exception()
