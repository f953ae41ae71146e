"""
Request coalescing to prevent duplicate upstream calls.

When several concurrent requests miss the cache for the same key, only
the first one runs the pipeline; the others await its result.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict

from shared.logging import get_logger


class RequestCoalescer:
    """Shares one in-flight coroutine run between callers with the same key.

    The shared run is a task shielded from waiter cancellation, so a caller
    that disconnects does not abort the work others are waiting on.
    """

    def __init__(self):
        self._in_flight: Dict[str, "asyncio.Task[Any]"] = {}
        self.logger = get_logger("proxy.coalescer")

    async def run(self, key: str, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        """Join the in-flight run for ``key`` or start a new one.

        Raises:
            Exception: Any error from ``fetch_fn`` is propagated to every waiter
        """
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetch_fn())
            self._in_flight[key] = task
            task.add_done_callback(lambda _: self._in_flight.pop(key, None))
            self.logger.debug("Initiating fetch", cache_key=key)
        else:
            self.logger.debug("Coalescing request", cache_key=key)

        return await asyncio.shield(task)
