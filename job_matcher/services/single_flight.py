"""One in-flight computation per key.

Concurrent requests for the same uncached match share a single future
instead of each paying for an AI call.
"""

import asyncio
import logging
from typing import Any

logger = logging.getLogger(__name__)


class SingleFlight:
    """Registry of in-flight futures keyed by cache key.

    ``claim`` returns ``(future, owner)``. The owner must eventually call
    ``resolve`` or ``abandon`` for every key it claimed; waiters just await
    the future. Bound to the running event loop.
    """

    def __init__(self) -> None:
        self._calls: dict[str, asyncio.Future] = {}

    def claim(self, key: str) -> tuple[asyncio.Future, bool]:
        existing = self._calls.get(key)
        if existing is not None and not existing.done():
            return existing, False
        future = asyncio.get_running_loop().create_future()
        self._calls[key] = future
        return future, True

    def resolve(self, key: str, result: Any) -> None:
        future = self._calls.pop(key, None)
        if future is not None and not future.done():
            future.set_result(result)

    def abandon(self, key: str) -> None:
        """Release a claim without a result; waiters see a cancelled future."""
        future = self._calls.pop(key, None)
        if future is not None and not future.done():
            future.cancel()

    def in_flight(self, key: str) -> bool:
        future = self._calls.get(key)
        return future is not None and not future.done()

    def __len__(self) -> int:
        return sum(1 for f in self._calls.values() if not f.done())
