"""Debounced loader that only ever delivers the newest request's response."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")


class LatestOnlyLoader(Generic[P, T]):
    """Wrap ``fetch`` so rapid parameter changes collapse into one request.

    Each call captures a generation number when it is issued. After the debounce
    delay, and again once the response arrives, the call checks that no newer call
    was made in the meantime; if one was, it returns ``None`` and its response
    (or error) is discarded.
    """

    def __init__(self, fetch: Callable[[P], Awaitable[T]], *, debounce_s: float = 0.25) -> None:
        self._fetch = fetch
        self._debounce_s = max(0.0, debounce_s)
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def cancel(self) -> None:
        """Mark every in-flight call as stale."""
        self._generation += 1

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def load(self, params: P) -> Optional[T]:
        self._generation += 1
        generation = self._generation
        if self._debounce_s:
            await asyncio.sleep(self._debounce_s)
        if not self.is_current(generation):
            logger.debug("Request %s superseded before it was issued", generation)
            return None
        try:
            result = await self._fetch(params)
        except Exception:
            if not self.is_current(generation):
                logger.debug("Discarding failure of stale request %s", generation)
                return None
            raise
        if not self.is_current(generation):
            logger.debug("Discarding stale response for request %s", generation)
            return None
        return result
