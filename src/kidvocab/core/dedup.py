"""
In-flight request coalescing.

Concurrent calls that share a fingerprint attach to the one operation already
running instead of starting their own, so the store sees a single mutation per
burst of identical calls. Entries live only while the operation is running.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Maps a request fingerprint to the task currently serving it."""

    def __init__(self):
        self._in_flight: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._in_flight)

    def __contains__(self, key: str) -> bool:
        return key in self._in_flight

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``factory()`` once for all concurrent callers using ``key``."""
        task = self._in_flight.get(key)
        if task is None:
            # Lookup and registration happen without an await in between.
            task = asyncio.ensure_future(factory())
            self._in_flight[key] = task
            task.add_done_callback(lambda done, key=key: self._release(key, done))
        else:
            logger.debug("Joining in-flight operation %s", key)

        # A cancelled caller must not cancel the shared operation.
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]


def fingerprint(operation: str, *parts: Any) -> str:
    """Build a fingerprint such as ``mark-seen:child-1:word-7``."""
    return ":".join([operation, *(str(part) for part in parts)])


# Singleton instance
_registry: Optional[InFlightRegistry] = None


def get_in_flight_registry() -> InFlightRegistry:
    """Get the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = InFlightRegistry()
    return _registry
