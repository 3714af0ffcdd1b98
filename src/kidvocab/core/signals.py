"""
Cache-invalidation signals for the presentation layer.
"""

import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class InvalidationBus:
    """Fans out "this view is stale" notifications to subscribers."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def invalidate(self, *paths: str) -> None:
        for path in paths:
            logger.debug("Invalidating %s", path)
            for listener in list(self._listeners):
                try:
                    listener(path)
                except Exception as e:
                    # Listener errors never reach the caller; the mutation is already stored
                    logger.warning(f"Invalidation listener failed for {path}: {e}")


# Singleton instance
_bus: Optional[InvalidationBus] = None


def get_invalidation_bus() -> InvalidationBus:
    global _bus
    if _bus is None:
        _bus = InvalidationBus()
    return _bus
