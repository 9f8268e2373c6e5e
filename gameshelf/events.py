"""
Change notifications for collection data.

Each CollectionStore owns an EventBus. Collaborators that display
collection data subscribe to ``DATA_CHANGED`` and ``RESTORE_COMPLETED``
and reload when notified.
"""
import logging
import threading
from typing import Any, Callable, Dict, List

from gameshelf.constants import DATA_CHANGED, RESTORE_COMPLETED

logger = logging.getLogger('main')

EVENTS = (DATA_CHANGED, RESTORE_COMPLETED)


class EventBus:
    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event: str, callback: Callable) -> Callable[[], None]:
        """Register ``callback`` for ``event``; returns a function that unsubscribes it"""
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        with self._lock:
            self._listeners.setdefault(event, []).append(callback)
        return lambda: self.unsubscribe(event, callback)

    def unsubscribe(self, event: str, callback: Callable):
        with self._lock:
            listeners = self._listeners.get(event, [])
            self._listeners[event] = [cb for cb in listeners if cb is not callback]

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def emit(self, event: str, payload: Dict[str, Any] = None):
        with self._lock:
            listeners = list(self._listeners.get(event, []))
        logger.debug(f"Emitting {event} to {len(listeners)} listener(s)")
        for callback in listeners:
            # A failing listener must not stop the others from refreshing
            try:
                callback(payload or {})
            except Exception as e:
                logger.error(f"Listener for {event} failed: {e}", exc_info=True)
