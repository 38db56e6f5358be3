"""
Grab lifecycle notifications.

The scheduler announces grabs, moves, releases and tick outcomes here.
Subscribers such as the grab logger only observe; nothing they do flows
back into the grab state.

Usage:
    bus = EventBus()
    bus.subscribe(Events.OBJECT_GRABBED, on_grab)
    bus.emit(Events.OBJECT_GRABBED, object_id="banana", hand_index=0, offset=offset)
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Process-wide publish/subscribe hub with synchronous, priority-ordered delivery."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._subscribers = {}  # event name -> [(priority, callback)]
            instance._guard = threading.Lock()
            cls._instance = instance
        return cls._instance

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register ``callback`` for ``event_name``.

        Callbacks receive the keyword arguments given to ``emit()``. Higher
        priorities are called first; equal priorities keep subscription order.
        """
        with self._guard:
            entries = self._subscribers.setdefault(event_name, [])
            position = len(entries)
            while position > 0 and entries[position - 1][0] < priority:
                position -= 1
            entries.insert(position, (priority, callback))
        logger.debug("Subscribed %s to '%s'", getattr(callback, "__name__", repr(callback)), event_name)

    def unsubscribe(self, event_name: str, callback: Callable):
        with self._guard:
            entries = self._subscribers.get(event_name, [])
            self._subscribers[event_name] = [e for e in entries if e[1] is not callback]

    def emit(self, event_name: str, **kwargs):
        """Call every subscriber of ``event_name``.

        A failing subscriber is logged and skipped; the emitter never sees it.
        """
        with self._guard:
            entries = list(self._subscribers.get(event_name, ()))

        for _, callback in entries:
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error("Subscriber %s failed on '%s': %s",
                             getattr(callback, "__name__", repr(callback)), event_name, e)

    def reset(self):
        """Drop all subscribers."""
        with self._guard:
            self._subscribers.clear()


class Events:
    """Event names published by the scheduler."""

    OBJECT_GRABBED = "object_grabbed"    # object_id, hand_index, offset
    OBJECT_MOVED = "object_moved"        # object_id, position
    OBJECT_RELEASED = "object_released"  # object_id, hand_index, position

    TICK_PROCESSED = "tick_processed"    # timestamp, hand_count
    RESULT_DISCARDED = "result_discarded"  # timestamp

    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
