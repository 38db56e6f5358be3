"""
Structured logging with grab event logging.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps

from ..core.events import EventBus, Events


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure structured logging for the application."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GrabLogger:
    """Records grab/release events published on the event bus."""

    def __init__(self, event_bus: EventBus = None):
        self.logger = logging.getLogger("grab_events")
        self._history = []
        self._grab_started = {}
        self._bus = event_bus or EventBus()

    def attach(self):
        self._bus.subscribe(Events.OBJECT_GRABBED, self.log_grab)
        self._bus.subscribe(Events.OBJECT_RELEASED, self.log_release)
        return self

    def detach(self):
        self._bus.unsubscribe(Events.OBJECT_GRABBED, self.log_grab)
        self._bus.unsubscribe(Events.OBJECT_RELEASED, self.log_release)

    def log_grab(self, object_id, hand_index, offset=None, **_):
        """Log an object being picked up."""
        now = time.time()
        self._grab_started[object_id] = now
        self._history.append({
            "timestamp": now,
            "event": "grab",
            "object_id": object_id,
            "hand_index": hand_index,
        })
        self.logger.info("Grab: %-12s | Hand: %d | Offset: %s",
                         object_id, hand_index,
                         f"({offset[0]:.0f}, {offset[1]:.0f})" if offset else "N/A")

    def log_release(self, object_id, hand_index, position=None, **_):
        """Log an object being dropped."""
        now = time.time()
        started = self._grab_started.pop(object_id, None)
        held_ms = (now - started) * 1000 if started else None
        self._history.append({
            "timestamp": now,
            "event": "release",
            "object_id": object_id,
            "hand_index": hand_index,
            "held_ms": held_ms,
        })
        self.logger.info("Release: %-12s | Hand: %d | At: %s | Held: %s",
                         object_id, hand_index,
                         f"({position[0]:.0f}, {position[1]:.0f})" if position else "N/A",
                         f"{held_ms:.0f}ms" if held_ms is not None else "N/A")

    def get_history(self, last_n=None):
        """Get recent grab history."""
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_grabs(self):
        return sum(1 for e in self._history if e["event"] == "grab")


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
