"""
Performance Monitoring Module
==============================

Processing rate, per-stage latency and throttling counters for the frame
scheduler.
"""

import time
import logging
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Deque, Dict, Optional

logger = logging.getLogger(__name__)


class Timer:
    """
    High-precision timer for measuring code execution time.

    Can be used as a context manager.

    Example:
        >>> with Timer("inference") as t:
        ...     model.predict(x)
        >>> print(f"Took {t.elapsed_ms:.2f}ms")
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None
        self._elapsed: float = 0.0

    def start(self) -> "Timer":
        """Start the timer."""
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time in seconds."""
        self._end_time = time.perf_counter()
        if self._start_time is not None:
            self._elapsed = self._end_time - self._start_time
        return self._elapsed

    @property
    def elapsed(self) -> float:
        """Get elapsed time in seconds."""
        if self._start_time is None:
            return 0.0
        if self._end_time is None:
            return time.perf_counter() - self._start_time
        return self._elapsed

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return self.elapsed * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


@dataclass
class PerformanceMetrics:
    """Container for performance metrics snapshot."""
    processing_rate_hz: float = 0.0
    tick_time_ms: float = 0.0
    detection_time_ms: float = 0.0
    classification_time_ms: float = 0.0
    grab_time_ms: float = 0.0
    render_time_ms: float = 0.0
    processed_ticks: int = 0
    skipped_ticks: int = 0


class PerformanceMonitor:
    """
    Rolling performance statistics for processed ticks.

    The processing rate is derived from the timestamps of processed ticks,
    so it reflects the throttled cadence rather than the host tick rate.

    Example:
        >>> monitor = PerformanceMonitor()
        >>> monitor.tick_started(now)
        >>> with monitor.measure("detection"):
        ...     hands = await source.detect(frame, ts)
        >>> monitor.tick_complete()
    """

    def __init__(self, window_size: int = 30):
        self.window_size = window_size
        self._tick_stamps: Deque[float] = deque(maxlen=window_size)
        self._tick_times: Deque[float] = deque(maxlen=window_size)
        self._stage_times: Dict[str, Deque[float]] = {}
        self._tick_start: Optional[float] = None
        self._processed: int = 0
        self._skipped: int = 0
        self._lock = threading.Lock()

    def tick_started(self, timestamp: float) -> None:
        """Mark the start of a processed tick at scheduler time ``timestamp``."""
        with self._lock:
            self._tick_stamps.append(timestamp)
        self._tick_start = time.perf_counter()

    def tick_complete(self) -> None:
        """Mark the processed tick complete."""
        if self._tick_start is None:
            return
        elapsed = time.perf_counter() - self._tick_start
        with self._lock:
            self._tick_times.append(elapsed)
            self._processed += 1
        self._tick_start = None

    def tick_skipped(self) -> None:
        """Count a host tick that was throttled or otherwise not processed."""
        with self._lock:
            self._skipped += 1

    @contextmanager
    def measure(self, stage: str):
        """
        Context manager to measure a processing stage.

        Args:
            stage: Name of the stage (e.g., "detection", "render")
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                if stage not in self._stage_times:
                    self._stage_times[stage] = deque(maxlen=self.window_size)
                self._stage_times[stage].append(elapsed)

    @property
    def processing_rate_hz(self) -> float:
        """Processed ticks per second over the rolling window."""
        with self._lock:
            if len(self._tick_stamps) < 2:
                return 0.0
            span = self._tick_stamps[-1] - self._tick_stamps[0]
            return (len(self._tick_stamps) - 1) / span if span > 0 else 0.0

    @property
    def tick_time_ms(self) -> float:
        """Average processed tick duration in milliseconds."""
        with self._lock:
            if not self._tick_times:
                return 0.0
            return (sum(self._tick_times) / len(self._tick_times)) * 1000

    def stage_time_ms(self, stage: str) -> float:
        """Get average time for a specific stage in milliseconds."""
        with self._lock:
            if stage not in self._stage_times or not self._stage_times[stage]:
                return 0.0
            times = self._stage_times[stage]
            return (sum(times) / len(times)) * 1000

    @property
    def processed_ticks(self) -> int:
        return self._processed

    @property
    def skipped_ticks(self) -> int:
        return self._skipped

    def get_metrics(self) -> PerformanceMetrics:
        """Get current performance metrics snapshot."""
        return PerformanceMetrics(
            processing_rate_hz=self.processing_rate_hz,
            tick_time_ms=self.tick_time_ms,
            detection_time_ms=self.stage_time_ms("detection"),
            classification_time_ms=self.stage_time_ms("classification"),
            grab_time_ms=self.stage_time_ms("grab"),
            render_time_ms=self.stage_time_ms("render"),
            processed_ticks=self._processed,
            skipped_ticks=self._skipped,
        )

    def get_report(self) -> str:
        """Get formatted performance report string."""
        metrics = self.get_metrics()
        total = metrics.processed_ticks + metrics.skipped_ticks

        return (
            f"Performance Report\n"
            f"{'=' * 40}\n"
            f"Processing rate: {metrics.processing_rate_hz:.1f} Hz\n"
            f"Tick latency: {metrics.tick_time_ms:.1f}ms\n"
            f"\nPer-Stage Breakdown:\n"
            f"  Detection: {metrics.detection_time_ms:.2f}ms\n"
            f"  Classification: {metrics.classification_time_ms:.2f}ms\n"
            f"  Grab: {metrics.grab_time_ms:.2f}ms\n"
            f"  Render: {metrics.render_time_ms:.2f}ms\n"
            f"\nTick Stats:\n"
            f"  Processed: {metrics.processed_ticks}\n"
            f"  Skipped: {metrics.skipped_ticks} ({100 * metrics.skipped_ticks / max(1, total):.1f}%)\n"
        )
