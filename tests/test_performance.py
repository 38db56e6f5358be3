"""
Tests for Performance Module
=============================
"""

import pytest
import time
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pinch_drag.utils.performance import PerformanceMonitor, Timer


class TestTimer:
    """Test suite for Timer class."""

    def test_context_manager(self):
        with Timer("test") as t:
            time.sleep(0.05)

        assert t.elapsed >= 0.04
        assert t.elapsed_ms >= 40

    def test_elapsed_without_stop(self):
        timer = Timer("test")
        timer.start()
        time.sleep(0.02)

        assert timer.elapsed >= 0.015

    def test_not_started(self):
        assert Timer().elapsed == 0.0


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor class."""

    @pytest.fixture
    def monitor(self):
        return PerformanceMonitor(window_size=5)

    def test_processing_rate_from_timestamps(self, monitor):
        for i in range(5):
            monitor.tick_started(i * 0.05)
            monitor.tick_complete()

        assert monitor.processing_rate_hz == pytest.approx(20.0)

    def test_rate_needs_two_ticks(self, monitor):
        monitor.tick_started(1.0)
        monitor.tick_complete()

        assert monitor.processing_rate_hz == 0.0

    def test_stage_timing(self, monitor):
        with monitor.measure("detection"):
            time.sleep(0.01)

        assert monitor.stage_time_ms("detection") >= 9
        assert monitor.stage_time_ms("render") == 0.0

    def test_counters(self, monitor):
        monitor.tick_started(0.0)
        monitor.tick_complete()
        monitor.tick_skipped()
        monitor.tick_skipped()

        metrics = monitor.get_metrics()

        assert metrics.processed_ticks == 1
        assert metrics.skipped_ticks == 2

    def test_complete_without_start_ignored(self, monitor):
        monitor.tick_complete()

        assert monitor.processed_ticks == 0

    def test_report(self, monitor):
        monitor.tick_started(0.0)
        monitor.tick_complete()

        report = monitor.get_report()

        assert "Processing rate" in report
        assert "Processed: 1" in report


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
