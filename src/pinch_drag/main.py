"""
Pinch Drag - Main Application
==============================

Entry point for the pinch-to-drag demo. Wires the camera, the MediaPipe
landmark source, the pinch classifier, the grab state machine and the
OpenCV renderer into a frame scheduler and shows the result in a window.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

import cv2

from .capture.camera import Camera
from .control.grab_state_machine import GrabStateMachine
from .control.object_registry import ObjectRegistry
from .core.events import EventBus
from .core.scheduler import FrameScheduler
from .core.types import LandmarkSourceError
from .detection.hand_detector import HandDetector
from .recognition.pinch_classifier import PinchClassifier
from .utils.config import AppConfig, create_app_config, load_config
from .utils.logger import GrabLogger, setup_logging
from .utils.performance import PerformanceMonitor
from .utils.visualization import Visualizer

logger = logging.getLogger(__name__)


class PinchDragApplication:
    """
    Main application class for the pinch drag demo.

    Coordinates all components:
    - Camera capture
    - Hand landmark source (MediaPipe)
    - Frame scheduler (pinch classification, grab state, rendering)
    - Display window and keyboard controls
    """

    def __init__(self, config: AppConfig, camera=None, detector=None):
        self.config = config
        self.event_bus = EventBus()

        self.camera = camera or Camera(config.camera)
        self.detector = detector or HandDetector(config.mediapipe)
        self.registry = ObjectRegistry(config.objects)
        self.state_machine = GrabStateMachine(self.registry, config.grab)
        self.visualizer = Visualizer(config.visualization)
        self.performance = PerformanceMonitor()
        self.scheduler = FrameScheduler(
            landmark_source=self.detector,
            frame_source=self.camera,
            classifier=PinchClassifier(config.recognition),
            state_machine=self.state_machine,
            renderer=self.visualizer,
            config=config.scheduler,
            event_bus=self.event_bus,
            performance=self.performance,
        )
        self.grab_logger = GrabLogger(self.event_bus)

    async def run(self) -> int:
        """
        Run until the user quits.

        Returns:
            Process exit code (0 on normal shutdown)
        """
        if not self.camera.start():
            logger.error("Failed to start camera")
            return 1

        self.grab_logger.attach()
        self._show(self.visualizer.draw_loading())

        try:
            await self.scheduler.start()
        except LandmarkSourceError as e:
            logger.error("Hand landmark source failed to start: %s", e)
            self.stop()
            return 1

        self._install_signal_handlers()

        run_task = asyncio.ensure_future(self.scheduler.run())
        try:
            await self._display_loop(run_task)
            await run_task
        except Exception:
            logger.exception("Processing stopped on error")
            return 1
        finally:
            # The detector must not be closed under an in-flight landmark request
            self.scheduler.cancel()
            await asyncio.wait({run_task})
            self.stop()
        return 0

    async def _display_loop(self, run_task: "asyncio.Future") -> None:
        """Show the latest canvas and handle keys while the scheduler runs."""
        interval = self.config.scheduler.host_interval
        while not run_task.done():
            self.visualizer.status_lines = [
                f"Processing: {self.performance.processing_rate_hz:.1f} Hz",
                f"Detection: {self.performance.stage_time_ms('detection'):.1f} ms",
            ]
            key = self._show(self.visualizer.canvas)
            if key in (ord("q"), 27):
                logger.info("Quit requested")
                self.scheduler.cancel()
            elif key == ord("r"):
                self.scheduler.reset(restore_positions=True)
                logger.info("Objects reset to their start positions")
            await asyncio.sleep(interval)

    def _show(self, image) -> int:
        cv2.imshow(self.config.visualization.window_name, image)
        return cv2.waitKey(1) & 0xFF

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except NotImplementedError:
                # Windows event loops
                signal.signal(sig, lambda signum, frame: self._on_signal(signum))

    def _on_signal(self, signum) -> None:
        logger.info("Received signal %s, shutting down...", signum)
        self.scheduler.cancel()

    def stop(self) -> None:
        """Stop all components."""
        logger.info("Stopping Pinch Drag...")
        self.scheduler.cancel()
        self.grab_logger.detach()
        self.camera.stop()
        self.detector.close()
        cv2.destroyAllWindows()
        logger.info("Grabs this session: %d", self.grab_logger.total_grabs)
        logger.info("\n%s", self.performance.get_report())


def build_config(args: argparse.Namespace) -> AppConfig:
    """Load the YAML config and apply command line overrides."""
    config_dict = load_config(args.config)

    overrides = (
        ("camera", "device_id", args.camera),
        ("scheduler", "target_processing_rate_hz", args.rate),
        ("recognition", "pinch_threshold", args.threshold),
    )
    for section, key, value in overrides:
        if value is None:
            continue
        current = config_dict.get(section) or {}
        if not isinstance(current, dict):
            raise ValueError(f"Config section '{section}' must be a mapping, got {type(current).__name__}")
        config_dict[section] = dict(current, **{key: value})

    return create_app_config(config_dict)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pinch-to-drag object manipulation from a webcam",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keyboard Controls:
  q/ESC     - Quit
  r         - Reset objects to their start positions

Examples:
  pinch-drag
  pinch-drag --camera 1 --rate 30
  pinch-drag --config custom_config.yaml --debug
        """
    )
    parser.add_argument("--config", "-c", default=None,
                        help="Path to configuration file (default: config/config.yaml)")
    parser.add_argument("--debug", "-d", action="store_true",
                        help="Enable debug logging")
    parser.add_argument("--camera", type=int, default=None,
                        help="Camera device index")
    parser.add_argument("--rate", type=float, default=None,
                        help="Target processing rate in Hz")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Pinch distance threshold (normalized)")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        app_config = build_config(args)
    except ValueError as e:
        setup_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        return 2

    setup_logging(
        "DEBUG" if args.debug else app_config.logging.level,
        log_file=app_config.logging.file,
        max_size_mb=app_config.logging.max_size_mb,
        backup_count=app_config.logging.backup_count,
    )

    app = PinchDragApplication(app_config)
    return asyncio.run(app.run())


if __name__ == "__main__":
    sys.exit(main())
