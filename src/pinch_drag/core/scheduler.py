"""
Frame scheduler driving the pinch drag pipeline.

Runs the classify -> grab -> render cycle at a capped processing rate,
decoupled from the host tick cadence:

    host tick (60 Hz) --throttle--> FrameSource.read()
        -> LandmarkSource.detect()     (single in-flight await)
        -> PinchClassifier.classify()
        -> GrabStateMachine.update()   (mutates the ObjectRegistry)
        -> Renderer.render()

Everything after the landmark request runs synchronously inside the tick,
so no two ticks interleave. Cancelling stops further processing and
discards a landmark result that is still pending.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..control.grab_state_machine import GrabStateMachine
from ..recognition.pinch_classifier import PinchClassifier
from ..utils.performance import PerformanceMonitor
from .events import EventBus, Events
from .types import FrameSource, GrabTransition, LandmarkSource, PinchState, Renderer

logger = logging.getLogger(__name__)

_US_PER_SECOND = 1_000_000


def _to_us(seconds: float) -> int:
    """Whole microseconds, so interval comparisons are exact."""
    return int(round(seconds * _US_PER_SECOND))


@dataclass
class SchedulerConfig:
    """Processing cadence settings."""
    target_processing_rate_hz: float = 20.0
    host_tick_rate_hz: float = 60.0

    def __post_init__(self):
        if self.target_processing_rate_hz <= 0:
            raise ValueError(f"target_processing_rate_hz must be positive, got {self.target_processing_rate_hz}")
        if self.host_tick_rate_hz <= 0:
            raise ValueError(f"host_tick_rate_hz must be positive, got {self.host_tick_rate_hz}")

    @property
    def min_interval(self) -> float:
        """Minimum seconds between processed ticks."""
        return 1.0 / self.target_processing_rate_hz

    @property
    def min_interval_us(self) -> int:
        return _to_us(self.min_interval)

    @property
    def host_interval(self) -> float:
        return 1.0 / self.host_tick_rate_hz

    @classmethod
    def from_dict(cls, config: dict) -> "SchedulerConfig":
        """Create config from dictionary."""
        return cls(
            target_processing_rate_hz=float(config.get("target_processing_rate_hz", 20.0)),
            host_tick_rate_hz=float(config.get("host_tick_rate_hz", 60.0)),
        )


class TickResult:
    """Outcome of a single host tick."""

    __slots__ = (
        "timestamp", "processed", "throttled", "discarded",
        "hands", "pinch_states", "transition",
    )

    def __init__(self, timestamp: float):
        self.timestamp = timestamp
        self.processed = False
        self.throttled = False
        self.discarded = False
        self.hands: List = []
        self.pinch_states: List[PinchState] = []
        self.transition = GrabTransition.NONE

    def __repr__(self):
        return (f"TickResult(t={self.timestamp:.3f}, processed={self.processed}, "
                f"hands={len(self.hands)}, transition={self.transition.value})")


class FrameScheduler:
    """Throttled, cancellable driver for the pinch drag pipeline.

    The scheduler owns the grab state machine (and through it the object
    registry) for the lifetime of the view and passes it into every tick.
    """

    def __init__(
        self,
        landmark_source: LandmarkSource,
        frame_source: FrameSource,
        classifier: PinchClassifier,
        state_machine: GrabStateMachine,
        renderer: Renderer,
        config: Optional[SchedulerConfig] = None,
        event_bus: Optional[EventBus] = None,
        performance: Optional[PerformanceMonitor] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = landmark_source
        self._frames = frame_source
        self._classifier = classifier
        self._state_machine = state_machine
        self._renderer = renderer
        self.config = config or SchedulerConfig()
        self._bus = event_bus or EventBus()
        self._perf = performance or PerformanceMonitor()
        self._clock = clock

        self._started = False
        self._cancelled = False
        self._in_flight = False
        self._last_processed: Optional[float] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Initialize the landmark source. Nothing is processed before this completes.

        Raises:
            LandmarkSourceError: initialization failed; the scheduler stays stopped
        """
        if self._cancelled:
            raise RuntimeError("Scheduler was cancelled and cannot be restarted")
        if self._started:
            return
        logger.info("Initializing landmark source...")
        await self._source.initialize()
        self._started = True
        logger.info("Frame scheduler started (%.0f Hz processing, %.0f Hz host ticks)",
                    self.config.target_processing_rate_hz, self.config.host_tick_rate_hz)
        self._bus.emit(Events.SYSTEM_STARTED)

    async def run(self) -> None:
        """Start if needed, then tick at the host rate until cancelled."""
        await self.start()
        while not self._cancelled:
            await self.tick()
            await asyncio.sleep(self.config.host_interval)

    def cancel(self) -> None:
        """Stop ticking. A landmark result still in flight is discarded on arrival."""
        if self._cancelled:
            return
        self._cancelled = True
        self.reset()
        logger.info("Frame scheduler cancelled")
        self._bus.emit(Events.SYSTEM_SHUTDOWN)

    def reset(self, restore_positions: bool = False) -> None:
        """Release any active grab, announcing it, and optionally restore start positions."""
        session = self._state_machine.session
        position = None if session is None else self._state_machine.registry.get(session.object_id).position
        self._state_machine.reset(restore_positions=restore_positions)
        if session is not None:
            self._bus.emit(Events.OBJECT_RELEASED, object_id=session.object_id,
                           hand_index=session.hand_index, position=position)

    @property
    def is_running(self) -> bool:
        return self._started and not self._cancelled

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def last_processed_timestamp(self) -> Optional[float]:
        return self._last_processed

    @property
    def state_machine(self) -> GrabStateMachine:
        return self._state_machine

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self, now: Optional[float] = None) -> TickResult:
        """
        Handle one host tick.

        Args:
            now: Scheduler time in seconds (defaults to the clock)

        Returns:
            TickResult; ``processed`` is False for throttled, not-ready or
            cancelled ticks
        """
        now = self._clock() if now is None else now
        result = TickResult(now)

        if not self.is_running or self._in_flight:
            return result

        if (self._last_processed is not None
                and _to_us(now) - _to_us(self._last_processed) < self.config.min_interval_us):
            result.throttled = True
            self._perf.tick_skipped()
            return result

        frame = self._frames.read()
        if frame is None:
            # Video not ready yet; retry on the next host tick
            self._perf.tick_skipped()
            return result

        self._last_processed = now
        self._perf.tick_started(now)

        self._in_flight = True
        try:
            with self._perf.measure("detection"):
                hands = await self._source.detect(frame.rgb, int(now * 1000))
        finally:
            self._in_flight = False

        if self._cancelled:
            logger.debug("Discarding landmark result that arrived after cancellation")
            result.discarded = True
            self._bus.emit(Events.RESULT_DISCARDED, timestamp=now)
            return result

        self._process(result, hands or [], frame)
        self._perf.tick_complete()
        return result

    def _process(self, result: TickResult, hands: List, frame) -> None:
        result.hands = hands

        with self._perf.measure("classification"):
            result.pinch_states = self._classifier.classify(hands, frame.width, frame.height)

        session_before = self._state_machine.session
        with self._perf.measure("grab"):
            result.transition = self._state_machine.update(result.pinch_states)
        self._publish(result.transition, session_before)

        with self._perf.measure("render"):
            self._renderer.render(hands, self._state_machine.registry.snapshot(), frame=frame)

        result.processed = True
        self._bus.emit(Events.TICK_PROCESSED, timestamp=result.timestamp, hand_count=len(hands))

    def _publish(self, transition: GrabTransition, session_before) -> None:
        if transition is GrabTransition.GRABBED:
            session = self._state_machine.session
            self._bus.emit(Events.OBJECT_GRABBED, object_id=session.object_id,
                           hand_index=session.hand_index, offset=session.offset)
        elif transition is GrabTransition.MOVED:
            session = self._state_machine.session
            obj = self._state_machine.registry.get(session.object_id)
            self._bus.emit(Events.OBJECT_MOVED, object_id=obj.id, position=obj.position)
        elif transition is GrabTransition.RELEASED:
            obj = self._state_machine.registry.get(session_before.object_id)
            self._bus.emit(Events.OBJECT_RELEASED, object_id=obj.id,
                           hand_index=session_before.hand_index, position=obj.position)
