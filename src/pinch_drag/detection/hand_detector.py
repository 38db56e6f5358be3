"""
Hand Landmark Source - MediaPipe Tasks API
===========================================

Wraps the MediaPipe HandLandmarker (Tasks API, VIDEO running mode) behind
the async landmark source interface the frame scheduler drives: a one-time
``initialize()`` and a single-flight ``detect()`` that returns one
HandLandmarks per detected hand.
"""

import asyncio
import logging
import urllib.request
from pathlib import Path
from typing import List, Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from ..core.types import LandmarkSourceError
from ..utils.logger import log_timing
from ..utils.performance import Timer
from .landmarks import HandLandmarks, Landmark
from .settings import DEFAULT_MODEL_PATH, HandDetectorConfig

logger = logging.getLogger(__name__)


@log_timing
def download_model(url: str, save_path: Path) -> bool:
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        logger.info("Model already exists at %s", save_path)
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading hand landmarker model to %s...", save_path)
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete!")
        return True
    except OSError as e:
        logger.error("Failed to download model: %s", e)
        return False


class HandDetector:
    """
    Landmark source backed by MediaPipe HandLandmarker.

    Inference runs in the event loop's default executor so that each
    ``detect()`` is a single suspend/resume point for the scheduler.
    Only one call may be outstanding at a time.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> await detector.initialize()
        >>> hands = await detector.detect(rgb_image, timestamp_ms)
        >>> detector.close()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._last_timestamp_ms = -1
        self._busy = False

    @property
    def is_ready(self) -> bool:
        return self._landmarker is not None

    async def initialize(self) -> None:
        """Fetch the model if needed and build the landmarker.

        Raises:
            LandmarkSourceError: model unavailable or backend failed to start
        """
        if self._landmarker is not None:
            return
        loop = asyncio.get_running_loop()
        with Timer("model load") as t:
            self._landmarker = await loop.run_in_executor(None, self._create_landmarker)
        logger.info("HandLandmarker initialized in %.0fms (max hands: %d, delegate: %s)",
                    t.elapsed_ms, self.config.max_num_hands, self.config.delegate)

    def _create_landmarker(self) -> "vision.HandLandmarker":
        model_path = Path(self.config.model_path or DEFAULT_MODEL_PATH)

        if not model_path.exists():
            if not download_model(self.config.model_url, model_path):
                raise LandmarkSourceError(f"Could not obtain hand landmarker model at {model_path}")

        delegate = (python.BaseOptions.Delegate.GPU
                    if self.config.delegate.lower() == "gpu"
                    else python.BaseOptions.Delegate.CPU)
        base_options = python.BaseOptions(model_asset_path=str(model_path), delegate=delegate)

        options = vision.HandLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self.config.max_num_hands,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_hand_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )

        try:
            return vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise LandmarkSourceError(f"Failed to initialize HandLandmarker: {e}") from e

    async def detect(self, image: np.ndarray, timestamp_ms: int) -> List[HandLandmarks]:
        """
        Detect hands in the given image.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Monotonic timestamp in milliseconds

        Returns:
            List of HandLandmarks, one per detected hand (empty if none)
        """
        if self._landmarker is None:
            raise LandmarkSourceError("HandLandmarker not initialized. Call initialize() first.")
        if self._busy:
            raise RuntimeError("A landmark request is already in flight")

        # VIDEO mode rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        self._busy = True
        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, self._detect_sync, image, timestamp_ms)
        finally:
            self._busy = False

        return self._to_hands(result)

    def _detect_sync(self, image: np.ndarray, timestamp_ms: int):
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image))
        return self._landmarker.detect_for_video(mp_image, timestamp_ms)

    @staticmethod
    def _to_hands(result) -> List[HandLandmarks]:
        hands = []
        for i, hand_landmarks in enumerate(result.hand_landmarks):
            handedness = "Right"
            confidence = 0.0
            if result.handedness and len(result.handedness) > i:
                handedness = result.handedness[i][0].category_name
                confidence = result.handedness[i][0].score

            hands.append(HandLandmarks(
                landmarks=[Landmark(x=lm.x, y=lm.y, z=lm.z) for lm in hand_landmarks],
                handedness=handedness,
                confidence=confidence,
            ))
        return hands

    def close(self) -> None:
        """Release resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        logger.info("HandLandmarker stopped")
