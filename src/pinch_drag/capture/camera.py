"""
Camera Capture Module
======================

Frame source for the scheduler. A background thread keeps pulling frames
from the device and only the newest one is kept, so a slow processing tick
never works through a backlog of stale images.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1  # driver-side queue length
    threaded: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 640),
            height=config.get("height", 480),
            fps=config.get("fps", 30),
            buffer_size=config.get("buffer_size", 1),
            threaded=config.get("threaded", True),
            warmup_frames=config.get("warmup_frames", 5),
        )


@dataclass
class Frame:
    """One captured image, BGR and unmirrored as the device delivers it."""
    image: np.ndarray

    @property
    def rgb(self) -> np.ndarray:
        """RGB copy for the landmark source."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]


class Camera:
    """
    OpenCV camera implementing the scheduler's frame source.

    ``read()`` yields None until a first frame exists; the scheduler reads
    that as "video not ready" and retries on its next host tick.

    Example:
        >>> camera = Camera(CameraConfig(device_id=1))
        >>> if camera.start():
        ...     frame = camera.read()
    """

    # Device properties applied on open, keyed by config attribute
    _DEVICE_PROPS = (
        (cv2.CAP_PROP_FRAME_WIDTH, "width"),
        (cv2.CAP_PROP_FRAME_HEIGHT, "height"),
        (cv2.CAP_PROP_FPS, "fps"),
        (cv2.CAP_PROP_BUFFERSIZE, "buffer_size"),
    )

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._device: Optional[cv2.VideoCapture] = None
        self._active = False
        self._pump_thread: Optional[threading.Thread] = None
        self._newest: Optional[Frame] = None
        self._newest_lock = threading.Lock()

    def start(self) -> bool:
        """Open the device and begin capturing. Returns False if it cannot be opened."""
        device = cv2.VideoCapture(self.config.device_id)
        if not device.isOpened():
            logger.error("Failed to open camera device %s", self.config.device_id)
            device.release()
            return False

        for prop, attr in self._DEVICE_PROPS:
            device.set(prop, getattr(self.config, attr))
        logger.info("Camera %s opened at %dx%d", self.config.device_id,
                    int(device.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(device.get(cv2.CAP_PROP_FRAME_HEIGHT)))

        # Exposure and white balance settle over the first frames
        for _ in range(self.config.warmup_frames):
            device.read()

        self._device = device
        self._active = True
        if self.config.threaded:
            self._pump_thread = threading.Thread(target=self._pump, name="camera", daemon=True)
            self._pump_thread.start()
        return True

    def stop(self) -> None:
        """Stop capturing and release the device."""
        self._active = False
        if self._pump_thread is not None:
            self._pump_thread.join(timeout=1.0)
            self._pump_thread = None
        if self._device is not None:
            self._device.release()
            self._device = None
        with self._newest_lock:
            self._newest = None
        logger.info("Camera stopped")

    def read(self) -> Optional[Frame]:
        """Newest frame, or None while nothing has been captured yet."""
        if not self._active:
            return None
        if not self.config.threaded:
            return self._grab()
        with self._newest_lock:
            return self._newest

    def _grab(self) -> Optional[Frame]:
        ok, image = self._device.read()
        if not ok or image is None:
            logger.warning("Camera %s returned no frame", self.config.device_id)
            return None
        return Frame(image=image)

    def _pump(self) -> None:
        while self._active:
            frame = self._grab()
            if frame is None:
                time.sleep(0.01)
                continue
            with self._newest_lock:
                self._newest = frame

    @property
    def is_running(self) -> bool:
        return self._active
