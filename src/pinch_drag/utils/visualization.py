"""
Visualization Module
=====================

OpenCV renderer for the pinch drag view: mirrored camera background, hand
landmarks, draggable object sprites and status overlays.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..capture.camera import Frame
from ..control.object_registry import DraggableObject
from ..detection.landmarks import HandLandmarks

logger = logging.getLogger(__name__)

FINGERTIPS = (4, 8, 12, 16, 20)


@dataclass
class VisualizerConfig:
    """Visualization settings."""
    window_name: str = "Pinch Drag"
    width: int = 640
    height: int = 480
    show_landmarks: bool = True
    show_connections: bool = True
    show_performance: bool = True
    mirror: bool = True
    assets_dir: str = "assets"
    sprite_size: Tuple[int, int] = (80, 80)

    # Colors (BGR format)
    landmark_color: Tuple[int, int, int] = (0, 0, 255)        # Red
    connection_color: Tuple[int, int, int] = (255, 255, 255)  # White
    text_color: Tuple[int, int, int] = (0, 255, 255)          # Yellow
    grabbed_color: Tuple[int, int, int] = (0, 200, 0)         # Green
    placeholder_color: Tuple[int, int, int] = (180, 120, 40)

    font_scale: float = 0.6
    font_thickness: int = 2

    @classmethod
    def from_dict(cls, config: dict) -> "VisualizerConfig":
        """Create config from dictionary."""
        colors = config.get("colors") or {}
        sprite = config.get("sprite_size") or {}
        return cls(
            window_name=config.get("window_name", "Pinch Drag"),
            width=config.get("width", 640),
            height=config.get("height", 480),
            show_landmarks=config.get("show_landmarks", True),
            show_connections=config.get("show_connections", True),
            show_performance=config.get("show_performance", True),
            mirror=config.get("mirror", True),
            assets_dir=config.get("assets_dir", "assets"),
            sprite_size=(int(sprite.get("width", 80)), int(sprite.get("height", 80))),
            landmark_color=tuple(colors.get("landmarks", [0, 0, 255])),
            connection_color=tuple(colors.get("connections", [255, 255, 255])),
            text_color=tuple(colors.get("text", [0, 255, 255])),
            grabbed_color=tuple(colors.get("grabbed", [0, 200, 0])),
            font_scale=config.get("font_scale", 0.6),
            font_thickness=config.get("font_thickness", 2),
        )


class Visualizer:
    """
    Renderer for the pinch drag view.

    ``render()`` composes a new canvas from the frame the landmarks were
    detected on and the object snapshot it is given; the application shows
    ``canvas``. The renderer never writes back into the registry or the
    grab state.

    Example:
        >>> viz = Visualizer(VisualizerConfig())
        >>> viz.render(hands, registry.snapshot(), frame=frame)
        >>> cv2.imshow(viz.config.window_name, viz.canvas)
    """

    # Hand connection pairs for drawing skeleton
    HAND_CONNECTIONS = [
        (0, 1), (1, 2), (2, 3), (3, 4),         # Thumb
        (0, 5), (5, 6), (6, 7), (7, 8),         # Index
        (5, 9), (9, 10), (10, 11), (11, 12),    # Middle
        (9, 13), (13, 14), (14, 15), (15, 16),  # Ring
        (13, 17), (17, 18), (18, 19), (19, 20), # Pinky
        (0, 17),                                # Palm base
    ]

    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()
        self._font = cv2.FONT_HERSHEY_SIMPLEX
        self._sprites: Dict[str, Optional[np.ndarray]] = {}
        self.canvas: np.ndarray = self._blank()
        self.status_lines: List[str] = []

    def render(self, hands: Sequence[HandLandmarks], objects: Sequence[DraggableObject],
               frame: Optional[Frame] = None) -> None:
        """Draw one view from the tick's frame, landmarks and object snapshot."""
        canvas = self._background(frame)
        if self.config.show_landmarks:
            self.draw_hands(canvas, hands)
        for obj in objects:
            self.draw_object(canvas, obj)
        if self.config.show_performance and self.status_lines:
            self.draw_status(canvas, self.status_lines)
        self.canvas = canvas

    def _blank(self) -> np.ndarray:
        return np.zeros((self.config.height, self.config.width, 3), dtype=np.uint8)

    def _background(self, frame: Optional[Frame]) -> np.ndarray:
        if frame is None:
            return self._blank()
        image = frame.image.copy()
        return cv2.flip(image, 1) if self.config.mirror else image

    def draw_hands(self, image: np.ndarray, hands: Sequence[HandLandmarks]) -> np.ndarray:
        """Draw all complete hands, mirrored to match the background."""
        height, width = image.shape[:2]
        for hand in hands:
            if not hand.is_complete:
                continue
            points = [lm.to_pixel(width, height, mirror=self.config.mirror) for lm in hand.landmarks]

            if self.config.show_connections:
                for start_idx, end_idx in self.HAND_CONNECTIONS:
                    cv2.line(image, points[start_idx], points[end_idx],
                             self.config.connection_color, 2)

            for i, pos in enumerate(points):
                radius = 7 if i in FINGERTIPS else 5
                cv2.circle(image, pos, radius, self.config.landmark_color, -1)
        return image

    def draw_object(self, image: np.ndarray, obj: DraggableObject) -> np.ndarray:
        """Draw an object's sprite at its top-left position."""
        sprite_w, sprite_h = self.config.sprite_size
        x, y = int(round(obj.x)), int(round(obj.y))

        sprite = self._sprite(obj.asset_ref)
        if sprite is not None:
            self._blit(image, sprite, x, y)
        else:
            cv2.rectangle(image, (x, y), (x + sprite_w, y + sprite_h),
                          self.config.placeholder_color, -1)
            cv2.putText(image, obj.id, (x + 4, y + sprite_h // 2),
                        self._font, 0.45, (255, 255, 255), 1)

        if obj.grabbed:
            cv2.rectangle(image, (x - 2, y - 2), (x + sprite_w + 2, y + sprite_h + 2),
                          self.config.grabbed_color, 4)
        return image

    def draw_status(self, image: np.ndarray, lines: Sequence[str]) -> np.ndarray:
        """Draw status text lines in the top-left corner."""
        x, y = 10, 25
        for line in lines:
            cv2.putText(image, line, (x, y), self._font, self.config.font_scale,
                        self.config.text_color, self.config.font_thickness)
            y += 25
        return image

    def draw_loading(self) -> np.ndarray:
        """Canvas shown while the hand model is loading."""
        canvas = self._blank()
        text = "Loading hand model..."
        size = cv2.getTextSize(text, self._font, 0.8, 2)[0]
        cv2.putText(canvas, text,
                    ((canvas.shape[1] - size[0]) // 2, (canvas.shape[0] + size[1]) // 2),
                    self._font, 0.8, (255, 255, 255), 2)
        self.canvas = canvas
        return canvas

    def _sprite(self, asset_ref: str) -> Optional[np.ndarray]:
        if not asset_ref:
            return None
        if asset_ref not in self._sprites:
            path = Path(asset_ref)
            if not path.is_absolute():
                path = Path(self.config.assets_dir) / path
            image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
            if image is None:
                logger.warning("Could not load sprite %s, drawing placeholder", path)
            else:
                image = cv2.resize(image, self.config.sprite_size, interpolation=cv2.INTER_AREA)
            self._sprites[asset_ref] = image
        return self._sprites[asset_ref]

    @staticmethod
    def _blit(image: np.ndarray, sprite: np.ndarray, x: int, y: int) -> None:
        """Paste sprite at (x, y), clipped to the image, alpha-blended if RGBA."""
        height, width = image.shape[:2]
        sh, sw = sprite.shape[:2]
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + sw, width), min(y + sh, height)
        if x0 >= x1 or y0 >= y1:
            return

        patch = sprite[y0 - y:y1 - y, x0 - x:x1 - x]
        region = image[y0:y1, x0:x1]
        if patch.ndim == 3 and patch.shape[2] == 4:
            alpha = patch[:, :, 3:4].astype(np.float32) / 255.0
            blended = alpha * patch[:, :, :3] + (1.0 - alpha) * region
            region[:] = blended.astype(np.uint8)
        elif patch.ndim == 2:
            region[:] = cv2.cvtColor(patch, cv2.COLOR_GRAY2BGR)
        else:
            region[:] = patch[:, :, :3]
