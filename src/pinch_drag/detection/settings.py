"""Hand landmark source settings (importable without MediaPipe)."""

from dataclasses import dataclass
from pathlib import Path

# Model download URL
HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent.parent / "models" / "hand_landmarker.task"


@dataclass
class HandDetectorConfig:
    """Configuration for the hand landmark source."""
    model_path: str = ""
    model_url: str = HAND_LANDMARKER_MODEL_URL
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    delegate: str = "cpu"  # cpu or gpu

    def __post_init__(self):
        if not isinstance(self.delegate, str) or self.delegate.lower() not in ("cpu", "gpu"):
            raise ValueError(f"delegate must be 'cpu' or 'gpu', got {self.delegate!r}")
        if self.max_num_hands < 1:
            raise ValueError(f"max_num_hands must be at least 1, got {self.max_num_hands}")

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", ""),
            model_url=d.get("model_url", HAND_LANDMARKER_MODEL_URL),
            max_num_hands=d.get("max_num_hands", 2),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
            delegate=d.get("delegate", "cpu"),
        )
