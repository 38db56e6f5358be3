"""Hand landmark types and source settings. The MediaPipe source lives in ``hand_detector``."""
from .landmarks import HandLandmarks, Landmark, LandmarkIndex, NUM_LANDMARKS
from .settings import HandDetectorConfig

__all__ = ["HandDetectorConfig", "HandLandmarks", "Landmark", "LandmarkIndex", "NUM_LANDMARKS"]
