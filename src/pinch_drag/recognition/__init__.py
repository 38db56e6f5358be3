"""Pinch gesture recognition."""
from .pinch_classifier import PinchClassifier, PinchClassifierConfig

__all__ = ["PinchClassifier", "PinchClassifierConfig"]
