"""Core types, event bus and frame scheduler."""
from .types import (
    GrabSession,
    GrabTransition,
    HitBox,
    LandmarkSourceError,
    PinchState,
    Point,
)

__all__ = [
    "GrabSession",
    "GrabTransition",
    "HitBox",
    "LandmarkSourceError",
    "PinchState",
    "Point",
]
