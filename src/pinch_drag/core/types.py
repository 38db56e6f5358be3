"""
Shared domain types for the pinch drag system.

Centralizes the small value types passed between the classifier, the
grab state machine and the scheduler, plus the protocols the scheduler
expects from its external collaborators (landmark source, frame source,
renderer).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Protocol, Sequence, runtime_checkable


class LandmarkSourceError(RuntimeError):
    """Fatal landmark source failure (model missing, backend init failed)."""


# =============================================================================
# Geometry
# =============================================================================

class Point(NamedTuple):
    """A 2D point in pixel space."""
    x: float
    y: float

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)


@dataclass(frozen=True)
class HitBox:
    """Axis-aligned grab area measured from an object's top-left corner."""
    width: float = 80.0
    height: float = 80.0

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Hit box must have positive size, got {self.width}x{self.height}")

    def contains(self, origin: Point, point: Point) -> bool:
        """Half-open containment: [x, x + w) x [y, y + h)."""
        return (origin.x <= point.x < origin.x + self.width
                and origin.y <= point.y < origin.y + self.height)


# =============================================================================
# Per-tick and cross-tick state
# =============================================================================

@dataclass
class PinchState:
    """Pinch classification of one hand for one tick."""
    hand_index: int
    pinching: bool
    point: Optional[Point]
    distance: float = 0.0

    def __repr__(self):
        return (f"PinchState(hand={self.hand_index}, pinching={self.pinching}, "
                f"point={self.point}, d={self.distance:.3f})")


@dataclass(frozen=True)
class GrabSession:
    """Which hand owns which object, and the fixed pinch-to-corner offset."""
    hand_index: int
    object_id: str
    offset: Point


class GrabTransition(Enum):
    """Outcome of one grab state machine update."""
    NONE = "none"
    GRABBED = "grabbed"
    MOVED = "moved"
    RELEASED = "released"


# =============================================================================
# Collaborator protocols
# =============================================================================

@runtime_checkable
class LandmarkSource(Protocol):
    """Hand keypoint inference engine."""

    async def initialize(self) -> None:
        """One-time setup. Raises LandmarkSourceError on failure."""
        ...

    async def detect(self, image: Any, timestamp_ms: int) -> List[Any]:
        """Return 0..N hand landmark sets for the frame (empty if no hands)."""
        ...


@runtime_checkable
class FrameSource(Protocol):
    """Supplies the latest video frame, or None while video is not ready.

    Frames expose ``rgb`` (H, W, 3 array), ``width`` and ``height``.
    """

    def read(self) -> Optional[Any]:
        ...


@runtime_checkable
class Renderer(Protocol):
    """Pure side-effecting consumer of landmarks and object positions."""

    def render(self, hands: Sequence[Any], objects: Sequence[Any], frame: Any = None) -> None:
        ...
