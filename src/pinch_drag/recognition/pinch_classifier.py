"""
Pinch Gesture Classifier
=========================

Turns the hands detected in one frame into per-hand pinch states.
A hand is pinching when its thumb tip and index fingertip are closer than
a normalized 3D distance threshold; the pinch point is the index fingertip,
mirrored horizontally to match the mirrored preview.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from ..core.types import PinchState, Point
from ..detection.landmarks import HandLandmarks, LandmarkIndex

logger = logging.getLogger(__name__)


@dataclass
class PinchClassifierConfig:
    """Pinch classifier configuration."""
    # Thumb-index distance (normalized) below which a hand is pinching
    pinch_threshold: float = 0.08
    # Mirror the x axis of the pinch point (selfie view)
    mirror: bool = True

    def __post_init__(self):
        if self.pinch_threshold <= 0:
            raise ValueError(f"pinch_threshold must be positive, got {self.pinch_threshold}")

    @classmethod
    def from_dict(cls, config: dict) -> "PinchClassifierConfig":
        """Create config from dictionary."""
        return cls(
            pinch_threshold=config.get("pinch_threshold", 0.08),
            mirror=config.get("mirror", True),
        )


class PinchClassifier:
    """
    Stateless per-tick pinch classifier.

    Each output state keeps the hand's position in the input list as its
    ``hand_index``. Hands with fewer than 21 keypoints are skipped for the
    tick, so indices in the output may have gaps; an empty input always
    yields an empty output.

    Example:
        >>> classifier = PinchClassifier()
        >>> states = classifier.classify(hands, 640, 480)
        >>> grabbing = classifier.candidates(states)
    """

    def __init__(self, config: PinchClassifierConfig = None):
        self.config = config or PinchClassifierConfig()

    def classify(
        self,
        hands: Sequence[HandLandmarks],
        frame_width: int,
        frame_height: int,
    ) -> List[PinchState]:
        """
        Classify every hand of the tick.

        Args:
            hands: Landmark sets for this tick, in detector order
            frame_width: Frame width in pixels
            frame_height: Frame height in pixels

        Returns:
            One PinchState per well-formed hand, in input order
        """
        states = []
        for hand_index, hand in enumerate(hands):
            if not hand.is_complete:
                logger.debug("Skipping hand %d: %d landmarks", hand_index, len(hand.landmarks))
                continue
            states.append(self._classify_hand(hand_index, hand, frame_width, frame_height))
        return states

    def _classify_hand(
        self,
        hand_index: int,
        hand: HandLandmarks,
        frame_width: int,
        frame_height: int,
    ) -> PinchState:
        distance = hand.distance(LandmarkIndex.THUMB_TIP, LandmarkIndex.INDEX_TIP)
        pinching = distance < self.config.pinch_threshold

        index_tip = hand.get(LandmarkIndex.INDEX_TIP)
        x = (1.0 - index_tip.x) if self.config.mirror else index_tip.x
        point = Point(x * frame_width, index_tip.y * frame_height)

        if pinching:
            logger.debug("Pinch on hand %d (distance %.3f) at (%.0f, %.0f)",
                         hand_index, distance, point.x, point.y)

        return PinchState(
            hand_index=hand_index,
            pinching=pinching,
            point=point,
            distance=distance,
        )

    @staticmethod
    def candidates(states: Sequence[PinchState]) -> Dict[int, Point]:
        """Pinching hands of a tick, keyed by hand index."""
        return {
            state.hand_index: state.point
            for state in states
            if state.pinching and state.point is not None
        }
