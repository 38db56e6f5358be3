"""
Grab State Machine
===================

Single-owner grab arbitration. At most one hand holds at most one object
at any time; the session (owning hand, object, offset) survives across
ticks while that hand keeps pinching.

States:
    Idle      - no session
    Grabbing  - session(hand_index, object_id, offset)

Transitions per tick, given the pinching hands of the tick:
    Idle     -> Grabbing : a pinching hand (tie-break) lands inside an
                           ungrabbed object's hit box
    Grabbing -> Grabbing : owning hand still pinching; object follows it
    Grabbing -> Idle     : owning hand no longer pinching or not detected
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence

from ..core.types import GrabSession, GrabTransition, HitBox, PinchState, Point
from ..recognition.pinch_classifier import PinchClassifier
from .object_registry import DraggableObject, ObjectRegistry

logger = logging.getLogger(__name__)


class TieBreak(Enum):
    """Which pinching hand may start a grab when several pinch at once."""
    LOWEST_INDEX = "lowest_index"
    HIGHEST_INDEX = "highest_index"

    @classmethod
    def from_string(cls, name: str) -> "TieBreak":
        if not isinstance(name, str):
            raise ValueError(f"tie_break must be a string, got {name!r}")
        try:
            return cls(name.lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown tie_break {name!r} (expected one of: {valid})") from None


@dataclass
class GrabStateMachineConfig:
    """Grab arbitration settings."""
    hit_box: HitBox = field(default_factory=HitBox)
    tie_break: TieBreak = TieBreak.LOWEST_INDEX

    @classmethod
    def from_dict(cls, config: dict) -> "GrabStateMachineConfig":
        """Create config from dictionary."""
        box = config.get("hit_box") or {}
        return cls(
            hit_box=HitBox(
                width=float(box.get("width", 80)),
                height=float(box.get("height", 80)),
            ),
            tie_break=TieBreak.from_string(config.get("tie_break", "lowest_index")),
        )


class GrabStateMachine:
    """
    Arbitrates grabs over an ObjectRegistry.

    The state machine is the registry's only writer. It runs once per
    processed tick and is not re-entrant.

    Example:
        >>> machine = GrabStateMachine(registry)
        >>> transition = machine.update(classifier.classify(hands, w, h))
        >>> if transition is GrabTransition.GRABBED:
        ...     print(machine.session)
    """

    def __init__(self, registry: ObjectRegistry, config: Optional[GrabStateMachineConfig] = None):
        self.registry = registry
        self.config = config or GrabStateMachineConfig()
        self._session: Optional[GrabSession] = None

    @property
    def session(self) -> Optional[GrabSession]:
        return self._session

    @property
    def is_idle(self) -> bool:
        return self._session is None

    def update(self, pinch_states: Sequence[PinchState]) -> GrabTransition:
        """
        Advance the state machine by one tick.

        Args:
            pinch_states: Classifier output for this tick (may be empty)

        Returns:
            The transition taken
        """
        candidates = PinchClassifier.candidates(pinch_states)

        if self._session is None:
            return self._try_grab(candidates)

        point = candidates.get(self._session.hand_index)
        if point is None:
            self._release()
            return GrabTransition.RELEASED

        position = point - self._session.offset
        self.registry.set_position(self._session.object_id, position.x, position.y)
        return GrabTransition.MOVED

    def reset(self, restore_positions: bool = False) -> None:
        """Release any active grab; optionally move objects back to their start."""
        if self._session is not None:
            self._release()
        if restore_positions:
            for obj in self.registry:
                start = self.registry.start_position(obj.id)
                self.registry.set_position(obj.id, start.x, start.y)
            logger.info("Object positions restored")

    def _try_grab(self, candidates: Dict[int, Point]) -> GrabTransition:
        if not candidates:
            return GrabTransition.NONE

        if self.config.tie_break is TieBreak.LOWEST_INDEX:
            hand_index = min(candidates)
        else:
            hand_index = max(candidates)
        point = candidates[hand_index]

        target = self._hit_test(point)
        if target is None:
            return GrabTransition.NONE

        self.registry.set_grabbed(target.id, True)
        self._session = GrabSession(
            hand_index=hand_index,
            object_id=target.id,
            offset=point - target.position,
        )
        logger.info("Object %s grabbed by hand %d", target.id, hand_index)
        return GrabTransition.GRABBED

    def _hit_test(self, point: Point) -> Optional[DraggableObject]:
        for obj in self.registry:
            if not obj.grabbed and self.config.hit_box.contains(obj.position, point):
                return obj
        return None

    def _release(self) -> None:
        object_id = self._session.object_id
        self.registry.set_grabbed(object_id, False)
        self._session = None
        logger.info("Object %s released", object_id)
