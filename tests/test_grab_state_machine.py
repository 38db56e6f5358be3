"""
Tests for Grab State Machine
=============================
"""

import random

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pinch_drag.control.grab_state_machine import (
    GrabStateMachine,
    GrabStateMachineConfig,
    TieBreak,
)
from pinch_drag.control.object_registry import DraggableObject, ObjectRegistry
from pinch_drag.core.types import GrabTransition, HitBox, PinchState, Point


def pinch(hand_index, x, y, pinching=True) -> PinchState:
    return PinchState(hand_index=hand_index, pinching=pinching, point=Point(x, y))


@pytest.fixture
def registry():
    return ObjectRegistry([
        DraggableObject("banana", x=100, y=100),
        DraggableObject("strawberry", x=300, y=150),
    ])


@pytest.fixture
def machine(registry):
    return GrabStateMachine(registry)


class TestGrabStateMachineConfig:
    """Test suite for GrabStateMachineConfig."""

    def test_defaults(self):
        config = GrabStateMachineConfig()

        assert config.hit_box == HitBox(80, 80)
        assert config.tie_break is TieBreak.LOWEST_INDEX

    def test_from_dict(self):
        config = GrabStateMachineConfig.from_dict({
            "hit_box": {"width": 120, "height": 60},
            "tie_break": "HIGHEST_INDEX",
        })

        assert config.hit_box == HitBox(120, 60)
        assert config.tie_break is TieBreak.HIGHEST_INDEX

    def test_unknown_tie_break(self):
        with pytest.raises(ValueError):
            GrabStateMachineConfig.from_dict({"tie_break": "random"})

    def test_invalid_hit_box(self):
        with pytest.raises(ValueError):
            GrabStateMachineConfig.from_dict({"hit_box": {"width": 0}})

    def test_null_hit_box_uses_default(self):
        assert GrabStateMachineConfig.from_dict({"hit_box": None}).hit_box == HitBox(80, 80)

    @pytest.mark.parametrize("value", [None, 3, ["lowest_index"]])
    def test_non_string_tie_break(self, value):
        with pytest.raises(ValueError):
            GrabStateMachineConfig.from_dict({"tie_break": value})


class TestGrab:
    """Idle -> Grabbing transitions."""

    def test_grab_sets_offset(self, machine, registry):
        transition = machine.update([pinch(0, 120, 120)])

        assert transition is GrabTransition.GRABBED
        assert machine.session.object_id == "banana"
        assert machine.session.hand_index == 0
        assert machine.session.offset == Point(20, 20)
        assert registry.get("banana").grabbed

    def test_grab_does_not_move_object(self, machine, registry):
        machine.update([pinch(0, 150, 170)])

        assert registry.get("banana").position == Point(100, 100)

    def test_pinch_over_empty_space(self, machine, registry):
        transition = machine.update([pinch(0, 10, 10)])

        assert transition is GrabTransition.NONE
        assert machine.is_idle
        assert registry.grabbed_objects() == []

    def test_open_hand_over_object_does_not_grab(self, machine):
        assert machine.update([pinch(0, 120, 120, pinching=False)]) is GrabTransition.NONE
        assert machine.is_idle

    def test_no_hands_while_idle(self, machine, registry):
        before = registry.snapshot()

        assert machine.update([]) is GrabTransition.NONE
        assert registry.snapshot() == before

    def test_hit_box_is_half_open(self, machine):
        # Right and bottom edges are outside
        assert machine.update([pinch(0, 180, 120)]) is GrabTransition.NONE
        assert machine.update([pinch(0, 120, 180)]) is GrabTransition.NONE
        # Top-left corner is inside
        assert machine.update([pinch(0, 100, 100)]) is GrabTransition.GRABBED

    def test_first_object_in_order_wins_overlap(self):
        registry = ObjectRegistry([
            DraggableObject("under", x=0, y=0),
            DraggableObject("over", x=40, y=40),
        ])
        machine = GrabStateMachine(registry)

        machine.update([pinch(0, 50, 50)])

        assert machine.session.object_id == "under"

    def test_custom_hit_box(self, registry):
        machine = GrabStateMachine(registry, GrabStateMachineConfig(hit_box=HitBox(200, 200)))

        assert machine.update([pinch(0, 250, 250)]) is GrabTransition.GRABBED


class TestTieBreak:
    """Several hands pinching in the same tick."""

    def test_lowest_index_wins(self, machine):
        machine.update([pinch(0, 120, 120), pinch(1, 130, 130)])

        assert machine.session.hand_index == 0
        assert machine.session.offset == Point(20, 20)

    def test_highest_index_wins(self, registry):
        machine = GrabStateMachine(registry, GrabStateMachineConfig(tie_break=TieBreak.HIGHEST_INDEX))

        machine.update([pinch(0, 120, 120), pinch(1, 130, 130)])

        assert machine.session.hand_index == 1
        assert machine.session.offset == Point(30, 30)

    def test_winner_missing_object_does_not_fall_back(self, machine):
        # Lowest hand pinches empty space; the other hand is not tried
        transition = machine.update([pinch(0, 10, 10), pinch(1, 120, 120)])

        assert transition is GrabTransition.NONE
        assert machine.is_idle

    def test_other_hand_ignored_while_grabbing(self, machine, registry):
        machine.update([pinch(0, 120, 120), pinch(1, 130, 130)])

        # Hand 1 moves over the strawberry; hand 0 keeps dragging
        machine.update([pinch(0, 140, 150), pinch(1, 310, 160)])

        assert machine.session.hand_index == 0
        assert registry.get("banana").position == Point(120, 130)
        assert not registry.get("strawberry").grabbed


class TestDragAndRelease:
    """Grabbing -> Grabbing and Grabbing -> Idle transitions."""

    def test_drag_keeps_offset(self, machine, registry):
        machine.update([pinch(0, 120, 120)])

        transition = machine.update([pinch(0, 140, 150)])

        assert transition is GrabTransition.MOVED
        assert registry.get("banana").position == Point(120, 130)

    def test_drag_can_leave_the_hit_box(self, machine, registry):
        machine.update([pinch(0, 120, 120)])

        machine.update([pinch(0, 500, 400)])

        assert registry.get("banana").position == Point(480, 380)

    def test_release_on_open_hand_freezes_position(self, machine, registry):
        machine.update([pinch(0, 120, 120)])
        machine.update([pinch(0, 140, 150)])

        transition = machine.update([pinch(0, 300, 300, pinching=False)])

        assert transition is GrabTransition.RELEASED
        assert machine.is_idle
        assert registry.get("banana").position == Point(120, 130)
        assert not registry.get("banana").grabbed

    def test_release_when_hand_lost(self, machine, registry):
        machine.update([pinch(0, 120, 120)])

        assert machine.update([]) is GrabTransition.RELEASED
        assert registry.grabbed_objects() == []

    def test_owner_index_missing_releases(self, machine):
        machine.update([pinch(0, 120, 120)])

        # Only another hand index is pinching now
        assert machine.update([pinch(1, 120, 120)]) is GrabTransition.RELEASED

    def test_regrab_after_release(self, machine):
        machine.update([pinch(0, 120, 120)])
        machine.update([])

        assert machine.update([pinch(1, 310, 160)]) is GrabTransition.GRABBED
        assert machine.session.object_id == "strawberry"


class TestReset:
    """Test suite for GrabStateMachine.reset()."""

    def test_reset_releases(self, machine, registry):
        machine.update([pinch(0, 120, 120)])

        machine.reset()

        assert machine.is_idle
        assert registry.grabbed_objects() == []

    def test_reset_keeps_positions_by_default(self, machine, registry):
        machine.update([pinch(0, 120, 120)])
        machine.update([pinch(0, 200, 200)])

        machine.reset()

        assert registry.get("banana").position == Point(180, 180)

    def test_reset_restores_positions(self, machine, registry):
        machine.update([pinch(0, 120, 120)])
        machine.update([pinch(0, 200, 200)])

        machine.reset(restore_positions=True)

        assert registry.get("banana").position == Point(100, 100)


class TestRandomSequences:
    """Randomized tick sequences."""

    @pytest.mark.parametrize("seed", range(5))
    def test_single_owner_and_exact_offset(self, seed):
        rng = random.Random(seed)
        registry = ObjectRegistry([
            DraggableObject("a", x=0, y=0),
            DraggableObject("b", x=60, y=60),
            DraggableObject("c", x=200, y=100),
        ])
        machine = GrabStateMachine(registry)

        for _ in range(300):
            states = [
                pinch(i, rng.randint(0, 320), rng.randint(0, 240), pinching=rng.random() < 0.7)
                for i in range(rng.randint(0, 2))
            ]
            transition = machine.update(states)

            assert len(registry.grabbed_objects()) <= 1
            if transition is GrabTransition.MOVED:
                session = machine.session
                point = pinching_points(states)[session.hand_index]
                assert registry.get(session.object_id).position == point - session.offset


def pinching_points(states):
    return {s.hand_index: s.point for s in states if s.pinching}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
