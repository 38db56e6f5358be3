"""Object registry and grab arbitration."""
from .grab_state_machine import GrabStateMachine, GrabStateMachineConfig, TieBreak
from .object_registry import DraggableObject, ObjectRegistry

__all__ = [
    "DraggableObject",
    "GrabStateMachine",
    "GrabStateMachineConfig",
    "ObjectRegistry",
    "TieBreak",
]
