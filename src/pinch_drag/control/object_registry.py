"""
Draggable object registry.

Passive ordered store of the on-screen objects. Insertion order is the
hit-test priority. The registry does not arbitrate grabs; the grab state
machine is its only writer.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from ..core.types import Point

logger = logging.getLogger(__name__)


@dataclass
class DraggableObject:
    """An on-screen object that can be grabbed and dragged."""
    id: str
    asset_ref: str = ""
    x: float = 0.0  # top-left, pixels
    y: float = 0.0
    grabbed: bool = False

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    @classmethod
    def from_dict(cls, d: dict) -> "DraggableObject":
        """Create an object from a config entry ({id, asset_ref, x, y})."""
        if not isinstance(d, dict):
            raise ValueError(f"Object entry must be a mapping, got {d!r}")
        if "id" not in d:
            raise ValueError(f"Object entry without id: {d!r}")
        return cls(
            id=str(d["id"]),
            asset_ref=d.get("asset_ref", ""),
            x=float(d.get("x", 0.0)),
            y=float(d.get("y", 0.0)),
        )


class ObjectRegistry:
    """Ordered collection of DraggableObject, addressed by id."""

    def __init__(self, objects: Optional[Iterable[DraggableObject]] = None):
        self._objects: List[DraggableObject] = []
        self._by_id: Dict[str, DraggableObject] = {}
        self._start_positions: Dict[str, Point] = {}

        for obj in objects or []:
            if obj.id in self._by_id:
                raise ValueError(f"Duplicate object id: {obj.id!r}")
            self._objects.append(obj)
            self._by_id[obj.id] = obj
            self._start_positions[obj.id] = obj.position

        logger.debug("Registry created with %d objects", len(self._objects))

    @classmethod
    def from_config(cls, entries: Iterable[dict]) -> "ObjectRegistry":
        return cls(DraggableObject.from_dict(e) for e in entries)

    def __iter__(self) -> Iterator[DraggableObject]:
        return iter(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._by_id

    def get(self, object_id: str) -> DraggableObject:
        """Look up an object by id. Raises KeyError if unknown."""
        try:
            return self._by_id[object_id]
        except KeyError:
            raise KeyError(f"Unknown object id: {object_id!r}") from None

    def snapshot(self) -> List[DraggableObject]:
        """Copies of all objects, in order, safe to hand to a renderer."""
        return [copy.copy(obj) for obj in self._objects]

    def grabbed_objects(self) -> List[DraggableObject]:
        return [obj for obj in self._objects if obj.grabbed]

    def start_position(self, object_id: str) -> Point:
        """Position the object was configured with."""
        self.get(object_id)
        return self._start_positions[object_id]

    def set_position(self, object_id: str, x: float, y: float) -> None:
        obj = self.get(object_id)
        obj.x = x
        obj.y = y

    def set_grabbed(self, object_id: str, grabbed: bool) -> None:
        self.get(object_id).grabbed = grabbed
