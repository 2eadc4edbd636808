from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterator, List, Literal, Optional, Tuple, Union

import numpy as np

from .errors import DuplicateLabel, UnknownReference

PointId = str
EntityId = str
PointOrigin = Literal["given", "intersection", "macro-output"]


@dataclass(frozen=True)
class Point:
    id: PointId
    label: str
    x: float
    y: float
    origin: PointOrigin = "given"

    kind: ClassVar[str] = "point"

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


@dataclass(frozen=True)
class Segment:
    """Straight segment joining ``start`` to ``end``; its length is never stored."""

    id: EntityId
    start: PointId
    end: PointId
    origin: str = "straightedge"
    label: Optional[str] = None

    kind: ClassVar[str] = "segment"

    @property
    def endpoints(self) -> Tuple[PointId, PointId]:
        return (self.start, self.end)

    def joins(self, a: PointId, b: PointId) -> bool:
        return {self.start, self.end} == {a, b}


@dataclass(frozen=True)
class Circle:
    """Circle about ``center`` whose radius is the distance to ``through``."""

    id: EntityId
    center: PointId
    through: PointId
    origin: str = "compass"
    label: Optional[str] = None

    kind: ClassVar[str] = "circle"

    @property
    def endpoints(self) -> Tuple[PointId, PointId]:
        return (self.center, self.through)


@dataclass(frozen=True)
class Line:
    """Infinite line through two points, usually produced from a segment."""

    id: EntityId
    start: PointId
    end: PointId
    source: Optional[EntityId] = None
    origin: str = "extend"
    label: Optional[str] = None

    kind: ClassVar[str] = "line"

    @property
    def endpoints(self) -> Tuple[PointId, PointId]:
        return (self.start, self.end)

    def joins(self, a: PointId, b: PointId) -> bool:
        return {self.start, self.end} == {a, b}


Entity = Union[Point, Segment, Circle, Line]
Straight = Union[Segment, Line]


@dataclass(frozen=True)
class IntersectionCandidate:
    """Provisional intersection of ``of_a`` (the newer entity) with ``of_b``."""

    x: float
    y: float
    of_a: EntityId
    of_b: EntityId
    which: int = 0

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def parents(self) -> Tuple[EntityId, EntityId]:
        return (self.of_a, self.of_b)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


def is_straight(entity: Optional[Entity]) -> bool:
    return isinstance(entity, (Segment, Line))


@dataclass(frozen=True)
class ConstructionState:
    """Immutable snapshot of everything drawn so far.

    Entities are kept in insertion order.  Lookup tables are derived on
    construction, together with the structural invariants: ids and labels are
    unique and every reference points at a point of the same state.
    """

    elements: Tuple[Entity, ...] = ()
    next_label_index: int = 0
    _by_id: Dict[EntityId, Entity] = field(init=False, repr=False, compare=False)
    _by_label: Dict[str, EntityId] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        by_id: Dict[EntityId, Entity] = {}
        by_label: Dict[str, EntityId] = {}
        for entity in self.elements:
            if entity.id in by_id:
                raise DuplicateLabel(f"entity id {entity.id!r} is used twice")
            if isinstance(entity, Point):
                missing: List[str] = []
            else:
                missing = [ref for ref in entity.endpoints if not isinstance(by_id.get(ref), Point)]
            if missing:
                raise UnknownReference(
                    f"{entity.kind} {entity.id!r} references unknown point(s) {', '.join(missing)}"
                )
            label = entity.label
            if label is not None:
                if label in by_label:
                    raise DuplicateLabel(f"label {label!r} is already used by {by_label[label]!r}")
                by_label[label] = entity.id
            by_id[entity.id] = entity
        object.__setattr__(self, "_by_id", by_id)
        object.__setattr__(self, "_by_label", by_label)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._by_id

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.elements)

    def get(self, entity_id: EntityId) -> Optional[Entity]:
        return self._by_id.get(entity_id)

    def id_for_label(self, label: str) -> Optional[EntityId]:
        return self._by_label.get(label)

    def has_label(self, label: str) -> bool:
        return label in self._by_label

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self._by_label)

    def points(self) -> List[Point]:
        return [entity for entity in self.elements if isinstance(entity, Point)]

    def segments(self) -> List[Segment]:
        return [entity for entity in self.elements if isinstance(entity, Segment)]

    def circles(self) -> List[Circle]:
        return [entity for entity in self.elements if isinstance(entity, Circle)]

    def lines(self) -> List[Line]:
        return [entity for entity in self.elements if isinstance(entity, Line)]

    def summary(self) -> str:
        return (
            f"ConstructionState(points={len(self.points())}, segments={len(self.segments())}, "
            f"circles={len(self.circles())}, lines={len(self.lines())})"
        )


__all__ = [
    "PointId",
    "EntityId",
    "PointOrigin",
    "Point",
    "Segment",
    "Circle",
    "Line",
    "Entity",
    "Straight",
    "IntersectionCandidate",
    "ConstructionState",
    "is_straight",
]
