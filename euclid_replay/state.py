"""Pure entity-store operations over :class:`ConstructionState`.

Every ``add_*`` function takes a state and returns ``(new_state, entity)``,
leaving its argument untouched.  Adding a segment, circle or line that is
already present returns the existing entity with the state unchanged.
"""

from __future__ import annotations

import logging
import math
import string
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .config import EPSILON
from .errors import DegenerateGeometry, DuplicateLabel, UnknownReference
from .model import Circle, ConstructionState, Entity, Line, Point, PointOrigin, Segment

logger = logging.getLogger(__name__)

_LETTERS = string.ascii_uppercase


def label_at(index: int) -> str:
    """Return the ``index``-th automatic label: ``A``..``Z``, then ``A2``..``Z2``, ..."""

    if index < 0:
        raise ValueError("label index must be non-negative")
    cycle, pos = divmod(index, len(_LETTERS))
    letter = _LETTERS[pos]
    return letter if cycle == 0 else f"{letter}{cycle + 1}"


def label_index(label: str) -> Optional[int]:
    if not label or label[0] not in _LETTERS:
        return None
    suffix = label[1:]
    if not suffix:
        return _LETTERS.index(label[0])
    if not suffix.isdigit() or int(suffix) < 2:
        return None
    return (int(suffix) - 1) * len(_LETTERS) + _LETTERS.index(label[0])


def point_id(label: str) -> str:
    return f"pt-{label}"


def _next_id(state: ConstructionState, prefix: str) -> str:
    count = sum(1 for entity in state if entity.id.startswith(prefix + "-")) + 1
    while f"{prefix}-{count}" in state:
        count += 1
    return f"{prefix}-{count}"


def initialize_given(elements: Iterable[Entity]) -> ConstructionState:
    items = tuple(elements)
    indices = [label_index(item.label) for item in items if isinstance(item, Point)]
    next_index = max((idx for idx in indices if idx is not None), default=-1) + 1
    state = ConstructionState(items, next_index)
    logger.debug("Initialized %s from given elements", state.summary())
    return state


def next_free_label(state: ConstructionState) -> Tuple[str, int]:
    index = state.next_label_index
    while state.has_label(label_at(index)) or point_id(label_at(index)) in state:
        index += 1
    return label_at(index), index


def fresh_label(state: ConstructionState, hint: str, reserved: Iterable[str] = ()) -> str:
    """Return ``<hint>_<n>`` with the smallest ``n`` unused in ``state`` and ``reserved``."""

    taken = set(reserved)
    n = 1
    while True:
        candidate = f"{hint}_{n}"
        if candidate not in taken and not state.has_label(candidate) and point_id(candidate) not in state:
            return candidate
        n += 1


def add_point(
    state: ConstructionState,
    x: float,
    y: float,
    origin: PointOrigin = "intersection",
    label: Optional[str] = None,
) -> Tuple[ConstructionState, Point]:
    next_index = state.next_label_index
    if label is None:
        label, used = next_free_label(state)
        next_index = used + 1
    else:
        if state.has_label(label) or point_id(label) in state:
            raise DuplicateLabel(f"label {label!r} is already in use")
        explicit = label_index(label)
        if explicit is not None:
            next_index = max(next_index, explicit + 1)
    point = Point(point_id(label), label, x, y, origin)
    return ConstructionState(state.elements + (point,), next_index), point


def _require_distinct(state: ConstructionState, a: str, b: str, what: str) -> Tuple[Point, Point]:
    pa = get_point(state, a)
    pb = get_point(state, b)
    if a == b or math.hypot(pa.x - pb.x, pa.y - pb.y) <= EPSILON:
        raise DegenerateGeometry(f"{what} through coincident points {pa.label} and {pb.label}")
    return pa, pb


def add_segment(
    state: ConstructionState,
    start: str,
    end: str,
    origin: str = "straightedge",
    label: Optional[str] = None,
) -> Tuple[ConstructionState, Segment]:
    _require_distinct(state, start, end, "segment")
    for existing in state.segments():
        if existing.joins(start, end):
            return state, existing
    if label is not None and state.has_label(label):
        raise DuplicateLabel(f"label {label!r} is already in use")
    segment = Segment(_next_id(state, "seg"), start, end, origin, label)
    return replace(state, elements=state.elements + (segment,)), segment


def add_circle(
    state: ConstructionState,
    center: str,
    through: str,
    origin: str = "compass",
    label: Optional[str] = None,
) -> Tuple[ConstructionState, Circle]:
    _require_distinct(state, center, through, "circle of zero radius")
    for existing in state.circles():
        if existing.center == center and existing.through == through:
            return state, existing
    if label is not None and state.has_label(label):
        raise DuplicateLabel(f"label {label!r} is already in use")
    circle = Circle(_next_id(state, "cir"), center, through, origin, label)
    return replace(state, elements=state.elements + (circle,)), circle


def add_line(
    state: ConstructionState,
    start: str,
    end: str,
    source: Optional[str] = None,
) -> Tuple[ConstructionState, Line]:
    _require_distinct(state, start, end, "line")
    for existing in state.lines():
        if existing.joins(start, end):
            return state, existing
    line = Line(_next_id(state, "line"), start, end, source)
    return replace(state, elements=state.elements + (line,)), line


def get_entity(state: ConstructionState, entity_id: str) -> Entity:
    entity = state.get(entity_id)
    if entity is None:
        raise UnknownReference(f"unknown entity {entity_id!r}")
    return entity


def find_point(state: ConstructionState, ref: str) -> Optional[Point]:
    entity = state.get(ref)
    if entity is None:
        label_id = state.id_for_label(ref)
        entity = state.get(label_id) if label_id is not None else None
    return entity if isinstance(entity, Point) else None


def get_point(state: ConstructionState, ref: str) -> Point:
    point = find_point(state, ref)
    if point is None:
        raise UnknownReference(f"unknown point {ref!r}")
    return point


def resolve_point_ref(state: ConstructionState, ref: str) -> str:
    return get_point(state, ref).id


def get_all_points(state: ConstructionState) -> List[Point]:
    return state.points()


def get_all_segments(state: ConstructionState) -> List[Segment]:
    return state.segments()


def get_all_circles(state: ConstructionState) -> List[Circle]:
    return state.circles()


def distance(state: ConstructionState, a: str, b: str) -> float:
    pa = get_point(state, a)
    pb = get_point(state, b)
    return math.hypot(pa.x - pb.x, pa.y - pb.y)


def radius(state: ConstructionState, circle: Circle) -> float:
    return distance(state, circle.center, circle.through)


def segment_length(state: ConstructionState, segment: Segment) -> float:
    return distance(state, segment.start, segment.end)


__all__ = [
    "label_at",
    "label_index",
    "point_id",
    "initialize_given",
    "next_free_label",
    "fresh_label",
    "add_point",
    "add_segment",
    "add_circle",
    "add_line",
    "get_entity",
    "find_point",
    "get_point",
    "resolve_point_ref",
    "get_all_points",
    "get_all_segments",
    "get_all_circles",
    "distance",
    "radius",
    "segment_length",
]
