"""Intersection resolver: candidates produced by each newly drawn entity.

Whenever a circle, segment or line is added, :func:`find_new_intersections`
intersects it with every earlier non-point entity.  The results are
provisional :class:`IntersectionCandidate` objects; the interpreter appends
them to its running pool, and a later ``intersection`` step promotes one of
them to a point.

Discovery order is part of the contract because the last tie-break picks the
first surviving candidate:

* entities are visited in insertion order;
* two circles yield the point left of ``new centre -> old centre`` first;
* along a straight entity, hits on the drawn segment come first (ascending
  parameter), then hits on the forward extension (ascending), then hits on
  the backward extension (descending, i.e. nearest the segment first).
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np

from .config import EPSILON
from .errors import DegenerateGeometry
from .geometry import (
    CircleValue,
    LineValue,
    circle_circle,
    collinear_overlap,
    dist,
    line_circle,
    line_line,
    line_through,
    same_point,
)
from .logging_utils import apply_debug_logging
from .model import Circle, ConstructionState, Entity, IntersectionCandidate, Line, Point, Segment
from .state import get_point, radius

logger = logging.getLogger(__name__)

PathValue = Union[LineValue, CircleValue]


def entity_value(state: ConstructionState, entity: Entity, extended: bool = False) -> PathValue:
    if isinstance(entity, Circle):
        r = radius(state, entity)
        if r <= EPSILON:
            raise DegenerateGeometry(f"circle {entity.id} has zero radius")
        return CircleValue(get_point(state, entity.center).as_array(), r)
    if isinstance(entity, (Segment, Line)):
        a = get_point(state, entity.start).as_array()
        b = get_point(state, entity.end).as_array()
        bounded = isinstance(entity, Segment) and not extended
        return line_through(a, b, bounded=bounded)
    raise DegenerateGeometry(f"{entity.kind} {entity.id} cannot be intersected")


def _bucket(t: float) -> Tuple[int, float]:
    if t < -EPSILON:
        return (2, -t)
    if t > 1.0 + EPSILON:
        return (1, t)
    return (0, t)


def order_along(hits: Iterable[Tuple[float, np.ndarray]]) -> List[Tuple[float, np.ndarray]]:
    """Sort hits on a straight path: on-segment, forward extension, backward extension."""

    return sorted(hits, key=lambda hit: _bucket(hit[0]))


def _filter_bounds(line: LineValue, hits: Iterable[Tuple[float, np.ndarray]]) -> List[Tuple[float, np.ndarray]]:
    return [hit for hit in hits if line.contains_param(hit[0])]


def intersect_values(new: PathValue, old: PathValue) -> List[np.ndarray]:
    """Intersections of two evaluated paths in discovery order."""

    if isinstance(new, CircleValue) and isinstance(old, CircleValue):
        return circle_circle(new, old)
    if isinstance(new, CircleValue) and isinstance(old, LineValue):
        hits = _filter_bounds(old, line_circle(old, new))
        return [pt for _, pt in order_along(hits)]
    if isinstance(new, LineValue) and isinstance(old, CircleValue):
        hits = _filter_bounds(new, line_circle(new, old))
        return [pt for _, pt in order_along(hits)]
    crossing = line_line(new, old)  # type: ignore[arg-type]
    if crossing is None:
        return []
    t_new, t_old, point = crossing
    if not new.contains_param(t_new) or not old.contains_param(t_old):  # type: ignore[union-attr]
        return []
    return [point]


def _near_existing_point(state: ConstructionState, point: np.ndarray) -> bool:
    return any(same_point(existing.as_array(), point) for existing in state.points())


def _same_pair(candidate: IntersectionCandidate, a: str, b: str) -> bool:
    return {candidate.of_a, candidate.of_b} == {a, b}


def _root(entity: Entity) -> str:
    if isinstance(entity, Line) and entity.source:
        return entity.source
    return entity.id


def _check_overlap(new_entity: Entity, new_value: PathValue, other: Entity, other_value: PathValue) -> None:
    """Reject a straight path lying along an earlier one other than its own segment."""

    if not (isinstance(new_value, LineValue) and isinstance(other_value, LineValue)):
        return
    if _root(new_entity) == _root(other):
        return
    if collinear_overlap(new_value, other_value):
        raise DegenerateGeometry(f"{new_entity.id} runs along {other.id}")


def find_new_intersections(
    state: ConstructionState,
    new_entity: Entity,
    existing_candidates: Sequence[IntersectionCandidate],
    extended: bool = False,
) -> List[IntersectionCandidate]:
    """Candidates created by ``new_entity`` against every earlier entity.

    Candidates lying on an existing point are skipped, as are repeats of a
    candidate already known for the same pair of parents.  The returned list
    holds only the new candidates; callers append it to their pool.  A
    straight path overlapping an earlier one raises :class:`DegenerateGeometry`,
    except a line produced from that very segment.
    """

    if isinstance(new_entity, Point):
        return []
    new_value = entity_value(state, new_entity, extended)
    found: List[IntersectionCandidate] = []
    for other in state:
        if other.id == new_entity.id or isinstance(other, Point):
            continue
        other_value = entity_value(state, other, extended)
        _check_overlap(new_entity, new_value, other, other_value)
        points = intersect_values(new_value, other_value)
        for which, point in enumerate(points):
            if _near_existing_point(state, point):
                continue
            known = list(existing_candidates) + found
            if any(
                _same_pair(cand, new_entity.id, other.id) and dist(cand.as_array(), point) <= EPSILON
                for cand in known
            ):
                continue
            found.append(
                IntersectionCandidate(float(point[0]), float(point[1]), new_entity.id, other.id, which)
            )
    logger.debug("%s produced %d new candidate(s)", new_entity.id, len(found))
    return found


def line_parameter(state: ConstructionState, straight: Union[Segment, Line], point: np.ndarray) -> float:
    """Parameter of ``point`` along ``start -> end`` of a straight entity."""

    line = entity_value(state, straight, extended=True)
    return line.param(point)  # type: ignore[union-attr]


def offset_from_line(state: ConstructionState, straight: Union[Segment, Line], point: np.ndarray) -> float:
    line = entity_value(state, straight, extended=True)
    foot = line.at(line.param(point))  # type: ignore[union-attr]
    return dist(foot, point)


apply_debug_logging(globals(), logger=logger)


__all__ = [
    "entity_value",
    "order_along",
    "intersect_values",
    "find_new_intersections",
    "line_parameter",
    "offset_from_line",
]
