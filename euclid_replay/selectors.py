"""Selector resolution and intersection-candidate disambiguation.

Candidates for an ``intersection`` step are narrowed in a fixed order:

1. beyond filter: keep candidates strictly past the named point along the
   straight parent;
2. a single survivor is chosen outright;
3. chirality: prefer candidates on the requested side of a reference
   segment (:func:`tie_break`);
4. otherwise the first candidate in discovery order.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Set, Tuple, Union

import numpy as np

from .config import EPSILON
from .errors import AmbiguousSelection, DegenerateGeometry, UnknownReference
from .geometry import dist, side_of
from .intersections import line_parameter, offset_from_line
from .logging_utils import apply_debug_logging
from .model import Circle, ConstructionState, IntersectionCandidate, Line, Point, Segment, is_straight
from .state import get_point, resolve_point_ref

logger = logging.getLogger(__name__)

Selector = Union[str, Mapping[str, Any]]
PointResolver = Callable[[str], str]
Reference = Tuple[np.ndarray, np.ndarray]

SIDES = ("left", "right")


def _point_resolver(state: ConstructionState, resolve_point: Optional[PointResolver]) -> PointResolver:
    if resolve_point is not None:
        return resolve_point
    return lambda name: resolve_point_ref(state, name)


def _find_segment(state: ConstructionState, a: str, b: str) -> Optional[Segment]:
    for segment in state.segments():
        if segment.joins(a, b):
            return segment
    return None


def _find_line(state: ConstructionState, a: str, b: str) -> Optional[Line]:
    for line in state.lines():
        if line.joins(a, b):
            return line
    segment = _find_segment(state, a, b)
    if segment is None:
        return None
    for line in state.lines():
        if line.source == segment.id:
            return line
    return None


def _selector_field(spec: Mapping[str, Any], key: str) -> Any:
    if key not in spec:
        raise UnknownReference(f"{spec.get('kind')} selector is missing {key!r}")
    return spec[key]


def resolve_selector(
    spec: Selector,
    state: ConstructionState,
    resolve_point: Optional[PointResolver] = None,
) -> str:
    """Resolve a structural or label reference to an entity id."""

    resolve = _point_resolver(state, resolve_point)
    if isinstance(spec, str):
        if spec in state:
            return spec
        label_id = state.id_for_label(spec)
        if label_id is not None:
            return label_id
        return resolve(spec)
    if not isinstance(spec, Mapping):
        raise UnknownReference(f"unsupported selector {spec!r}")

    kind = spec.get("kind")
    if kind == "point":
        return resolve(_selector_field(spec, "name"))
    if kind == "label":
        label_id = state.id_for_label(_selector_field(spec, "label"))
        if label_id is None:
            raise UnknownReference(f"no entity labelled {spec['label']!r}")
        return label_id
    if kind == "circle":
        center = resolve(_selector_field(spec, "center"))
        through = resolve(_selector_field(spec, "through"))
        for circle in state.circles():
            if circle.center == center and circle.through == through:
                return circle.id
        raise UnknownReference(
            f"no circle centred at {spec['center']} through {spec['through']}"
        )
    if kind in ("segment", "line"):
        a = resolve(_selector_field(spec, "from"))
        b = resolve(_selector_field(spec, "to"))
        found: Optional[Union[Segment, Line]]
        if kind == "segment":
            found = _find_segment(state, a, b)
        else:
            found = _find_line(state, a, b) or _find_segment(state, a, b)
        if found is None:
            raise UnknownReference(f"no {kind} joining {spec['from']} and {spec['to']}")
        return found.id
    raise UnknownReference(f"unsupported selector {dict(spec)!r}")


def entity_family(state: ConstructionState, entity_id: str) -> Set[str]:
    """Ids standing for the same path: a segment and the lines produced from it."""

    entity = state.get(entity_id)
    root = entity.source if isinstance(entity, Line) and entity.source else entity_id
    family = {entity_id, root}
    for line in state.lines():
        if line.source == root:
            family.add(line.id)
    return family


def candidates_for_pair(
    candidates: Sequence[IntersectionCandidate],
    state: ConstructionState,
    a_id: str,
    b_id: str,
) -> List[IntersectionCandidate]:
    """Pool entries produced by the unordered pair, without coincident repeats."""

    fam_a = entity_family(state, a_id)
    fam_b = entity_family(state, b_id)
    matched: List[IntersectionCandidate] = []
    for cand in candidates:
        forward = cand.of_a in fam_a and cand.of_b in fam_b
        backward = cand.of_a in fam_b and cand.of_b in fam_a
        if not (forward or backward):
            continue
        if any(dist(cand.as_array(), other.as_array()) <= EPSILON for other in matched):
            continue
        matched.append(cand)
    return matched


def straight_parent(
    state: ConstructionState,
    candidate: IntersectionCandidate,
    through: Optional[np.ndarray] = None,
) -> Optional[Union[Segment, Line]]:
    """First straight parent of ``candidate``, or the first whose line holds ``through``."""

    for parent_id in candidate.parents:
        parent = state.get(parent_id)
        if not is_straight(parent):
            continue
        if through is None or offset_from_line(state, parent, through) <= EPSILON:  # type: ignore[arg-type]
            return parent  # type: ignore[return-value]
    return None


def apply_beyond_filter(
    candidates: Sequence[IntersectionCandidate],
    state: ConstructionState,
    beyond_id: str,
) -> List[IntersectionCandidate]:
    """Keep candidates strictly past ``beyond_id`` along their straight parent.

    The ray runs from the parent's other defining point through the beyond
    point, so when the beyond point is the parent's start the survivors have a
    smaller parameter than it, and a larger one otherwise.
    """

    anchor = get_point(state, beyond_id)
    kept: List[IntersectionCandidate] = []
    for cand in candidates:
        if straight_parent(state, cand) is None:
            raise DegenerateGeometry(
                f"beyond point {anchor.label} needs a straight parent for candidate at {cand.xy}"
            )
        parent = straight_parent(state, cand, anchor.as_array())
        if parent is None:
            raise DegenerateGeometry(
                f"beyond point {anchor.label} is not on {' or '.join(cand.parents)}"
            )
        t_anchor = line_parameter(state, parent, anchor.as_array())
        t_cand = line_parameter(state, parent, cand.as_array())
        if parent.start == anchor.id:
            past = t_cand < t_anchor - EPSILON
        else:
            past = t_cand > t_anchor + EPSILON
        if past:
            kept.append(cand)
    if not kept:
        raise AmbiguousSelection(f"no candidate lies beyond {anchor.label}")
    return kept


def default_reference(state: ConstructionState, a_id: str, b_id: str) -> Optional[Reference]:
    """Reference segment for chirality: the straight parent, else centre to centre."""

    a = state.get(a_id)
    b = state.get(b_id)
    for entity in (a, b):
        if isinstance(entity, (Segment, Line)):
            start = get_point(state, entity.start).as_array()
            end = get_point(state, entity.end).as_array()
            return start, end - start
    if isinstance(a, Circle) and isinstance(b, Circle):
        ca = get_point(state, a.center).as_array()
        cb = get_point(state, b.center).as_array()
        return ca, cb - ca
    return None


def _on_side(reference: Reference, candidate: IntersectionCandidate, side: str) -> bool:
    origin, direction = reference
    sign = 1.0 if side == "left" else -1.0
    return sign * side_of(origin, direction, candidate.as_array()) > EPSILON


def tie_break(
    candidates: Sequence[IntersectionCandidate],
    reference: Optional[Reference],
    side: str = "left",
) -> IntersectionCandidate:
    """Chirality rule with first-discovered fallback.

    The first candidate strictly on ``side`` of the reference wins; collinear
    candidates count for neither side.  Without such a candidate the first one
    in discovery order is taken.
    """

    if not candidates:
        raise AmbiguousSelection("no intersection candidate to choose from")
    if side not in SIDES:
        raise ValueError(f"side must be one of {SIDES}, got {side!r}")
    if reference is not None:
        for cand in candidates:
            if _on_side(reference, cand, side):
                return cand
    return candidates[0]


def disambiguate(
    candidates: Sequence[IntersectionCandidate],
    state: ConstructionState,
    *,
    beyond: Optional[str] = None,
    reference: Optional[Reference] = None,
    side: str = "left",
) -> Tuple[IntersectionCandidate, str]:
    """Pick one candidate; returns it with the name of the rule that decided."""

    pool = list(candidates)
    if not pool:
        raise AmbiguousSelection("the two entities have no intersection")
    if beyond is not None:
        pool = apply_beyond_filter(pool, state, beyond)
        if len(pool) == 1:
            return pool[0], "beyond"
    if len(pool) == 1:
        return pool[0], "unique"
    chosen = tie_break(pool, reference, side)
    if reference is not None and _on_side(reference, chosen, side):
        return chosen, "chirality"
    return chosen, "first"


def reference_from_points(start: Point, end: Point) -> Reference:
    return start.as_array(), end.as_array() - start.as_array()


apply_debug_logging(globals(), logger=logger)


__all__ = [
    "Selector",
    "SIDES",
    "resolve_selector",
    "entity_family",
    "candidates_for_pair",
    "straight_parent",
    "apply_beyond_filter",
    "default_reference",
    "tie_break",
    "disambiguate",
    "reference_from_points",
]
