"""Hand-written builders for I.1-I.3, used as conformance oracles.

Each builder draws its figure directly from closed-form coordinates, without
the interpreter, selectors or candidate pool, and records the same facts the
replay derives.  :func:`compare_results` reports every way two results
disagree.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from .book import PROP_1, PROP_2, PROP_3
from .config import EPSILON
from .derivation import assert_equal
from .facts import Citation, DistancePair, FactStore
from .geometry import rot90
from .interpreter import ReplayResult
from .model import Circle, ConstructionState, PointOrigin
from .script import Proposition
from .state import add_circle, add_point, add_segment, get_point, initialize_given

Stamp = Callable[[int], int]


def _own(index: int) -> int:
    return index


def _fixed(step: int) -> Stamp:
    return lambda _index: step


@dataclass
class _Builder:
    state: ConstructionState
    facts: FactStore

    @classmethod
    def given(cls, proposition: Proposition, positions: Optional[Mapping[str, Sequence[float]]]) -> "_Builder":
        return cls(initialize_given(proposition.given_elements(positions)), FactStore())

    def xy(self, label: str) -> np.ndarray:
        return get_point(self.state, label).as_array()

    def pid(self, label: str) -> str:
        return get_point(self.state, label).id

    def circle(self, center: str, through: str) -> Circle:
        self.state, circle = add_circle(self.state, self.pid(center), self.pid(through))
        return circle

    def segment(self, a: str, b: str) -> None:
        self.state, _ = add_segment(self.state, self.pid(a), self.pid(b))

    def equal(self, left: Tuple[str, str], right: Tuple[str, str], citation: Citation, why: str, step: int) -> None:
        assert_equal(
            self.state,
            self.facts,
            (self.pid(left[0]), self.pid(left[1])),
            (self.pid(right[0]), self.pid(right[1])),
            citation,
            why,
            step,
        )

    def mark(self, xy: np.ndarray, label: str, origin: PointOrigin, circles: Sequence[Circle], step: int) -> None:
        self.state, point = add_point(self.state, float(xy[0]), float(xy[1]), origin=origin, label=label)
        for circle in circles:
            center = get_point(self.state, circle.center)
            through = get_point(self.state, circle.through)
            self.equal(
                (center.label, label),
                (center.label, through.label),
                Citation("def15", circle_id=circle.id),
                f"Def.15: {label} lies on circle centered at {center.label} through {through.label}",
                step,
            )


def _unit(v: np.ndarray) -> np.ndarray:
    return v / float(np.linalg.norm(v))


def _equilateral(b: _Builder, a: str, c: str, apex: str, origin: PointOrigin, stamp: Stamp, macro: bool) -> None:
    circle_a = b.circle(a, c)
    circle_c = b.circle(c, a)
    pa, pc = b.xy(a), b.xy(c)
    top = (pa + pc) / 2.0 + rot90(pc - pa) * (math.sqrt(3.0) / 2.0)
    b.mark(top, apex, origin, [circle_c, circle_a], stamp(2))
    b.segment(apex, a)
    b.segment(apex, c)
    if macro:
        for side in (a, c):
            b.equal((apex, side), (a, c), Citation("prop", prop_id=1), f"I.1: {PROP_1.title}", stamp(5))


def _place_line(
    b: _Builder,
    a: str,
    p: str,
    q: str,
    labels: Mapping[str, str],
    origin: PointOrigin,
    stamp: Stamp,
    macro: bool,
) -> str:
    """I.2 at ``a`` for the line ``pq``; returns the label of the endpoint."""

    if np.linalg.norm(b.xy(a) - b.xy(p)) <= EPSILON:
        return q
    apex, e, result = labels["apex"], labels["e"], labels["result"]
    b.segment(a, p)
    _equilateral(b, a, p, apex, "macro-output", _fixed(stamp(1)), macro=True)
    circle_p = b.circle(p, q)
    pe = b.xy(p) + _unit(b.xy(p) - b.xy(apex)) * float(np.linalg.norm(b.xy(q) - b.xy(p)))
    b.mark(pe, e, "intersection", [circle_p], stamp(3))
    circle_d = b.circle(apex, e)
    pf = b.xy(apex) + _unit(b.xy(a) - b.xy(apex)) * float(np.linalg.norm(b.xy(e) - b.xy(apex)))
    b.mark(pf, result, origin, [circle_d], stamp(5))

    b.equal(
        (a, result),
        (p, e),
        Citation("cn3", whole=DistancePair(b.pid(apex), b.pid(result)), part=DistancePair(b.pid(apex), b.pid(a))),
        "C.N.3: DF - DA = DE - DB, since DF = DE and DA = DB",
        stamp(6),
    )
    if not b.facts.query_equality(DistancePair(b.pid(a), b.pid(result)), DistancePair(b.pid(p), b.pid(q))):
        b.equal((a, result), (p, q), Citation("cn1", via=DistancePair(b.pid(p), b.pid(e))), "C.N.1", stamp(6))
    if macro:
        b.equal((a, result), (p, q), Citation("prop", prop_id=2), f"I.2: {PROP_2.title}", stamp(6))
    return result


def build_prop1(positions: Optional[Mapping[str, Sequence[float]]] = None) -> ReplayResult:
    b = _Builder.given(PROP_1, positions)
    _equilateral(b, "A", "B", "C", "intersection", _own, macro=False)
    return ReplayResult(b.state, b.facts, [], len(PROP_1.steps), list(b.facts.facts))


def build_prop2(positions: Optional[Mapping[str, Sequence[float]]] = None) -> ReplayResult:
    b = _Builder.given(PROP_2, positions)
    _place_line(b, "A", "B", "C", {"apex": "D", "e": "E", "result": "F"}, "intersection", _own, macro=False)
    return ReplayResult(b.state, b.facts, [], len(PROP_2.steps), list(b.facts.facts))


def build_prop3(positions: Optional[Mapping[str, Sequence[float]]] = None) -> ReplayResult:
    b = _Builder.given(PROP_3, positions)
    end = _place_line(
        b, "A", "C", "D", {"apex": "D_1", "e": "E_1", "result": "E"}, "macro-output", _fixed(0), macro=True
    )
    circle = b.circle("A", end)
    radius = float(np.linalg.norm(b.xy(end) - b.xy("A")))
    b.mark(b.xy("A") + _unit(b.xy("B") - b.xy("A")) * radius, "F", "intersection", [circle], 2)
    return ReplayResult(b.state, b.facts, [], len(PROP_3.steps), list(b.facts.facts))


REFERENCE_BUILDERS: Mapping[int, Callable[..., ReplayResult]] = {
    1: build_prop1,
    2: build_prop2,
    3: build_prop3,
}


FactSignature = Tuple[FrozenSet[DistancePair], str]


def fact_signatures(store: FactStore) -> Set[FactSignature]:
    return {(frozenset((fact.left, fact.right)), fact.citation.rule) for fact in store}


def _equalities(store: FactStore) -> Set[FrozenSet[DistancePair]]:
    return {frozenset((fact.left, fact.right)) for fact in store}


def _implied(store: FactStore, pairs: Set[FrozenSet[DistancePair]]) -> bool:
    return all(store.query_equality(*sorted(pair)) for pair in pairs if len(pair) == 2)


def compare_results(actual: ReplayResult, expected: ReplayResult, tol: float = 1e-6) -> List[str]:
    """Differences between two results; an empty list means they agree.

    Entity counts must match, points are matched by label, and each fact
    store must imply every equality the other records.
    """

    problems: List[str] = []
    for kind in ("points", "segments", "circles", "lines"):
        got = len(getattr(actual.state, kind)())
        want = len(getattr(expected.state, kind)())
        if got != want:
            problems.append(f"{kind}: {got} != {want}")
    coords: Dict[str, Tuple[float, float]] = actual.coords()
    for label, (x, y) in expected.coords().items():
        if label not in coords:
            problems.append(f"point {label} missing")
            continue
        ax, ay = coords[label]
        if abs(ax - x) > tol or abs(ay - y) > tol:
            problems.append(f"point {label}: ({ax:.9f}, {ay:.9f}) != ({x:.9f}, {y:.9f})")
    for label in sorted(set(coords) - set(expected.coords())):
        problems.append(f"unexpected point {label}")
    if not _implied(actual.facts, _equalities(expected.facts)):
        problems.append("facts: replay misses equalities of the reference")
    if not _implied(expected.facts, _equalities(actual.facts)):
        problems.append("facts: replay records equalities the reference does not")
    return problems


__all__ = [
    "build_prop1",
    "build_prop2",
    "build_prop3",
    "REFERENCE_BUILDERS",
    "fact_signatures",
    "compare_results",
]
