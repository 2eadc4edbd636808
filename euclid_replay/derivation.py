"""Fact derivation rules applied while a construction is replayed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from .facts import Citation, DistancePair, Fact, FactStore, distance_pair
from .model import Circle, ConstructionState, IntersectionCandidate
from .state import get_point

logger = logging.getLogger(__name__)

GIVEN_STEP = -1

NamePair = Tuple[str, str]


def pair_text(state: ConstructionState, a: str, b: str) -> str:
    return f"{get_point(state, a).label}{get_point(state, b).label}"


def assert_equal(
    state: ConstructionState,
    store: FactStore,
    left: Tuple[str, str],
    right: Tuple[str, str],
    citation: Citation,
    justification: str,
    at_step: int,
    statement: Optional[str] = None,
) -> List[Fact]:
    """Record ``|left| = |right|`` for point-id pairs; the statement defaults to labels."""

    if not statement:
        statement = f"{pair_text(state, *left)} = {pair_text(state, *right)}"
    return store.add_fact(
        distance_pair(*left),
        distance_pair(*right),
        citation,
        statement,
        justification,
        at_step,
    )


def derive_def15_facts(
    candidate: IntersectionCandidate,
    new_point_id: str,
    state: ConstructionState,
    fact_store: FactStore,
    step_index: int,
) -> List[Fact]:
    """A point marked on a circle is as far from the centre as the radius point."""

    new_facts: List[Fact] = []
    for parent_id in candidate.parents:
        circle = state.get(parent_id)
        if not isinstance(circle, Circle):
            continue
        if new_point_id == circle.through:
            continue
        center = get_point(state, circle.center)
        through = get_point(state, circle.through)
        marked = get_point(state, new_point_id)
        new_facts.extend(
            assert_equal(
                state,
                fact_store,
                (circle.center, new_point_id),
                (circle.center, circle.through),
                Citation("def15", circle_id=circle.id),
                f"Def.15: {marked.label} lies on circle centered at {center.label} through {through.label}",
                step_index,
            )
        )
    return new_facts


def load_given_facts(
    state: ConstructionState,
    store: FactStore,
    equalities: Iterable[Tuple[Tuple[str, str], Tuple[str, str], str]],
) -> List[Fact]:
    """Record hypotheses of a proposition before its first step."""

    new_facts: List[Fact] = []
    for left, right, statement in equalities:
        new_facts.extend(
            assert_equal(state, store, left, right, Citation("given"), "Given", GIVEN_STEP, statement)
        )
    return new_facts


@dataclass
class ConclusionContext:
    """What a proposition's conclusion sees once its last step has run.

    Names are the proposition's own point names; ``resolve`` maps them to ids
    in the caller's state, so the same conclusion works inside a macro.
    """

    state: ConstructionState
    facts: FactStore
    at_step: int
    resolve: Callable[[str], str]
    new_facts: List[Fact] = field(default_factory=list)

    def pair(self, a: str, b: str) -> DistancePair:
        return distance_pair(self.resolve(a), self.resolve(b))

    def holds(self, left: NamePair, right: NamePair) -> bool:
        return self.facts.query_equality(self.pair(*left), self.pair(*right))

    def assert_equal(
        self,
        left: NamePair,
        right: NamePair,
        citation: Citation,
        justification: str,
    ) -> List[Fact]:
        added = assert_equal(
            self.state,
            self.facts,
            (self.resolve(left[0]), self.resolve(left[1])),
            (self.resolve(right[0]), self.resolve(right[1])),
            citation,
            justification,
            self.at_step,
        )
        self.new_facts.extend(added)
        return added


__all__ = [
    "GIVEN_STEP",
    "pair_text",
    "assert_equal",
    "derive_def15_facts",
    "load_given_facts",
    "ConclusionContext",
]
