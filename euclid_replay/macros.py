"""Macro registry: earlier propositions replayed as single construction steps.

Each entry is a :class:`MacroDef` whose ``execute`` callable replays the
proposition's own script with the caller's points substituted for its given
points.  Entities and facts created along the way are spliced into the
caller's state, candidate pool and fact store; the outputs are reported back
by key (``"apex"``, ``"result"``) so the caller can bind them to its names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .book import BOOK_I
from .derivation import assert_equal
from .errors import DegenerateGeometry, MacroArityMismatch
from .facts import Citation, Fact, FactStore
from .geometry import same_point
from .interpreter import ReplayScope, run_proposition
from .model import ConstructionState, IntersectionCandidate
from .script import DegenerateAlias, Proposition
from .state import get_point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MacroResult:
    state: ConstructionState
    candidates: Tuple[IntersectionCandidate, ...]
    added: Tuple[str, ...]
    new_facts: List[Fact] = field(default_factory=list)
    outputs: Dict[str, str] = field(default_factory=dict)


MacroExecutor = Callable[..., MacroResult]


@dataclass(frozen=True)
class MacroDef:
    prop_id: int
    label: str
    input_labels: Tuple[str, ...]
    outputs: Mapping[str, str]
    execute: MacroExecutor

    @property
    def input_count(self) -> int:
        return len(self.input_labels)


def _matching_alias(
    proposition: Proposition, state: ConstructionState, bindings: Mapping[str, str]
) -> Optional[DegenerateAlias]:
    for alias in proposition.degenerate_aliases:
        a, b = (get_point(state, bindings[name]) for name in alias.when)
        if a.id == b.id or same_point(a.as_array(), b.as_array()):
            return alias
    return None


def make_macro(proposition: Proposition) -> MacroDef:
    """Wrap ``proposition`` as a referentially transparent sub-replay."""

    input_labels = tuple(proposition.input_labels)
    prop_name = proposition.roman

    def execute(
        state: ConstructionState,
        input_point_ids: Sequence[str],
        candidates: Sequence[IntersectionCandidate],
        fact_store: FactStore,
        step_index: int,
        extended: bool = False,
        output_labels: Optional[Mapping[str, str]] = None,
        *,
        registry: Optional[Mapping[int, MacroDef]] = None,
        reserved: Iterable[str] = (),
    ) -> MacroResult:
        if len(input_point_ids) != len(input_labels):
            raise MacroArityMismatch(
                f"{prop_name} takes {len(input_labels)} input point(s), got {len(input_point_ids)}"
            )
        requested = dict(output_labels or {})
        unknown = sorted(set(requested) - set(proposition.outputs))
        if unknown:
            raise MacroArityMismatch(f"{prop_name} has no output(s) {', '.join(unknown)}")
        ids = [get_point(state, ref).id for ref in input_point_ids]
        bindings = dict(zip(input_labels, ids))

        alias = _matching_alias(proposition, state, bindings)
        if alias is not None:
            logger.debug("%s inputs %s coincide; binding outputs directly", prop_name, alias.when)
            outputs = {key: bindings[name] for key, name in alias.outputs.items()}
            new_state = state
            new_candidates: Sequence[IntersectionCandidate] = list(candidates)
            new_facts: List[Fact] = []
        else:
            scope = ReplayScope(
                bindings=dict(bindings),
                output_labels={proposition.outputs[key]: label for key, label in requested.items()},
                nested=True,
                reserved=set(reserved) | set(requested.values()),
            )
            run = run_proposition(
                proposition,
                state,
                candidates,
                fact_store,
                scope,
                extended=extended or proposition.needs_extended_segments(),
                registry=registry,
                fact_step=step_index,
            )
            missing = [name for name in proposition.outputs.values() if name not in scope.bindings]
            if missing:
                raise DegenerateGeometry(f"{prop_name} did not produce {', '.join(missing)}")
            outputs = {key: scope.bindings[name] for key, name in proposition.outputs.items()}
            new_state = run.state
            new_candidates = run.candidates
            new_facts = list(run.new_facts)

        names = dict(bindings)
        names.update({proposition.outputs[key]: point for key, point in outputs.items()})
        for left, right in proposition.theorem:
            new_facts.extend(
                assert_equal(
                    new_state,
                    fact_store,
                    (names[left[0]], names[left[1]]),
                    (names[right[0]], names[right[1]]),
                    Citation("prop", prop_id=proposition.id),
                    f"{prop_name}: {proposition.title}",
                    step_index,
                )
            )

        added = tuple(entity.id for entity in new_state if entity.id not in state)
        logger.debug("%s added %d entit(ies) and %d fact(s)", prop_name, len(added), len(new_facts))
        return MacroResult(new_state, tuple(new_candidates), added, new_facts, outputs)

    return MacroDef(
        prop_id=proposition.id,
        label=prop_name,
        input_labels=input_labels,
        outputs=MappingProxyType(dict(proposition.outputs)),
        execute=execute,
    )


def build_registry(propositions: Iterable[Proposition]) -> Mapping[int, MacroDef]:
    """Read-only table of macros for every proposition that declares outputs."""

    return MappingProxyType({prop.id: make_macro(prop) for prop in propositions if prop.outputs})


MACRO_REGISTRY: Mapping[int, MacroDef] = build_registry(BOOK_I.values())


__all__ = [
    "MacroResult",
    "MacroExecutor",
    "MacroDef",
    "make_macro",
    "build_registry",
    "MACRO_REGISTRY",
]
