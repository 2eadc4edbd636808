"""Replay interpreter: runs a proposition's step script against a state.

The interpreter threads three accumulators through the script: the
immutable :class:`ConstructionState`, the append-only candidate pool and the
:class:`FactStore`.  Each step kind has one handler.  A failing step aborts
the replay with a :class:`ReplayError` whose ``step_path`` locates the step
and whose ``partial`` holds the result as it was before that step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .config import EPSILON, ReplayOptions, get_replay_options
from .derivation import ConclusionContext, derive_def15_facts, load_given_facts
from .errors import DegenerateGeometry, ReplayError, UnknownReference
from .facts import Fact, FactStore
from .geometry import dist
from .intersections import find_new_intersections
from .model import ConstructionState, Entity, IntersectionCandidate, Line, Point, PointOrigin, Segment
from .script import Proposition, Step
from .selectors import (
    SIDES,
    candidates_for_pair,
    default_reference,
    disambiguate,
    reference_from_points,
    resolve_selector,
)
from .state import (
    add_circle,
    add_line,
    add_point,
    add_segment,
    fresh_label,
    get_point,
    initialize_given,
    resolve_point_ref,
)

logger = logging.getLogger(__name__)

NESTED_SIDE = "left"


@dataclass
class ReplayResult:
    state: ConstructionState
    facts: FactStore
    candidates: List[IntersectionCandidate] = field(default_factory=list)
    steps_completed: int = 0
    new_facts: List[Fact] = field(default_factory=list)

    def point(self, ref: str) -> Point:
        return get_point(self.state, ref)

    def coords(self) -> Dict[str, Tuple[float, float]]:
        return {pt.label: pt.xy for pt in self.state.points()}


@dataclass
class ReplayScope:
    """How a script's point names map onto the state being built.

    At the top level names are labels of the state.  Inside a macro, names are
    the proposition's own: inputs are bound to the caller's points, outputs get
    the labels the caller asked for, and internal points get fresh
    ``<name>_<n>`` labels so they never clash with the caller's.
    """

    bindings: Dict[str, str] = field(default_factory=dict)
    output_labels: Dict[str, str] = field(default_factory=dict)
    nested: bool = False
    reserved: Set[str] = field(default_factory=set)

    def resolve_point(self, state: ConstructionState, name: str) -> str:
        if name in self.bindings:
            return self.bindings[name]
        if not self.nested:
            return resolve_point_ref(state, name)
        raise UnknownReference(f"point {name!r} is not defined at this step")

    def bind(self, name: Optional[str], point_id: str) -> None:
        if name:
            self.bindings[name] = point_id

    def label_for(self, state: ConstructionState, name: Optional[str]) -> Tuple[Optional[str], PointOrigin]:
        if name is not None and name in self.output_labels:
            return self.output_labels[name], "macro-output"
        if not self.nested:
            return name, "intersection"
        return fresh_label(state, name or "P", self.reserved), "intersection"

    def request_label(self, state: ConstructionState, name: str) -> str:
        """Label to hand to a nested macro for one of its outputs."""

        if name in self.output_labels:
            return self.output_labels[name]
        if not self.nested:
            return name
        label = fresh_label(state, name, self.reserved)
        self.reserved.add(label)
        return label

    def resolver(self, state: ConstructionState) -> Callable[[str], str]:
        return lambda name: self.resolve_point(state, name)


@dataclass
class _Run:
    state: ConstructionState
    candidates: List[IntersectionCandidate]
    facts: FactStore
    scope: ReplayScope
    extended: bool
    registry: Optional[Mapping[int, object]] = None
    fact_step: Optional[int] = None
    side: str = "left"
    new_facts: List[Fact] = field(default_factory=list)
    completed: int = 0

    def stamp(self, index: int) -> int:
        return index if self.fact_step is None else self.fact_step

    def macros(self) -> Mapping[int, object]:
        if self.registry is None:
            from .macros import MACRO_REGISTRY

            self.registry = MACRO_REGISTRY
        return self.registry


def _register(run: _Run, new_state: ConstructionState, entity: Entity) -> None:
    if entity.id in run.state:
        logger.debug("Reusing existing %s %s", entity.kind, entity.id)
        return
    found = find_new_intersections(new_state, entity, run.candidates, run.extended)
    run.candidates = run.candidates + found
    run.state = new_state


def _field(step: Step, key: str) -> Any:
    if key not in step.data:
        raise UnknownReference(f"{step.kind} step is missing {key!r}")
    return step.data[key]


def _do_compass(run: _Run, step: Step, index: int) -> None:
    center = run.scope.resolve_point(run.state, _field(step, "center"))
    through = run.scope.resolve_point(run.state, _field(step, "through"))
    new_state, circle = add_circle(run.state, center, through)
    _register(run, new_state, circle)


def _do_straightedge(run: _Run, step: Step, index: int) -> None:
    start = run.scope.resolve_point(run.state, _field(step, "from"))
    end = run.scope.resolve_point(run.state, _field(step, "to"))
    new_state, segment = add_segment(run.state, start, end)
    _register(run, new_state, segment)


def _do_extend(run: _Run, step: Step, index: int) -> None:
    target_id = resolve_selector(_field(step, "segment"), run.state, run.scope.resolver(run.state))
    target = run.state.get(target_id)
    if isinstance(target, Line):
        return
    if not isinstance(target, Segment):
        raise DegenerateGeometry(f"only segments can be produced, got {target_id}")
    new_state, line = add_line(run.state, target.start, target.end, source=target.id)
    _register(run, new_state, line)


def _do_intersection(run: _Run, step: Step, index: int) -> None:
    state = run.state
    resolve = run.scope.resolver(state)
    side = step.opts.get("side") or run.side
    if side not in SIDES:
        raise UnknownReference(f"side must be one of {SIDES}, got {side!r}")
    ref_names = step.opts.get("reference")
    if ref_names and len(ref_names) != 2:
        raise UnknownReference(f"reference needs two point names, got {ref_names!r}")
    a_id = resolve_selector(_field(step, "of_a"), state, resolve)
    b_id = resolve_selector(_field(step, "of_b"), state, resolve)
    pool = candidates_for_pair(run.candidates, state, a_id, b_id)
    if not pool:
        raise DegenerateGeometry(f"{a_id} and {b_id} have no intersection to mark")

    beyond_name = step.opts.get("beyond")
    beyond = resolve(beyond_name) if beyond_name else None
    if ref_names:
        reference = reference_from_points(get_point(state, resolve(ref_names[0])), get_point(state, resolve(ref_names[1])))
    else:
        reference = default_reference(state, a_id, b_id)
    chosen, rule = disambiguate(
        pool,
        state,
        beyond=beyond,
        reference=reference,
        side=side,
    )

    name = step.data.get("label")
    label, origin = run.scope.label_for(state, name)
    new_state, point = add_point(state, chosen.x, chosen.y, origin=origin, label=label)
    run.scope.bind(name, point.id)
    run.candidates = [cand for cand in run.candidates if dist(cand.as_array(), point.as_array()) > EPSILON]
    run.new_facts.extend(derive_def15_facts(chosen, point.id, new_state, run.facts, run.stamp(index)))
    run.state = new_state
    logger.debug(
        "Marked %s at (%.6f, %.6f) from %d candidate(s) by %s rule",
        point.label,
        point.x,
        point.y,
        len(pool),
        rule,
    )


def _do_macro(run: _Run, step: Step, index: int) -> None:
    prop_id = _field(step, "prop")
    macro = run.macros().get(prop_id)
    if macro is None:
        raise UnknownReference(f"no macro registered for I.{prop_id}")
    inputs = [run.scope.resolve_point(run.state, name) for name in step.data.get("inputs", [])]
    names: Dict[str, str] = dict(step.data.get("outputs") or {})
    requested = {key: run.scope.request_label(run.state, name) for key, name in names.items()}
    result = macro.execute(  # type: ignore[attr-defined]
        run.state,
        inputs,
        run.candidates,
        run.facts,
        run.stamp(index),
        run.extended,
        requested,
        registry=run.registry,
        reserved=run.scope.reserved,
    )
    for key, name in names.items():
        run.scope.bind(name, result.outputs[key])
    run.state = result.state
    run.candidates = list(result.candidates)
    run.new_facts.extend(result.new_facts)


_HANDLERS: Dict[str, Callable[[_Run, Step, int], None]] = {
    "compass": _do_compass,
    "straightedge": _do_straightedge,
    "intersection": _do_intersection,
    "extend": _do_extend,
    "macro": _do_macro,
}


def _partial(run: _Run, state: ConstructionState, candidates: List[IntersectionCandidate], fact_count: int) -> ReplayResult:
    kept = run.facts.facts[:fact_count]
    return ReplayResult(
        state=state,
        facts=FactStore.rebuild(kept),
        candidates=list(candidates),
        steps_completed=run.completed,
        new_facts=[fact for fact in run.new_facts if fact in kept],
    )


def _run_steps(run: _Run, steps: Sequence[Step]) -> None:
    for index, step in enumerate(steps):
        handler = _HANDLERS.get(step.kind)
        before = (run.state, run.candidates, len(run.facts))
        try:
            if handler is None:
                raise UnknownReference(f"unknown step kind {step.kind!r}")
            handler(run, step, index)
        except ReplayError as exc:
            exc.at_step(index)
            if not run.scope.nested and exc.partial is None:
                exc.partial = _partial(run, *before)
            raise
        run.completed = index + 1
        logger.debug("Step %d (%s) done: %s", index, step.kind, run.state.summary())


def _conclude(run: _Run, conclusion: Callable[[ConclusionContext], object], index: int) -> None:
    before = (run.state, run.candidates, len(run.facts))
    ctx = ConclusionContext(run.state, run.facts, run.stamp(index), run.scope.resolver(run.state))
    try:
        conclusion(ctx)
    except ReplayError as exc:
        exc.at_step(index)
        if not run.scope.nested and exc.partial is None:
            exc.partial = _partial(run, *before)
        raise
    run.new_facts.extend(ctx.new_facts)


def run_proposition(
    proposition: Proposition,
    state: ConstructionState,
    candidates: Sequence[IntersectionCandidate],
    fact_store: FactStore,
    scope: ReplayScope,
    *,
    extended: bool,
    registry: Optional[Mapping[int, object]] = None,
    fact_step: Optional[int] = None,
    side: str = NESTED_SIDE,
    apply_conclusion: bool = True,
) -> ReplayResult:
    """Run a script and its conclusion from an arbitrary state.

    This is the building block shared by :func:`replay` and macros; it neither
    loads given facts nor creates the initial state.
    """

    run = _Run(
        state=state,
        candidates=list(candidates),
        facts=fact_store,
        scope=scope,
        extended=extended,
        registry=registry,
        fact_step=fact_step,
        side=side,
    )
    _run_steps(run, proposition.steps)
    if apply_conclusion and proposition.conclusion is not None:
        _conclude(run, proposition.conclusion, len(proposition.steps))
    return ReplayResult(run.state, run.facts, run.candidates, run.completed, run.new_facts)


def _replay(
    proposition: Proposition,
    elements: Iterable[Entity],
    options: Optional[ReplayOptions],
    registry: Optional[Mapping[int, object]],
) -> ReplayResult:
    options = options or get_replay_options()
    if options.extend_segments is not None:
        extended = options.extend_segments
    else:
        extended = proposition.needs_extended_segments()
    logger.info(
        "Replaying %s with %d step(s) (extended=%s)",
        proposition.roman,
        len(proposition.steps),
        extended,
    )
    state = initialize_given(elements)
    store = FactStore()
    scope = ReplayScope()
    given = load_given_facts(
        state,
        store,
        [
            (
                (scope.resolve_point(state, fact.left[0]), scope.resolve_point(state, fact.left[1])),
                (scope.resolve_point(state, fact.right[0]), scope.resolve_point(state, fact.right[1])),
                fact.statement,
            )
            for fact in proposition.given_facts
        ],
    )
    result = run_proposition(
        proposition,
        state,
        [],
        store,
        scope,
        extended=extended,
        registry=registry,
        side=options.default_side,
        apply_conclusion=options.apply_conclusions,
    )
    result.new_facts = given + result.new_facts
    logger.info(
        "Replayed %s: %d point(s), %d segment(s), %d circle(s), %d fact(s)",
        proposition.roman,
        len(result.state.points()),
        len(result.state.segments()),
        len(result.state.circles()),
        len(result.facts),
    )
    return result


def replay(
    proposition: Proposition,
    *,
    positions: Optional[Mapping[str, Sequence[float]]] = None,
    options: Optional[ReplayOptions] = None,
    registry: Optional[Mapping[int, object]] = None,
) -> ReplayResult:
    """Replay ``proposition`` from its given elements, optionally moved to ``positions``.

    ``options`` applies to this call only; without it the process-wide
    defaults from :func:`~euclid_replay.config.get_replay_options` are used.
    """

    return _replay(proposition, proposition.given_elements(positions), options, registry)


def replay_construction(
    given_elements: Iterable[Entity],
    steps: Sequence[Step],
    *,
    options: Optional[ReplayOptions] = None,
    registry: Optional[Mapping[int, object]] = None,
) -> ReplayResult:
    """Replay a bare step list over explicit given elements."""

    elements = list(given_elements)
    script = Proposition(
        id=0,
        title="ad hoc construction",
        given_points=[],
        steps=list(steps),
    )
    return _replay(script, elements, options, registry)


__all__ = [
    "ReplayResult",
    "ReplayScope",
    "run_proposition",
    "replay",
    "replay_construction",
]
