from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Set

from .script import STEP_KINDS, Proposition, Step
from .selectors import SIDES


class ValidationError(Exception):
    def __init__(self, message: str, issues: Optional[List["ValidationIssue"]] = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [])


@dataclass(frozen=True)
class ValidationIssue:
    step: int
    field: str
    message: str
    name: Optional[str] = None

    def __str__(self) -> str:
        where = "given" if self.step < 0 else f"step {self.step}"
        return f"[{where}, {self.field}] {self.message}"


def _selector_names(spec: Any) -> Iterable[tuple]:
    if isinstance(spec, str):
        yield ("", spec)
        return
    if not isinstance(spec, Mapping):
        return
    for key in ("center", "through", "from", "to", "name"):
        if key in spec:
            yield (f".{key}", spec[key])


def _check_name(issues: List[ValidationIssue], known: Set[str], step: int, field: str, name: Any) -> None:
    if not isinstance(name, str) or not name:
        issues.append(ValidationIssue(step, field, f"expected a point name, got {name!r}"))
    elif name not in known:
        issues.append(ValidationIssue(step, field, f"unknown point {name!r}", name))


def _check_selector(
    issues: List[ValidationIssue], known: Set[str], segment_ids: Set[str], step: int, field: str, spec: Any
) -> None:
    if isinstance(spec, str) and spec in segment_ids:
        return
    if isinstance(spec, Mapping) and spec.get("kind") not in ("circle", "segment", "line", "point", "label"):
        issues.append(ValidationIssue(step, field, f"unsupported selector kind {spec.get('kind')!r}"))
        return
    if not isinstance(spec, (str, Mapping)):
        issues.append(ValidationIssue(step, field, f"selector must be a name or mapping, got {spec!r}"))
        return
    if isinstance(spec, Mapping) and spec.get("kind") == "label":
        return
    for suffix, name in _selector_names(spec):
        _check_name(issues, known, step, field + suffix, name)


def collect_issues(proposition: Proposition, macros: Optional[Mapping[int, Any]] = None) -> List[ValidationIssue]:
    """Static problems in a script: unknown names, bad options, macro misuse."""

    if macros is None:
        from .macros import MACRO_REGISTRY

        macros = MACRO_REGISTRY
    issues: List[ValidationIssue] = []
    known: Set[str] = set()
    for pt in proposition.given_points:
        if pt.label in known:
            issues.append(ValidationIssue(-1, "given_points", f"duplicate label {pt.label!r}", pt.label))
        known.add(pt.label)
    segment_ids = {seg.id for seg in proposition.given_segments}
    for seg in proposition.given_segments:
        _check_name(issues, known, -1, "given_segments.start", seg.start)
        _check_name(issues, known, -1, "given_segments.end", seg.end)
    for fact in proposition.given_facts:
        for name in (*fact.left, *fact.right):
            _check_name(issues, known, -1, "given_facts", name)

    for idx, step in enumerate(proposition.steps):
        _check_step(issues, known, segment_ids, idx, step, macros)

    for key, name in proposition.outputs.items():
        if name not in known:
            issues.append(ValidationIssue(len(proposition.steps), f"outputs.{key}", f"output {name!r} is never produced", name))
    for left, right in proposition.theorem:
        for name in (*left, *right):
            _check_name(issues, known, len(proposition.steps), "theorem", name)
    for alias in proposition.degenerate_aliases:
        for name in (*alias.when, *alias.outputs.values()):
            if name not in proposition.input_labels:
                issues.append(
                    ValidationIssue(-1, "degenerate_aliases", f"alias refers to non-input {name!r}", name)
                )
    return issues


def _check_step(
    issues: List[ValidationIssue],
    known: Set[str],
    segment_ids: Set[str],
    idx: int,
    step: Step,
    macros: Mapping[int, Any],
) -> None:
    k = step.kind
    if k not in STEP_KINDS:
        issues.append(ValidationIssue(idx, "kind", f"unknown step kind {k!r}"))
    elif k == "compass":
        _check_name(issues, known, idx, "center", step.data.get("center"))
        _check_name(issues, known, idx, "through", step.data.get("through"))
    elif k == "straightedge":
        _check_name(issues, known, idx, "from", step.data.get("from"))
        _check_name(issues, known, idx, "to", step.data.get("to"))
    elif k == "extend":
        _check_selector(issues, known, segment_ids, idx, "segment", step.data.get("segment"))
    elif k == "intersection":
        _check_selector(issues, known, segment_ids, idx, "of_a", step.data.get("of_a"))
        _check_selector(issues, known, segment_ids, idx, "of_b", step.data.get("of_b"))
        beyond = step.opts.get("beyond")
        if beyond is not None:
            _check_name(issues, known, idx, "beyond", beyond)
        side = step.opts.get("side")
        if side is not None and side not in SIDES:
            issues.append(ValidationIssue(idx, "side", f"side must be left|right, got {side!r}"))
        reference = step.opts.get("reference")
        if reference is not None:
            if len(reference) != 2:
                issues.append(ValidationIssue(idx, "reference", "reference needs two point names"))
            else:
                for name in reference:
                    _check_name(issues, known, idx, "reference", name)
        label = step.data.get("label")
        if label is not None:
            if label in known:
                issues.append(ValidationIssue(idx, "label", f"label {label!r} is already defined", label))
            known.add(label)
    elif k == "macro":
        prop_id = step.data.get("prop")
        inputs = list(step.data.get("inputs", []))
        outputs = dict(step.data.get("outputs") or {})
        for name in inputs:
            _check_name(issues, known, idx, "inputs", name)
        macro = macros.get(prop_id)
        if macro is None:
            issues.append(ValidationIssue(idx, "prop", f"no macro registered for I.{prop_id}"))
        else:
            if len(inputs) != macro.input_count:
                issues.append(
                    ValidationIssue(idx, "inputs", f"I.{prop_id} takes {macro.input_count} input(s), got {len(inputs)}")
                )
            for key in outputs:
                if key not in macro.outputs:
                    issues.append(ValidationIssue(idx, "outputs", f"I.{prop_id} has no output {key!r}"))
        for name in outputs.values():
            if name in known:
                issues.append(ValidationIssue(idx, "outputs", f"label {name!r} is already defined", name))
            known.add(name)


def validate_proposition(proposition: Proposition, macros: Optional[Mapping[int, Any]] = None) -> None:
    issues = collect_issues(proposition, macros)
    if issues:
        details = "; ".join(str(issue) for issue in issues)
        raise ValidationError(f"{proposition.roman}: {len(issues)} problem(s): {details}", issues)
