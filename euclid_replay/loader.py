"""Plain-data (JSON) form of propositions.

Conclusions and position factories are code and do not survive the round
trip; everything else does.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .script import DegenerateAlias, GivenFact, GivenPoint, GivenSegment, Proposition, Step

logger = logging.getLogger(__name__)

_OPTION_KEYS = ("beyond", "side", "reference")


def _pair(value: Any) -> tuple:
    a, b = value
    return (str(a), str(b))


def step_from_dict(raw: Mapping[str, Any]) -> Step:
    body = dict(raw)
    kind = body.pop("kind")
    instruction = body.pop("instruction", "")
    citation = body.pop("citation", None)
    opts = {key: body.pop(key) for key in _OPTION_KEYS if key in body}
    if "reference" in opts:
        opts["reference"] = _pair(opts["reference"])
    return Step(kind, body, opts, instruction=instruction, citation=citation)


def step_to_dict(step: Step) -> Dict[str, Any]:
    out: Dict[str, Any] = {"kind": step.kind}
    out.update(step.data)
    for key, value in step.opts.items():
        out[key] = list(value) if isinstance(value, tuple) else value
    if step.instruction:
        out["instruction"] = step.instruction
    if step.citation:
        out["citation"] = step.citation
    return out


def proposition_from_dict(raw: Mapping[str, Any]) -> Proposition:
    given = raw.get("given", {})
    return Proposition(
        id=int(raw["id"]),
        title=str(raw.get("title", "")),
        given_points=[GivenPoint(pt["label"], float(pt["x"]), float(pt["y"])) for pt in given.get("points", [])],
        given_segments=[GivenSegment(*_pair(seg)) for seg in given.get("segments", [])],
        steps=[step_from_dict(step) for step in raw.get("steps", [])],
        given_facts=[
            GivenFact(_pair(fact["left"]), _pair(fact["right"]), fact.get("statement", ""))
            for fact in raw.get("given_facts", [])
        ],
        outputs=dict(raw.get("outputs", {})),
        theorem=[(_pair(left), _pair(right)) for left, right in raw.get("theorem", [])],
        degenerate_aliases=[
            DegenerateAlias(_pair(alias["when"]), dict(alias["outputs"]))
            for alias in raw.get("degenerate_aliases", [])
        ],
        kind=raw.get("kind", "construction"),
    )


def proposition_to_dict(proposition: Proposition) -> Dict[str, Any]:
    if proposition.conclusion is not None or proposition.position_factory is not None:
        logger.debug("%s carries code that is not serialized", proposition.roman)
    out: Dict[str, Any] = {
        "id": proposition.id,
        "title": proposition.title,
        "kind": proposition.kind,
        "given": {
            "points": [{"label": pt.label, "x": pt.x, "y": pt.y} for pt in proposition.given_points],
            "segments": [[seg.start, seg.end] for seg in proposition.given_segments],
        },
        "steps": [step_to_dict(step) for step in proposition.steps],
    }
    if proposition.given_facts:
        out["given_facts"] = [
            {"left": list(fact.left), "right": list(fact.right), "statement": fact.statement}
            for fact in proposition.given_facts
        ]
    if proposition.outputs:
        out["outputs"] = dict(proposition.outputs)
    if proposition.theorem:
        out["theorem"] = [[list(left), list(right)] for left, right in proposition.theorem]
    if proposition.degenerate_aliases:
        out["degenerate_aliases"] = [
            {"when": list(alias.when), "outputs": dict(alias.outputs)} for alias in proposition.degenerate_aliases
        ]
    return out


def load_proposition(path: Union[str, Path]) -> Proposition:
    text = Path(path).read_text(encoding="utf-8")
    return proposition_from_dict(json.loads(text))


def dump_proposition(proposition: Proposition, path: Union[str, Path]) -> None:
    Path(path).write_text(json.dumps(proposition_to_dict(proposition), indent=2) + "\n", encoding="utf-8")


__all__: List[str] = [
    "step_from_dict",
    "step_to_dict",
    "proposition_from_dict",
    "proposition_to_dict",
    "load_proposition",
    "dump_proposition",
]
