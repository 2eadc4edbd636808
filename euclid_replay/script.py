from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .model import Entity, Point, Segment
from .state import point_id

STEP_KINDS = ("compass", "straightedge", "intersection", "extend", "macro")

NamePair = Tuple[str, str]
Equality = Tuple[NamePair, NamePair]
Positions = Dict[str, Tuple[float, float]]


@dataclass
class Step:
    kind: str  # one of STEP_KINDS
    data: Dict[str, Any] = field(default_factory=dict)
    opts: Dict[str, Any] = field(default_factory=dict)
    instruction: str = ""
    citation: Optional[str] = None


@dataclass
class GivenPoint:
    label: str
    x: float
    y: float


@dataclass
class GivenSegment:
    start: str
    end: str

    @property
    def id(self) -> str:
        return f"seg-{self.start}{self.end}"


@dataclass
class GivenFact:
    left: NamePair
    right: NamePair
    statement: str = ""


@dataclass
class DegenerateAlias:
    """Bind outputs straight to inputs when the ``when`` inputs coincide."""

    when: NamePair
    outputs: Dict[str, str]


@dataclass
class Proposition:
    id: int
    title: str
    given_points: List[GivenPoint]
    given_segments: List[GivenSegment] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    given_facts: List[GivenFact] = field(default_factory=list)
    outputs: Dict[str, str] = field(default_factory=dict)  # macro output key -> name
    theorem: List[Equality] = field(default_factory=list)
    conclusion: Optional[Callable[..., Any]] = None
    degenerate_aliases: List[DegenerateAlias] = field(default_factory=list)
    position_factory: Optional[Callable[[Positions], Positions]] = None
    kind: str = "construction"  # or 'theorem'

    @property
    def input_labels(self) -> List[str]:
        return [pt.label for pt in self.given_points]

    @property
    def roman(self) -> str:
        return f"I.{self.id}"

    def needs_extended_segments(self) -> bool:
        """Scripts that mark points beyond an endpoint need segments as lines."""

        for step in self.steps:
            if step.kind == "extend":
                return True
            if step.kind == "intersection" and step.opts.get("beyond"):
                return True
        return False

    def positions(self, overrides: Optional[Mapping[str, Sequence[float]]] = None) -> Positions:
        coords: Positions = {pt.label: (float(pt.x), float(pt.y)) for pt in self.given_points}
        for label, xy in (overrides or {}).items():
            if label not in coords:
                raise KeyError(f"{self.roman} has no given point {label!r}")
            coords[label] = (float(xy[0]), float(xy[1]))
        if self.position_factory is not None:
            coords = dict(self.position_factory(dict(coords)))
        return coords

    def given_elements(self, overrides: Optional[Mapping[str, Sequence[float]]] = None) -> List[Entity]:
        coords = self.positions(overrides)
        elements: List[Entity] = [
            Point(point_id(pt.label), pt.label, *coords[pt.label], origin="given") for pt in self.given_points
        ]
        for seg in self.given_segments:
            elements.append(Segment(seg.id, point_id(seg.start), point_id(seg.end), origin="given"))
        return elements


def circle_sel(center: str, through: str) -> Dict[str, str]:
    return {"kind": "circle", "center": center, "through": through}


def segment_sel(a: str, b: str) -> Dict[str, str]:
    return {"kind": "segment", "from": a, "to": b}


def line_sel(a: str, b: str) -> Dict[str, str]:
    return {"kind": "line", "from": a, "to": b}


def compass(center: str, through: str, instruction: str = "", citation: str = "Post.3") -> Step:
    return Step("compass", {"center": center, "through": through}, instruction=instruction, citation=citation)


def straightedge(start: str, end: str, instruction: str = "", citation: str = "Post.1") -> Step:
    return Step("straightedge", {"from": start, "to": end}, instruction=instruction, citation=citation)


def intersection(
    of_a: Any,
    of_b: Any,
    label: Optional[str] = None,
    *,
    beyond: Optional[str] = None,
    side: Optional[str] = None,
    reference: Optional[NamePair] = None,
    instruction: str = "",
) -> Step:
    opts: Dict[str, Any] = {}
    if beyond is not None:
        opts["beyond"] = beyond
    if side is not None:
        opts["side"] = side
    if reference is not None:
        opts["reference"] = tuple(reference)
    return Step("intersection", {"of_a": of_a, "of_b": of_b, "label": label}, opts, instruction=instruction)


def extend(start: str, end: str, instruction: str = "", citation: str = "Post.2") -> Step:
    return Step("extend", {"segment": segment_sel(start, end)}, instruction=instruction, citation=citation)


def macro(prop_id: int, inputs: Sequence[str], outputs: Optional[Mapping[str, str]] = None, instruction: str = "") -> Step:
    return Step(
        "macro",
        {"prop": prop_id, "inputs": list(inputs), "outputs": dict(outputs or {})},
        instruction=instruction,
        citation=f"I.{prop_id}",
    )


__all__ = [
    "STEP_KINDS",
    "Step",
    "GivenPoint",
    "GivenSegment",
    "GivenFact",
    "DegenerateAlias",
    "Proposition",
    "circle_sel",
    "segment_sel",
    "line_sel",
    "compass",
    "straightedge",
    "intersection",
    "extend",
    "macro",
]
