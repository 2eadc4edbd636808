"""Book I propositions 1-7 as replayable step scripts.

Propositions that declare ``outputs`` are also available as macros; their
``theorem`` equalities are what a caller may cite after invoking them.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .derivation import ConclusionContext
from .facts import Citation
from .script import (
    DegenerateAlias,
    GivenFact,
    GivenPoint,
    GivenSegment,
    Positions,
    Proposition,
    circle_sel,
    compass,
    intersection,
    macro,
    segment_sel,
    straightedge,
)

PROP4_ROTATION = 0.4


def _prop2_conclusion(ctx: ConclusionContext) -> None:
    ctx.assert_equal(
        ("A", "F"),
        ("B", "E"),
        Citation("cn3", whole=ctx.pair("D", "F"), part=ctx.pair("D", "A")),
        "C.N.3: DF - DA = DE - DB, since DF = DE and DA = DB",
    )
    if not ctx.holds(("A", "F"), ("B", "C")):
        ctx.assert_equal(
            ("A", "F"),
            ("B", "C"),
            Citation("cn1", via=ctx.pair("B", "E")),
            "C.N.1: AF = BE and BC = BE",
        )


def _prop4_conclusion(ctx: ConclusionContext) -> None:
    ctx.assert_equal(
        ("B", "C"),
        ("E", "F"),
        Citation("cn4"),
        "C.N.4: AB = DE, AC = DF and the included angles are equal, so the triangles coincide",
    )


def _prop5_conclusion(ctx: ConclusionContext) -> None:
    ctx.assert_equal(
        ("C", "G"),
        ("B", "F"),
        Citation("cn3", whole=ctx.pair("A", "G"), part=ctx.pair("A", "C")),
        "C.N.3: AG - AC = AF - AB, since AG = AF and AB = AC",
    )
    ctx.assert_equal(
        ("F", "C"),
        ("G", "B"),
        Citation("prop", prop_id=4),
        "I.4: triangles AFC and AGB agree in two sides and the included angle",
    )


def _rotate_about(origin: Tuple[float, float], vector: Tuple[float, float], theta: float) -> Tuple[float, float]:
    c, s = math.cos(theta), math.sin(theta)
    return (origin[0] + c * vector[0] - s * vector[1], origin[1] + s * vector[0] + c * vector[1])


def _prop4_positions(coords: Positions) -> Positions:
    ax, ay = coords["A"]
    bx, by = coords["B"]
    cx, cy = coords["C"]
    coords["E"] = _rotate_about(coords["D"], (bx - ax, by - ay), PROP4_ROTATION)
    coords["F"] = _rotate_about(coords["D"], (cx - ax, cy - ay), PROP4_ROTATION)
    return coords


def _prop5_positions(coords: Positions) -> Positions:
    # C mirrors B across the vertical through A, keeping AB = AC
    ax, _ = coords["A"]
    bx, by = coords["B"]
    coords["C"] = (2.0 * ax - bx, by)
    return coords


def _prop4_defaults() -> Dict[str, Tuple[float, float]]:
    return _prop4_positions({"A": (-4.0, -0.5), "B": (-6.2, -1.5), "C": (-2.8, 1.8), "D": (2.5, -0.5)})


_P4 = _prop4_defaults()


PROP_1 = Proposition(
    id=1,
    title="On a given finite straight line to construct an equilateral triangle",
    given_points=[GivenPoint("A", -2.0, 0.0), GivenPoint("B", 2.0, 0.0)],
    given_segments=[GivenSegment("A", "B")],
    steps=[
        compass("A", "B", "Describe the circle BCD with centre A and distance AB"),
        compass("B", "A", "Describe the circle ACE with centre B and distance BA"),
        intersection(
            circle_sel("A", "B"),
            circle_sel("B", "A"),
            "C",
            instruction="Mark C where the circles cut one another",
        ),
        straightedge("C", "A", "Join CA"),
        straightedge("C", "B", "Join CB"),
    ],
    outputs={"apex": "C"},
    theorem=[(("C", "A"), ("A", "B")), (("C", "B"), ("A", "B"))],
)

PROP_2 = Proposition(
    id=2,
    title="To place at a given point a straight line equal to a given straight line",
    given_points=[GivenPoint("A", -1.5, 1.5), GivenPoint("B", 0.0, 0.0), GivenPoint("C", 1.5, 0.0)],
    given_segments=[GivenSegment("B", "C")],
    steps=[
        straightedge("A", "B", "Join AB"),
        macro(1, ["A", "B"], {"apex": "D"}, "Construct the equilateral triangle DAB on AB"),
        compass("B", "C", "Describe the circle CGH with centre B and distance BC"),
        intersection(
            circle_sel("B", "C"),
            segment_sel("D", "B"),
            "E",
            beyond="B",
            instruction="Produce DB to meet the circle at E",
        ),
        compass("D", "E", "Describe the circle with centre D and distance DE"),
        intersection(
            circle_sel("D", "E"),
            segment_sel("D", "A"),
            "F",
            beyond="A",
            instruction="Produce DA to meet the circle at F",
        ),
    ],
    outputs={"result": "F"},
    theorem=[(("A", "F"), ("B", "C"))],
    conclusion=_prop2_conclusion,
    degenerate_aliases=[DegenerateAlias(when=("A", "B"), outputs={"result": "C"})],
)

PROP_3 = Proposition(
    id=3,
    title="Given two unequal straight lines, to cut off from the greater a straight line equal to the less",
    given_points=[
        GivenPoint("A", -2.5, 0.5),
        GivenPoint("B", 1.5, 0.5),
        GivenPoint("C", 0.5, -1.5),
        GivenPoint("D", 2.0, -1.5),
    ],
    given_segments=[GivenSegment("A", "B"), GivenSegment("C", "D")],
    steps=[
        macro(2, ["A", "C", "D"], {"result": "E"}, "Place at A the straight line AE equal to CD"),
        compass("A", "E", "Describe the circle with centre A and distance AE"),
        intersection(
            circle_sel("A", "E"),
            segment_sel("A", "B"),
            "F",
            instruction="Mark F where the circle cuts AB",
        ),
    ],
    outputs={"result": "F"},
    theorem=[(("A", "F"), ("C", "D"))],
)

PROP_4 = Proposition(
    id=4,
    title="Triangles with two sides and the included angle equal are equal in all respects",
    given_points=[
        GivenPoint("A", -4.0, -0.5),
        GivenPoint("B", -6.2, -1.5),
        GivenPoint("C", -2.8, 1.8),
        GivenPoint("D", 2.5, -0.5),
        GivenPoint("E", *_P4["E"]),
        GivenPoint("F", *_P4["F"]),
    ],
    given_segments=[
        GivenSegment("A", "B"),
        GivenSegment("A", "C"),
        GivenSegment("B", "C"),
        GivenSegment("D", "E"),
        GivenSegment("D", "F"),
    ],
    steps=[straightedge("E", "F", "Join EF")],
    given_facts=[GivenFact(("A", "B"), ("D", "E"), "AB = DE"), GivenFact(("A", "C"), ("D", "F"), "AC = DF")],
    conclusion=_prop4_conclusion,
    position_factory=_prop4_positions,
    kind="theorem",
)

PROP_5 = Proposition(
    id=5,
    title="In isosceles triangles the angles at the base are equal",
    given_points=[GivenPoint("A", 0.0, 2.0), GivenPoint("B", -2.0, -1.0), GivenPoint("C", 2.0, -1.0)],
    given_segments=[GivenSegment("A", "B"), GivenSegment("A", "C"), GivenSegment("B", "C")],
    steps=[
        compass("B", "C", "Describe the circle with centre B and distance BC"),
        intersection(
            circle_sel("B", "C"),
            segment_sel("A", "B"),
            "F",
            beyond="B",
            instruction="Produce AB to F",
        ),
        macro(3, ["A", "C", "A", "F"], {"result": "G"}, "Cut off AG from AC produced equal to AF"),
        straightedge("F", "C", "Join FC"),
        straightedge("G", "B", "Join GB"),
    ],
    given_facts=[GivenFact(("A", "B"), ("A", "C"), "AB = AC")],
    conclusion=_prop5_conclusion,
    position_factory=_prop5_positions,
    kind="theorem",
)

PROP_6 = Proposition(
    id=6,
    title="If two angles of a triangle are equal, the sides opposite them are equal",
    given_points=[GivenPoint("A", 0.0, 2.5), GivenPoint("B", -2.0, 0.0), GivenPoint("C", 1.0, 0.0)],
    given_segments=[GivenSegment("A", "B"), GivenSegment("A", "C"), GivenSegment("B", "C")],
    steps=[
        macro(3, ["B", "A", "A", "C"], {"result": "D"}, "Cut off DB from AB equal to AC"),
        straightedge("D", "C", "Join DC"),
    ],
    kind="theorem",
)

PROP_7 = Proposition(
    id=7,
    title="On the same base and side there cannot be two distinct triangles with equal corresponding sides",
    given_points=[
        GivenPoint("A", -1.5, 0.0),
        GivenPoint("B", 1.5, 0.0),
        GivenPoint("C", 0.0, 2.5),
        GivenPoint("D", 1.0, 2.3),
    ],
    given_segments=[
        GivenSegment("A", "B"),
        GivenSegment("A", "C"),
        GivenSegment("A", "D"),
        GivenSegment("B", "C"),
        GivenSegment("B", "D"),
    ],
    steps=[straightedge("C", "D", "Join CD")],
    given_facts=[GivenFact(("A", "C"), ("A", "D"), "AC = AD"), GivenFact(("B", "C"), ("B", "D"), "BC = BD")],
    kind="theorem",
)

BOOK_I: Mapping[int, Proposition] = MappingProxyType(
    {prop.id: prop for prop in (PROP_1, PROP_2, PROP_3, PROP_4, PROP_5, PROP_6, PROP_7)}
)


def get_proposition(prop_id: int) -> Proposition:
    try:
        return BOOK_I[prop_id]
    except KeyError:
        raise KeyError(f"Book I has no proposition {prop_id} in this collection") from None


__all__ = [
    "PROP_1",
    "PROP_2",
    "PROP_3",
    "PROP_4",
    "PROP_5",
    "PROP_6",
    "PROP_7",
    "BOOK_I",
    "get_proposition",
]
