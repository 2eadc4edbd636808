"""Closed-form intersection primitives on numpy vectors."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .config import EPSILON
from .errors import DegenerateGeometry


@dataclass(frozen=True)
class LineValue:
    """Line ``p + t * d``; bounded lines only cover ``t`` in ``[0, 1]``."""

    p: np.ndarray
    d: np.ndarray
    bounded: bool = False

    def at(self, t: float) -> np.ndarray:
        return self.p + t * self.d

    def param(self, point: np.ndarray) -> float:
        return float(np.dot(point - self.p, self.d) / np.dot(self.d, self.d))

    def contains_param(self, t: float) -> bool:
        if not self.bounded:
            return True
        return -EPSILON <= t <= 1.0 + EPSILON


@dataclass(frozen=True)
class CircleValue:
    center: np.ndarray
    radius: float


def vec(x: float, y: float) -> np.ndarray:
    return np.array([float(x), float(y)], dtype=float)


def cross2(u: np.ndarray, v: np.ndarray) -> float:
    return float(u[0] * v[1] - u[1] * v[0])


def rot90(v: np.ndarray) -> np.ndarray:
    return np.array([-v[1], v[0]], dtype=float)


def dist(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


def side_of(origin: np.ndarray, direction: np.ndarray, point: np.ndarray) -> float:
    """Signed area test: positive left of ``direction``, negative right, zero on it."""

    return cross2(direction, point - origin)


def same_point(a: np.ndarray, b: np.ndarray) -> bool:
    return dist(a, b) <= EPSILON


def line_through(a: np.ndarray, b: np.ndarray, bounded: bool = False) -> LineValue:
    d = b - a
    if float(np.dot(d, d)) <= EPSILON * EPSILON:
        raise DegenerateGeometry("line through coincident points")
    return LineValue(a, d, bounded)


def _check_circle(circle: CircleValue) -> None:
    if circle.radius <= EPSILON:
        raise DegenerateGeometry("circle of zero radius")


def circle_circle(a: CircleValue, b: CircleValue) -> List[np.ndarray]:
    """Intersections of two circles, the point left of ``a -> b`` first."""

    _check_circle(a)
    _check_circle(b)
    delta = b.center - a.center
    d = float(np.linalg.norm(delta))
    if d <= EPSILON:
        if abs(a.radius - b.radius) <= EPSILON:
            raise DegenerateGeometry("coincident circles intersect everywhere")
        return []
    r0, r1 = a.radius, b.radius
    if d > r0 + r1 + EPSILON or d < abs(r0 - r1) - EPSILON:
        return []
    along = (r0 * r0 - r1 * r1 + d * d) / (2.0 * d)
    base = a.center + delta * (along / d)
    # tangency is decided on distances, before the sqrt
    if abs(d - (r0 + r1)) <= EPSILON or abs(d - abs(r0 - r1)) <= EPSILON:
        return [base]
    h = math.sqrt(max(r0 * r0 - along * along, 0.0))
    offset = rot90(delta) * (h / d)
    return [base + offset, base - offset]


def line_circle(line: LineValue, circle: CircleValue) -> List[Tuple[float, np.ndarray]]:
    """Intersections as ``(t, point)`` pairs sorted by ``t``; bounds are ignored."""

    _check_circle(circle)
    length = float(np.linalg.norm(line.d))
    if length <= EPSILON:
        raise DegenerateGeometry("line of zero length")
    unit = line.d / length
    # foot of the perpendicular from the centre, measured in unit lengths
    s0 = float(np.dot(circle.center - line.p, unit))
    offset = cross2(unit, circle.center - line.p)
    if abs(offset) > circle.radius + EPSILON:
        return []
    if abs(abs(offset) - circle.radius) <= EPSILON:
        return [(s0 / length, line.p + unit * s0)]
    half = math.sqrt(max(circle.radius * circle.radius - offset * offset, 0.0))
    return [
        ((s0 - half) / length, line.p + unit * (s0 - half)),
        ((s0 + half) / length, line.p + unit * (s0 + half)),
    ]


def line_line(a: LineValue, b: LineValue) -> Optional[Tuple[float, float, np.ndarray]]:
    """Unique crossing ``(t_a, t_b, point)``, or ``None`` for parallel lines."""

    denom = cross2(a.d, b.d)
    scale = float(np.linalg.norm(a.d) * np.linalg.norm(b.d))
    if scale <= EPSILON:
        raise DegenerateGeometry("line of zero length")
    if abs(denom) <= EPSILON * scale:
        return None
    qp = b.p - a.p
    t = cross2(qp, b.d) / denom
    u = cross2(qp, a.d) / denom
    return (t, u, a.at(t))


def collinear_overlap(a: LineValue, b: LineValue) -> bool:
    """True when ``a`` and ``b`` lie on one line and share more than a point."""

    scale = float(np.linalg.norm(a.d) * np.linalg.norm(b.d))
    if abs(cross2(a.d, b.d)) > EPSILON * scale:
        return False
    length = float(np.linalg.norm(a.d))
    if abs(cross2(a.d, b.p - a.p)) / length > EPSILON:
        return False
    if not (a.bounded and b.bounded):
        return True
    t0, t1 = sorted((a.param(b.p), a.param(b.at(1.0))))
    return min(t1, 1.0) - max(t0, 0.0) > EPSILON


__all__ = [
    "LineValue",
    "CircleValue",
    "vec",
    "cross2",
    "rot90",
    "dist",
    "side_of",
    "same_point",
    "line_through",
    "circle_circle",
    "line_circle",
    "line_line",
    "collinear_overlap",
]
