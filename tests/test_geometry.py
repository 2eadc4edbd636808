import math

import numpy as np
import pytest

from euclid_replay.errors import DegenerateGeometry
from euclid_replay.geometry import (
    CircleValue,
    LineValue,
    circle_circle,
    collinear_overlap,
    line_circle,
    line_line,
    line_through,
    vec,
)


def circle(x, y, r):
    return CircleValue(vec(x, y), r)


def test_two_circles_meet_twice_left_point_first():
    points = circle_circle(circle(0, 0, 2), circle(2, 0, 2))

    assert len(points) == 2
    assert points[0].tolist() == pytest.approx([1.0, math.sqrt(3.0)])
    assert points[1].tolist() == pytest.approx([1.0, -math.sqrt(3.0)])


def test_tangent_circles_meet_once():
    points = circle_circle(circle(0, 0, 1), circle(2, 0, 1))

    assert len(points) == 1
    assert points[0].tolist() == pytest.approx([1.0, 0.0])


@pytest.mark.parametrize(
    'a, b',
    [
        (circle(0, 0, 1), circle(5, 0, 1)),
        (circle(0, 0, 5), circle(1, 0, 1)),
        (circle(0, 0, 1), circle(0, 0, 2)),
    ],
)
def test_separate_nested_and_concentric_circles_do_not_meet(a, b):
    assert circle_circle(a, b) == []


def test_coincident_circles_are_degenerate():
    with pytest.raises(DegenerateGeometry):
        circle_circle(circle(1, 1, 2), circle(1, 1, 2))


def test_zero_radius_is_degenerate():
    with pytest.raises(DegenerateGeometry):
        circle_circle(circle(0, 0, 0), circle(1, 0, 1))


def test_line_circle_sorted_by_parameter():
    line = line_through(vec(-3, 0), vec(3, 0))

    hits = line_circle(line, circle(0, 0, 1))

    assert [t for t, _ in hits] == pytest.approx([1.0 / 3.0, 2.0 / 3.0])
    assert hits[0][1].tolist() == pytest.approx([-1.0, 0.0])
    assert hits[1][1].tolist() == pytest.approx([1.0, 0.0])


def test_line_circle_tangent_and_miss():
    line = line_through(vec(-1, 1), vec(1, 1))

    assert len(line_circle(line, circle(0, 0, 1))) == 1
    assert line_circle(line, circle(0, 0, 0.5)) == []


def test_line_line_crossing_and_parallel():
    a = LineValue(vec(0, 0), vec(1, 0))
    b = LineValue(vec(0.5, -1), vec(0, 2))

    t, u, point = line_line(a, b)

    assert t == pytest.approx(0.5)
    assert u == pytest.approx(0.5)
    assert point.tolist() == pytest.approx([0.5, 0.0])
    assert line_line(a, LineValue(vec(0, 1), vec(2, 0))) is None


def test_bounded_line_accepts_endpoints_only_within_tolerance():
    segment = line_through(vec(0, 0), vec(1, 0), bounded=True)

    assert segment.contains_param(0.0)
    assert segment.contains_param(1.0)
    assert not segment.contains_param(1.001)
    assert segment.param(np.array([2.0, 5.0])) == pytest.approx(2.0)


def test_line_through_coincident_points_is_degenerate():
    with pytest.raises(DegenerateGeometry):
        line_through(vec(1, 1), vec(1, 1))


def test_tangent_circles_at_arbitrary_positions_meet_once():
    rng = np.random.default_rng(7)
    for _ in range(500):
        r0, r1 = rng.uniform(0.1, 10.0, size=2)
        center = rng.uniform(-50.0, 50.0, size=2)
        theta = rng.uniform(0.0, 2.0 * math.pi)
        direction = np.array([math.cos(theta), math.sin(theta)])

        outer = circle_circle(CircleValue(center, r0), CircleValue(center + direction * (r0 + r1), r1))
        inner = circle_circle(CircleValue(center, r0 + r1), CircleValue(center + direction * r0, r1))

        assert len(outer) == 1
        assert len(inner) == 1
        assert outer[0].tolist() == pytest.approx((center + direction * r0).tolist())
        assert inner[0].tolist() == pytest.approx((center + direction * (r0 + r1)).tolist())


def test_tangent_lines_at_arbitrary_positions_touch_once():
    rng = np.random.default_rng(11)
    for _ in range(500):
        radius = rng.uniform(0.1, 10.0)
        center = rng.uniform(-50.0, 50.0, size=2)
        theta = rng.uniform(0.0, 2.0 * math.pi)
        normal = np.array([math.cos(theta), math.sin(theta)])
        touch = center + normal * radius
        along = np.array([-normal[1], normal[0]])

        hits = line_circle(line_through(touch - along * 2.0, touch + along * 3.0), CircleValue(center, radius))

        assert len(hits) == 1
        assert hits[0][0] == pytest.approx(0.4)
        assert hits[0][1].tolist() == pytest.approx(touch.tolist())


def test_collinear_overlap_ignores_parallel_and_end_to_end_segments():
    ab = line_through(vec(0, 0), vec(2, 0), bounded=True)

    assert collinear_overlap(ab, line_through(vec(1, 0), vec(3, 0), bounded=True))
    assert collinear_overlap(ab, line_through(vec(5, 0), vec(6, 0)))
    assert not collinear_overlap(ab, line_through(vec(2, 0), vec(3, 0), bounded=True))
    assert not collinear_overlap(ab, line_through(vec(0, 1), vec(2, 1)))
    assert not collinear_overlap(ab, line_through(vec(1, -1), vec(1, 1)))
