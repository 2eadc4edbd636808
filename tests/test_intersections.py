import math

import numpy as np
import pytest

from euclid_replay.errors import DegenerateGeometry
from euclid_replay.intersections import find_new_intersections, order_along
from euclid_replay.model import Point
from euclid_replay.state import add_circle, add_line, add_segment, initialize_given


def given(**coords):
    return initialize_given(Point(f"pt-{label}", label, x, y) for label, (x, y) in coords.items())


def test_second_circle_yields_point_left_of_new_to_old_centre_first():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))
    state, circle_a = add_circle(state, 'pt-A', 'pt-B')
    state, circle_b = add_circle(state, 'pt-B', 'pt-A')

    found = find_new_intersections(state, circle_b, [])

    assert [cand.parents for cand in found] == [(circle_b.id, circle_a.id)] * 2
    assert found[0].x == pytest.approx(0.5)
    assert found[0].y == pytest.approx(-math.sqrt(3.0) / 2.0)
    assert found[1].y == pytest.approx(math.sqrt(3.0) / 2.0)
    assert [cand.which for cand in found] == [0, 1]


def test_known_candidates_are_not_repeated():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))
    state, _ = add_circle(state, 'pt-A', 'pt-B')
    state, circle_b = add_circle(state, 'pt-B', 'pt-A')
    first = find_new_intersections(state, circle_b, [])

    assert find_new_intersections(state, circle_b, first) == []


def test_points_on_existing_points_are_skipped_and_segments_stay_bounded():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))
    state, _ = add_circle(state, 'pt-A', 'pt-B')
    state, segment = add_segment(state, 'pt-A', 'pt-B')

    assert find_new_intersections(state, segment, []) == []

    extended = find_new_intersections(state, segment, [], extended=True)

    assert len(extended) == 1
    assert extended[0].xy == pytest.approx((-1.0, 0.0))


def test_candidates_follow_insertion_order_of_older_entities():
    state = given(A=(0.0, 0.0), B=(4.0, 0.0), C=(2.0, -3.0), D=(2.0, 3.0))
    state, first = add_segment(state, 'pt-A', 'pt-B')
    state, _ = add_circle(state, 'pt-A', 'pt-C')
    state, cross = add_segment(state, 'pt-C', 'pt-D')

    found = find_new_intersections(state, cross, [])

    assert found[0].of_b == first.id
    assert found[0].xy == pytest.approx((2.0, 0.0))
    assert all(cand.of_a == cross.id for cand in found)


def test_order_along_puts_segment_hits_then_forward_then_backward():
    hits = [(t, np.array([t, 0.0])) for t in (-0.5, 0.5, 1.5, -2.0, 0.2, 3.0)]

    ordered = [t for t, _ in order_along(hits)]

    assert ordered == [0.2, 0.5, 1.5, 3.0, -0.5, -2.0]


def test_tangent_circles_at_arbitrary_positions_give_one_candidate():
    rng = np.random.default_rng(3)
    for _ in range(200):
        r0, r1 = rng.uniform(0.5, 5.0, size=2)
        ax, ay = rng.uniform(-20.0, 20.0, size=2)
        theta, phi, psi = rng.uniform(0.0, 2.0 * math.pi, size=3)
        bx, by = ax + (r0 + r1) * math.cos(theta), ay + (r0 + r1) * math.sin(theta)
        state = given(
            A=(ax, ay),
            B=(bx, by),
            P=(ax + r0 * math.cos(phi), ay + r0 * math.sin(phi)),
            Q=(bx + r1 * math.cos(psi), by + r1 * math.sin(psi)),
        )
        state, _ = add_circle(state, 'pt-A', 'pt-P')
        state, circle_b = add_circle(state, 'pt-B', 'pt-Q')

        found = find_new_intersections(state, circle_b, [])

        assert len(found) == 1
        assert found[0].xy == pytest.approx((ax + r0 * math.cos(theta), ay + r0 * math.sin(theta)))


def test_segment_along_an_earlier_segment_is_degenerate():
    state = given(A=(0.0, 0.0), B=(2.0, 0.0), C=(1.0, 0.0), D=(3.0, 0.0))
    state, _ = add_segment(state, 'pt-A', 'pt-B')
    state, overlapping = add_segment(state, 'pt-C', 'pt-D')

    with pytest.raises(DegenerateGeometry):
        find_new_intersections(state, overlapping, [])


def test_segments_meeting_end_to_end_on_one_line_are_allowed():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0), C=(2.0, 0.0))
    state, _ = add_segment(state, 'pt-A', 'pt-B')
    state, following = add_segment(state, 'pt-B', 'pt-C')

    assert find_new_intersections(state, following, []) == []
    with pytest.raises(DegenerateGeometry):
        find_new_intersections(state, following, [], extended=True)


def test_produced_line_skips_its_own_segment():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))
    state, segment = add_segment(state, 'pt-A', 'pt-B')
    state, line = add_line(state, 'pt-A', 'pt-B', source=segment.id)

    assert find_new_intersections(state, line, [], extended=True) == []
