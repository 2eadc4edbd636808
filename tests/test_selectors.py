import numpy as np
import pytest

from euclid_replay.errors import AmbiguousSelection, DegenerateGeometry, UnknownReference
from euclid_replay.intersections import find_new_intersections
from euclid_replay.model import IntersectionCandidate, Point
from euclid_replay.selectors import (
    apply_beyond_filter,
    candidates_for_pair,
    disambiguate,
    resolve_selector,
    straight_parent,
    tie_break,
)
from euclid_replay.state import add_circle, add_line, add_segment, initialize_given


def given(**coords):
    return initialize_given(Point(f"pt-{label}", label, x, y) for label, (x, y) in coords.items())


@pytest.fixture
def produced_line():
    """Segment AB with a circle about its midpoint crossing both extensions."""

    state = given(A=(0.0, 0.0), B=(1.0, 0.0), O=(0.5, 0.0), P=(0.5, 1.5))
    state, _ = add_segment(state, 'pt-A', 'pt-B')
    state, circle = add_circle(state, 'pt-O', 'pt-P')
    pool = find_new_intersections(state, circle, [], extended=True)
    return state, pool


def test_extension_hits_are_forward_first(produced_line):
    _, pool = produced_line

    assert [cand.xy for cand in pool] == [pytest.approx((2.0, 0.0)), pytest.approx((-1.0, 0.0))]


def test_beyond_end_keeps_forward_candidate(produced_line):
    state, pool = produced_line

    kept = apply_beyond_filter(pool, state, 'pt-B')

    assert [cand.xy for cand in kept] == [pytest.approx((2.0, 0.0))]


def test_beyond_start_keeps_backward_candidate(produced_line):
    state, pool = produced_line

    chosen, rule = disambiguate(pool, state, beyond='pt-A')

    assert chosen.xy == pytest.approx((-1.0, 0.0))
    assert rule == 'beyond'


def test_beyond_point_off_the_line_is_degenerate(produced_line):
    state, pool = produced_line

    with pytest.raises(DegenerateGeometry):
        apply_beyond_filter(pool, state, 'pt-P')


def test_beyond_with_no_survivor_is_ambiguous(produced_line):
    state, pool = produced_line

    with pytest.raises(AmbiguousSelection):
        apply_beyond_filter(pool[:1], state, 'pt-A')


def cand(x, y):
    return IntersectionCandidate(x, y, 'cir-1', 'cir-2')


REFERENCE = (np.array([-1.0, 0.0]), np.array([1.0, 0.0]))


def test_tie_break_prefers_requested_side():
    below, above = cand(0.0, -1.0), cand(0.0, 1.0)

    assert tie_break([below, above], REFERENCE, 'left') is above
    assert tie_break([below, above], REFERENCE, 'right') is below


def test_tie_break_treats_collinear_candidates_as_neutral():
    first, second = cand(2.0, 0.0), cand(3.0, 0.0)

    assert tie_break([first, second], REFERENCE, 'left') is first
    assert tie_break([first, second], None) is first


def test_tie_break_rejects_unknown_side_and_empty_pool():
    with pytest.raises(ValueError):
        tie_break([cand(0.0, 1.0)], REFERENCE, 'up')
    with pytest.raises(AmbiguousSelection):
        tie_break([], REFERENCE)


def test_disambiguate_reports_rule():
    state = given(A=(0.0, 0.0))
    below, above = cand(0.0, -1.0), cand(0.0, 1.0)

    assert disambiguate([above], state) == (above, 'unique')
    assert disambiguate([below, above], state, reference=REFERENCE) == (above, 'chirality')
    assert disambiguate([below, above], state) == (below, 'first')
    with pytest.raises(AmbiguousSelection):
        disambiguate([], state)


def test_resolve_selector_by_name_and_structure():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))
    state, circle = add_circle(state, 'pt-A', 'pt-B')

    assert resolve_selector('A', state) == 'pt-A'
    assert resolve_selector(circle.id, state) == circle.id
    assert resolve_selector({'kind': 'circle', 'center': 'A', 'through': 'B'}, state) == circle.id
    assert resolve_selector({'kind': 'point', 'name': 'B'}, state) == 'pt-B'


@pytest.mark.parametrize(
    'spec',
    [
        {'kind': 'circle', 'center': 'B', 'through': 'A'},
        {'kind': 'segment', 'from': 'A', 'to': 'B'},
        {'kind': 'label', 'label': 'nowhere'},
        {'kind': 'polygon', 'ids': ['A', 'B']},
        'Z',
    ],
)
def test_resolve_selector_rejects_missing_entities(spec):
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))
    state, _ = add_circle(state, 'pt-A', 'pt-B')

    with pytest.raises(UnknownReference):
        resolve_selector(spec, state)


def test_line_selector_prefers_produced_line(produced_line):
    state, _ = produced_line
    state, line = add_line(state, 'pt-A', 'pt-B', source='seg-1')

    assert resolve_selector({'kind': 'line', 'from': 'B', 'to': 'A'}, state) == line.id
    assert resolve_selector({'kind': 'segment', 'from': 'B', 'to': 'A'}, state) == 'seg-1'


def test_pair_matching_covers_lines_produced_from_a_segment(produced_line):
    state, pool = produced_line
    state, line = add_line(state, 'pt-A', 'pt-B', source='seg-1')
    from_line = IntersectionCandidate(5.0, 0.0, line.id, 'cir-1')
    duplicate = IntersectionCandidate(2.0, 0.0, 'cir-1', line.id)

    matched = candidates_for_pair(pool + [from_line, duplicate], state, 'seg-1', 'cir-1')

    assert [c.xy for c in matched] == [pytest.approx((2.0, 0.0)), pytest.approx((-1.0, 0.0)), (5.0, 0.0)]


def test_straight_parent_follows_the_line_through_a_point():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0), C=(3.0, -1.0), D=(3.0, 1.0))
    state, base = add_segment(state, 'pt-A', 'pt-B')
    state, cross = add_segment(state, 'pt-C', 'pt-D')
    crossing = IntersectionCandidate(3.0, 0.0, cross.id, base.id)

    assert straight_parent(state, crossing) is cross
    assert straight_parent(state, crossing, np.array([1.0, 0.0])) is base
    assert straight_parent(state, crossing, np.array([5.0, 5.0])) is None
    assert [cand.xy for cand in apply_beyond_filter([crossing], state, 'pt-B')] == [(3.0, 0.0)]


def test_resolve_selector_reports_missing_fields():
    state = given(A=(0.0, 0.0), B=(1.0, 0.0))

    with pytest.raises(UnknownReference):
        resolve_selector({'kind': 'circle', 'center': 'A'}, state)
    with pytest.raises(UnknownReference):
        resolve_selector(7, state)
