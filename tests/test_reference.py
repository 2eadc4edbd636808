import pytest

from euclid_replay.book import BOOK_I
from euclid_replay.interpreter import replay
from euclid_replay.reference import REFERENCE_BUILDERS, compare_results, fact_signatures


@pytest.mark.parametrize('prop_id', sorted(REFERENCE_BUILDERS))
def test_replay_matches_hand_written_builder(prop_id):
    actual = replay(BOOK_I[prop_id])
    expected = REFERENCE_BUILDERS[prop_id]()

    assert compare_results(actual, expected) == []
    assert fact_signatures(actual.facts) == fact_signatures(expected.facts)


@pytest.mark.parametrize(
    'prop_id, positions',
    [
        (1, {'A': (0.0, 0.0), 'B': (1.0, 0.0)}),
        (1, {'A': (3.0, -1.0), 'B': (-2.0, 4.0)}),
        (2, {'A': (0.0, 2.0), 'B': (1.0, 0.0), 'C': (3.0, 1.0)}),
        (3, {'A': (0.0, 0.0), 'B': (5.0, 0.0), 'C': (1.0, -2.0), 'D': (3.0, -2.0)}),
    ],
)
def test_replay_matches_builder_at_other_positions(prop_id, positions):
    actual = replay(BOOK_I[prop_id], positions=positions)
    expected = REFERENCE_BUILDERS[prop_id](positions)

    assert compare_results(actual, expected) == []


def test_compare_results_reports_moved_points():
    moved = {'A': (0.0, 0.0), 'B': (1.0, 0.0)}
    actual = replay(BOOK_I[1])
    expected = REFERENCE_BUILDERS[1](moved)

    problems = compare_results(actual, expected)

    assert any(problem.startswith('point C') for problem in problems)
