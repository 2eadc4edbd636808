import pytest

from euclid_replay.derivation import ConclusionContext, assert_equal, load_given_facts
from euclid_replay.facts import Citation, DistancePair, FactStore
from euclid_replay.model import Point
from euclid_replay.state import initialize_given


def pair(a, b):
    return DistancePair(f'pt-{a}', f'pt-{b}')


def add(store, left, right, rule='given'):
    return store.add_fact(pair(*left), pair(*right), Citation(rule), f'{left} = {right}', 'test', 0)


def test_distance_pair_is_unordered():
    assert DistancePair('pt-B', 'pt-A') == DistancePair('pt-A', 'pt-B')
    assert DistancePair('pt-B', 'pt-A').key == 'pt-A|pt-B'
    assert DistancePair('pt-A', 'pt-A').is_trivial


def test_add_fact_records_new_equalities_once():
    store = FactStore()

    first = add(store, 'AB', 'CD')
    again = add(store, 'DC', 'BA')

    assert [fact.id for fact in first] == [1]
    assert again == []
    assert len(store) == 1


def test_transitive_equalities_are_implied_not_stored():
    store = FactStore()
    add(store, 'AB', 'CD')
    add(store, 'CD', 'EF')

    assert store.query_equality(pair('A', 'B'), pair('E', 'F'))
    assert add(store, 'AB', 'EF') == []
    assert store.equal_distances(pair('E', 'F')) == sorted([pair('A', 'B'), pair('C', 'D'), pair('E', 'F')])
    assert not store.query_equality(pair('A', 'B'), pair('A', 'C'))


def test_trivial_pairs_are_ignored():
    store = FactStore()

    assert add(store, 'AA', 'BC') == []
    assert len(store) == 0


def test_rebuild_keeps_only_given_prefix():
    store = FactStore()
    add(store, 'AB', 'CD')
    add(store, 'CD', 'EF')

    truncated = FactStore.rebuild(store.facts[:1])

    assert len(truncated) == 1
    assert truncated.next_id == 2
    assert truncated.query_equality(pair('A', 'B'), pair('C', 'D'))
    assert not truncated.query_equality(pair('A', 'B'), pair('E', 'F'))


def test_citation_renders_rule_names():
    assert str(Citation('def15', circle_id='cir-1')) == 'Def.15'
    assert str(Citation('prop', prop_id=2)) == 'I.2'
    assert str(Citation('cn3')) == 'C.N.3'
    assert str(Citation('given')) == 'Given'


@pytest.fixture
def square():
    coords = {'A': (0.0, 0.0), 'B': (1.0, 0.0), 'C': (1.0, 1.0), 'D': (0.0, 1.0)}
    return initialize_given(Point(f'pt-{k}', k, x, y) for k, (x, y) in coords.items())


def test_assert_equal_builds_statement_from_labels(square):
    store = FactStore()

    facts = assert_equal(square, store, ('pt-A', 'pt-B'), ('pt-C', 'pt-D'), Citation('given'), 'Given', 0)

    assert facts[0].statement == 'AB = CD'


def test_given_facts_are_stamped_before_first_step(square):
    store = FactStore()

    facts = load_given_facts(square, store, [(('pt-A', 'pt-B'), ('pt-B', 'pt-C'), 'AB = BC')])

    assert [(fact.at_step, fact.statement, fact.citation.rule) for fact in facts] == [(-1, 'AB = BC', 'given')]


def test_conclusion_context_resolves_local_names(square):
    store = FactStore()
    names = {'P': 'pt-A', 'Q': 'pt-B', 'R': 'pt-C', 'S': 'pt-D'}
    ctx = ConclusionContext(square, store, 4, names.__getitem__)

    ctx.assert_equal(('P', 'Q'), ('R', 'S'), Citation('cn1'), 'C.N.1')

    assert ctx.holds(('Q', 'P'), ('S', 'R'))
    assert [fact.statement for fact in ctx.new_facts] == ['AB = CD']
    assert store.facts_at_step(4) == ctx.new_facts
