import json

from euclid_replay.book import PROP_1, PROP_2, PROP_4
from euclid_replay.interpreter import replay
from euclid_replay.loader import (
    dump_proposition,
    load_proposition,
    proposition_from_dict,
    proposition_to_dict,
    step_from_dict,
)


def test_steps_with_options_survive_plain_data():
    data = proposition_to_dict(PROP_2)
    restored = proposition_from_dict(json.loads(json.dumps(data)))

    assert restored.steps == PROP_2.steps
    assert restored.degenerate_aliases == PROP_2.degenerate_aliases
    assert restored.outputs == PROP_2.outputs
    assert restored.conclusion is None


def test_intersection_options_are_flattened_into_step():
    step = step_from_dict(
        {
            'kind': 'intersection',
            'of_a': {'kind': 'circle', 'center': 'A', 'through': 'B'},
            'of_b': 'seg-AB',
            'label': 'C',
            'side': 'right',
            'reference': ['A', 'B'],
        }
    )

    assert step.opts == {'side': 'right', 'reference': ('A', 'B')}
    assert step.data['of_b'] == 'seg-AB'
    assert step.data['label'] == 'C'


def test_loaded_file_replays_like_builtin(tmp_path):
    path = tmp_path / 'prop1.json'
    dump_proposition(PROP_1, path)

    loaded = load_proposition(path)

    assert replay(loaded).coords() == replay(PROP_1).coords()


def test_given_facts_are_kept():
    data = proposition_to_dict(PROP_4)

    assert data['kind'] == 'theorem'
    assert [fact['statement'] for fact in data['given_facts']] == ['AB = DE', 'AC = DF']
    restored = proposition_from_dict(data)
    assert [fact.left for fact in restored.given_facts] == [('A', 'B'), ('A', 'C')]
