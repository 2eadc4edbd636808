import json

import pytest

import euclid_replay.__main__ as cli


def test_main_prints_points_and_facts(capsys):
    cli.main(['1'])

    out = capsys.readouterr().out
    assert out.startswith('I.1: On a given finite straight line')
    assert '3.464102) [intersection]' in out
    assert 'AC = AB' in out


def test_main_json_output(capsys):
    cli.main(['2', '--json'])

    payload = json.loads(capsys.readouterr().out)
    assert [pt['label'] for pt in payload['points']] == ['A', 'B', 'C', 'D', 'E', 'F']
    assert payload['facts'][-1]['citation'] == 'C.N.3'


def test_main_checks_reference_builder(capsys):
    cli.main(['3', '--check-reference'])

    assert 'I.3' in capsys.readouterr().out


def test_main_reads_json_file(tmp_path, capsys):
    path = tmp_path / 'scratch.json'
    path.write_text(
        json.dumps(
            {
                'id': 50,
                'title': 'circles on a unit base',
                'given': {'points': [{'label': 'A', 'x': 0, 'y': 0}, {'label': 'B', 'x': 1, 'y': 0}]},
                'steps': [
                    {'kind': 'compass', 'center': 'A', 'through': 'B'},
                    {'kind': 'compass', 'center': 'B', 'through': 'A'},
                    {
                        'kind': 'intersection',
                        'of_a': {'kind': 'circle', 'center': 'A', 'through': 'B'},
                        'of_b': {'kind': 'circle', 'center': 'B', 'through': 'A'},
                        'label': 'C',
                        'side': 'right',
                    },
                ],
            }
        ),
        encoding='utf-8',
    )

    cli.main([str(path), '--json'])

    payload = json.loads(capsys.readouterr().out)
    apex = payload['points'][-1]
    assert apex['label'] == 'C'
    assert apex['y'] < 0


def test_main_exits_when_replay_fails(tmp_path):
    path = tmp_path / 'apart.json'
    path.write_text(
        json.dumps(
            {
                'id': 51,
                'title': 'circles too far apart',
                'given': {
                    'points': [
                        {'label': 'A', 'x': 0, 'y': 0},
                        {'label': 'B', 'x': 1, 'y': 0},
                        {'label': 'C', 'x': 10, 'y': 0},
                        {'label': 'D', 'x': 11, 'y': 0},
                    ]
                },
                'steps': [
                    {'kind': 'compass', 'center': 'A', 'through': 'B'},
                    {'kind': 'compass', 'center': 'C', 'through': 'D'},
                    {
                        'kind': 'intersection',
                        'of_a': {'kind': 'circle', 'center': 'A', 'through': 'B'},
                        'of_b': {'kind': 'circle', 'center': 'C', 'through': 'D'},
                        'label': 'E',
                    },
                ],
            }
        ),
        encoding='utf-8',
    )

    with pytest.raises(SystemExit) as exc:
        cli.main([str(path)])

    assert exc.value.code == 1


def test_main_exits_on_invalid_script(tmp_path):
    path = tmp_path / 'bad.json'
    path.write_text(
        json.dumps(
            {
                'id': 52,
                'given': {'points': [{'label': 'A', 'x': 0, 'y': 0}]},
                'steps': [{'kind': 'compass', 'center': 'A', 'through': 'Q'}],
            }
        ),
        encoding='utf-8',
    )

    with pytest.raises(SystemExit) as exc:
        cli.main([str(path)])

    assert exc.value.code == 1


def test_main_rejects_unknown_proposition():
    with pytest.raises(SystemExit) as exc:
        cli.main(['48'])

    assert exc.value.code == 1
