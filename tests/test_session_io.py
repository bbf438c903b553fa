import csv
from io import StringIO

import pytest

from conftest import court, simulate
from doubles_scheduler import Round
from session_io import load_session, robust_json_load, rounds_to_csv, save_session


def test_save_then_load_session(tmp_path):
    _, history = simulate(6, 1, 4, seed=2)
    players = [{'id': i, 'name': f'Player {i}', 'emoji': '⭐', 'active': True} for i in range(1, 7)]
    path = tmp_path / "session.json"

    save_session(str(path), players, history)
    loaded_players, loaded_history = load_session(str(path))

    assert loaded_players == players
    assert loaded_history == history


def test_missing_file_is_an_empty_session(tmp_path):
    assert load_session(str(tmp_path / "nope.json")) == ([], [])


def test_trailing_garbage_is_recovered(tmp_path):
    path = tmp_path / "session.json"
    path.write_text('{"players": [], "rounds": [{"round_no": 1, "courts": [], "rests": [1, 2, 3]}]}}garbage')
    players, history = load_session(str(path))
    assert players == []
    assert history == [Round(1, [], [1, 2, 3])]


def test_unrecoverable_json_raises():
    with pytest.raises(ValueError):
        robust_json_load(StringIO("not json at all"))


def test_non_object_session_raises(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        load_session(str(path))


def test_rounds_to_csv():
    history = [
        Round(1, [court(1, (1, 2), (3, 4))], [5]),
        Round(2, [court(1, (5, 1), (2, 3))], []),
    ]
    rows = list(csv.reader(StringIO(rounds_to_csv(history, {1: 'Ann', 5: 'Eve'}))))
    assert rows[0] == ["Round", "Court", "Team 1", "Team 2", "Rest"]
    assert rows[1] == ["1", "1", "Ann & 2", "3 & 4", ""]
    assert rows[2] == ["1", "", "", "", "Eve"]
    assert rows[3] == ["2", "1", "Eve & Ann", "2 & 3", ""]
    assert len(rows) == 4


def test_string_ids_are_loaded_as_ints():
    rnd = Round.from_dict({
        'round_no': '2',
        'courts': [{'court_no': '1', 'pair_a': ['1', '2'], 'pair_b': ['3', '4']}],
        'rests': ['5'],
    })
    assert rnd == Round(2, [court(1, (1, 2), (3, 4))], [5])
