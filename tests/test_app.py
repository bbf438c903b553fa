import os

import pytest
from streamlit.testing.v1 import AppTest

APP_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "app.py")


@pytest.fixture
def app():
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.run()
    assert not at.exception
    return at


def test_app_starts_empty(app):
    assert app.session_state["players"] == []
    assert app.session_state["history"] == []


def test_generate_confirm_and_roll_back(app):
    for _ in range(6):
        app.button(key="add_player_btn").click().run()
    assert len(app.session_state["players"]) == 6

    app.button(key="generate_round_btn").click().run()
    assert not app.exception
    proposal = app.session_state["proposal"]
    assert proposal is not None
    assert len(proposal.courts) == 1
    assert len(proposal.rests) == 2

    app.button(key="confirm_round_btn").click().run()
    assert not app.exception
    assert len(app.session_state["history"]) == 1
    assert app.session_state["proposal"] is None

    app.button(key="rollback_btn").click().run()
    assert not app.exception
    assert app.session_state["history"] == []


def play_rounds(at, count):
    for _ in range(count):
        at.button(key="generate_round_btn").click().run()
        at.button(key="confirm_round_btn").click().run()
        assert not at.exception


def test_staggered_late_joiners_start_at_the_average(app):
    for _ in range(4):
        app.button(key="add_player_btn").click().run()
    play_rounds(app, 6)

    app.button(key="add_player_btn").click().run()
    players = app.session_state["players"]
    assert players[-1]['played_offset'] == 6

    # Five players on one court: 20 more games spread over the five,
    # on top of the 6 credited to the first late joiner
    play_rounds(app, 5)
    app.button(key="add_player_btn").click().run()
    players = app.session_state["players"]
    assert [p['played_offset'] for p in players] == [0, 0, 0, 0, 6, 10]
