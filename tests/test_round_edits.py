import pytest

from conftest import court, simulate
from doubles_scheduler import Round
from round_edits import move_to_play, next_round_no, rollback, swap_players, validate_round


@pytest.fixture
def proposal():
    return Round(4, [court(1, (1, 2), (3, 4)), court(2, (5, 6), (7, 8))], [9, 10])


def test_swap_two_playing_players(proposal):
    edited = swap_players(proposal, 2, 7)
    assert edited.courts[0].pair_a == (1, 7)
    assert edited.courts[1].pair_b == (2, 8)
    # The original proposal is untouched
    assert proposal.courts[0].pair_a == (1, 2)
    assert proposal.courts[1].pair_b == (7, 8)


def test_swap_playing_with_resting(proposal):
    edited = swap_players(proposal, 10, 3)
    assert edited.courts[0].pair_b == (10, 4)
    assert edited.rests == [9, 3]
    assert proposal.rests == [9, 10]


def test_swap_two_resting_players(proposal):
    edited = swap_players(proposal, 9, 10)
    assert edited.rests == [10, 9]
    assert edited.courts == proposal.courts


def test_swap_same_player_is_a_copy(proposal):
    edited = swap_players(proposal, 1, 1)
    assert edited == proposal
    assert edited is not proposal


def test_swap_unknown_player(proposal):
    with pytest.raises(ValueError):
        swap_players(proposal, 1, 42)


def test_move_to_play_displaces_seat_holder(proposal):
    edited = move_to_play(proposal, 9, 2, 'pair_a', 1)
    assert edited.courts[1].pair_a == (5, 9)
    assert edited.rests == [6, 10]
    validate_round(edited, range(1, 11))


@pytest.mark.parametrize("player_id,court_no,side,index", [
    (1, 1, 'pair_a', 0),   # already playing
    (9, 3, 'pair_a', 0),   # no such court
    (9, 1, 'team1', 0),    # no such side
    (9, 1, 'pair_b', 2),   # no such seat
])
def test_move_to_play_rejects_bad_requests(proposal, player_id, court_no, side, index):
    with pytest.raises(ValueError):
        move_to_play(proposal, player_id, court_no, side, index)


def test_validate_round_accepts_generated_rounds():
    roster, history = simulate(11, 2, 5, seed=8)
    for rnd in history:
        validate_round(rnd, [p.id for p in roster])


def test_validate_round_rejects_duplicates(proposal):
    broken = Round(4, proposal.courts, [9, 1])
    with pytest.raises(ValueError, match="more than once"):
        validate_round(broken, range(1, 11))


def test_validate_round_rejects_missing_players(proposal):
    with pytest.raises(ValueError, match="missing"):
        validate_round(proposal, range(1, 12))


def test_rollback_drops_round_and_later():
    _, history = simulate(8, 1, 5, seed=1)
    kept = rollback(history, 3)
    assert [r.round_no for r in kept] == [1, 2]
    assert len(history) == 5
    assert next_round_no(kept) == 3


def test_next_round_no_for_empty_history():
    assert next_round_no([]) == 1
