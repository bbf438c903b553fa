import pytest

from conftest import court
from doubles_scheduler import Round, compute_stats


def test_empty_history_gives_zeroed_stats():
    stats = compute_stats([1, 2, 3], [])
    assert set(stats) == {1, 2, 3}
    for pid, stat in stats.items():
        assert stat.player_id == pid
        assert (stat.played_count, stat.rest_count, stat.consec_rest) == (0, 0, 0)
        assert list(stat.recent_partners) == []
        assert list(stat.recent_opponents) == []


def test_single_round_partners_and_opponents():
    history = [Round(1, [court(1, (1, 2), (3, 4))], [5])]
    stats = compute_stats([1, 2, 3, 4, 5], history)

    assert stats[1].played_count == 1
    assert list(stats[1].recent_partners) == [2]
    assert list(stats[1].recent_opponents) == [3, 4]
    assert list(stats[4].recent_partners) == [3]
    assert list(stats[4].recent_opponents) == [1, 2]
    assert stats[5].rest_count == 1
    assert stats[5].consec_rest == 1
    assert stats[5].played_count == 0


def test_consecutive_rest_streak_and_reset(five_player_history):
    through_round_5 = compute_stats(range(1, 6), five_player_history[:5])
    assert through_round_5[5].consec_rest == 3
    assert through_round_5[5].rest_count == 3

    through_round_6 = compute_stats(range(1, 6), five_player_history)
    assert through_round_6[5].consec_rest == 0
    assert through_round_6[5].rest_count == 3
    assert through_round_6[5].played_count == 3


def test_recent_history_keeps_only_the_window(five_player_history):
    stats = compute_stats(range(1, 6), five_player_history, window=2)
    # Player 1 partnered 5, 2, 2, 3, 4, 5 in order
    assert list(stats[1].recent_partners) == [4, 5]
    assert len(stats[1].recent_opponents) == 2
    assert list(stats[1].recent_opponents) == [3, 4]


def test_default_window_is_five(five_player_history):
    stats = compute_stats(range(1, 6), five_player_history)
    assert list(stats[1].recent_partners) == [2, 2, 3, 4, 5]
    assert stats[1].recent_partners.maxlen == 5


def test_replay_is_idempotent(five_player_history):
    first = compute_stats(range(1, 6), five_player_history)
    second = compute_stats(range(1, 6), five_player_history)
    assert first == second
    assert first is not second


def test_untracked_players_are_ignored():
    history = [Round(1, [court(1, (1, 2), (3, 4))], [9])]
    stats = compute_stats([1, 2], history)
    assert set(stats) == {1, 2}
    assert list(stats[1].recent_opponents) == [3, 4]


def test_played_offsets_seed_play_counts():
    history = [Round(1, [court(1, (1, 2), (3, 4))], [5])]
    stats = compute_stats([1, 2, 3, 4, 5], history, played_offsets={5: 3})
    assert stats[5].played_count == 3
    assert stats[1].played_count == 1


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        compute_stats([1], [], window=0)
