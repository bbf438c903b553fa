import random

import pytest

from doubles_scheduler import ActivePlayer, CourtAssigner, CourtMatch, Round


def make_roster(count, start=1):
    return [ActivePlayer(pid, sequence_number=pid) for pid in range(start, start + count)]


def simulate(num_players, num_courts, num_rounds, seed=0, **assigner_kwargs):
    """Generate `num_rounds` rounds in a row, feeding each back as history."""
    roster = make_roster(num_players)
    assigner = CourtAssigner(rng=random.Random(seed), **assigner_kwargs)
    history = []
    for round_no in range(1, num_rounds + 1):
        history.append(assigner.generate_round(roster, num_courts, history).to_round(round_no))
    return roster, history


def court(court_no, a, b):
    return CourtMatch(court_no, tuple(a), tuple(b))


@pytest.fixture
def five_player_history():
    # Player 5 plays rounds 1-2, rests 3-5, plays round 6
    return [
        Round(1, [court(1, (1, 5), (2, 3))], [4]),
        Round(2, [court(1, (5, 4), (1, 2))], [3]),
        Round(3, [court(1, (1, 2), (3, 4))], [5]),
        Round(4, [court(1, (1, 3), (2, 4))], [5]),
        Round(5, [court(1, (1, 4), (2, 3))], [5]),
        Round(6, [court(1, (5, 1), (3, 4))], [2]),
    ]
