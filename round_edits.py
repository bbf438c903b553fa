"""
Pure edits to a proposed round and to the round history.

Every function returns new objects; the round or history passed in is left
untouched so callers can keep the previous state for undo.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from doubles_scheduler import PLAYERS_PER_COURT, CourtMatch, Round

SIDES = ('pair_a', 'pair_b')


def _copy_round(rnd: Round) -> Round:
    courts = [CourtMatch(c.court_no, tuple(c.pair_a), tuple(c.pair_b)) for c in rnd.courts]
    return Round(rnd.round_no, courts, list(rnd.rests))


def _find_seat(rnd: Round, player_id: int) -> Optional[Tuple[int, str, int]]:
    for court_idx, court in enumerate(rnd.courts):
        for side in SIDES:
            pair = getattr(court, side)
            if player_id in pair:
                return court_idx, side, pair.index(player_id)
    return None


def _set_seat(rnd: Round, seat: Tuple[int, str, int], player_id: int):
    court_idx, side, index = seat
    court = rnd.courts[court_idx]
    pair = list(getattr(court, side))
    pair[index] = player_id
    setattr(court, side, tuple(pair))


def swap_players(rnd: Round, player_a: int, player_b: int) -> Round:
    """Swap two players, wherever each one currently is (court or rest list)."""
    if player_a == player_b:
        return _copy_round(rnd)
    edited = _copy_round(rnd)
    seat_a = _find_seat(edited, player_a)
    seat_b = _find_seat(edited, player_b)
    for pid, seat in ((player_a, seat_a), (player_b, seat_b)):
        if seat is None and pid not in edited.rests:
            raise ValueError(f"Player {pid} is not part of round {rnd.round_no}")

    if seat_a is not None and seat_b is not None:
        _set_seat(edited, seat_a, player_b)
        _set_seat(edited, seat_b, player_a)
    elif seat_a is not None:
        _set_seat(edited, seat_a, player_b)
        edited.rests[edited.rests.index(player_b)] = player_a
    elif seat_b is not None:
        _set_seat(edited, seat_b, player_a)
        edited.rests[edited.rests.index(player_a)] = player_b
    else:
        idx_a = edited.rests.index(player_a)
        idx_b = edited.rests.index(player_b)
        edited.rests[idx_a], edited.rests[idx_b] = player_b, player_a
    return edited


def move_to_play(rnd: Round, player_id: int, court_no: int, side: str, index: int) -> Round:
    """Seat a resting player; whoever held that seat goes to rest."""
    if player_id not in rnd.rests:
        raise ValueError(f"Player {player_id} is not resting in round {rnd.round_no}")
    if side not in SIDES or index not in (0, 1):
        raise ValueError(f"Unknown seat {side}[{index}]")
    court_idx = next((i for i, c in enumerate(rnd.courts) if c.court_no == court_no), None)
    if court_idx is None:
        raise ValueError(f"Round {rnd.round_no} has no court {court_no}")

    edited = _copy_round(rnd)
    displaced = getattr(edited.courts[court_idx], side)[index]
    _set_seat(edited, (court_idx, side, index), player_id)
    edited.rests[edited.rests.index(player_id)] = displaced
    return edited


def validate_round(rnd: Round, roster_ids: Iterable[int]):
    roster = list(roster_ids)
    placed = rnd.playing_ids() + list(rnd.rests)
    if len(placed) != len(set(placed)):
        dupes = sorted({pid for pid in placed if placed.count(pid) > 1})
        raise ValueError(f"Round {rnd.round_no} places players more than once: {dupes}")
    if set(placed) != set(roster) or len(placed) != len(roster):
        missing = sorted(set(roster) - set(placed))
        extra = sorted(set(placed) - set(roster))
        raise ValueError(f"Round {rnd.round_no} does not match the roster (missing {missing}, unexpected {extra})")
    for court in rnd.courts:
        if len(set(court.player_ids)) != PLAYERS_PER_COURT:
            raise ValueError(f"Court {court.court_no} in round {rnd.round_no} needs 4 different players")


def rollback(history: Sequence[Round], round_no: int) -> List[Round]:
    """Drop `round_no` and every round after it."""
    return [rnd for rnd in history if rnd.round_no < round_no]


def next_round_no(history: Sequence[Round]) -> int:
    return max((rnd.round_no for rnd in history), default=0) + 1
