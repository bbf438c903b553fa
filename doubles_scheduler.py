import logging
import math
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

PLAYERS_PER_COURT = 4
RECENT_WINDOW = 5  # partner/opponent memory per player
MAX_TRIALS = 200
STRICT_SPREAD = 2  # play-count spread at which selection stops randomizing

# Team pairing penalties
PARTNER_REPEAT_PENALTY = 5
OPPONENT_REPEAT_PENALTY = 2

# Round score weights
PLAYED_VARIANCE_WEIGHT = 10
REST_VARIANCE_WEIGHT = 2
CONSECUTIVE_REST_WEIGHT = 4
DUPLICATE_PAIR_WEIGHT = 2
DUPLICATE_MATCH_WEIGHT = 1

# The three ways to split four players into two teams
SPLITS = (
    ((0, 1), (2, 3)),
    ((0, 2), (1, 3)),
    ((0, 3), (1, 2)),
)

Pair = Tuple[int, int]


class RosterValidationError(ValueError):
    """Raised when the roster handed to the round generator is malformed."""


@dataclass
class ActivePlayer:
    id: int
    sequence_number: int = 0
    played_offset: int = 0  # games credited to a late joiner


@dataclass
class PlayerStats:
    player_id: int
    played_count: int = 0
    rest_count: int = 0
    consec_rest: int = 0
    recent_partners: Deque[int] = field(default_factory=deque)
    recent_opponents: Deque[int] = field(default_factory=deque)


@dataclass
class CourtMatch:
    court_no: int
    pair_a: Pair
    pair_b: Pair

    @property
    def player_ids(self) -> List[int]:
        return [*self.pair_a, *self.pair_b]


@dataclass
class Round:
    round_no: int
    courts: List[CourtMatch] = field(default_factory=list)
    rests: List[int] = field(default_factory=list)

    def playing_ids(self) -> List[int]:
        return [pid for court in self.courts for pid in court.player_ids]

    def to_dict(self) -> Dict:
        return {
            'round_no': self.round_no,
            'courts': [
                {'court_no': c.court_no, 'pair_a': list(c.pair_a), 'pair_b': list(c.pair_b)}
                for c in self.courts
            ],
            'rests': list(self.rests),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Round':
        courts = [
            CourtMatch(int(c['court_no']), tuple(int(pid) for pid in c['pair_a']),
                       tuple(int(pid) for pid in c['pair_b']))
            for c in data.get('courts', [])
        ]
        return cls(int(data['round_no']), courts, [int(pid) for pid in data.get('rests', [])])


@dataclass
class Selection:
    playing: List[ActivePlayer]
    resting: List[int]


@dataclass
class Assignment:
    courts: List[CourtMatch]
    rests: List[int]
    score: float = 0.0

    def to_round(self, round_no: int) -> Round:
        return Round(round_no, list(self.courts), list(self.rests))


@dataclass
class ScoreBreakdown:
    played_variance: float = 0.0
    rest_variance: float = 0.0
    consecutive_rest_penalty: int = 0
    duplicate_pair_count: int = 0
    duplicate_match_count: int = 0

    @property
    def total(self) -> float:
        return (PLAYED_VARIANCE_WEIGHT * self.played_variance
                + REST_VARIANCE_WEIGHT * self.rest_variance
                + CONSECUTIVE_REST_WEIGHT * self.consecutive_rest_penalty
                + DUPLICATE_PAIR_WEIGHT * self.duplicate_pair_count
                + DUPLICATE_MATCH_WEIGHT * self.duplicate_match_count)


def variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((x - mean) ** 2 for x in values) / len(values)


# --- Stats aggregation ---

def compute_stats(player_ids: Iterable[int], history: Sequence[Round], window: int = RECENT_WINDOW,
                  played_offsets: Optional[Dict[int, int]] = None) -> Dict[int, PlayerStats]:
    """
    Replay the round history (oldest first) into per-player stats.

    Only the ids in `player_ids` are tracked; anyone else appearing in the
    history is ignored. Partner and opponent memories keep the `window`
    most recent entries.
    """
    if window < 1:
        raise ValueError("window must be at least 1")
    offsets = played_offsets or {}
    stats = {
        pid: PlayerStats(
            player_id=pid,
            played_count=offsets.get(pid, 0),
            recent_partners=deque(maxlen=window),
            recent_opponents=deque(maxlen=window),
        )
        for pid in player_ids
    }

    for rnd in history:
        for court in rnd.courts:
            for team, other in ((court.pair_a, court.pair_b), (court.pair_b, court.pair_a)):
                for pid in team:
                    stat = stats.get(pid)
                    if stat is None:
                        continue
                    stat.played_count += 1
                    stat.consec_rest = 0
                    stat.recent_partners.extend(mate for mate in team if mate != pid)
                    stat.recent_opponents.extend(other)
        for pid in rnd.rests:
            stat = stats.get(pid)
            if stat is None:
                continue
            stat.rest_count += 1
            stat.consec_rest += 1
    return stats


# --- Participant selection ---

def rank_players(active_players: Sequence[ActivePlayer], stats: Dict[int, PlayerStats]) -> List[ActivePlayer]:
    # Fewest games first; among equals, whoever has sat out most
    def priority(player):
        s = stats[player.id]
        return (s.played_count, -s.rest_count, -s.consec_rest)
    return sorted(active_players, key=priority)


def select_participants(active_players: Sequence[ActivePlayer], stats: Dict[int, PlayerStats],
                        courts_available: int, rng: Optional[random.Random] = None) -> Selection:
    """
    Decide who plays this round and who rests.

    When the play-count spread is already STRICT_SPREAD or more, the
    top-ranked players take every slot. Otherwise the slots are filled from
    a shuffled pool, still lowest play count first, so equally deserving
    players are mixed between rounds.
    """
    rng = rng or random.Random()
    all_ids = [p.id for p in active_players]
    usable_courts = min(courts_available, len(active_players) // PLAYERS_PER_COURT)
    if len(active_players) < PLAYERS_PER_COURT or usable_courts <= 0:
        return Selection(playing=[], resting=sorted(all_ids))
    slots = usable_courts * PLAYERS_PER_COURT

    ranked = rank_players(active_players, stats)
    played = {p.id: stats[p.id].played_count for p in ranked}
    min_played = min(played.values())
    max_played = max(played.values())

    if max_played - min_played >= STRICT_SPREAD:
        chosen = ranked[:slots]
    else:
        # Spread below STRICT_SPREAD puts everyone within one game of the minimum
        pool = list(ranked)
        rng.shuffle(pool)
        pool.sort(key=lambda p: played[p.id])
        chosen = pool[:slots]

    chosen_ids = {p.id for p in chosen}
    playing = [p for p in ranked if p.id in chosen_ids]
    resting = sorted(pid for pid in all_ids if pid not in chosen_ids)
    return Selection(playing=playing, resting=resting)


# --- Team pairing ---

def split_penalty(pair_a: Pair, pair_b: Pair, stats: Dict[int, PlayerStats]) -> int:
    partner_penalty = (stats[pair_a[0]].recent_partners.count(pair_a[1])
                       + stats[pair_b[0]].recent_partners.count(pair_b[1])) * PARTNER_REPEAT_PENALTY
    opponent_hits = sum(1 for p1 in pair_a for p2 in pair_b if p2 in stats[p1].recent_opponents)
    return partner_penalty + opponent_hits * OPPONENT_REPEAT_PENALTY


def pair_court(players: Sequence[int], stats: Dict[int, PlayerStats]) -> Tuple[Pair, Pair]:
    if len(players) != PLAYERS_PER_COURT or len(set(players)) != PLAYERS_PER_COURT:
        raise ValueError(f"A court needs exactly 4 distinct players, got {list(players)}")
    best_split = None
    best_penalty = None
    for (a0, a1), (b0, b1) in SPLITS:
        pair_a = (players[a0], players[a1])
        pair_b = (players[b0], players[b1])
        penalty = split_penalty(pair_a, pair_b, stats)
        # Strict comparison: the first enumerated split wins ties
        if best_penalty is None or penalty < best_penalty:
            best_penalty = penalty
            best_split = (pair_a, pair_b)
    return best_split


def fill_courts(ordered_ids: Sequence[int], stats: Dict[int, PlayerStats]) -> List[CourtMatch]:
    courts = []
    for start in range(0, len(ordered_ids) - PLAYERS_PER_COURT + 1, PLAYERS_PER_COURT):
        pair_a, pair_b = pair_court(ordered_ids[start:start + PLAYERS_PER_COURT], stats)
        courts.append(CourtMatch(len(courts) + 1, pair_a, pair_b))
    return courts


def sequential_courts(ordered_ids: Sequence[int]) -> List[CourtMatch]:
    courts = []
    for start in range(0, len(ordered_ids) - PLAYERS_PER_COURT + 1, PLAYERS_PER_COURT):
        p = ordered_ids[start:start + PLAYERS_PER_COURT]
        courts.append(CourtMatch(len(courts) + 1, (p[0], p[1]), (p[2], p[3])))
    return courts


# --- Scoring ---

def score_breakdown(courts: Sequence[CourtMatch], rests: Sequence[int],
                    stats: Dict[int, PlayerStats]) -> ScoreBreakdown:
    playing = [pid for court in courts for pid in court.player_ids]
    duplicate_pairs = 0
    duplicate_matches = 0
    for court in courts:
        for x, y in (court.pair_a, court.pair_b):
            if y in stats[x].recent_partners or x in stats[y].recent_partners:
                duplicate_pairs += 1
        for p1 in court.pair_a:
            for p2 in court.pair_b:
                if p2 in stats[p1].recent_opponents:
                    duplicate_matches += 1
    return ScoreBreakdown(
        played_variance=variance([stats[pid].played_count for pid in playing]),
        rest_variance=variance([stats[pid].rest_count for pid in rests]),
        consecutive_rest_penalty=sum(max(0, stats[pid].consec_rest) for pid in rests),
        duplicate_pair_count=duplicate_pairs,
        duplicate_match_count=duplicate_matches,
    )


def score_candidate(courts: Sequence[CourtMatch], rests: Sequence[int], stats: Dict[int, PlayerStats]) -> float:
    return score_breakdown(courts, rests, stats).total


# --- Orchestration ---

def validate_roster(active_players: Sequence[ActivePlayer], courts_available: int):
    if courts_available < 0:
        raise RosterValidationError(f"Court count cannot be negative: {courts_available}")
    seen = set()
    duplicates = set()
    for player in active_players:
        if player.id in seen:
            duplicates.add(player.id)
        seen.add(player.id)
    if duplicates:
        raise RosterValidationError(f"Duplicate player ids in roster: {sorted(duplicates)}")


class CourtAssigner:
    def __init__(self, max_trials: int = MAX_TRIALS, recent_window: int = RECENT_WINDOW,
                 rng: Optional[random.Random] = None):
        if max_trials < 0:
            raise ValueError("max_trials cannot be negative")
        if recent_window < 1:
            raise ValueError("recent_window must be at least 1")
        self.max_trials = max_trials
        self.recent_window = recent_window
        self.rng = rng if rng is not None else random.Random()

    def compute_stats(self, player_ids: Iterable[int], history: Sequence[Round],
                      played_offsets: Optional[Dict[int, int]] = None) -> Dict[int, PlayerStats]:
        return compute_stats(player_ids, history, window=self.recent_window, played_offsets=played_offsets)

    def generate_round(self, active_players: Sequence[ActivePlayer], courts_available: int,
                       history: Sequence[Round]) -> Assignment:
        validate_roster(active_players, courts_available)
        offsets = {p.id: p.played_offset for p in active_players if p.played_offset}
        stats = self.compute_stats([p.id for p in active_players], history, offsets)

        selection = select_participants(active_players, stats, courts_available, self.rng)
        if not selection.playing:
            return Assignment(courts=[], rests=selection.resting)

        baseline = [p.id for p in selection.playing]
        best = None
        best_trial = None
        for trial in range(self.max_trials):
            order = list(baseline)
            if trial:
                self.rng.shuffle(order)
            courts = fill_courts(order, stats)
            score = score_candidate(courts, selection.resting, stats)
            if best is None or score < best.score:
                best = Assignment(courts, list(selection.resting), score)
                best_trial = trial
                if score == 0:
                    break

        if best is None:
            logger.warning("No candidate from %d trials; filling %d players in priority order",
                           self.max_trials, len(baseline))
            courts = sequential_courts(baseline)
            return Assignment(courts, list(selection.resting),
                              score_candidate(courts, selection.resting, stats))

        logger.debug("Round chosen from trial %d with score %.3f (%d courts, %d resting)",
                     best_trial, best.score, len(best.courts), len(best.rests))
        return best


def generate_round(active_players: Sequence[ActivePlayer], courts_available: int, history: Sequence[Round],
                   rng: Optional[random.Random] = None, max_trials: int = MAX_TRIALS,
                   recent_window: int = RECENT_WINDOW) -> Assignment:
    assigner = CourtAssigner(max_trials=max_trials, recent_window=recent_window, rng=rng)
    return assigner.generate_round(active_players, courts_available, history)


# --- Fairness reporting ---

def _summary(counts: Dict[int, int]) -> Dict:
    vals = list(counts.values())
    if not vals:
        return {'min': 0, 'max': 0, 'stddev': 0.0, 'range': 0}
    return {
        'min': min(vals),
        'max': max(vals),
        'stddev': math.sqrt(variance(vals)),
        'range': max(vals) - min(vals),
    }


def _pair_key(a: int, b: int) -> Tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def pair_counts(history: Sequence[Round]) -> Dict[Tuple[int, int], int]:
    counts: Dict[Tuple[int, int], int] = {}
    for rnd in history:
        for court in rnd.courts:
            for x, y in (court.pair_a, court.pair_b):
                key = _pair_key(x, y)
                counts[key] = counts.get(key, 0) + 1
    return counts


def opponent_counts(history: Sequence[Round]) -> Dict[Tuple[int, int], int]:
    counts: Dict[Tuple[int, int], int] = {}
    for rnd in history:
        for court in rnd.courts:
            for p1 in court.pair_a:
                for p2 in court.pair_b:
                    key = _pair_key(p1, p2)
                    counts[key] = counts.get(key, 0) + 1
    return counts


def assess_fairness(player_ids: Sequence[int], history: Sequence[Round],
                    played_offsets: Optional[Dict[int, int]] = None) -> Dict:
    """
    Assess fairness of a practice so far:
    - Games played per player (min, max, stddev, range)
    - Rests per player (min, max, stddev, range)
    - Partner and opponent variety (min, max, stddev, range)
    - Longest rest streak and session averages

    Games played include any late-join credit from `played_offsets`.
    """
    players = list(player_ids)
    offsets = played_offsets or {}
    play_counts = {p: offsets.get(p, 0) for p in players}
    rest_counts = {p: 0 for p in players}
    partners = {p: set() for p in players}
    opponents = {p: set() for p in players}
    streak = {p: 0 for p in players}
    longest_streak = 0

    for rnd in history:
        for court in rnd.courts:
            for team, other in ((court.pair_a, court.pair_b), (court.pair_b, court.pair_a)):
                for p in team:
                    if p not in play_counts:
                        continue
                    play_counts[p] += 1
                    streak[p] = 0
                    partners[p].update(x for x in team if x != p)
                    opponents[p].update(other)
        for p in rnd.rests:
            if p not in rest_counts:
                continue
            rest_counts[p] += 1
            streak[p] += 1
            longest_streak = max(longest_streak, streak[p])

    partners_count = {p: len(partners[p]) for p in players}
    opponents_count = {p: len(opponents[p]) for p in players}
    return {
        'games_played': play_counts,
        'rests': rest_counts,
        'games_played_stats': _summary(play_counts),
        'rests_stats': _summary(rest_counts),
        'partners_count': partners_count,
        'partners_stats': _summary(partners_count),
        'opponents_count': opponents_count,
        'opponents_stats': _summary(opponents_count),
        'total_rounds': len(history),
        'total_players': len(players),
        'avg_play_count': sum(play_counts.values()) / len(players) if players else 0.0,
        'avg_rest_count': sum(rest_counts.values()) / len(players) if players else 0.0,
        'max_consec_rest': longest_streak,
    }
