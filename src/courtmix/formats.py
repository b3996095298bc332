"""Scheduling formats.

Each format is a pair of functions: a round generator deciding who plays
whom on which court, and a result folder applying recorded outcomes to the
format's state. The pairs live in two aligned tables keyed by mode name.

Formats:
- random: free rotation, repeat partners and matchups minimized
- throne: per-player court rank, winners move up one court, losers down
- upDownRiver: fixed foursomes per court, winners up and losers down
- gauntlet: rating seeded courts, balanced teams, flat rating change
- cream: as gauntlet, but the rating change depends on the court
"""

import logging
import random
from typing import Callable, Union

from courtmix.courts import assign_courts
from courtmix.models import DEFAULT_RATING, MatchDecision, Matchup, Mode, Player, RoundFailure, SessionState
from courtmix.pairing import make_matches_from_pairs, make_partner_pairs, team_key

logger = logging.getLogger(__name__)

GAUNTLET_K = 24

# (winner bump, loser drop) per court position
CREAM_ADJUSTMENTS = {
    "bottom": (8, 24),  # court 1
    "middle": (24, 16),
    "top": (32, 8),  # court >= court_count
}

# Court count assumed by result folders when no round was recorded
FALLBACK_COURT_COUNT = 6

RESEED_MESSAGE = "No results for prior round; ranks unchanged."

GeneratedRound = Union[RoundFailure, tuple[list[Matchup], dict]]


# ============================================================================
# Shared helpers
# ============================================================================


def _bucket_by_court(players: list[Player], court_count: int, cap_last: bool = True) -> dict[int, list[Player]]:
    """Split an ordered roster into consecutive groups of four, one per court.

    With cap_last, overflow lands on the last court; otherwise it is dropped.
    """
    by_court = {court: [] for court in range(1, court_count + 1)}
    for idx, player in enumerate(players):
        court = idx // 4 + 1
        if court > court_count:
            if not cap_last:
                continue
            court = court_count
        by_court[court].append(player)
    return by_court


def _pair_four(
    four: list[Player],
    court: int,
    state: SessionState,
    max_retries: int,
    rng: random.Random,
) -> Union[RoundFailure, Matchup]:
    """Split a foursome into two teams with the partner search."""
    found = make_partner_pairs(four, state, max_retries=max_retries, rng=rng)
    if found is None:
        return RoundFailure(f"Could not pair court {court}")
    pairs, _ = found
    return _placed_matchup(pairs[0], pairs[1], court, state)


def _placed_matchup(team1, team2, court: int, state: SessionState) -> Matchup:
    """Build a matchup fixed on a court (no matchup history is kept for it)."""
    matchup = Matchup(
        team1=tuple(team1),
        team2=tuple(team2),
        team1_key=team_key(team1),
        team2_key=team_key(team2),
        match_key="",
        court=court,
    )
    for player in matchup.players:
        state.last_court[player.id] = court
    return matchup


def _court_teams(matches: list[Matchup]) -> list[dict]:
    return [
        {
            "court": m.court,
            "team1_ids": [p.id for p in m.team1],
            "team2_ids": [p.id for p in m.team2],
        }
        for m in matches
    ]


def _last_court_count(state: SessionState) -> int:
    if state.last_round and state.last_round.get("court_count"):
        return int(state.last_round["court_count"])
    return FALLBACK_COURT_COUNT


# ============================================================================
# random
# ============================================================================


def generate_random_round(
    active: list[Player],
    court_count: int,
    state: SessionState,
    max_retries: int,
    rng: random.Random,
) -> GeneratedRound:
    """Partner search, matchup search, then court assignment."""
    partner_res = make_partner_pairs(active, state, max_retries=max_retries, rng=rng)
    if partner_res is None:
        return RoundFailure("Could not build partner pairs")
    pairs, repeat_partners = partner_res

    match_res = make_matches_from_pairs(pairs, court_count, state, max_retries=max_retries, rng=rng)
    if match_res is None:
        return RoundFailure("Could not build matches")
    matches, repeat_matchups = match_res

    placed = assign_courts(matches, state, rng=rng)
    diagnostics = {
        "repeat_partnerships_used": repeat_partners,
        "repeat_matchups_used": repeat_matchups,
    }
    return placed, diagnostics


# ============================================================================
# throne (rank ladder)
# ============================================================================


def generate_throne_round(
    active: list[Player],
    court_count: int,
    state: SessionState,
    max_retries: int,
    rng: random.Random,
) -> GeneratedRound:
    """Place players by court rank (1 = top court) and split each court."""
    throne = state.format_state.setdefault(Mode.THRONE.value, {})
    ranks = throne.setdefault("court_ranks", {})
    had_ranks = bool(ranks)

    for player in active:
        ranks.setdefault(player.id, court_count + 1)

    reseed = not had_ranks or not state.has_prior_round(court_count)
    if reseed:
        logger.debug("Seeding throne ranks for %d courts", court_count)
        shuffled = list(active)
        rng.shuffle(shuffled)
        for idx, player in enumerate(shuffled):
            ranks[player.id] = min(court_count, idx // 4 + 1)

    ordered = sorted(
        ((ranks.get(p.id, court_count + 1), rng.random(), p) for p in active),
        key=lambda item: (item[0], item[1]),
    )
    by_court = _bucket_by_court([p for _, _, p in ordered], court_count)

    matches = []
    for court in range(1, court_count + 1):
        four = by_court[court]
        if len(four) != 4:
            continue
        rng.shuffle(four)
        placed = _pair_four(four, court, state, max_retries, rng)
        if isinstance(placed, RoundFailure):
            return placed
        matches.append(placed)

    throne["last_court_teams"] = _court_teams(matches)
    diagnostics = {"message": RESEED_MESSAGE} if reseed else {}
    return matches, diagnostics


def apply_throne_results(state: SessionState, decisions: list[MatchDecision]) -> None:
    """Winners move up one court (rank - 1, floor 1), losers down one."""
    throne = state.format_state.get(Mode.THRONE.value)
    if not throne or "court_ranks" not in throne:
        return
    ranks = throne["court_ranks"]
    court_count = _last_court_count(state)

    for decision in decisions:
        for player_id in decision.winner_ids:
            ranks[player_id] = max(1, ranks.get(player_id, court_count + 1) - 1)
        for player_id in decision.loser_ids:
            ranks[player_id] = min(court_count, ranks.get(player_id, 1) + 1)


# ============================================================================
# upDownRiver (fixed foursomes)
# ============================================================================


def generate_up_down_river_round(
    active: list[Player],
    court_count: int,
    state: SessionState,
    max_retries: int,
    rng: random.Random,
) -> GeneratedRound:
    """Play each court's fixed lineup, seeding lineups when needed."""
    river = state.format_state.setdefault(Mode.UP_DOWN_RIVER.value, {})
    lineup = river.get("court_lineup") or {}

    if not state.has_prior_round(court_count) or not lineup:
        logger.debug("Seeding river lineups for %d courts", court_count)
        shuffled = list(active)
        rng.shuffle(shuffled)
        lineup = {
            str(court): [p.id for p in four]
            for court, four in _bucket_by_court(shuffled, court_count).items()
            if len(four) == 4
        }
    river["court_lineup"] = lineup

    by_id = {p.id: p for p in active}
    matches = []
    for court in range(1, court_count + 1):
        four = [by_id[pid] for pid in lineup.get(str(court), []) if pid in by_id]
        if len(four) != 4:
            continue
        placed = _pair_four(four, court, state, max_retries, rng)
        if isinstance(placed, RoundFailure):
            return placed
        matches.append(placed)

    river["last_court_teams"] = _court_teams(matches)
    return matches, {}


def apply_up_down_river_results(state: SessionState, decisions: list[MatchDecision]) -> None:
    """Winners move up one court and losers down one.

    Court 1 keeps its winners and the bottom court keeps its losers. A court
    without a recorded decision acts as a boundary: its lineup stays put and
    its neighbours behave as if they were the top or bottom court.

    This is not a pairwise swap between adjacent courts: with two courts,
    court 1 ends up with both courts' winners (W1 + W2), where a pairwise
    swap would give it W2 + L1.
    """
    river = state.format_state.get(Mode.UP_DOWN_RIVER.value)
    if not river or not river.get("court_lineup"):
        return
    court_count = _last_court_count(state)
    lineup = river["court_lineup"]

    by_court = {}
    for decision in decisions:
        if 1 <= decision.court <= court_count:
            by_court[decision.court] = decision

    new_lineup = {court: list(ids) for court, ids in lineup.items()}
    for court, decision in by_court.items():
        above = by_court.get(court - 1)
        below = by_court.get(court + 1)

        ids = []
        ids += below.winner_ids if below else []
        ids += [] if above else decision.winner_ids
        ids += above.loser_ids if above else []
        ids += [] if below else decision.loser_ids
        new_lineup[str(court)] = ids

    river["court_lineup"] = new_lineup


# ============================================================================
# gauntlet / cream (rating seeded)
# ============================================================================


def balanced_teams_of_four(four: list[Player], ratings: dict[str, float]):
    """Pick the 2-vs-2 split with the smallest team rating difference.

    Only three splits exist, so all of them are tried. Ties keep the first.

    Returns:
        Tuple of (team1, team2)
    """
    def rating(player: Player) -> float:
        return ratings.get(player.id, DEFAULT_RATING)

    best = None
    for partner in (1, 2, 3):
        rest = [idx for idx in (1, 2, 3) if idx != partner]
        team1 = (four[0], four[partner])
        team2 = (four[rest[0]], four[rest[1]])
        diff = abs(rating(team1[0]) + rating(team1[1]) - rating(team2[0]) - rating(team2[1]))
        if best is None or diff < best[0]:
            best = (diff, team1, team2)
    return best[1], best[2]


def generate_gauntlet_round(
    active: list[Player],
    court_count: int,
    state: SessionState,
    max_retries: int,
    rng: random.Random,
) -> GeneratedRound:
    """Seed courts by rating (best on court 1) and balance each court."""
    for player in active:
        state.ratings.setdefault(player.id, DEFAULT_RATING)

    ordered = sorted(active, key=lambda p: state.ratings.get(p.id, DEFAULT_RATING), reverse=True)
    by_court = _bucket_by_court(ordered, court_count, cap_last=False)

    matches = []
    for court in range(1, court_count + 1):
        four = by_court[court]
        if len(four) != 4:
            continue
        team1, team2 = balanced_teams_of_four(four, state.ratings)
        matches.append(_placed_matchup(team1, team2, court, state))

    return matches, {}


def _adjust_ratings(state: SessionState, decision: MatchDecision, bump: float, drop: float) -> None:
    for player_id in decision.winner_ids:
        state.ratings[player_id] = state.ratings.get(player_id, DEFAULT_RATING) + bump
    for player_id in decision.loser_ids:
        state.ratings[player_id] = max(0, state.ratings.get(player_id, DEFAULT_RATING) - drop)


def apply_gauntlet_results(state: SessionState, decisions: list[MatchDecision]) -> None:
    """Winners gain GAUNTLET_K points, losers lose as many (floor 0)."""
    for decision in decisions:
        _adjust_ratings(state, decision, GAUNTLET_K, GAUNTLET_K)


def cream_adjustment(court: int, court_count: int) -> tuple[int, int]:
    """Return (winner bump, loser drop) for a court."""
    if court == 1:
        return CREAM_ADJUSTMENTS["bottom"]
    if court >= court_count:
        return CREAM_ADJUSTMENTS["top"]
    return CREAM_ADJUSTMENTS["middle"]


def apply_cream_results(state: SessionState, decisions: list[MatchDecision]) -> None:
    court_count = _last_court_count(state)
    for decision in decisions:
        bump, drop = cream_adjustment(decision.court, court_count)
        _adjust_ratings(state, decision, bump, drop)


def apply_no_results(state: SessionState, decisions: list[MatchDecision]) -> None:
    """Random rotation keeps no outcome-dependent state."""


# ============================================================================
# Format tables
# ============================================================================


ROUND_GENERATORS: dict[str, Callable[..., GeneratedRound]] = {
    Mode.RANDOM.value: generate_random_round,
    Mode.THRONE.value: generate_throne_round,
    Mode.UP_DOWN_RIVER.value: generate_up_down_river_round,
    Mode.GAUNTLET.value: generate_gauntlet_round,
    Mode.CREAM.value: generate_gauntlet_round,
}

RESULT_APPLIERS: dict[str, Callable[[SessionState, list[MatchDecision]], None]] = {
    Mode.RANDOM.value: apply_no_results,
    Mode.THRONE.value: apply_throne_results,
    Mode.UP_DOWN_RIVER.value: apply_up_down_river_results,
    Mode.GAUNTLET.value: apply_gauntlet_results,
    Mode.CREAM.value: apply_cream_results,
}
