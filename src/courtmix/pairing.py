"""Partner and matchup search with bounded randomized retries.

Both searches share one strategy. Each attempt shuffles the items and walks
them greedily; every unpaired item takes the candidate with the lowest
``used_count * 10 + random()`` score, stopping the scan at the first
candidate that was never used before. The attempt with the fewest repeats
wins, and a perfect attempt ends the search early.
"""

import logging
import random
from typing import Callable, Optional, Sequence, TypeVar

from courtmix.models import Matchup, Player, SessionState

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 800
REPEAT_WEIGHT = 10

T = TypeVar("T")


# ============================================================================
# History keys
# ============================================================================


def pair_key(a_id: str, b_id: str) -> str:
    """Order-independent key for two players.

    Examples:
        >>> pair_key("bob", "ann")
        'ann|bob'
    """
    x, y = str(a_id), str(b_id)
    return f"{x}|{y}" if x < y else f"{y}|{x}"


def team_key(team: Sequence[Player]) -> str:
    """Key of a team: the pair key of its two players."""
    return pair_key(team[0].id, team[1].id)


def match_key(team_key_a: str, team_key_b: str) -> str:
    """Order-independent key for two teams.

    Examples:
        >>> match_key("cid|dan", "ann|bob")
        'ann|bob||cid|dan'
    """
    if team_key_a < team_key_b:
        return f"{team_key_a}||{team_key_b}"
    return f"{team_key_b}||{team_key_a}"


# ============================================================================
# Search
# ============================================================================


def _greedy_attempt(
    pool: list[T],
    used_count: Callable[[T, T], Optional[int]],
    rng: random.Random,
) -> Optional[tuple[list[tuple[T, T]], int]]:
    """Run one greedy pass over an already shuffled pool.

    ``used_count`` returns None for candidates that may never be paired.

    Returns:
        (pairs, repeats) or None if some item was left without a candidate
    """
    taken = [False] * len(pool)
    pairs = []
    repeats = 0

    for i, first in enumerate(pool):
        if taken[i]:
            continue

        best_j = -1
        best_score = float("inf")
        best_count = 0
        for j in range(i + 1, len(pool)):
            if taken[j]:
                continue
            count = used_count(first, pool[j])
            if count is None:
                continue
            score = count * REPEAT_WEIGHT + rng.random()
            if score < best_score:
                best_j, best_score, best_count = j, score, count
                if count == 0:
                    break

        if best_j == -1:
            return None

        taken[i] = taken[best_j] = True
        if best_count > 0:
            repeats += 1
        pairs.append((first, pool[best_j]))

    return pairs, repeats


def _best_pairing(
    items: list[T],
    used_count: Callable[[T, T], Optional[int]],
    max_retries: int,
    rng: random.Random,
    accept: Callable[[list[tuple[T, T]]], bool] = lambda pairs: True,
) -> Optional[tuple[list[tuple[T, T]], int]]:
    best = None
    attempts = 0
    for attempts in range(1, max_retries + 1):
        pool = list(items)
        rng.shuffle(pool)
        outcome = _greedy_attempt(pool, used_count, rng)
        if outcome is None or not accept(outcome[0]):
            continue
        if best is None or outcome[1] < best[1]:
            best = outcome
            if best[1] == 0:
                break

    logger.debug(
        "Pairing search over %d items: %d attempts, best repeats=%s",
        len(items),
        attempts,
        None if best is None else best[1],
    )
    return best


def make_partner_pairs(
    players: list[Player],
    state: SessionState,
    max_retries: int = DEFAULT_MAX_RETRIES,
    rng: Optional[random.Random] = None,
) -> Optional[tuple[list[tuple[Player, Player]], int]]:
    """Split players into two-person teams, avoiding repeat partners.

    History is only read here; it is committed once the round is final.

    Args:
        players: Even-length list of players
        state: Session state (partner_history is read)
        max_retries: Number of greedy attempts before giving up
        rng: Random source

    Returns:
        Tuple of (pairs, repeat_partnerships_used), or None if no attempt
        produced a complete pairing
    """
    rng = rng or random.Random()
    history = state.partner_history

    def used_count(a: Player, b: Player) -> Optional[int]:
        if a.id == b.id:
            return None
        return history.get(pair_key(a.id, b.id), 0)

    return _best_pairing(
        players,
        used_count,
        max_retries,
        rng,
        accept=lambda pairs: len(pairs) * 2 == len(players),
    )


def make_matches_from_pairs(
    pairs: list[tuple[Player, Player]],
    court_count: int,
    state: SessionState,
    max_retries: int = DEFAULT_MAX_RETRIES,
    rng: Optional[random.Random] = None,
) -> Optional[tuple[list[Matchup], int]]:
    """Pair teams into matches, avoiding repeat team-vs-team matchups.

    Only the first ``court_count`` matches are kept.

    Args:
        pairs: Teams from make_partner_pairs
        court_count: Number of courts in play
        state: Session state (match_history is read)
        max_retries: Number of greedy attempts before giving up
        rng: Random source

    Returns:
        Tuple of (matches, repeat_matchups_used), or None if no attempt
        paired every team
    """
    rng = rng or random.Random()
    history = state.match_history
    keyed = [(tuple(team), team_key(team)) for team in pairs]

    def used_count(a, b) -> int:
        return history.get(match_key(a[1], b[1]), 0)

    best = _best_pairing(keyed, used_count, max_retries, rng)
    if best is None:
        return None

    found, repeats = best
    matches = [
        Matchup(
            team1=t1,
            team2=t2,
            team1_key=k1,
            team2_key=k2,
            match_key=match_key(k1, k2),
        )
        for (t1, k1), (t2, k2) in found
    ]
    return matches[:court_count], repeats


# ============================================================================
# History commit
# ============================================================================


def commit_histories(matches: list[Matchup], state: SessionState) -> None:
    """Record the partnerships and matchups of a finished round.

    Repeats are counted too; matches without a match key only update
    partner history.
    """
    for match in matches:
        for team in (match.team1, match.team2):
            key = team_key(team)
            state.partner_history[key] = state.partner_history.get(key, 0) + 1
        if match.match_key:
            state.match_history[match.match_key] = state.match_history.get(match.match_key, 0) + 1
