"""Win/loss scoreboard and leaderboard ordering.

Display bookkeeping only; the scheduling engine never reads it.
"""

from collections import defaultdict
from typing import Iterable, Optional

from courtmix.models import MatchDecision, PlayerStanding


def new_scoreboard() -> dict[str, dict[str, int]]:
    """Return an empty scoreboard (player id -> wins/losses/games)."""
    return defaultdict(lambda: {"wins": 0, "losses": 0, "games": 0})


def record_decision(scores: dict[str, dict[str, int]], decision: MatchDecision) -> None:
    """Add one match outcome to the scoreboard."""
    for player_id in decision.winner_ids:
        entry = scores.setdefault(player_id, {"wins": 0, "losses": 0, "games": 0})
        entry["wins"] += 1
        entry["games"] += 1

    for player_id in decision.loser_ids:
        entry = scores.setdefault(player_id, {"wins": 0, "losses": 0, "games": 0})
        entry["losses"] += 1
        entry["games"] += 1


def build_scoreboard(decisions: Iterable[MatchDecision]) -> dict[str, dict[str, int]]:
    """Rebuild a scoreboard from every recorded decision."""
    scores = new_scoreboard()
    for decision in decisions:
        record_decision(scores, decision)
    return scores


def calculate_leaderboard(
    scores: dict[str, dict[str, int]],
    names: Optional[dict[str, str]] = None,
) -> list[PlayerStanding]:
    """Order players for display.

    Sorting:
    1. Wins (descending)
    2. Win percentage (descending)
    3. Name (ascending)

    Args:
        scores: Scoreboard from build_scoreboard/record_decision
        names: Optional player id -> display name (id is used otherwise).
            Named players without games are listed with zeros.

    Returns:
        List of PlayerStanding objects with positions assigned (1 = best)
    """
    names = names or {}
    empty = {"wins": 0, "losses": 0, "games": 0}
    player_ids = list(scores) + [pid for pid in names if pid not in scores]

    standings = []
    for player_id in player_ids:
        stats = scores.get(player_id, empty)
        standings.append(
            PlayerStanding(
                player_id=player_id,
                name=names.get(player_id, player_id),
                wins=stats["wins"],
                losses=stats["losses"],
                games=stats["games"],
            )
        )

    standings.sort(key=lambda s: (-s.wins, -s.win_pct, s.name))

    for position, standing in enumerate(standings, start=1):
        standing.position = position

    return standings
