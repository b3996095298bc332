"""Fair bye selection."""

import logging
import random
from typing import Optional

from courtmix.models import Player, SessionState

logger = logging.getLogger(__name__)


def pick_byes_fair(
    players: list[Player],
    capacity: int,
    state: SessionState,
    rng: Optional[random.Random] = None,
) -> tuple[list[Player], list[Player]]:
    """Choose who sits out this round.

    Candidates are sorted by bye count (ascending) with a random tie-break,
    so nobody gets a second bye while an active player still has none, and
    the same holds at every count level.

    Bye counts of the chosen players are incremented immediately.

    Args:
        players: Active roster
        capacity: Number of playing spots (courts x 4)
        state: Session state (bye_counts is read and updated)
        rng: Random source

    Returns:
        Tuple of (active, byes), both in roster order
    """
    if len(players) <= capacity:
        return list(players), []

    rng = rng or random.Random()
    byes_needed = len(players) - capacity

    ranked = sorted(
        ((state.bye_counts.get(p.id, 0), rng.random(), idx) for idx, p in enumerate(players)),
    )
    bye_idx = {idx for _, _, idx in ranked[:byes_needed]}

    byes = [p for idx, p in enumerate(players) if idx in bye_idx]
    active = [p for idx, p in enumerate(players) if idx not in bye_idx]

    for player in byes:
        state.bye_counts[player.id] = state.bye_counts.get(player.id, 0) + 1

    logger.debug("Byes this round: %s", ", ".join(p.id for p in byes))
    return active, byes
