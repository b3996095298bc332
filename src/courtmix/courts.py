"""Court assignment with a sticky-court improvement pass."""

import logging
import random
from typing import Optional

from courtmix.models import Matchup, SessionState

logger = logging.getLogger(__name__)


def _is_sticky(match: Matchup, court: int, state: SessionState) -> bool:
    """Check if any player of the match played on this court last round."""
    return any(state.last_court.get(p.id, 0) == court for p in match.players)


def assign_courts(
    matches: list[Matchup],
    state: SessionState,
    rng: Optional[random.Random] = None,
) -> list[Matchup]:
    """Place matches on courts 1..K.

    Match order is shuffled first. Then, court by court, a match with a
    player returning to the same court is swapped with the first later
    match for which neither side ends up sticky. At most one swap is made
    per court, so some sticky placements may remain.

    Updates last_court for every player placed.

    Args:
        matches: Paired matches (court not set yet)
        state: Session state (last_court is read and updated)
        rng: Random source

    Returns:
        Matches with court set, ordered by court
    """
    rng = rng or random.Random()
    slots = list(matches)
    rng.shuffle(slots)

    for i in range(len(slots)):
        court = i + 1
        if not _is_sticky(slots[i], court, state):
            continue

        for j in range(i + 1, len(slots)):
            other_court = j + 1
            if _is_sticky(slots[i], other_court, state) or _is_sticky(slots[j], court, state):
                continue
            logger.debug("Swapping courts %d and %d to avoid a repeat court", court, other_court)
            slots[i], slots[j] = slots[j], slots[i]
            break

    placed = []
    for court, match in enumerate(slots, start=1):
        match.court = court
        for player in match.players:
            state.last_court[player.id] = court
        placed.append(match)

    return placed
