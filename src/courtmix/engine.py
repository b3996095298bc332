"""Round generation entry points.

generate_round() turns a roster and the session state into the next round;
apply_results() folds the recorded winners back into the state. Neither
touches storage: the caller keeps the state between calls.
"""

import logging
import random
from typing import Any, Iterable, Optional, Union

from courtmix.byes import pick_byes_fair
from courtmix.formats import RESULT_APPLIERS, ROUND_GENERATORS
from courtmix.models import (
    Assignment,
    MatchDecision,
    Mode,
    RoundFailure,
    RoundResult,
    SessionState,
    mode_value,
)
from courtmix.pairing import DEFAULT_MAX_RETRIES, commit_histories
from courtmix.roster import normalize_players

logger = logging.getLogger(__name__)

MIN_COURTS = 1
MAX_COURTS = 6
PLAYERS_PER_COURT = 4


def clamp_court_count(value: Any) -> int:
    """Coerce a court count to an int in [1, 6]; missing or zero means 6."""
    try:
        courts = int(value or MAX_COURTS)
    except (TypeError, ValueError):
        courts = MAX_COURTS
    return max(MIN_COURTS, min(MAX_COURTS, courts))


def init_state(prior: Union[None, SessionState, dict[str, Any]] = None) -> SessionState:
    """Return a usable state from whatever the caller stored.

    A SessionState is used as is (and mutated by later calls), a mapping is
    rebuilt with SessionState.from_dict, None gives a fresh state.
    """
    if isinstance(prior, SessionState):
        return prior
    return SessionState.from_dict(prior)


def generate_round(
    players: Iterable[Any],
    court_count: Any = MAX_COURTS,
    state: Union[None, SessionState, dict[str, Any]] = None,
    mode: Union[None, str, Mode] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
) -> Union[RoundResult, RoundFailure]:
    """Generate the next round.

    Pipeline: normalize roster, pick byes, check parity, run the mode's
    generator, commit histories, advance the round counter.

    Args:
        players: Roster (names, mappings or objects with id/name)
        court_count: Courts available (clamped to 1..6)
        state: Prior state (SessionState, dict from to_dict, or None)
        mode: Scheduling mode; None keeps the state's mode
        max_retries: Attempts per pairing search
        rng: Random source (takes precedence over seed)
        seed: Seed for a new random source

    Returns:
        RoundResult, or RoundFailure when no round can be built
    """
    session = init_state(state)
    requested = mode_value(mode) if mode is not None else session.mode

    generator = ROUND_GENERATORS.get(requested)
    if generator is None:
        logger.warning("Unknown mode requested: %s", requested)
        return RoundFailure(f"Unknown mode: {requested}")
    session.mode = requested

    rng = rng or random.Random(seed)
    courts = clamp_court_count(court_count)
    capacity = courts * PLAYERS_PER_COURT

    roster = normalize_players(players)
    session.ensure_players(roster)

    active, byes = pick_byes_fair(roster, capacity, session, rng=rng)
    if len(active) % 2 != 0:
        logger.warning("Odd number of active players: %d", len(active))
        return RoundFailure("Odd number of active players")

    generated = generator(active, courts, session, max_retries, rng)
    if isinstance(generated, RoundFailure):
        logger.warning("Round %d failed in %s mode: %s", session.round + 1, session.mode, generated.reason)
        return generated

    matches, diagnostics = generated
    commit_histories(matches, session)

    assignments = [Assignment.from_matchup(m) for m in matches]
    session.round += 1
    session.last_round = {
        "court_count": courts,
        "assignments": [a.to_dict() for a in assignments],
    }

    logger.info(
        "Round %d (%s): %d matches on %d courts, %d byes",
        session.round,
        session.mode,
        len(assignments),
        courts,
        len(byes),
    )
    return RoundResult(
        round=session.round,
        court_count=courts,
        capacity=capacity,
        players_total=len(roster),
        active_players=active,
        bye_players=byes,
        assignments=assignments,
        diagnostics=dict(diagnostics),
        state=session,
    )


def apply_results(
    state: Optional[SessionState],
    decisions: Optional[Iterable[Union[MatchDecision, dict[str, Any]]]],
) -> None:
    """Fold recorded match outcomes into the state of its mode.

    Call once per round, after the winners are known and before the next
    generate_round. Empty input and unknown modes are ignored.
    """
    if state is None or not decisions:
        return
    decisions = [d if isinstance(d, MatchDecision) else _decision_from_dict(d) for d in decisions]
    if not decisions:
        return

    applier = RESULT_APPLIERS.get(state.mode)
    if applier is None:
        logger.debug("No result folder for mode %s", state.mode)
        return
    applier(state, decisions)


def _decision_from_dict(data: dict[str, Any]) -> MatchDecision:
    return MatchDecision(
        court=int(data["court"]),
        team1_ids=list(data["team1_ids"]),
        team2_ids=list(data["team2_ids"]),
        winner_team=int(data["winner_team"]),
    )
