"""Validation of recorded match results.

Results are entered by hand after each round, so they are checked against
the round that was actually generated before being applied.
"""

from typing import Optional

from courtmix.models import Assignment, MatchDecision


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


def validate_decision(
    decision: MatchDecision, assignments: list[Assignment]
) -> tuple[bool, str]:
    """Validate one match decision against the round's assignments.

    Rules:
    - The winner must be team 1 or team 2
    - The court must have been played this round
    - The teams must be exactly the ones assigned to that court

    Args:
        decision: Recorded outcome
        assignments: Assignments of the round just played

    Returns:
        Tuple of (is_valid, error_message)
        - is_valid: True if the decision is valid
        - error_message: Empty string if valid, otherwise the error description
    """
    if decision.winner_team not in (1, 2):
        return False, f"Winner team must be 1 or 2, got {decision.winner_team}"

    assignment = _find_court(assignments, decision.court)
    if assignment is None:
        return False, f"Court {decision.court} was not played this round"

    if sorted(decision.team1_ids) != sorted(assignment.team1_ids):
        return False, f"Court {decision.court}: team 1 does not match the assignment"

    if sorted(decision.team2_ids) != sorted(assignment.team2_ids):
        return False, f"Court {decision.court}: team 2 does not match the assignment"

    return True, ""


def validate_decisions(
    decisions: list[MatchDecision], assignments: list[Assignment]
) -> tuple[bool, str]:
    """Validate all decisions for a round.

    Examples:
        >>> validate_decisions([], [])
        (False, 'At least one result is required')
    """
    if not decisions:
        return False, "At least one result is required"

    seen_courts = set()
    for decision in decisions:
        if decision.court in seen_courts:
            return False, f"Court {decision.court} has more than one result"
        seen_courts.add(decision.court)

        is_valid, error_msg = validate_decision(decision, assignments)
        if not is_valid:
            return False, error_msg

    return True, ""


def require_valid_decisions(
    decisions: list[MatchDecision], assignments: list[Assignment]
) -> None:
    """Raise ValidationError unless every decision is valid."""
    is_valid, error_msg = validate_decisions(decisions, assignments)
    if not is_valid:
        raise ValidationError(error_msg)


def _find_court(assignments: list[Assignment], court: int) -> Optional[Assignment]:
    for assignment in assignments:
        if assignment.court == court:
            return assignment
    return None
