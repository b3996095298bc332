"""Data models for courtmix.

Domain model hierarchy:
- SessionState holds everything remembered between rounds
- A round produces Assignments (one per court)
- An Assignment holds two Teams of two Players
- MatchDecisions feed outcomes back into the SessionState
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


DEFAULT_RATING = 1000


class Mode(str, Enum):
    """Scheduling mode (selects the round generator and result folder)."""

    RANDOM = "random"  # Free rotation, minimize repeats
    THRONE = "throne"  # Per-player rank ladder
    UP_DOWN_RIVER = "upDownRiver"  # Fixed foursomes move between courts
    GAUNTLET = "gauntlet"  # Rating seeded, flat adjustment
    CREAM = "cream"  # Rating seeded, court-dependent adjustment


# ============================================================================
# Core Domain Models
# ============================================================================


@dataclass(frozen=True)
class Player:
    """Player taking part in the session.

    The id is the identity key; the name is only used for display.
    """

    id: str
    name: str

    def __str__(self) -> str:
        """String representation."""
        return self.name


@dataclass
class Matchup:
    """Two teams paired against each other, optionally placed on a court."""

    team1: tuple[Player, Player]
    team2: tuple[Player, Player]
    team1_key: str
    team2_key: str
    match_key: str = ""  # Empty in ladder and rating modes
    court: int = 0  # 0 = not placed yet

    @property
    def players(self) -> list[Player]:
        """All four players of the match."""
        return [self.team1[0], self.team1[1], self.team2[0], self.team2[1]]

    def __str__(self) -> str:
        """String representation."""
        return f"Court {self.court}: {team_label(self.team1)} vs {team_label(self.team2)}"


@dataclass
class Assignment:
    """Display form of a match placed on a court."""

    court: int
    team1_ids: list[str]
    team2_ids: list[str]
    team1: str  # "Ann & Bob"
    team2: str

    @classmethod
    def from_matchup(cls, matchup: Matchup) -> "Assignment":
        """Build the display form of a placed matchup."""
        return cls(
            court=matchup.court,
            team1_ids=[p.id for p in matchup.team1],
            team2_ids=[p.id for p in matchup.team2],
            team1=team_label(matchup.team1),
            team2=team_label(matchup.team2),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Assignment":
        return cls(
            court=int(data["court"]),
            team1_ids=list(data["team1_ids"]),
            team2_ids=list(data["team2_ids"]),
            team1=data.get("team1", ""),
            team2=data.get("team2", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "court": self.court,
            "team1_ids": list(self.team1_ids),
            "team2_ids": list(self.team2_ids),
            "team1": self.team1,
            "team2": self.team2,
        }

    def __str__(self) -> str:
        """String representation."""
        return f"Court {self.court}: {self.team1} vs {self.team2}"


def team_label(team) -> str:
    """Return the display label of a two-player team."""
    return f"{team[0].name} & {team[1].name}"


# ============================================================================
# Session State
# ============================================================================


@dataclass
class SessionState:
    """Everything the engine remembers between rounds.

    The caller owns storage; the engine is the only writer during a call.
    All history maps use order-independent keys (see courtmix.pairing).
    """

    round: int = 0
    mode: str = Mode.RANDOM.value
    partner_history: dict[str, int] = field(default_factory=dict)
    match_history: dict[str, int] = field(default_factory=dict)
    bye_counts: dict[str, int] = field(default_factory=dict)
    last_court: dict[str, int] = field(default_factory=dict)  # 0 = none yet
    ratings: dict[str, float] = field(default_factory=dict)
    format_state: dict[str, dict[str, Any]] = field(default_factory=dict)
    last_round: Optional[dict[str, Any]] = None  # {"court_count", "assignments"}

    def ensure_players(self, players: list[Player]) -> None:
        """Give every player default bye count, last court and rating."""
        for player in players:
            self.bye_counts.setdefault(player.id, 0)
            self.last_court.setdefault(player.id, 0)
            self.ratings.setdefault(player.id, DEFAULT_RATING)

    def has_prior_round(self, court_count: int) -> bool:
        """Check if the previous round was played with this many courts."""
        return bool(
            self.last_round
            and self.last_round.get("assignments")
            and self.last_round.get("court_count") == court_count
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible copy of the state."""
        last_round = None
        if self.last_round is not None:
            last_round = {
                "court_count": self.last_round.get("court_count"),
                "assignments": [
                    a.to_dict() if isinstance(a, Assignment) else dict(a)
                    for a in self.last_round.get("assignments", [])
                ],
            }
        return {
            "round": self.round,
            "mode": mode_value(self.mode),
            "partner_history": dict(self.partner_history),
            "match_history": dict(self.match_history),
            "bye_counts": dict(self.bye_counts),
            "last_court": dict(self.last_court),
            "ratings": dict(self.ratings),
            "format_state": _copy_json(self.format_state),
            "last_round": last_round,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "SessionState":
        """Rebuild a state from `to_dict` output (missing fields get defaults)."""
        data = data or {}
        return cls(
            round=int(data.get("round") or 0),
            mode=mode_value(data.get("mode") or Mode.RANDOM),
            partner_history={k: int(v) for k, v in (data.get("partner_history") or {}).items()},
            match_history={k: int(v) for k, v in (data.get("match_history") or {}).items()},
            bye_counts={k: int(v) for k, v in (data.get("bye_counts") or {}).items()},
            last_court={k: int(v) for k, v in (data.get("last_court") or {}).items()},
            ratings=dict(data.get("ratings") or {}),
            format_state=_copy_json(data.get("format_state") or {}),
            last_round=_copy_json(data.get("last_round")),
        )


def mode_value(mode) -> str:
    """Return the wire name of a mode given as Mode or string."""
    if isinstance(mode, Mode):
        return mode.value
    return str(mode)


def _copy_json(value):
    """Deep copy of nested dict/list data."""
    if isinstance(value, dict):
        return {str(k): _copy_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_copy_json(v) for v in value]
    return value


# ============================================================================
# Result Models
# ============================================================================


@dataclass
class RoundResult:
    """Outcome of a successful round generation."""

    round: int
    court_count: int
    capacity: int
    players_total: int
    active_players: list[Player]
    bye_players: list[Player]
    assignments: list[Assignment]
    diagnostics: dict[str, Any]
    state: SessionState

    impossible = False

    def __str__(self) -> str:
        """String representation."""
        return f"Round {self.round}: {len(self.assignments)} matches, {len(self.bye_players)} byes"


@dataclass
class RoundFailure:
    """A round could not be generated.

    Failures are expected (too few players, exhausted retries, ...) so they are
    returned instead of raised.
    """

    reason: str

    impossible = True

    def __str__(self) -> str:
        """String representation."""
        return f"Could not generate round: {self.reason}"


@dataclass
class MatchDecision:
    """Recorded outcome of one match of the round just played."""

    court: int
    team1_ids: list[str]
    team2_ids: list[str]
    winner_team: int  # 1 or 2

    @property
    def winner_ids(self) -> list[str]:
        return list(self.team1_ids if self.winner_team == 1 else self.team2_ids)

    @property
    def loser_ids(self) -> list[str]:
        return list(self.team2_ids if self.winner_team == 1 else self.team1_ids)

    @classmethod
    def from_assignment(cls, assignment: Assignment, winner_team: int) -> "MatchDecision":
        """Build a decision for a displayed assignment."""
        return cls(
            court=assignment.court,
            team1_ids=list(assignment.team1_ids),
            team2_ids=list(assignment.team2_ids),
            winner_team=winner_team,
        )


@dataclass
class PlayerStanding:
    """Leaderboard row for a player (display only, never read by the engine)."""

    player_id: str
    name: str
    wins: int = 0
    losses: int = 0
    games: int = 0
    position: Optional[int] = None

    @property
    def win_pct(self) -> float:
        """Wins / games (0.0 before the first game)."""
        if self.games == 0:
            return 0.0
        return self.wins / self.games

    def __str__(self) -> str:
        """String representation."""
        pos = f"#{self.position}" if self.position else "unranked"
        return f"{pos} {self.name}: {self.wins}W-{self.losses}L ({self.win_pct:.0%})"
