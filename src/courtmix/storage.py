"""SQLite storage layer for courtmix.

Provides ORM models and repository pattern for data persistence. The
engine itself never touches the database: the session state is stored here
verbatim (as JSON) and handed back to it on the next round.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import NullPool

from courtmix.models import MatchDecision, Mode, Player, SessionState
from courtmix.paths import get_default_db_path

Base = declarative_base()


# ============================================================================
# ORM Models
# ============================================================================


class EventORM(Base):
    """Event table.

    One play session (e.g. a club night). Holds the engine state as JSON.
    """

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    courts = Column(Integer, nullable=False, default=6)
    mode = Column(String(20), nullable=False, default=Mode.RANDOM.value)
    is_current = Column(Boolean, nullable=False, default=False)  # Only one event can be current
    # SessionState.to_dict() as JSON, NULL before the first round
    state_json = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    players = relationship("PlayerORM", back_populates="event", cascade="all, delete-orphan")
    results = relationship("MatchResultORM", back_populates="event", cascade="all, delete-orphan")

    @property
    def state(self) -> Optional[dict]:
        """Get the stored state dictionary."""
        if not self.state_json:
            return None
        return json.loads(self.state_json)

    @state.setter
    def state(self, value: Optional[dict]):
        """Set the stored state dictionary."""
        self.state_json = json.dumps(value) if value is not None else None


class PlayerORM(Base):
    """Player table.

    - player_key: engine id (normalized name or CSV id)
    - is_active: dropped players stay on the roster but sit out of rounds
    """

    __tablename__ = "players"
    __table_args__ = (UniqueConstraint("event_id", "player_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    player_key = Column(String(100), nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("EventORM", back_populates="players")

    def to_player(self) -> Player:
        """Convert to the engine's Player."""
        return Player(id=self.player_key, name=self.name)


class MatchResultORM(Base):
    """Recorded match outcome table."""

    __tablename__ = "match_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    round = Column(Integer, nullable=False)
    court = Column(Integer, nullable=False)
    # Store team ids as JSON arrays
    team1_ids_json = Column(Text, nullable=False, default="[]")
    team2_ids_json = Column(Text, nullable=False, default="[]")
    winner_team = Column(Integer, nullable=False)  # 1 or 2
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("EventORM", back_populates="results")

    @property
    def team1_ids(self) -> list[str]:
        return json.loads(self.team1_ids_json)

    @team1_ids.setter
    def team1_ids(self, value: list[str]):
        self.team1_ids_json = json.dumps(list(value))

    @property
    def team2_ids(self) -> list[str]:
        return json.loads(self.team2_ids_json)

    @team2_ids.setter
    def team2_ids(self, value: list[str]):
        self.team2_ids_json = json.dumps(list(value))

    def to_decision(self) -> MatchDecision:
        """Convert to a MatchDecision."""
        return MatchDecision(
            court=self.court,
            team1_ids=self.team1_ids,
            team2_ids=self.team2_ids,
            winner_team=self.winner_team,
        )


class DatabaseManager:
    """Manages SQLite database connection and session."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database manager.

        Args:
            db_path: Path to SQLite database file (default: data directory)
        """
        self.db_path = Path(db_path) if db_path else get_default_db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Use NullPool for SQLite to avoid connection pool issues
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        self.SessionLocal = sessionmaker(bind=self.engine)

    def create_tables(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self):
        """Drop all tables (use with caution!)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self):
        """Get a new database session."""
        return self.SessionLocal()


# ============================================================================
# Repository Pattern
# ============================================================================


class EventRepository:
    """Repository for Event operations."""

    def __init__(self, session):
        self.session = session

    def create(self, name: str, courts: int = 6, mode: str = Mode.RANDOM.value) -> EventORM:
        """Create a new event and make it current."""
        event = EventORM(name=name, courts=courts, mode=mode, is_current=False)
        self.session.add(event)
        self.session.commit()
        self.set_current(event.id)
        return event

    def get_by_id(self, event_id: int) -> Optional[EventORM]:
        """Get event by ID."""
        return self.session.query(EventORM).filter(EventORM.id == event_id).first()

    def get_by_name(self, name: str) -> Optional[EventORM]:
        """Get event by name."""
        return self.session.query(EventORM).filter(EventORM.name == name).first()

    def get_current(self) -> Optional[EventORM]:
        """Get the current event."""
        return self.session.query(EventORM).filter(EventORM.is_current == True).first()

    def set_current(self, event_id: int) -> bool:
        """Set an event as current (unsets the others)."""
        event = self.get_by_id(event_id)
        if not event:
            return False
        self.session.query(EventORM).update({EventORM.is_current: False})
        event.is_current = True
        self.session.commit()
        return True

    def load_state(self, event: EventORM) -> Optional[SessionState]:
        """Get the stored engine state (None before the first round)."""
        data = event.state
        if data is None:
            return None
        return SessionState.from_dict(data)

    def save_state(self, event: EventORM, state: SessionState) -> EventORM:
        """Store the engine state returned by a round."""
        event.state = state.to_dict()
        event.mode = state.mode
        self.session.commit()
        self.session.refresh(event)
        return event

    def reset_state(self, event: EventORM) -> EventORM:
        """Forget histories, ranks and ratings (keeps the roster)."""
        event.state = None
        self.session.commit()
        return event


class PlayerRepository:
    """Repository for Player operations."""

    def __init__(self, session):
        self.session = session

    def add(self, event_id: int, player: Player) -> PlayerORM:
        """Add a player to an event.

        Raises:
            ValueError: If the player id is already on the roster
        """
        if self.get_by_key(event_id, player.id):
            raise ValueError(f"Player '{player.id}' is already registered")
        player_orm = PlayerORM(event_id=event_id, player_key=player.id, name=player.name, is_active=True)
        self.session.add(player_orm)
        self.session.commit()
        self.session.refresh(player_orm)
        return player_orm

    def get_by_key(self, event_id: int, player_key: str) -> Optional[PlayerORM]:
        """Get player by engine id."""
        return (
            self.session.query(PlayerORM)
            .filter(PlayerORM.event_id == event_id)
            .filter(PlayerORM.player_key == player_key)
            .first()
        )

    def get_all(self, event_id: int) -> list[PlayerORM]:
        """Get the whole roster in registration order."""
        return (
            self.session.query(PlayerORM)
            .filter(PlayerORM.event_id == event_id)
            .order_by(PlayerORM.id)
            .all()
        )

    def get_active(self, event_id: int) -> list[PlayerORM]:
        """Get players available for the next round."""
        return [p for p in self.get_all(event_id) if p.is_active]

    def set_active(self, event_id: int, player_key: str, active: bool) -> bool:
        """Drop a player from (or add them back to) the rotation."""
        player_orm = self.get_by_key(event_id, player_key)
        if not player_orm:
            return False
        player_orm.is_active = active
        self.session.commit()
        return True

    def delete(self, event_id: int, player_key: str) -> bool:
        """Remove a player from the roster."""
        player_orm = self.get_by_key(event_id, player_key)
        if not player_orm:
            return False
        self.session.delete(player_orm)
        self.session.commit()
        return True


class ResultRepository:
    """Repository for recorded match results."""

    def __init__(self, session):
        self.session = session

    def record(self, event_id: int, round_number: int, decision: MatchDecision) -> MatchResultORM:
        """Store one match decision."""
        result = MatchResultORM(
            event_id=event_id,
            round=round_number,
            court=decision.court,
            winner_team=decision.winner_team,
        )
        result.team1_ids = decision.team1_ids
        result.team2_ids = decision.team2_ids
        self.session.add(result)
        self.session.commit()
        return result

    def get_by_round(self, event_id: int, round_number: int) -> list[MatchResultORM]:
        """Get results of one round ordered by court."""
        return (
            self.session.query(MatchResultORM)
            .filter(MatchResultORM.event_id == event_id)
            .filter(MatchResultORM.round == round_number)
            .order_by(MatchResultORM.court)
            .all()
        )

    def get_all(self, event_id: int) -> list[MatchResultORM]:
        """Get every result of an event."""
        return (
            self.session.query(MatchResultORM)
            .filter(MatchResultORM.event_id == event_id)
            .order_by(MatchResultORM.round, MatchResultORM.court)
            .all()
        )

    def delete_by_event(self, event_id: int) -> int:
        """Delete all results of an event.

        Returns:
            Number of results deleted
        """
        count = (
            self.session.query(MatchResultORM)
            .filter(MatchResultORM.event_id == event_id)
            .delete()
        )
        self.session.commit()
        return count
