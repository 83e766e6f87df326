"""
SQLAlchemy ORM models for Lineup Lab.

This module defines the match history tables read by the candidate
pairing engine. History is append-only: the engine reads these tables and
never updates them.

Key design decisions:
- Player ids are UUID strings, shared with the league data feed
- A single matches table holds both played and scheduled matches, so a
  scheduled match can supply the reference instant for a recommendation
- Doubles partnerships are stored per participant (partner_id), so each
  played doubles match yields two mirrored participation rows per team
- Roster entries are snapshots; the newest snapshot per player wins

Tables:
- players: Canonical player records
- matches: All matches (scheduled and played), indexed by match instant
- match_participations: Who played in which match, with whom, and the outcome
- roster_entries: Season roster snapshots per team
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# =============================================================================
# Constants
# =============================================================================

# Match types used by doubles leagues
MATCH_TYPES: tuple[str, ...] = ("mixed", "female", "male")

# Length of a canonical UUID string
ID_LENGTH = 36


# =============================================================================
# Base Model
# =============================================================================

class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# =============================================================================
# Player Models
# =============================================================================

class Player(Base):
    """
    Canonical player record.

    Display attributes are optional: ids supplied by a caller may refer to
    players the feed has not described yet.
    """
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)

    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # 'male', 'female'

    # Latest known DUPR doubles rating
    dupr_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    participations: Mapped[list["MatchParticipation"]] = relationship(
        back_populates="player",
        foreign_keys="MatchParticipation.player_id",
    )
    roster_entries: Mapped[list["RosterEntry"]] = relationship(back_populates="player")

    def __repr__(self) -> str:
        return f"<Player(id='{self.id}', name='{self.first_name} {self.last_name}')>"


class RosterEntry(Base):
    """
    A snapshot of one player on one team's roster for a season.

    The feed re-publishes rosters over the season, so the same player can
    have several rows for the same team/season. Readers keep the newest
    (snapshot_date, updated_at).
    """
    __tablename__ = "roster_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)

    team_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    division_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    season_year: Mapped[int] = mapped_column(Integer, nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)

    is_sub: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    player: Mapped["Player"] = relationship(back_populates="roster_entries")

    __table_args__ = (
        UniqueConstraint(
            "player_id", "team_id", "division_id", "season_year", "season_number", "snapshot_date",
            name="uq_roster_entry_snapshot",
        ),
        Index("idx_roster_team_season", "division_id", "team_id", "season_year", "season_number"),
    )

    def __repr__(self) -> str:
        return f"<RosterEntry(player_id='{self.player_id}', team_id='{self.team_id}')>"


# =============================================================================
# Match Models
# =============================================================================

class Match(Base):
    """
    Unified match table for scheduled and played matches.

    match_instant is the time the match was (or will be) played. It is
    nullable because some historical imports only carry a week number; a
    match without an instant is never "known before" any reference instant.

    Status lifecycle:
    - 'scheduled': Known fixture, not yet played
    - 'completed': Played, participation rows recorded
    - 'forfeit': One side forfeited
    - 'cancelled': Not played
    """
    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)

    division_id: Mapped[Optional[str]] = mapped_column(String(ID_LENGTH), nullable=True)
    home_team_id: Mapped[Optional[str]] = mapped_column(String(ID_LENGTH), nullable=True)
    away_team_id: Mapped[Optional[str]] = mapped_column(String(ID_LENGTH), nullable=True)
    week_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    match_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    match_instant: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="completed", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    participations: Mapped[list["MatchParticipation"]] = relationship(back_populates="match")

    __table_args__ = (
        Index("idx_matches_match_instant", "match_instant"),
        Index("idx_matches_division_week", "division_id", "week_number"),
        CheckConstraint(
            "match_type IS NULL OR match_type IN ("
            + ", ".join(f"'{t}'" for t in MATCH_TYPES)
            + ")",
            name="ck_matches_match_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<Match(id='{self.id}', instant={self.match_instant}, status='{self.status}')>"


class MatchParticipation(Base):
    """
    One player's participation in one match.

    Immutable historical fact: rows are appended by ingestion and never
    rewritten. partner_id is set for doubles and points at the teammate;
    the teammate has a mirrored row pointing back.
    """
    __tablename__ = "match_participations"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[str] = mapped_column(ForeignKey("matches.id"), nullable=False)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    partner_id: Mapped[Optional[str]] = mapped_column(ForeignKey("players.id"), nullable=True)

    # None when the result was never recorded
    won: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    match: Mapped["Match"] = relationship(back_populates="participations")
    player: Mapped["Player"] = relationship(
        back_populates="participations",
        foreign_keys=[player_id],
    )

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_participation_match_player"),
        Index("idx_participation_player_partner", "player_id", "partner_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<MatchParticipation(match_id='{self.match_id}', player_id='{self.player_id}', "
            f"partner_id='{self.partner_id}')>"
        )
