"""
Database module for Lineup Lab.

Provides SQLAlchemy ORM models and session management.

Usage:
    from lineuplab.db import get_session, Player, Match

    with get_session() as session:
        players = session.query(Player).all()
"""

from lineuplab.db.models import (
    Base,
    Match,
    MatchParticipation,
    Player,
    RosterEntry,
)
from lineuplab.db.session import SessionLocal, get_engine, get_session

__all__ = [
    # Base
    "Base",
    # Models
    "Player",
    "RosterEntry",
    "Match",
    "MatchParticipation",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
]
