"""
Database session management for Lineup Lab.

Provides SQLAlchemy engine and session factory with connection pooling
configured from config.py. The engine is created lazily, so importing
this module never opens a connection.

Usage:
    # As a context manager (recommended for scripts)
    from lineuplab.db import get_session

    with get_session() as session:
        store = SqlMatchHistoryStore(session)

    # As a dependency injection (for FastAPI)
    from lineuplab.db.session import get_db

    @app.get("/players")
    def list_players(db: Session = Depends(get_db)):
        ...
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from lineuplab.config import settings


def get_engine() -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    The engine is configured with:
    - Connection pool sized for short read-only request queries
    - Echo mode disabled (set LOG_LEVEL=DEBUG for SQL logging)
    - Pre-ping to verify connections before use (handles stale connections)
    """
    options = {
        "pool_pre_ping": True,
        "echo": settings.log_level == "DEBUG",
    }
    # SQLite (local/dev) uses a single-connection pool without sizing options
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow

    return create_engine(settings.database_url, **options)


_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory - bound to the engine on first use
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)


def _new_session() -> Session:
    return SessionLocal(bind=_get_engine())


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.
    The pairing engine only reads, so the commit is a no-op for it; seed
    and ingestion scripts rely on it.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = _new_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency injection function for FastAPI.

    Use this with FastAPI's Depends() for request-scoped sessions.
    """
    db = _new_session()
    try:
        yield db
    finally:
        db.close()
