"""
Read-only match history stores.

The candidate generator talks to history through ``MatchHistoryStore``.
Two backends are provided:

- ``SqlMatchHistoryStore``: parameterized SQLAlchemy queries against the
  relational schema (production). Transient connection failures are retried;
  anything else surfaces as DataSourceError.
- ``InMemoryMatchHistoryStore``: set/map operations over records loaded in
  memory (tests, offline analysis).

Both apply the same predicates, so they return the same rows for the same
history. Neither ever writes.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from lineuplab.db.models import Match, MatchParticipation, Player
from lineuplab.errors import DataSourceError
from lineuplab.features.cutoff import TemporalCutoff, to_naive_utc

logger = logging.getLogger(__name__)

# Linear backoff between attempts: base * attempt
RETRY_BASE_DELAY_SECONDS = 0.1


@dataclass(frozen=True)
class PartnerRecord:
    """One participation row that names a doubles partner."""

    match_id: str
    player_id: str
    partner_id: str
    match_instant: Optional[datetime]
    won: Optional[bool] = None


@dataclass(frozen=True)
class PlayerRow:
    """Display attributes for a catalog player."""

    player_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    dupr_rating: Optional[float] = None


class MatchHistoryStore(ABC):
    """Read-only source of players, matches and partner participation."""

    @abstractmethod
    def fetch_partner_records(
        self,
        player_ids: Sequence[str],
        cutoff: Optional[TemporalCutoff],
    ) -> list[PartnerRecord]:
        """
        Return participation rows where both player and partner are in player_ids.

        Args:
            player_ids: Catalog ids to restrict both sides of the partnership to
            cutoff: Temporal predicate, or None to ignore match time

        Returns:
            Rows ordered by (match_id, player_id)
        """

    @abstractmethod
    def fetch_players(self, player_ids: Sequence[str]) -> list[PlayerRow]:
        """Return display rows for the known players among player_ids."""

    @abstractmethod
    def fetch_match_instant(self, match_id: str) -> tuple[bool, Optional[datetime]]:
        """Return (found, match_instant) for a match id."""


class InMemoryMatchHistoryStore(MatchHistoryStore):
    """
    History store over records held in memory.

    Usage:
        store = InMemoryMatchHistoryStore(
            records=[PartnerRecord("m1", p1, p2, datetime(2026, 1, 5), won=True)],
        )
    """

    def __init__(
        self,
        records: Iterable[PartnerRecord] = (),
        players: Iterable[PlayerRow] = (),
        match_instants: Optional[dict[str, Optional[datetime]]] = None,
    ):
        # History is compared against naive UTC reference instants
        self._records = tuple(
            replace(record, match_instant=to_naive_utc(record.match_instant))
            for record in records
        )
        self._players = {row.player_id: row for row in players}
        instants = {record.match_id: record.match_instant for record in self._records}
        instants.update(
            (match_id, to_naive_utc(instant))
            for match_id, instant in (match_instants or {}).items()
        )
        self._match_instants = instants

    def fetch_partner_records(
        self,
        player_ids: Sequence[str],
        cutoff: Optional[TemporalCutoff],
    ) -> list[PartnerRecord]:
        members = set(player_ids)
        rows = [
            record
            for record in self._records
            if record.player_id in members
            and record.partner_id in members
            and record.partner_id != record.player_id
            and (cutoff is None or cutoff.admits(record.match_instant))
        ]
        return sorted(rows, key=lambda r: (r.match_id, r.player_id))

    def fetch_players(self, player_ids: Sequence[str]) -> list[PlayerRow]:
        return [self._players[pid] for pid in sorted(set(player_ids)) if pid in self._players]

    def fetch_match_instant(self, match_id: str) -> tuple[bool, Optional[datetime]]:
        if match_id not in self._match_instants:
            return False, None
        return True, self._match_instants[match_id]


def _is_transient(exc: SQLAlchemyError) -> bool:
    """Connection drops and timeouts are worth retrying; SQL errors are not."""
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


class SqlMatchHistoryStore(MatchHistoryStore):
    """
    History store backed by the relational schema.

    The temporal predicate is pushed into SQL so the match_instant index
    does the filtering.
    """

    def __init__(
        self,
        session: Session,
        retry_attempts: Optional[int] = None,
        retry_base_delay: float = RETRY_BASE_DELAY_SECONDS,
    ):
        if retry_attempts is None:
            from lineuplab.config import settings

            retry_attempts = settings.db_transient_retry_attempts
        self.session = session
        self.retry_attempts = max(1, retry_attempts)
        self.retry_base_delay = retry_base_delay

    def _execute(self, stmt, description: str):
        """Run a read query, retrying transient connection failures."""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return self.session.execute(stmt).all()
            except SQLAlchemyError as exc:
                self.session.rollback()
                if not _is_transient(exc):
                    logger.error("%s failed: %s", description, exc)
                    raise DataSourceError(f"{description} failed: {exc}") from exc
                if attempt == self.retry_attempts:
                    logger.error(
                        "%s failed after %d attempts: %s", description, attempt, exc,
                    )
                    raise DataSourceError(
                        f"{description} failed after {attempt} attempts: {exc}"
                    ) from exc

                delay = self.retry_base_delay * attempt
                logger.warning(
                    "[Retry %d/%d] %s failed: %s. Retrying in %.1fs...",
                    attempt, self.retry_attempts, description, exc, delay,
                )
                time.sleep(delay)

    def fetch_partner_records(
        self,
        player_ids: Sequence[str],
        cutoff: Optional[TemporalCutoff],
    ) -> list[PartnerRecord]:
        ids = sorted(set(player_ids))
        if not ids:
            return []

        stmt = (
            select(
                MatchParticipation.match_id,
                MatchParticipation.player_id,
                MatchParticipation.partner_id,
                Match.match_instant,
                MatchParticipation.won,
            )
            .join(Match, MatchParticipation.match_id == Match.id)
            .where(MatchParticipation.player_id.in_(ids))
            .where(MatchParticipation.partner_id.in_(ids))
            .where(MatchParticipation.partner_id != MatchParticipation.player_id)
        )
        if cutoff is not None:
            stmt = stmt.where(Match.match_instant.isnot(None))
            if cutoff.inclusive:
                stmt = stmt.where(Match.match_instant <= cutoff.upper)
            else:
                stmt = stmt.where(Match.match_instant < cutoff.upper)
        stmt = stmt.order_by(MatchParticipation.match_id, MatchParticipation.player_id)

        rows = self._execute(stmt, "Partner history query")
        return [
            PartnerRecord(
                match_id=row.match_id,
                player_id=row.player_id,
                partner_id=row.partner_id,
                match_instant=to_naive_utc(row.match_instant),
                won=row.won,
            )
            for row in rows
        ]

    def fetch_players(self, player_ids: Sequence[str]) -> list[PlayerRow]:
        ids = sorted(set(player_ids))
        if not ids:
            return []

        stmt = (
            select(
                Player.id,
                Player.first_name,
                Player.last_name,
                Player.gender,
                Player.dupr_rating,
            )
            .where(Player.id.in_(ids))
            .order_by(Player.id)
        )
        rows = self._execute(stmt, "Player catalog query")
        return [
            PlayerRow(
                player_id=row.id,
                first_name=row.first_name,
                last_name=row.last_name,
                gender=row.gender,
                dupr_rating=row.dupr_rating,
            )
            for row in rows
        ]

    def fetch_match_instant(self, match_id: str) -> tuple[bool, Optional[datetime]]:
        stmt = select(Match.match_instant).where(Match.id == match_id).limit(1)
        rows = self._execute(stmt, "Match lookup query")
        if not rows:
            return False, None
        return True, to_naive_utc(rows[0].match_instant)
