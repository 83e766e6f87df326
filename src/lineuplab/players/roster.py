"""
Team roster loading and available-player suggestions.

The league feed publishes roster snapshots throughout a season, so a player
can appear several times for the same team. The newest snapshot per player
(by snapshot_date, then updated_at) is authoritative.

The suggested available list is what the lineup screen pre-selects:
regulars first, topped up with subs to reach the minimum, and adjusted to an
even count because every game needs two players.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lineuplab.db.models import Player, RosterEntry
from lineuplab.errors import DataSourceError, ValidationError
from lineuplab.features.catalog import normalize_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterPlayer:
    player_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    is_sub: bool = False

    def to_dict(self, suggested: bool = False) -> dict:
        return {
            "player_id": self.player_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "gender": self.gender,
            "is_sub": self.is_sub,
            "suggested": suggested,
        }


def sort_roster_players(players: Sequence[RosterPlayer]) -> list[RosterPlayer]:
    """Regulars before subs, then last name, first name, id."""
    return sorted(
        players,
        key=lambda p: (
            p.is_sub,
            (p.last_name or "").casefold(),
            (p.first_name or "").casefold(),
            p.player_id,
        ),
    )


def fetch_team_roster(
    session: Session,
    *,
    team_id: str,
    division_id: str,
    season_year: int,
    season_number: int,
) -> list[RosterPlayer]:
    """
    Load a team's season roster, one row per player.

    Raises:
        ValidationError: malformed team/division ids or season values
        DataSourceError: the roster query failed
    """
    team_id = normalize_identifier(team_id, "team_id")
    division_id = normalize_identifier(division_id, "division_id")
    if season_year < 2000 or season_year > 2100:
        raise ValidationError("season_year must be a valid year.")
    if season_number <= 0:
        raise ValidationError("season_number must be a positive integer.")

    stmt = (
        select(
            RosterEntry.player_id,
            RosterEntry.is_sub,
            Player.first_name,
            Player.last_name,
            Player.gender,
        )
        .outerjoin(Player, Player.id == RosterEntry.player_id)
        .where(RosterEntry.division_id == division_id)
        .where(RosterEntry.team_id == team_id)
        .where(RosterEntry.season_year == season_year)
        .where(RosterEntry.season_number == season_number)
        .order_by(
            RosterEntry.player_id,
            RosterEntry.snapshot_date.desc(),
            RosterEntry.updated_at.desc(),
        )
    )
    try:
        rows = session.execute(stmt).all()
    except SQLAlchemyError as exc:
        logger.error("Roster query failed for team %s: %s", team_id, exc)
        raise DataSourceError(f"Roster query failed: {exc}") from exc

    latest: dict[str, RosterPlayer] = {}
    for row in rows:
        # Rows are newest-first within each player
        if row.player_id in latest:
            continue
        latest[row.player_id] = RosterPlayer(
            player_id=row.player_id,
            first_name=row.first_name,
            last_name=row.last_name,
            gender=row.gender,
            is_sub=bool(row.is_sub),
        )

    return sort_roster_players(list(latest.values()))


def suggest_available_players(
    roster: Sequence[RosterPlayer],
    min_players: Optional[int] = None,
) -> list[str]:
    """
    Pick the default available-player list for a roster.

    - every regular (non-sub) player, in roster order
    - if fewer than min_players, add the next players in roster order
      until the minimum is reached
    - if the count is odd, add one more unselected player, or drop the
      last selected one when nobody is left
    """
    if min_players is None:
        from lineuplab.config import settings

        min_players = settings.min_suggested_players

    ordered = sort_roster_players(roster)
    selected: list[str] = [p.player_id for p in ordered if not p.is_sub]
    chosen = set(selected)

    if len(selected) < min_players:
        for player in ordered:
            if player.player_id in chosen:
                continue
            selected.append(player.player_id)
            chosen.add(player.player_id)
            if len(selected) >= min_players:
                break

    if len(selected) % 2 != 0:
        fill = next((p for p in ordered if p.player_id not in chosen), None)
        if fill is not None:
            selected.append(fill.player_id)
        else:
            selected.pop()

    return selected
