"""Tests for roster loading and available-player suggestions."""

from datetime import date

import pytest

from helpers import P1, P2, P3, P4, P5, add_players, add_roster_entry
from lineuplab.db.models import Player
from lineuplab.errors import ValidationError
from lineuplab.players.roster import (
    RosterPlayer,
    fetch_team_roster,
    sort_roster_players,
    suggest_available_players,
)

TEAM = "e5e5e5e5-0000-4000-8000-000000000001"
OTHER_TEAM = "e5e5e5e5-0000-4000-8000-000000000002"
DIVISION = "f6f6f6f6-0000-4000-8000-000000000001"


def _player(pid, last, first="Pat", is_sub=False):
    return RosterPlayer(player_id=pid, first_name=first, last_name=last, is_sub=is_sub)


def _roster(regulars, subs):
    players = [_player(f"{i:08d}-0000-4000-8000-000000000000", f"Reg{i:02d}") for i in range(regulars)]
    players += [
        _player(f"{i:08d}-0000-4000-8000-000000000001", f"Sub{i:02d}", is_sub=True)
        for i in range(subs)
    ]
    return players


# =============================================================================
# Sorting and suggestions
# =============================================================================

def test_sort_puts_regulars_first_then_names():
    players = [
        _player(P1, "zeta", is_sub=True),
        _player(P2, "Young"),
        _player(P3, "adams", first="Zoe"),
        _player(P4, "Adams", first="amy"),
    ]
    assert [p.player_id for p in sort_roster_players(players)] == [P4, P3, P2, P1]


def test_suggest_all_regulars_when_enough():
    roster = _roster(regulars=8, subs=3)
    suggested = suggest_available_players(roster, min_players=8)
    assert len(suggested) == 8
    assert all(pid.endswith("000000000000") for pid in suggested)


def test_suggest_tops_up_with_subs():
    roster = _roster(regulars=5, subs=4)
    suggested = suggest_available_players(roster, min_players=8)
    assert len(suggested) == 8
    assert suggested[:5] == [p.player_id for p in sort_roster_players(roster) if not p.is_sub]


def test_suggest_adds_one_for_even_count():
    roster = _roster(regulars=9, subs=2)
    suggested = suggest_available_players(roster, min_players=8)
    assert len(suggested) == 10
    assert suggested[-1].endswith("000000000001")


def test_suggest_drops_last_when_nobody_left():
    roster = _roster(regulars=5, subs=0)
    suggested = suggest_available_players(roster, min_players=8)
    assert len(suggested) == 4


def test_suggest_empty_roster():
    assert suggest_available_players([], min_players=8) == []


def test_suggest_default_minimum_from_settings():
    roster = _roster(regulars=4, subs=6)
    assert len(suggest_available_players(roster)) == 8


# =============================================================================
# Roster query
# =============================================================================

def test_fetch_team_roster_uses_latest_snapshot(db_session):
    add_players(db_session, P1, P2, P3, P4)
    db_session.get(Player, P1).last_name = "Brown"
    db_session.get(Player, P2).last_name = "Adams"
    db_session.flush()

    add_roster_entry(db_session, P1, TEAM, DIVISION, is_sub=True, snapshot_date=date(2026, 1, 5))
    add_roster_entry(db_session, P1, TEAM, DIVISION, is_sub=False, snapshot_date=date(2026, 2, 2))
    add_roster_entry(db_session, P2, TEAM, DIVISION)
    add_roster_entry(db_session, P3, TEAM, DIVISION, is_sub=True)
    add_roster_entry(db_session, P4, OTHER_TEAM, DIVISION)
    add_roster_entry(db_session, P4, TEAM, DIVISION, season_number=2)

    roster = fetch_team_roster(
        db_session, team_id=TEAM, division_id=DIVISION, season_year=2026, season_number=1,
    )

    assert [p.player_id for p in roster] == [P2, P1, P3]
    assert [p.is_sub for p in roster] == [False, False, True]
    assert roster[1].last_name == "Brown"


def test_fetch_team_roster_normalizes_ids(db_session):
    add_players(db_session, P5)
    add_roster_entry(db_session, P5, TEAM, DIVISION)

    roster = fetch_team_roster(
        db_session, team_id=TEAM.upper(), division_id=DIVISION, season_year=2026, season_number=1,
    )
    assert [p.player_id for p in roster] == [P5]


def test_fetch_team_roster_validates_inputs(db_session):
    with pytest.raises(ValidationError):
        fetch_team_roster(db_session, team_id="team", division_id=DIVISION, season_year=2026, season_number=1)
    with pytest.raises(ValidationError):
        fetch_team_roster(db_session, team_id=TEAM, division_id=DIVISION, season_year=1999, season_number=1)
    with pytest.raises(ValidationError):
        fetch_team_roster(db_session, team_id=TEAM, division_id=DIVISION, season_year=2026, season_number=0)


def test_roster_player_to_dict():
    data = _player(P1, "Adams").to_dict(suggested=True)
    assert data["suggested"] is True
    assert data["is_sub"] is False
    assert data["last_name"] == "Adams"
