"""Shared ids and history-seeding helpers for tests."""

from datetime import date, datetime

from lineuplab.db.models import Match, MatchParticipation, Player, RosterEntry

P1 = "11111111-1111-4111-8111-111111111111"
P2 = "22222222-2222-4222-8222-222222222222"
P3 = "33333333-3333-4333-8333-333333333333"
P4 = "44444444-4444-4444-8444-444444444444"
P5 = "55555555-5555-4555-8555-555555555555"

T0 = datetime(2026, 2, 16, 19, 30)


def add_players(session, *player_ids, gender=None):
    for pid in player_ids:
        session.add(Player(id=pid, first_name=f"First{pid[:2]}", last_name=f"Last{pid[:2]}", gender=gender))
    session.flush()


def add_doubles_match(session, match_id, team, opponents, match_instant, winner="team", match_type="mixed"):
    """
    Record a played doubles match with mirrored participation rows.

    team/opponents are (player_id, partner_id) tuples; winner is 'team',
    'opponents' or None for an unrecorded result.
    """
    session.add(Match(
        id=match_id,
        match_type=match_type,
        match_instant=match_instant,
        status="completed",
    ))
    session.flush()

    for side, won in ((team, winner == "team"), (opponents, winner == "opponents")):
        if side is None:
            continue
        a, b = side
        result = None if winner is None else won
        session.add(MatchParticipation(match_id=match_id, player_id=a, partner_id=b, won=result))
        session.add(MatchParticipation(match_id=match_id, player_id=b, partner_id=a, won=result))
    session.flush()


def add_roster_entry(session, player_id, team_id, division_id, *, is_sub=False,
                     snapshot_date=date(2026, 1, 5), season_year=2026, season_number=1):
    session.add(RosterEntry(
        player_id=player_id,
        team_id=team_id,
        division_id=division_id,
        season_year=season_year,
        season_number=season_number,
        is_sub=is_sub,
        snapshot_date=snapshot_date,
    ))
    session.flush()
