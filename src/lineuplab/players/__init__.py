"""
Player roster management.

Loads team rosters from snapshot history and computes the default
available-player selection for the lineup screen.
"""

from lineuplab.players.roster import (
    RosterPlayer,
    fetch_team_roster,
    sort_roster_players,
    suggest_available_players,
)

__all__ = [
    "RosterPlayer",
    "fetch_team_roster",
    "sort_roster_players",
    "suggest_available_players",
]
