"""
Candidate pair generator.

A candidate pair is an unordered pair of catalog players who have partnered
in at least one match admitted by the active temporal cutoff. Mirrored rows
((A,B) from A's participation, (B,A) from B's) collapse into a single
canonical (low, high) entry.

Pair statistics count distinct supporting matches. Win rates are shrunk
toward 50% so a 1-0 pair does not look like a 100% pair:

    win_rate_shrunk    = (wins + prior * k) / (decided + k)
    sample_reliability = decided / (decided + k)

where ``decided`` counts matches with a recorded result and ``k`` is the
policy's shrinkage_games.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from lineuplab.features.catalog import PlayerCatalog
from lineuplab.features.cutoff import (
    PAIR_PRIOR_WIN_RATE,
    CutoffMode,
    CutoffPolicy,
    TemporalCutoff,
    to_naive_utc,
)
from lineuplab.features.history import MatchHistoryStore, PartnerRecord

PAIR_KEY_SEPARATOR = "__"


def canonical_pair(player_a_id: str, player_b_id: str) -> tuple[str, str]:
    """Return the (low, high) ordering of two player ids."""
    if player_a_id <= player_b_id:
        return player_a_id, player_b_id
    return player_b_id, player_a_id


@dataclass(frozen=True, order=True)
class CandidatePair:
    """A canonical partner pair with its supporting-history statistics."""

    player_low_id: str
    player_high_id: str
    games_with_pair: int = 0
    wins: int = 0
    decided_games: int = 0
    win_rate: Optional[float] = None
    win_rate_shrunk: Optional[float] = None
    sample_reliability: Optional[float] = None
    last_played_at: Optional[datetime] = None

    @property
    def pair_key(self) -> str:
        return f"{self.player_low_id}{PAIR_KEY_SEPARATOR}{self.player_high_id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "pair_key": self.pair_key,
            "pair_player_low_id": self.player_low_id,
            "pair_player_high_id": self.player_high_id,
            "games_with_pair": self.games_with_pair,
            "wins": self.wins,
            "win_rate": _round(self.win_rate),
            "win_rate_shrunk": _round(self.win_rate_shrunk),
            "sample_reliability": _round(self.sample_reliability),
            "last_played_at": self.last_played_at.isoformat() if self.last_played_at else None,
        }


def _round(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 6)


@dataclass
class _MatchSupport:
    match_instant: Optional[datetime]
    won: Optional[bool]


def _pair_statistics(
    low: str,
    high: str,
    support: dict[str, _MatchSupport],
    shrinkage_games: float,
) -> CandidatePair:
    games = len(support)
    decided = [s.won for s in support.values() if s.won is not None]
    wins = sum(1 for won in decided if won)
    n_decided = len(decided)

    win_rate = wins / n_decided if n_decided else None
    denominator = n_decided + shrinkage_games
    if denominator > 0:
        win_rate_shrunk = (wins + PAIR_PRIOR_WIN_RATE * shrinkage_games) / denominator
        reliability = n_decided / denominator
    else:
        win_rate_shrunk = None
        reliability = None

    instants = [s.match_instant for s in support.values() if s.match_instant is not None]
    return CandidatePair(
        player_low_id=low,
        player_high_id=high,
        games_with_pair=games,
        wins=wins,
        decided_games=n_decided,
        win_rate=win_rate,
        win_rate_shrunk=win_rate_shrunk,
        sample_reliability=reliability,
        last_played_at=max(instants) if instants else None,
    )


def aggregate_pairs(
    records: list[PartnerRecord],
    catalog: PlayerCatalog,
    cutoff: Optional[TemporalCutoff],
    shrinkage_games: float,
) -> list[CandidatePair]:
    """
    Fold partner records into canonical candidate pairs.

    Records outside the catalog or rejected by the cutoff are dropped here
    as well as in the store, so the result never depends on how strictly a
    store filters.
    """
    support_by_pair: dict[tuple[str, str], dict[str, _MatchSupport]] = {}

    for record in records:
        if record.partner_id is None or record.player_id == record.partner_id:
            continue
        if record.player_id not in catalog or record.partner_id not in catalog:
            continue
        if cutoff is not None and not cutoff.admits(record.match_instant):
            continue

        key = canonical_pair(record.player_id, record.partner_id)
        support = support_by_pair.setdefault(key, {})
        existing = support.get(record.match_id)
        if existing is None:
            support[record.match_id] = _MatchSupport(to_naive_utc(record.match_instant), record.won)
        elif existing.won is None and record.won is not None:
            # Mirrored row carries the result the first row lacked
            existing.won = record.won

    return [
        _pair_statistics(low, high, support_by_pair[(low, high)], shrinkage_games)
        for low, high in sorted(support_by_pair)
    ]


def generate_candidates(
    store: MatchHistoryStore,
    catalog: PlayerCatalog,
    reference_instant: datetime,
    mode: CutoffMode,
    *,
    policy: CutoffPolicy,
) -> list[CandidatePair]:
    """
    Compute candidate pairs for a catalog under one cutoff mode.

    Strict and relaxed share the same join; they differ only in the
    temporal predicate produced by the policy.

    Args:
        store: Read-only match history
        catalog: Eligible players; both sides of every pair come from here
        reference_instant: Naive UTC instant the recommendation is for
        mode: CutoffMode.STRICT or CutoffMode.RELAXED
        policy: Cutoff boundary, relaxed window and shrinkage settings

    Returns:
        Candidate pairs sorted by (low id, high id)
    """
    if len(catalog) < 2:
        return []

    cutoff = policy.cutoff_for(mode, reference_instant)
    records = store.fetch_partner_records(catalog.player_ids, cutoff)
    return aggregate_pairs(records, catalog, cutoff, policy.shrinkage_games)
