"""
Feature bundle assembly and serialization.

A bundle is a disposable projection computed per request; it is never
persisted. Everything in it is derived from the inputs and the history, with
no wall-clock timestamps, so identical inputs give byte-identical JSON.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from lineuplab.errors import ValidationError
from lineuplab.features.candidates import CandidatePair
from lineuplab.features.catalog import PlayerCatalog, build_catalog
from lineuplab.features.cutoff import CutoffMode, normalize_reference_instant
from lineuplab.features.fallback import CandidateResult
from lineuplab.features.history import PlayerRow


@dataclass(frozen=True)
class FeatureBundle:
    """Catalog, candidate pairs and the cutoff mode that produced them."""

    catalog: PlayerCatalog
    candidate_pairs: tuple[CandidatePair, ...]
    cutoff_mode_used: CutoffMode
    reference_instant: datetime
    players_catalog: tuple[PlayerRow, ...] = ()
    strict_candidate_pairs: int = 0

    @property
    def counts(self) -> dict[str, int]:
        return {
            "catalog_players": len(self.catalog),
            "candidate_pairs": len(self.candidate_pairs),
            "strict_candidate_pairs": self.strict_candidate_pairs,
        }

    @property
    def max_last_seen_at(self) -> Optional[datetime]:
        seen = [p.last_played_at for p in self.candidate_pairs if p.last_played_at is not None]
        return max(seen) if seen else None

    @property
    def data_staleness_hours(self) -> Optional[float]:
        """Hours between the newest supporting match and the reference instant."""
        last_seen = self.max_last_seen_at
        if last_seen is None:
            return None
        return round((self.reference_instant - last_seen).total_seconds() / 3600, 2)

    def to_dict(self) -> dict[str, Any]:
        last_seen = self.max_last_seen_at
        return {
            "catalog": list(self.catalog.player_ids),
            "candidate_pairs": [pair.to_dict() for pair in self.candidate_pairs],
            "cutoff_mode_used": self.cutoff_mode_used.value,
            "reference_instant": self.reference_instant.isoformat(),
            "players_catalog": [
                {
                    "player_id": row.player_id,
                    "first_name": row.first_name,
                    "last_name": row.last_name,
                    "gender": row.gender,
                    "dupr_rating": row.dupr_rating,
                }
                for row in self.players_catalog
            ],
            "counts": self.counts,
            "max_last_seen_at": last_seen.isoformat() if last_seen else None,
            "data_staleness_hours": self.data_staleness_hours,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


def assemble(
    catalog: PlayerCatalog,
    candidate_result: CandidateResult,
    mode_used: CutoffMode,
    *,
    reference_instant: datetime,
    players: Iterable[PlayerRow] = (),
) -> FeatureBundle:
    """
    Combine the catalog and the final candidate set into a bundle.

    Every catalog id gets a players_catalog row; ids the store does not
    know get a row with null display fields.

    Raises:
        ValidationError: if a pair references a player outside the catalog
    """
    for pair in candidate_result.pairs:
        if pair.player_low_id not in catalog or pair.player_high_id not in catalog:
            raise ValidationError(f"Candidate pair {pair.pair_key} is outside the catalog.")

    known = {row.player_id: row for row in players if row.player_id in catalog}
    players_catalog = tuple(known.get(pid, PlayerRow(player_id=pid)) for pid in catalog.player_ids)

    return FeatureBundle(
        catalog=catalog,
        candidate_pairs=tuple(sorted(candidate_result.pairs)),
        cutoff_mode_used=CutoffMode(mode_used),
        reference_instant=reference_instant,
        players_catalog=players_catalog,
        strict_candidate_pairs=candidate_result.strict_pair_count,
    )


def bundle_signature(
    base_roster: Iterable[str],
    available_player_ids: Optional[Sequence[str]],
    reference_instant,
) -> str:
    """
    Return a stable cache key for a bundle request.

    Equivalent inputs (reordered roster, differently-cased ids, the same
    instant in another timezone) produce the same key.
    """
    catalog = build_catalog(base_roster, available_player_ids)
    return catalog_signature(catalog, normalize_reference_instant(reference_instant))


def catalog_signature(catalog: PlayerCatalog, reference_instant: datetime) -> str:
    """SHA-256 over an already built catalog and a normalized reference instant."""
    payload = json.dumps(
        {"catalog": list(catalog.player_ids), "reference_instant": reference_instant.isoformat()},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
