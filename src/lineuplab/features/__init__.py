"""
Lineup candidate pairing engine.

Given a roster, an optional list of extra available players and a reference
instant, produces a feature bundle: the player catalog, the partner pairs
with supporting history, and the cutoff mode (strict or relaxed) used.

Pipeline:
1. catalog: merge roster and available ids
2. candidates: partner pairs under a temporal cutoff
3. fallback: strict first, relaxed only if strict is empty
4. bundle: assemble and serialize

Usage:
    from lineuplab.features import compute_feature_bundle, InMemoryMatchHistoryStore
"""

from lineuplab.features.bundle import FeatureBundle, assemble, bundle_signature, catalog_signature
from lineuplab.features.candidates import CandidatePair, canonical_pair, generate_candidates
from lineuplab.features.catalog import PlayerCatalog, build_catalog, normalize_identifier
from lineuplab.features.cutoff import (
    STRICT_CUTOFF_INCLUSIVE,
    CutoffMode,
    CutoffPolicy,
    TemporalCutoff,
    normalize_reference_instant,
    to_naive_utc,
)
from lineuplab.features.fallback import (
    CandidateResult,
    FallbackState,
    RelaxationController,
    run_with_fallback,
)
from lineuplab.features.history import (
    InMemoryMatchHistoryStore,
    MatchHistoryStore,
    PartnerRecord,
    PlayerRow,
    SqlMatchHistoryStore,
)
from lineuplab.features.service import (
    compute_feature_bundle,
    compute_feature_bundle_async,
    resolve_reference_instant,
)

__all__ = [
    # Catalog
    "PlayerCatalog",
    "build_catalog",
    "normalize_identifier",
    # Cutoff
    "STRICT_CUTOFF_INCLUSIVE",
    "CutoffMode",
    "CutoffPolicy",
    "TemporalCutoff",
    "normalize_reference_instant",
    "to_naive_utc",
    # History
    "MatchHistoryStore",
    "InMemoryMatchHistoryStore",
    "SqlMatchHistoryStore",
    "PartnerRecord",
    "PlayerRow",
    # Candidates
    "CandidatePair",
    "canonical_pair",
    "generate_candidates",
    # Fallback
    "CandidateResult",
    "FallbackState",
    "RelaxationController",
    "run_with_fallback",
    # Bundle
    "FeatureBundle",
    "assemble",
    "bundle_signature",
    "catalog_signature",
    # Service
    "compute_feature_bundle",
    "compute_feature_bundle_async",
    "resolve_reference_instant",
]
