"""
Feature bundle service: the single entry point used by the lineup
recommendation feature.

    from lineuplab.db import get_session
    from lineuplab.features import SqlMatchHistoryStore, compute_feature_bundle

    with get_session() as session:
        bundle = compute_feature_bundle(
            SqlMatchHistoryStore(session),
            base_roster=roster_ids,
            available_player_ids=available_ids,
            reference_instant=match_time,
        )

A request either completes fully (possibly with no pairs) or raises; there
is no partially assembled bundle.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime
from typing import Iterable, Optional, Sequence

from lineuplab.errors import BundleTimeoutError, LineupLabError, ValidationError
from lineuplab.features.bundle import FeatureBundle, assemble, catalog_signature
from lineuplab.features.catalog import build_catalog, normalize_identifier
from lineuplab.features.cutoff import CutoffPolicy, normalize_reference_instant
from lineuplab.features.fallback import run_with_fallback
from lineuplab.features.history import MatchHistoryStore

logger = logging.getLogger(__name__)


def compute_feature_bundle(
    store: MatchHistoryStore,
    base_roster: Iterable[str],
    available_player_ids: Optional[Sequence[str]] = None,
    reference_instant=None,
    *,
    policy: Optional[CutoffPolicy] = None,
    cancel_event: Optional[threading.Event] = None,
) -> FeatureBundle:
    """
    Build the catalog and candidate pairs for a lineup recommendation.

    Inputs are validated before the store is touched.

    Args:
        store: Read-only match history
        base_roster: Roster player ids
        available_player_ids: Extra available ids (None or empty for none)
        reference_instant: When the recommended lineup plays (datetime or ISO string)
        policy: Cutoff policy; built from settings when omitted
        cancel_event: When set, no further store read is started

    Returns:
        FeatureBundle with cutoff_mode_used set to strict or relaxed

    Raises:
        ValidationError: malformed ids or reference instant
        DataSourceError: history could not be read
        BundleTimeoutError: cancel_event was set before the bundle completed
    """
    reference = normalize_reference_instant(reference_instant)
    catalog = build_catalog(base_roster, available_player_ids)
    if policy is None:
        policy = CutoffPolicy.from_settings()

    result = run_with_fallback(store, catalog, reference, policy, cancel_event)
    if cancel_event is not None and cancel_event.is_set():
        raise BundleTimeoutError("Feature bundle cancelled before loading player details")
    players = store.fetch_players(catalog.player_ids)
    bundle = assemble(
        catalog,
        result,
        result.mode_used,
        reference_instant=reference,
        players=players,
    )

    logger.info(
        "Feature bundle %s: catalog=%d pairs=%d mode=%s reference=%s",
        catalog_signature(catalog, reference)[:12],
        len(catalog),
        len(bundle.candidate_pairs),
        bundle.cutoff_mode_used.value,
        reference.isoformat(),
    )
    return bundle


async def compute_feature_bundle_async(
    store: MatchHistoryStore,
    base_roster: Iterable[str],
    available_player_ids: Optional[Sequence[str]] = None,
    reference_instant=None,
    *,
    policy: Optional[CutoffPolicy] = None,
    timeout_seconds: Optional[float] = None,
) -> FeatureBundle:
    """
    Run compute_feature_bundle off the event loop with a timeout.

    On timeout the worker is cancelled: no further candidate pass or store
    read is started. The store query already in flight is allowed to finish
    before BundleTimeoutError is raised, so the store's session is never in
    use once this returns.
    """
    if timeout_seconds is None:
        from lineuplab.config import settings

        timeout_seconds = settings.bundle_timeout_seconds

    cancel_event = threading.Event()
    worker = asyncio.ensure_future(
        asyncio.to_thread(
            compute_feature_bundle,
            store,
            base_roster,
            available_player_ids,
            reference_instant,
            policy=policy,
            cancel_event=cancel_event,
        )
    )

    try:
        return await asyncio.wait_for(asyncio.shield(worker), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        cancel_event.set()
        logger.error("Feature bundle computation timed out after %.1fs", timeout_seconds)
        try:
            await worker
        except LineupLabError as worker_exc:
            logger.debug("Cancelled feature bundle worker stopped: %s", worker_exc)
        raise BundleTimeoutError(
            f"Feature bundle computation exceeded {timeout_seconds}s"
        ) from exc


def resolve_reference_instant(store: MatchHistoryStore, match_id: str) -> datetime:
    """
    Look up the scheduled instant of a match to use as the reference.

    Raises:
        ValidationError: unknown match id, or a match with no instant
    """
    normalized = normalize_identifier(match_id, "match_id")
    found, instant = store.fetch_match_instant(normalized)
    if not found:
        raise ValidationError("match_id was not found.")
    if instant is None:
        raise ValidationError("match_id has no scheduled time to use as reference instant.")
    return instant
