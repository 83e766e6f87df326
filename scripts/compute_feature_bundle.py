#!/usr/bin/env python3
"""
Compute a lineup feature bundle from the match history database.

Usage:
    # Roster plus two extra available players, reference = scheduled match time
    python scripts/compute_feature_bundle.py \
        --roster 1111...,2222...,3333... \
        --available 4444...,5555... \
        --match-id 9999...

    # Explicit reference instant (ISO-8601, UTC assumed when no offset)
    python scripts/compute_feature_bundle.py --roster ... --reference 2026-02-23T19:30:00Z

    # Count matches played exactly at the reference instant as known
    python scripts/compute_feature_bundle.py --roster ... --reference ... --inclusive
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lineuplab.config import settings
from lineuplab.db import get_session
from lineuplab.errors import LineupLabError
from lineuplab.features import (
    CutoffPolicy,
    SqlMatchHistoryStore,
    bundle_signature,
    compute_feature_bundle,
    resolve_reference_instant,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _split_ids(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute a lineup feature bundle (catalog + candidate pairs).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--roster",
        required=True,
        help="Comma-separated base roster player ids.",
    )
    parser.add_argument(
        "--available",
        default=None,
        help="Comma-separated extra available player ids.",
    )
    reference = parser.add_mutually_exclusive_group(required=True)
    reference.add_argument(
        "--reference",
        default=None,
        help="Reference instant (ISO-8601).",
    )
    reference.add_argument(
        "--match-id",
        default=None,
        help="Use this match's scheduled time as the reference instant.",
    )
    parser.add_argument(
        "--inclusive",
        action="store_true",
        help="Count matches at exactly the reference instant in the strict pass.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the bundle JSON to this path instead of stdout.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()

    roster = _split_ids(args.roster)
    available = _split_ids(args.available)

    policy = CutoffPolicy.from_settings()
    if args.inclusive:
        policy = replace(policy, strict_inclusive=True)

    try:
        with get_session() as session:
            store = SqlMatchHistoryStore(session)
            reference = args.reference
            if args.match_id:
                reference = resolve_reference_instant(store, args.match_id)
            bundle = compute_feature_bundle(
                store,
                roster,
                available,
                reference,
                policy=policy,
            )
    except LineupLabError as exc:
        print(f"ERROR: {exc}")
        return 1

    print(f"Bundle signature: {bundle_signature(roster, available, bundle.reference_instant)}")
    print(f"Cutoff mode:      {bundle.cutoff_mode_used.value}")
    print(f"Catalog players:  {len(bundle.catalog)}")
    print(f"Candidate pairs:  {len(bundle.candidate_pairs)}")
    print("-" * 60)

    payload = json.dumps(bundle.to_dict(), indent=2) + "\n"
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload, encoding="utf-8")
        logger.info("Wrote bundle to %s", output_path)
    else:
        print(payload)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
