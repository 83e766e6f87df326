"""
Temporal cutoff modes and the policy that turns a mode into a predicate.

Two modes exist:

- **strict**: only match history known before the reference instant.
  This prevents lookahead: a recommendation for next week's match must not
  use results from next week.
- **relaxed**: the fallback used when strict leaves no candidate pairs.
  The time predicate is dropped, or widened to ``reference + window`` when a
  window is configured.

The policy is an explicit value handed to the generator so the engine never
reads global settings while computing a bundle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from lineuplab.errors import ValidationError

# Default boundary for the strict predicate: a match played exactly at the
# reference instant is not yet known.
STRICT_CUTOFF_INCLUSIVE = False

# Prior win rate mixed into sparse pair samples
PAIR_PRIOR_WIN_RATE = 0.5


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are already UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CutoffMode(str, Enum):
    """Which temporal predicate produced a candidate set."""

    STRICT = "strict"
    RELAXED = "relaxed"


@dataclass(frozen=True)
class TemporalCutoff:
    """
    Upper bound on match instants admitted as supporting history.

    Matches without a recorded instant never satisfy a cutoff.
    """

    upper: datetime
    inclusive: bool = STRICT_CUTOFF_INCLUSIVE

    def admits(self, match_instant: Optional[datetime]) -> bool:
        if match_instant is None:
            return False
        match_instant = to_naive_utc(match_instant)
        if self.inclusive:
            return match_instant <= self.upper
        return match_instant < self.upper


@dataclass(frozen=True)
class CutoffPolicy:
    """
    Configuration for the strict and relaxed cutoffs and pair statistics.

    Attributes:
        strict_inclusive: Whether an instant equal to the reference passes strict
        relaxed_window: Widened relaxed bound; None drops the predicate entirely
        shrinkage_games: Pseudo-games of the prior blended into pair win rates
    """

    strict_inclusive: bool = STRICT_CUTOFF_INCLUSIVE
    relaxed_window: Optional[timedelta] = None
    shrinkage_games: float = 4.0

    @classmethod
    def from_settings(cls, app_settings=None) -> "CutoffPolicy":
        """Build a policy from application settings (defaults to the global settings)."""
        if app_settings is None:
            from lineuplab.config import settings as app_settings

        window = None
        if app_settings.relaxed_window_days is not None:
            window = timedelta(days=app_settings.relaxed_window_days)
        return cls(
            strict_inclusive=app_settings.strict_cutoff_inclusive,
            relaxed_window=window,
            shrinkage_games=app_settings.pair_shrinkage_games,
        )

    def cutoff_for(self, mode: CutoffMode, reference_instant: datetime) -> Optional[TemporalCutoff]:
        """
        Return the temporal predicate for a mode.

        Returns None when the mode admits every record regardless of time.
        """
        if mode is CutoffMode.STRICT:
            return TemporalCutoff(upper=reference_instant, inclusive=self.strict_inclusive)
        if self.relaxed_window is None:
            return None
        return TemporalCutoff(
            upper=reference_instant + self.relaxed_window,
            inclusive=self.strict_inclusive,
        )


def normalize_reference_instant(value) -> datetime:
    """
    Normalize a reference instant to a naive UTC datetime.

    History is stored as naive UTC, so aware datetimes are converted and
    naive ones are taken as already UTC. ISO-8601 strings are accepted
    (a trailing 'Z' included).

    Raises:
        ValidationError: if the value is missing or not a datetime
    """
    if value is None:
        raise ValidationError("reference_instant is required.")

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError("reference_instant must be an ISO-8601 timestamp.") from exc

    if not isinstance(value, datetime):
        raise ValidationError("reference_instant must be a datetime.")

    return to_naive_utc(value)
