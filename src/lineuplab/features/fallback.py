"""
Strict-then-relaxed fallback controller.

State machine::

    INIT -> STRICT_ATTEMPTED -> DONE                      (strict non-empty)
    INIT -> STRICT_ATTEMPTED -> RELAXED_ATTEMPTED -> DONE (strict empty)

Strict always runs first and wins whenever it finds anything, so a
recommendation only sees post-reference history when pre-reference history
has no pairs at all. The relaxed result is final even when empty; there is
no third tier.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Sequence

from lineuplab.errors import BundleTimeoutError
from lineuplab.features.candidates import CandidatePair, generate_candidates
from lineuplab.features.catalog import PlayerCatalog
from lineuplab.features.cutoff import CutoffMode, CutoffPolicy
from lineuplab.features.history import MatchHistoryStore

logger = logging.getLogger(__name__)

CandidateGenerator = Callable[[CutoffMode], Sequence[CandidatePair]]


class FallbackState(str, Enum):
    INIT = "init"
    STRICT_ATTEMPTED = "strict_attempted"
    RELAXED_ATTEMPTED = "relaxed_attempted"
    DONE = "done"


@dataclass(frozen=True)
class CandidateResult:
    """Final candidate set plus how it was obtained."""

    pairs: tuple[CandidatePair, ...]
    mode_used: CutoffMode
    strict_pair_count: int
    states: tuple[FallbackState, ...]

    @property
    def relaxed(self) -> bool:
        return self.mode_used is CutoffMode.RELAXED


class RelaxationController:
    """
    Runs the candidate generator under strict, then relaxed if needed.

    The generator is injected so the controller stays independent of the
    store; ``run_with_fallback`` wires it to ``generate_candidates``.

    When ``cancel_event`` is set (the caller timed out) no further pass is
    started and BundleTimeoutError is raised instead.
    """

    def __init__(
        self,
        generator: CandidateGenerator,
        cancel_event: Optional[threading.Event] = None,
    ):
        self._generator = generator
        self._cancel_event = cancel_event
        self.state = FallbackState.INIT
        self._visited: list[FallbackState] = [FallbackState.INIT]

    def _transition(self, state: FallbackState) -> None:
        self.state = state
        self._visited.append(state)

    def _ensure_not_cancelled(self, mode: CutoffMode) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            logger.warning("Feature bundle cancelled before the %s pass", mode.value)
            raise BundleTimeoutError(f"Feature bundle cancelled before the {mode.value} pass")

    def run(self) -> CandidateResult:
        if self.state is not FallbackState.INIT:
            raise RuntimeError("RelaxationController.run() may only be called once")

        self._ensure_not_cancelled(CutoffMode.STRICT)
        strict_pairs = tuple(self._generator(CutoffMode.STRICT))
        self._transition(FallbackState.STRICT_ATTEMPTED)

        if strict_pairs:
            self._transition(FallbackState.DONE)
            return CandidateResult(
                pairs=strict_pairs,
                mode_used=CutoffMode.STRICT,
                strict_pair_count=len(strict_pairs),
                states=tuple(self._visited),
            )

        self._ensure_not_cancelled(CutoffMode.RELAXED)
        relaxed_pairs = tuple(self._generator(CutoffMode.RELAXED))
        self._transition(FallbackState.RELAXED_ATTEMPTED)
        self._transition(FallbackState.DONE)
        logger.info(
            "Strict cutoff produced no candidate pairs; relaxed cutoff produced %d",
            len(relaxed_pairs),
        )
        return CandidateResult(
            pairs=relaxed_pairs,
            mode_used=CutoffMode.RELAXED,
            strict_pair_count=0,
            states=tuple(self._visited),
        )


def run_with_fallback(
    store: MatchHistoryStore,
    catalog: PlayerCatalog,
    reference_instant: datetime,
    policy: CutoffPolicy,
    cancel_event: Optional[threading.Event] = None,
) -> CandidateResult:
    """Generate candidates for a catalog with the strict-then-relaxed policy."""

    def generator(mode: CutoffMode) -> list[CandidatePair]:
        return generate_candidates(store, catalog, reference_instant, mode, policy=policy)

    return RelaxationController(generator, cancel_event).run()
