"""Unit tests for the strict-then-relaxed fallback."""

import threading
from datetime import datetime, timedelta

import pytest

from helpers import P1, P2, P3, P4, T0
from lineuplab.errors import BundleTimeoutError
from lineuplab.features.candidates import CandidatePair
from lineuplab.features.catalog import build_catalog
from lineuplab.features.cutoff import CutoffMode, CutoffPolicy
from lineuplab.features.fallback import FallbackState, RelaxationController, run_with_fallback
from lineuplab.features.history import InMemoryMatchHistoryStore, PartnerRecord


class CountingGenerator:
    """Candidate generator stub that records which modes were requested."""

    def __init__(self, strict_pairs=(), relaxed_pairs=()):
        self.results = {CutoffMode.STRICT: list(strict_pairs), CutoffMode.RELAXED: list(relaxed_pairs)}
        self.calls = []

    def __call__(self, mode):
        self.calls.append(mode)
        return self.results[mode]


class CountingStore(InMemoryMatchHistoryStore):
    """In-memory store that counts partner queries and the cutoff used."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.cutoffs = []

    def fetch_partner_records(self, player_ids, cutoff):
        self.cutoffs.append(cutoff)
        return super().fetch_partner_records(player_ids, cutoff)


def _mirrored(match_id, a, b, instant, won=True):
    return [
        PartnerRecord(match_id, a, b, instant, won),
        PartnerRecord(match_id, b, a, instant, won),
    ]


def test_strict_result_skips_relaxed():
    pair = CandidatePair(P1, P2, games_with_pair=1)
    generator = CountingGenerator(strict_pairs=[pair], relaxed_pairs=[pair, CandidatePair(P3, P4)])

    result = RelaxationController(generator).run()

    assert generator.calls == [CutoffMode.STRICT]
    assert result.mode_used is CutoffMode.STRICT
    assert result.pairs == (pair,)
    assert result.strict_pair_count == 1
    assert result.states == (FallbackState.INIT, FallbackState.STRICT_ATTEMPTED, FallbackState.DONE)
    assert not result.relaxed


def test_empty_strict_runs_relaxed_once():
    pair = CandidatePair(P1, P2, games_with_pair=1)
    generator = CountingGenerator(relaxed_pairs=[pair])

    result = RelaxationController(generator).run()

    assert generator.calls == [CutoffMode.STRICT, CutoffMode.RELAXED]
    assert result.mode_used is CutoffMode.RELAXED
    assert result.pairs == (pair,)
    assert result.strict_pair_count == 0
    assert result.states == (
        FallbackState.INIT,
        FallbackState.STRICT_ATTEMPTED,
        FallbackState.RELAXED_ATTEMPTED,
        FallbackState.DONE,
    )
    assert result.relaxed


def test_empty_relaxed_is_final():
    generator = CountingGenerator()

    result = RelaxationController(generator).run()

    assert generator.calls == [CutoffMode.STRICT, CutoffMode.RELAXED]
    assert result.pairs == ()
    assert result.mode_used is CutoffMode.RELAXED


def test_controller_runs_once():
    controller = RelaxationController(CountingGenerator())
    controller.run()
    assert controller.state is FallbackState.DONE
    with pytest.raises(RuntimeError):
        controller.run()


def test_prior_history_uses_strict():
    # Roster has partnered before the reference week
    store = CountingStore(_mirrored("m1", P1, P2, T0 - timedelta(days=7)))
    result = run_with_fallback(store, build_catalog([P1, P2]), T0, CutoffPolicy())

    assert result.mode_used is CutoffMode.STRICT
    assert [p.pair_key for p in result.pairs] == [f"{P1}__{P2}"]
    assert len(store.cutoffs) == 1


def test_only_future_history_falls_back_to_relaxed():
    # Brand-new team whose only shared match is after the reference
    store = CountingStore(_mirrored("m1", P1, P2, T0 + timedelta(days=7)))
    result = run_with_fallback(store, build_catalog([P1, P2]), T0, CutoffPolicy())

    assert result.mode_used is CutoffMode.RELAXED
    assert len(result.pairs) == 1
    assert len(store.cutoffs) == 2
    assert store.cutoffs[1] is None


def test_no_history_at_all_is_relaxed_and_empty():
    store = CountingStore()
    result = run_with_fallback(store, build_catalog([P1, P2, P3]), T0, CutoffPolicy())

    assert result.mode_used is CutoffMode.RELAXED
    assert result.pairs == ()
    assert len(store.cutoffs) == 2


def test_strict_is_preferred_even_when_relaxed_has_more():
    records = (
        _mirrored("m1", P1, P2, datetime(2026, 1, 5))
        + _mirrored("m2", P3, P4, T0 + timedelta(days=1))
    )
    store = CountingStore(records)
    result = run_with_fallback(store, build_catalog([P1, P2, P3, P4]), T0, CutoffPolicy())

    assert result.mode_used is CutoffMode.STRICT
    assert [(p.player_low_id, p.player_high_id) for p in result.pairs] == [(P1, P2)]


def test_cancelled_controller_starts_no_pass():
    cancel = threading.Event()
    cancel.set()
    generator = CountingGenerator(relaxed_pairs=[CandidatePair(P1, P2)])

    with pytest.raises(BundleTimeoutError):
        RelaxationController(generator, cancel).run()
    assert generator.calls == []


def test_cancel_after_strict_skips_relaxed():
    cancel = threading.Event()
    calls = []

    def generator(mode):
        calls.append(mode)
        # Caller times out while the strict pass is running
        cancel.set()
        return []

    with pytest.raises(BundleTimeoutError):
        RelaxationController(generator, cancel).run()
    assert calls == [CutoffMode.STRICT]


def test_unset_cancel_event_does_not_interfere():
    store = CountingStore(_mirrored("m1", P1, P2, T0 + timedelta(days=7)))
    result = run_with_fallback(store, build_catalog([P1, P2]), T0, CutoffPolicy(), threading.Event())

    assert result.mode_used is CutoffMode.RELAXED
    assert len(store.cutoffs) == 2
