# tests/test_reconciler.py
import threading
import time
from concurrent.futures import Future

import pytest

from rentwise.adapters.static_provider import StaticMarketDataProvider
from rentwise.domain.errors import ProviderError
from rentwise.domain.market import MarketEstimate
from rentwise.domain.ports import ProviderReading
from rentwise.services.reconciler import MarketDataReconciler

WEIGHTS = {"a": 0.5, "b": 0.5}


def _reconcile(*providers, timeouts=None, weights=None, **kw):
    rec = MarketDataReconciler(
        providers,
        weights=weights if weights is not None else {p.provider_id: 1.0 / len(providers) for p in providers},
        timeouts=timeouts or {p.provider_id: 2.0 for p in providers},
    )
    return rec.reconcile("Buffalo, NY", **kw)


def test_zero_providers_is_no_data():
    est = MarketDataReconciler([], weights={}, timeouts={}).reconcile("Buffalo, NY")
    assert est.median is None
    assert est.range is None
    assert est.confidence == 0.0
    assert est.has_data is False


def test_single_provider_median_is_exact():
    est = _reconcile(StaticMarketDataProvider("a", default=1234.56))
    assert est.median == 1234.56
    assert est.range is not None
    assert est.range.low <= est.median <= est.range.high
    assert 0.0 < est.confidence <= 1.0


def test_agreeing_providers_beat_disagreeing_ones():
    agree = _reconcile(
        StaticMarketDataProvider("a", default=1200.0),
        StaticMarketDataProvider("b", default=1250.0),  # ~4% apart
    )
    disagree = _reconcile(
        StaticMarketDataProvider("a", default=1000.0),
        StaticMarketDataProvider("b", default=1400.0),  # 40% apart
    )
    assert agree.confidence > disagree.confidence


def test_range_covers_every_source():
    est = _reconcile(
        StaticMarketDataProvider("a", default=900.0),
        StaticMarketDataProvider("b", default=1500.0),
    )
    assert est.range.low <= 900.0
    assert est.range.high >= 1500.0


def test_failing_provider_is_marked_unavailable():
    est = _reconcile(
        StaticMarketDataProvider("a", default=1200.0),
        StaticMarketDataProvider("b", error=ProviderError("b", "HTTP 500")),
    )
    assert est.median == 1200.0
    by_id = {s.provider_id: s for s in est.sources}
    assert by_id["a"].available is True
    assert by_id["b"].available is False
    assert by_id["b"].weight == 0.0
    assert "HTTP 500" in by_id["b"].error


def test_none_and_non_positive_readings_are_unavailable():
    est = _reconcile(
        StaticMarketDataProvider("a", default=None),
        StaticMarketDataProvider("b", default=ProviderReading(value=0.0)),
    )
    assert est.has_data is False
    assert est.confidence == 0.0
    assert [s.available for s in est.sources] == [False, False]
    assert len(est.sources) == 2


def test_slow_provider_times_out_without_blocking_others():
    slow = StaticMarketDataProvider("slow", default=5000.0, delay_s=1.0)
    fast = StaticMarketDataProvider("fast", default=1200.0)

    t0 = time.monotonic()
    est = _reconcile(slow, fast, timeouts={"slow": 0.1, "fast": 2.0})
    elapsed = time.monotonic() - t0

    assert elapsed < 0.9
    assert est.median == 1200.0
    by_id = {s.provider_id: s for s in est.sources}
    assert by_id["slow"].available is False
    assert by_id["slow"].error.startswith("timeout")


def test_cancel_returns_partial_result():
    cancel = threading.Event()
    slow = StaticMarketDataProvider("slow", default=5000.0, delay_s=1.0)
    fast = StaticMarketDataProvider("fast", default=1200.0)

    timer = threading.Timer(0.2, cancel.set)
    timer.start()
    try:
        t0 = time.monotonic()
        est = _reconcile(slow, fast, timeouts={"slow": 5.0, "fast": 5.0}, cancel=cancel)
        elapsed = time.monotonic() - t0
    finally:
        timer.cancel()

    assert elapsed < 0.9
    assert est.median == 1200.0
    by_id = {s.provider_id: s for s in est.sources}
    assert by_id["slow"].error == "cancelled"


def test_cancel_keeps_results_that_already_arrived():
    rec = MarketDataReconciler(
        [StaticMarketDataProvider("fast"), StaticMarketDataProvider("slow")],
        weights={"fast": 0.5, "slow": 0.5},
        timeouts={"fast": 5.0, "slow": 5.0},
    )
    finished, running = Future(), Future()
    finished.set_result((ProviderReading(value=1200.0, confidence=1.0), 3.0))
    deadline = time.monotonic() + 5.0
    cancel = threading.Event()
    cancel.set()

    out = rec._collect({finished: ("fast", deadline), running: ("slow", deadline)}, cancel)

    assert out["fast"].available is True
    assert out["fast"].value == 1200.0
    assert out["slow"].available is False
    assert out["slow"].error == "cancelled"


def test_missing_weight_falls_back_to_equal_share():
    rec = MarketDataReconciler(
        [StaticMarketDataProvider("a", default=1.0), StaticMarketDataProvider("other", default=1.0)],
        weights={"a": 0.3},
        timeouts={},
    )
    assert rec.weights == {"a": 0.3, "other": 0.5}


def test_sources_keep_provider_order():
    est = _reconcile(
        StaticMarketDataProvider("b", default=1200.0),
        StaticMarketDataProvider("a", default=1210.0),
    )
    assert [s.provider_id for s in est.sources] == ["b", "a"]


def test_location_lookup_uses_normalized_label(reconciler):
    est = reconciler.reconcile("  Buffalo, NY ")
    assert est.location == "Buffalo, NY"
    assert est.has_data
    assert 1180.0 <= est.median <= 1220.0
    assert len(est.available_sources) == 3


def test_unknown_location_yields_sentinel(reconciler):
    est = reconciler.reconcile("Nowhere, ZZ")
    assert est == MarketEstimate.no_data("Nowhere, ZZ", est.sources)
    assert est.percentile_of(1500.0) is None


@pytest.mark.parametrize(
    "rent,expected",
    [(1200.0, 50.0), (1100.0, 10.0), (1300.0, 90.0), (2000.0, 100.0), (0.0, 0.0)],
)
def test_percentile_anchors(buffalo_market, rent, expected):
    assert buffalo_market.percentile_of(rent) == expected
