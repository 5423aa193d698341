# src/rentwise/services/reconciler.py
from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

from rentwise.adapters.config import config
from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.market import MarketEstimate, RentRange, SourceContribution
from rentwise.domain.ports import MarketDataProvider, ProviderReading
from rentwise.domain.situation import PropertySpec

logger = get_logger(__name__)

# sources within this relative distance of the blended median "agree"
AGREEMENT_BAND = 0.10
# weighted coefficient of variation at which agreement hits zero
CV_CEILING = 0.35
MIN_RANGE_PCT = 0.05
RANGE_CONFIDENCE_PAD = 0.10
DEFAULT_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class _Available:
    provider_id: str
    value: float
    base_weight: float
    confidence: float


def blend(available: Sequence[_Available], total_base_weight: float) -> Tuple[float, RentRange, float]:
    """
    Weighted median/range/confidence for the sources that answered.

    Returns (median, range, confidence). `available` must not be empty.
    """
    values = np.asarray([a.value for a in available], dtype=float)
    confs = np.asarray([a.confidence for a in available], dtype=float)
    eff = np.asarray([a.base_weight for a in available], dtype=float) * confs
    if eff.sum() <= 0:
        eff = np.ones_like(values)

    if len(values) == 1:
        median = float(values[0])
        cv = 0.0
    else:
        median = float(np.average(values, weights=eff))
        std = float(np.sqrt(np.average((values - median) ** 2, weights=eff)))
        cv = std / median if median > 0 else 0.0

    n_agree = int(np.sum(np.abs(values - median) <= AGREEMENT_BAND * median))
    count_factor = 1.0 - 0.5 ** max(n_agree, 1)
    agreement = max(0.0, 1.0 - cv / CV_CEILING)
    available_weight = float(sum(a.base_weight for a in available))
    share = available_weight / total_base_weight if total_base_weight > 0 else 1.0
    coverage = 0.5 + 0.5 * min(1.0, share)
    mean_conf = float(confs.mean())

    confidence = float(np.clip(count_factor * agreement * coverage * mean_conf, 0.0, 1.0))

    k = max(MIN_RANGE_PCT, cv) + RANGE_CONFIDENCE_PAD * (1.0 - confidence)
    low = min(median * (1.0 - k), float(values.min()))
    high = max(median * (1.0 + k), float(values.max()))

    if len(values) > 1:
        median = round(median, 2)
    return median, RentRange(low=round(low, 2), high=round(high, 2)), round(confidence, 4)


class MarketDataReconciler:
    """
    Fan out to every provider, then reduce what came back into one estimate.

    Each provider gets its own deadline. A provider that times out, raises,
    answers None or a non-positive value is reported unavailable with weight
    0; it never affects the others. Setting `cancel` stops waiting and
    reconciles whatever has arrived.
    """

    def __init__(
        self,
        providers: Sequence[MarketDataProvider],
        weights: Mapping[str, float] | None = None,
        timeouts: Mapping[str, float] | None = None,
        *,
        poll_s: float = 0.05,
    ) -> None:
        self.providers = list(providers)
        weights = dict(config.provider_weights() if weights is None else weights)
        timeouts = dict(config.provider_timeouts() if timeouts is None else timeouts)
        fallback_weight = 1.0 / len(self.providers) if self.providers else 0.0
        self.weights: Dict[str, float] = {
            p.provider_id: float(weights.get(p.provider_id, fallback_weight)) for p in self.providers
        }
        self.timeouts: Dict[str, float] = {
            p.provider_id: float(timeouts.get(p.provider_id, DEFAULT_TIMEOUT_S)) for p in self.providers
        }
        self.poll_s = poll_s

    @staticmethod
    def _timed_fetch(
        provider: MarketDataProvider, location: str, property_spec: PropertySpec | None
    ) -> Tuple[ProviderReading | None, float]:
        t0 = time.perf_counter()
        reading = provider.fetch(location, property_spec)
        return reading, (time.perf_counter() - t0) * 1000.0

    def _unavailable(self, provider_id: str, error: str, latency_ms: float | None = None) -> SourceContribution:
        logger.warning(
            "provider_unavailable",
            extra={"context": {"provider_id": provider_id, "error": error, "latency_ms": latency_ms}},
        )
        return SourceContribution(provider_id=provider_id, available=False, weight=0.0, error=error, latency_ms=latency_ms)

    def _contribution(self, provider_id: str, fut: Future) -> SourceContribution:
        try:
            reading, latency_ms = fut.result()
        except Exception as e:
            return self._unavailable(provider_id, f"{type(e).__name__}: {e}")

        if reading is None:
            return self._unavailable(provider_id, "no data", round(latency_ms, 1))
        if reading.value is None or reading.value <= 0:
            return self._unavailable(provider_id, f"non-positive value {reading.value}", round(latency_ms, 1))

        return SourceContribution(
            provider_id=provider_id,
            value=float(reading.value),
            weight=round(self.weights[provider_id] * reading.confidence, 4),
            available=True,
            confidence=reading.confidence,
            latency_ms=round(latency_ms, 1),
        )

    def _collect(
        self, futures: Dict[Future, Tuple[str, float]], cancel: threading.Event | None
    ) -> Dict[str, SourceContribution]:
        out: Dict[str, SourceContribution] = {}
        pending = set(futures)

        while pending:
            if cancel is not None and cancel.is_set():
                for fut in pending:
                    pid = futures[fut][0]
                    # results that already arrived are kept
                    out[pid] = self._contribution(pid, fut) if fut.done() else self._unavailable(pid, "cancelled")
                break

            now = time.monotonic()
            expired = [f for f in pending if futures[f][1] <= now and not f.done()]
            for fut in expired:
                pending.discard(fut)
                fut.cancel()
                pid = futures[fut][0]
                out[pid] = self._unavailable(pid, f"timeout after {self.timeouts[pid]:.1f}s")
            if not pending:
                break

            wait_s = max(0.0, min(futures[f][1] for f in pending) - now)
            if cancel is not None:
                wait_s = min(wait_s, self.poll_s)
            done, pending = wait(pending, timeout=wait_s, return_when=FIRST_COMPLETED)
            for fut in done:
                out[futures[fut][0]] = self._contribution(futures[fut][0], fut)

        return out

    def reconcile(
        self,
        location: str,
        property_spec: PropertySpec | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> MarketEstimate:
        location = (location or "").strip()
        if not self.providers:
            return MarketEstimate.no_data(location)

        started = time.monotonic()
        pool = ThreadPoolExecutor(max_workers=len(self.providers), thread_name_prefix="market-provider")
        try:
            futures: Dict[Future, Tuple[str, float]] = {}
            for p in self.providers:
                fut = pool.submit(self._timed_fetch, p, location, property_spec)
                futures[fut] = (p.provider_id, started + self.timeouts[p.provider_id])
            by_id = self._collect(futures, cancel)
        finally:
            # stragglers finish in the background; nobody waits for them
            pool.shutdown(wait=False, cancel_futures=True)

        sources = tuple(by_id[p.provider_id] for p in self.providers)
        available: List[_Available] = [
            _Available(s.provider_id, float(s.value), self.weights[s.provider_id], float(s.confidence or 0.0))
            for s in sources
            if s.available and s.value is not None
        ]

        if not available:
            logger.warning("market_no_data", extra={"context": {"location": location}})
            return MarketEstimate.no_data(location, sources)

        median, rng, confidence = blend(available, total_base_weight=sum(self.weights.values()))
        logger.info(
            "market_reconciled",
            extra={
                "context": {
                    "location": location,
                    "median": median,
                    "confidence": confidence,
                    "available": [a.provider_id for a in available],
                    "elapsed_ms": round((time.monotonic() - started) * 1000.0, 1),
                }
            },
        )
        return MarketEstimate(location=location, median=median, range=rng, confidence=confidence, sources=sources)
