# src/rentwise/domain/market.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rentwise.domain.facts import Money

# percentile assigned to each anchor of the blended distribution
LOW_ANCHOR_PCT = 10.0
MEDIAN_ANCHOR_PCT = 50.0
HIGH_ANCHOR_PCT = 90.0


class RentRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    low: Money
    high: Money

    @model_validator(mode="after")
    def _ordered(self) -> RentRange:
        if self.low > self.high:
            raise ValueError("range low must be <= high")
        return self


class SourceContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_id: str
    value: Money | None = None
    weight: float = 0.0
    available: bool = False
    confidence: float | None = None
    error: str | None = None
    latency_ms: float | None = None


class MarketEstimate(BaseModel):
    """
    Blended market rent for one location.

    A zero-data estimate is a sentinel, not an error: median/range are None and
    confidence is 0. Consumers must fall back to qualitative guidance.
    """
    model_config = ConfigDict(frozen=True)

    location: str = ""
    median: Money | None = None
    range: RentRange | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sources: tuple[SourceContribution, ...] = ()

    @model_validator(mode="after")
    def _sentinel_consistent(self) -> MarketEstimate:
        if self.median is None and self.confidence != 0.0:
            raise ValueError("an estimate without a median must have confidence 0")
        return self

    @classmethod
    def no_data(cls, location: str = "", sources: tuple[SourceContribution, ...] = ()) -> MarketEstimate:
        return cls(location=location, median=None, range=None, confidence=0.0, sources=sources)

    @property
    def has_data(self) -> bool:
        return self.median is not None

    @property
    def available_sources(self) -> list[SourceContribution]:
        return [s for s in self.sources if s.available]

    def percentile_of(self, rent: Money) -> float | None:
        """
        Position of `rent` in the blended distribution, 0..100.

        Linear through the (low, 10), (median, 50), (high, 90) anchors and
        extrapolated with the adjacent segment's slope, then clamped.
        """
        if self.median is None or rent is None:
            return None
        median = float(self.median)
        rent = float(rent)
        low = float(self.range.low) if self.range else median
        high = float(self.range.high) if self.range else median

        if rent <= median:
            span = median - low
            if span <= 0:
                pct = MEDIAN_ANCHOR_PCT if rent == median else 0.0
            else:
                pct = MEDIAN_ANCHOR_PCT - (median - rent) * (MEDIAN_ANCHOR_PCT - LOW_ANCHOR_PCT) / span
        else:
            span = high - median
            if span <= 0:
                pct = 100.0
            else:
                pct = MEDIAN_ANCHOR_PCT + (rent - median) * (HIGH_ANCHOR_PCT - MEDIAN_ANCHOR_PCT) / span

        return round(max(0.0, min(100.0, pct)), 1)
