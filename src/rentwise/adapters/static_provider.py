# src/rentwise/adapters/static_provider.py
from __future__ import annotations

import time
from typing import Mapping

from rentwise.domain.places import split_location
from rentwise.domain.ports import ProviderReading
from rentwise.domain.situation import PropertySpec


class StaticMarketDataProvider:
    """
    In-memory provider for tests and offline runs.

    `readings` maps a location label ("Buffalo, NY") or a bare value to what
    fetch() returns. `delay_s` and `error` simulate slow and failing feeds.
    """

    def __init__(
        self,
        provider_id: str,
        readings: Mapping[str, float | ProviderReading | None] | None = None,
        *,
        default: float | ProviderReading | None = None,
        delay_s: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.provider_id = provider_id
        self._readings = {self._key(k): v for k, v in (readings or {}).items()}
        self._default = default
        self.delay_s = delay_s
        self.error = error
        self.calls = 0

    @staticmethod
    def _key(location: str) -> str:
        city, state = split_location(location)
        return f"{city}, {state}".lower() if state else city.lower()

    def fetch(self, location: str, property_spec: PropertySpec | None = None) -> ProviderReading | None:
        self.calls += 1
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.error is not None:
            raise self.error

        raw = self._readings.get(self._key(location), self._default)
        if raw is None or isinstance(raw, ProviderReading):
            return raw
        return ProviderReading(value=float(raw), confidence=1.0)
