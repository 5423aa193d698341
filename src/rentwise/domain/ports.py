# src/rentwise/domain/ports.py
from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from rentwise.domain.facts import Money
from rentwise.domain.situation import PropertySpec


# ----------------------------
# Market data providers
# ----------------------------

class ProviderReading(BaseModel):
    """One provider's view of typical monthly rent for a location."""
    model_config = ConfigDict(frozen=True)

    value: Money
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    sample_size: int | None = None
    detail: str | None = None


class MarketDataProvider(Protocol):
    provider_id: str

    def fetch(self, location: str, property_spec: PropertySpec | None = None) -> ProviderReading | None:
        """
        Return a reading, or None when the provider has nothing for `location`.

        Raises ProviderError only on transport failure.
        """
        ...
