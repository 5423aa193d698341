# src/rentwise/adapters/hud_fmr.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from rentwise.adapters.config import config
from rentwise.adapters.http_client import JsonApiClient
from rentwise.adapters.logging_utils import get_logger
from rentwise.adapters.rate_limit import RateLimiter
from rentwise.domain.errors import ProviderError
from rentwise.domain.places import split_location
from rentwise.domain.ports import ProviderReading
from rentwise.domain.situation import PropertySpec

logger = get_logger(__name__)

# HUD statedata columns, by bedroom count
_BEDROOM_COLUMNS = ["Efficiency", "One-Bedroom", "Two-Bedroom", "Three-Bedroom", "Four-Bedroom"]
_DEFAULT_BEDROOMS = 2


def _bedroom_column(spec: PropertySpec | None) -> str:
    beds = spec.bedrooms if spec is not None and spec.bedrooms is not None else _DEFAULT_BEDROOMS
    idx = max(0, min(int(beds), len(_BEDROOM_COLUMNS) - 1))
    return _BEDROOM_COLUMNS[idx]


def _to_float(v: Any) -> float | None:
    if v is None:
        return None
    try:
        return float(str(v).replace("$", "").replace(",", ""))
    except ValueError:
        return None


@dataclass
class HudFairMarketRentProvider:
    """
    Government baseline: HUD Fair Market Rents (40th percentile gross rent).

    Uses the HUD USER `fmr/statedata/{state}` endpoint and matches the city
    against metro area names first, then county/town names. Metro matches
    are trusted more than county fallbacks.
    """

    client: JsonApiClient
    provider_id: str = "hud_fmr"

    def fetch(self, location: str, property_spec: PropertySpec | None = None) -> ProviderReading | None:
        city, state = split_location(location)
        if not state:
            logger.info("hud_fmr_no_state", extra={"context": {"location": location}})
            return None

        payload = self.client.get(f"/fmr/statedata/{state}")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ProviderError(self.provider_id, "unexpected statedata shape")

        column = _bedroom_column(property_spec)
        needle = city.lower()

        metros: List[Dict[str, Any]] = [m for m in data.get("metroareas") or [] if isinstance(m, dict)]
        for row in metros:
            if needle in str(row.get("metro_name") or "").lower():
                value = _to_float(row.get(column))
                if value:
                    return ProviderReading(value=value, confidence=0.9, detail=str(row.get("metro_name")))

        counties: List[Dict[str, Any]] = [c for c in data.get("counties") or [] if isinstance(c, dict)]
        for row in counties:
            names = f"{row.get('town_name') or ''} {row.get('county_name') or ''}".lower()
            if needle in names:
                value = _to_float(row.get(column))
                if value:
                    return ProviderReading(value=value, confidence=0.75, detail=str(row.get("county_name")))

        return None


def make_hud_provider(rate_limiter: RateLimiter | None = None) -> HudFairMarketRentProvider | None:
    if not config.HUD_API_TOKEN:
        logger.info("hud_fmr_disabled", extra={"context": {"reason": "missing RENTWISE_HUD_API_TOKEN"}})
        return None
    client = JsonApiClient(
        provider_id="hud_fmr",
        base_url=config.HUD_BASE_URL,
        headers={"Authorization": f"Bearer {config.HUD_API_TOKEN}"},
        timeout_s=config.TIMEOUT_HUD_S,
        max_retries=0,
        rate_limiter=rate_limiter,
    )
    return HudFairMarketRentProvider(client=client)
