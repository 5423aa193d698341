# src/rentwise/adapters/rentcast_listings.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np

from rentwise.adapters.config import config
from rentwise.adapters.http_client import JsonApiClient
from rentwise.adapters.logging_utils import get_logger
from rentwise.adapters.rate_limit import RateLimiter
from rentwise.domain.places import split_location
from rentwise.domain.ports import ProviderReading
from rentwise.domain.situation import PropertySpec

logger = get_logger(__name__)

# guards against typos like $12 or $120000 in listing feeds
_MIN_PLAUSIBLE_RENT = 200.0
_MAX_PLAUSIBLE_RENT = 50_000.0


def _to_float(v: Any) -> float | None:
    if v is None:
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _normalize_property_type(property_type: str | None) -> str | None:
    t = (property_type or "").lower()
    if not t:
        return None
    if "single" in t or t == "house":
        return "Single Family"
    if "condo" in t:
        return "Condo"
    if "town" in t:
        return "Townhouse"
    if "duplex" in t or "triplex" in t or "fourplex" in t or "multi" in t:
        return "Multi-Family"
    return "Apartment"


def comparable_confidence(n: int) -> float:
    """More comparables, more trust; capped below the index providers."""
    if n <= 0:
        return 0.0
    return round(min(0.9, 0.25 + 0.05 * n), 2)


@dataclass
class RentCastComparablesProvider:
    """
    Comparable listings: RentCast active long-term rental listings.

    Reports the median asking rent across listings that match the city/zip
    (and bedroom count when known).
    """

    client: JsonApiClient
    limit: int = 20
    provider_id: str = "rentcast_listings"

    def fetch(self, location: str, property_spec: PropertySpec | None = None) -> ProviderReading | None:
        params: Dict[str, Any] = {"status": "Active", "limit": int(self.limit)}

        if property_spec is not None and property_spec.zipcode:
            params["zipCode"] = property_spec.zipcode
        else:
            city, state = split_location(location)
            if not state:
                return None
            params["city"] = city
            params["state"] = state

        if property_spec is not None:
            if property_spec.bedrooms is not None:
                params["bedrooms"] = property_spec.bedrooms
            if property_spec.bathrooms is not None:
                params["bathrooms"] = property_spec.bathrooms
            ptype = _normalize_property_type(property_spec.property_type)
            if ptype:
                params["propertyType"] = ptype

        payload = self.client.get("/listings/rental/long-term", params=params)

        # RentCast may return a bare list or {"listings": [...]}
        listings = payload.get("listings") if isinstance(payload, dict) else payload
        if not isinstance(listings, list):
            return None

        prices: List[float] = []
        for raw in listings:
            if not isinstance(raw, dict):
                continue
            price = _to_float(raw.get("price") or raw.get("rent"))
            if price is None or not (_MIN_PLAUSIBLE_RENT <= price <= _MAX_PLAUSIBLE_RENT):
                continue
            prices.append(price)

        if not prices:
            return None

        median = float(np.median(np.asarray(prices, dtype=float)))
        logger.info(
            "rentcast_comparables",
            extra={"context": {"location": location, "count": len(prices), "median": median}},
        )
        return ProviderReading(
            value=round(median, 2),
            confidence=comparable_confidence(len(prices)),
            sample_size=len(prices),
            detail=f"{len(prices)} active listings",
        )


def make_rentcast_provider(rate_limiter: RateLimiter | None = None) -> RentCastComparablesProvider | None:
    if not config.RENTCAST_API_KEY:
        logger.info("rentcast_disabled", extra={"context": {"reason": "missing RENTWISE_RENTCAST_API_KEY"}})
        return None
    client = JsonApiClient(
        provider_id="rentcast_listings",
        base_url=config.RENTCAST_BASE_URL,
        headers={"X-Api-Key": config.RENTCAST_API_KEY},
        timeout_s=config.TIMEOUT_LISTINGS_S,
        max_retries=config.RENTCAST_MAX_RETRIES,
        backoff_base_s=config.RENTCAST_BACKOFF_BASE_S,
        rate_limiter=rate_limiter,
    )
    return RentCastComparablesProvider(client=client)
