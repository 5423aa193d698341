# src/rentwise/adapters/http_client.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from rentwise.adapters.logging_utils import get_logger
from rentwise.adapters.rate_limit import RateLimiter
from rentwise.domain.errors import ProviderError

logger = get_logger(__name__)

_RETRY_STATUS = (429, 502, 503, 504)


class RateLimitedError(ProviderError):
    """The scoped rate limiter refused the call; nothing was sent."""


@dataclass(frozen=True)
class JsonApiClient:
    """
    Small JSON GET client shared by the HTTP-backed providers.

    Retries 429/5xx gateway responses and network errors with exponential
    backoff (honouring Retry-After). Any other 4xx is returned to the caller
    as a ProviderError straight away.
    """

    provider_id: str
    base_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout_s: float = 10.0
    max_retries: int = 1
    backoff_base_s: float = 0.5
    rate_limiter: RateLimiter | None = None

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = self.base_url.rstrip("/") + "/" + path.lstrip("/")
        headers = {"Accept": "application/json", **self.headers}

        last_err: Exception | None = None

        for attempt in range(self.max_retries + 1):
            if self.rate_limiter is not None and not self.rate_limiter.acquire(f"{self.provider_id}:{path}"):
                raise RateLimitedError(self.provider_id, "call budget exhausted")

            try:
                resp = requests.get(url, headers=headers, params=params or {}, timeout=self.timeout_s)
            except requests.RequestException as e:
                last_err = e
                if attempt < self.max_retries:
                    time.sleep(self.backoff_base_s * (2**attempt))
                    continue
                break

            if resp.status_code in _RETRY_STATUS:
                last_err = ProviderError(self.provider_id, f"HTTP {resp.status_code}")
                if attempt < self.max_retries:
                    wait = self.backoff_base_s * (2**attempt)
                    ra = resp.headers.get("Retry-After")
                    if ra:
                        try:
                            wait = max(wait, float(ra))
                        except ValueError:
                            pass
                    logger.info(
                        "http_retry",
                        extra={"context": {"provider_id": self.provider_id, "status": resp.status_code, "wait_s": wait}},
                    )
                    time.sleep(wait)
                    continue
                break

            if resp.status_code >= 400:
                raise ProviderError(self.provider_id, f"HTTP {resp.status_code}: {resp.text[:200]}")

            try:
                return resp.json()
            except ValueError as e:
                raise ProviderError(self.provider_id, "response was not JSON") from e

        raise ProviderError(self.provider_id, f"request failed after retries: {last_err!r}")
