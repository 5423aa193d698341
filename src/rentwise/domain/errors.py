# src/rentwise/domain/errors.py
from __future__ import annotations


class InvalidRequestError(ValueError):
    """Caller input that cannot be turned into a negotiation request."""


class ProviderError(RuntimeError):
    """Transport-level failure talking to a market data provider."""

    def __init__(self, provider_id: str, message: str):
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id
