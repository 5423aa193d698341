# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from rentwise.adapters.static_provider import StaticMarketDataProvider
from rentwise.api.http import app, get_engine  # ensures imports resolve; run tests from repo root
from rentwise.domain.market import MarketEstimate, RentRange
from rentwise.services.engine import NegotiationEngine
from rentwise.services.reconciler import MarketDataReconciler

WEIGHTS = {"hud_fmr": 0.45, "zori": 0.35, "rentcast_listings": 0.20}
TIMEOUTS = {"hud_fmr": 2.0, "zori": 2.0, "rentcast_listings": 2.0}


def static_providers():
    """Three in-memory sources that roughly agree on Buffalo and know nothing else."""
    return [
        StaticMarketDataProvider("hud_fmr", {"Buffalo, NY": 1180.0}),
        StaticMarketDataProvider("zori", {"Buffalo, NY": 1220.0}),
        StaticMarketDataProvider("rentcast_listings", {"Buffalo, NY": 1200.0}),
    ]


@pytest.fixture
def reconciler():
    return MarketDataReconciler(static_providers(), weights=WEIGHTS, timeouts=TIMEOUTS)


@pytest.fixture
def engine(reconciler):
    return NegotiationEngine(reconciler)


@pytest.fixture
def buffalo_market():
    return MarketEstimate(
        location="Buffalo, NY",
        median=1200.0,
        range=RentRange(low=1100.0, high=1300.0),
        confidence=0.8,
    )


@pytest.fixture
def empty_market():
    return MarketEstimate.no_data("Nowhere, ZZ")


@pytest.fixture(scope="session")
def client():
    engine = NegotiationEngine(MarketDataReconciler(static_providers(), weights=WEIGHTS, timeouts=TIMEOUTS))
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()
