# src/rentwise/api/http.py
from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, HTTPException

from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.errors import InvalidRequestError
from rentwise.domain.facts import ExtractedFacts
from rentwise.domain.market import MarketEstimate
from rentwise.services.engine import NegotiationEngine, build_default_reconciler
from rentwise.services.trigger import follow_up_message
from .schemas import MarketEstimateRequest, MessageRequest, RoadmapRequest, TextRequest, TriggerResponse

logger = get_logger(__name__)

app = FastAPI(title="rentwise")

# single engine per process; providers are chosen from config at startup
_engine = NegotiationEngine(build_default_reconciler())


def get_engine() -> NegotiationEngine:
    return _engine


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "providers": [p.provider_id for p in _engine.reconciler.providers]}


@app.post("/extract", response_model=ExtractedFacts)
def extract_endpoint(payload: TextRequest, engine: NegotiationEngine = Depends(get_engine)) -> ExtractedFacts:
    return engine.analyze_message(payload.text).facts


@app.post("/trigger", response_model=TriggerResponse)
def trigger_endpoint(payload: TextRequest, engine: NegotiationEngine = Depends(get_engine)) -> TriggerResponse:
    analysis = engine.analyze_message(payload.text)
    return TriggerResponse(
        decision=analysis.decision,
        facts=analysis.facts,
        follow_up_questions=analysis.follow_up_questions,
        message=follow_up_message(analysis.decision) if analysis.decision.should_trigger else None,
    )


@app.post("/market/estimate", response_model=MarketEstimate)
def market_estimate_endpoint(
    payload: MarketEstimateRequest, engine: NegotiationEngine = Depends(get_engine)
) -> MarketEstimate:
    return engine.estimate_market(payload.location, payload.property_spec)


@app.post("/roadmap")
def roadmap_endpoint(payload: RoadmapRequest, engine: NegotiationEngine = Depends(get_engine)) -> dict[str, Any]:
    try:
        plan = engine.plan_from_payload(payload.model_dump(exclude_none=True))
    except InvalidRequestError as e:
        logger.info("roadmap_rejected", extra={"context": {"error": str(e)}})
        raise HTTPException(status_code=400, detail=str(e)) from e
    return plan.model_dump(mode="json")


@app.post("/message")
def message_endpoint(payload: MessageRequest, engine: NegotiationEngine = Depends(get_engine)) -> dict[str, Any]:
    response = engine.handle_message(
        payload.text,
        profile=payload.situation_profile,
        previous_facts=payload.previous_facts,
    )
    return response.model_dump(mode="json")
