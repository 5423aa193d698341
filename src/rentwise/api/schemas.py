# src/rentwise/api/schemas.py
from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from rentwise.domain.facts import ExtractedFacts, TriggerDecision
from rentwise.domain.situation import PropertySpec, SituationProfile


# --------------------------------------------
# Text endpoints (/extract, /trigger)
# --------------------------------------------

class TextRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str = Field(..., max_length=10_000)


class TriggerResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    decision: TriggerDecision
    facts: ExtractedFacts
    follow_up_questions: List[str] = []
    message: str | None = None


# --------------------------------------------
# Market estimate
# --------------------------------------------

class MarketEstimateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    location: str = Field(..., min_length=2)
    property_spec: PropertySpec | None = None


# --------------------------------------------
# Roadmap (permissive: money/percent strings are normalized downstream)
# --------------------------------------------

class RoadmapRequest(BaseModel):
    """
    Typed request for /roadmap.

    Every field is loose on purpose; validate_request_payload does the
    coercion and raises a readable 400 for anything it cannot fix.
    """
    model_config = ConfigDict(extra="allow")

    location: Any = None
    current_rent: Any = None
    target_rent: Any = None
    reduction_amount: Any = None
    situation_profile: dict[str, Any] | None = None
    property_spec: dict[str, Any] | None = None


# --------------------------------------------
# Chat turn
# --------------------------------------------

class MessageRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str = Field(..., max_length=10_000)
    situation_profile: SituationProfile | None = None
    previous_facts: ExtractedFacts | None = None
