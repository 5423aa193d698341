# src/rentwise/services/engine.py
from __future__ import annotations

import threading
from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict

from rentwise.adapters.hud_fmr import make_hud_provider
from rentwise.adapters.logging_utils import get_logger
from rentwise.adapters.rate_limit import RateLimiter, make_rate_limiter
from rentwise.adapters.rentcast_listings import make_rentcast_provider
from rentwise.adapters.zori_index import ZoriIndexProvider
from rentwise.analysis.scoring import score
from rentwise.domain.facts import ExtractedFacts, TriggerDecision
from rentwise.domain.market import MarketEstimate
from rentwise.domain.roadmap import RoadmapPlan
from rentwise.domain.situation import NegotiationRequest, PropertySpec, SituationProfile
from rentwise.services.extraction import extract
from rentwise.services.reconciler import MarketDataReconciler
from rentwise.services.roadmap import generate
from rentwise.services.trigger import decide, follow_up_message, follow_up_questions
from rentwise.services.validation import validate_request_payload

logger = get_logger(__name__)

NO_TRIGGER_MESSAGE = (
    "If your rent ever feels too high, I can help you build a negotiation plan. "
    "Just tell me what you pay now and where you live."
)


class MessageAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    facts: ExtractedFacts
    decision: TriggerDecision
    follow_up_questions: List[str] = []


class EngineResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["plan", "follow_up", "no_trigger"]
    facts: ExtractedFacts
    decision: TriggerDecision
    plan: RoadmapPlan | None = None
    message: str | None = None
    follow_up_questions: List[str] = []


def build_default_reconciler(rate_limiter: RateLimiter | None = None) -> MarketDataReconciler:
    """
    Reconciler over every provider the current configuration can reach.

    Providers without credentials are skipped. All outbound clients share one
    rate limiter.
    """
    limiter = rate_limiter or make_rate_limiter()
    candidates = [
        make_hud_provider(limiter),
        ZoriIndexProvider(),
        make_rentcast_provider(limiter),
    ]
    providers = [p for p in candidates if p is not None]
    logger.info(
        "reconciler_configured",
        extra={"context": {"providers": [p.provider_id for p in providers]}},
    )
    return MarketDataReconciler(providers)


def _target_from_reduction(turn: ExtractedFacts, facts: ExtractedFacts) -> ExtractedFacts:
    # a reduction stated on its own turn replaces any earlier target
    reduction, current = facts.reduction_amount, facts.current_rent
    if reduction is None or current is None or reduction >= current:
        return facts
    fresh = turn.reduction_amount is not None and turn.target_rent is None
    if facts.target_rent is not None and not fresh:
        return facts
    return facts.model_copy(update={"target_rent": round(current - reduction, 2)})


def _apply_signals(profile: SituationProfile, facts: ExtractedFacts) -> SituationProfile:
    # text signals fill in only what the caller left at its default
    market = profile.market
    tenant = profile.tenant
    if facts.landlord_type is not None and "landlord_type" not in market.model_fields_set:
        market = market.model_copy(update={"landlord_type": facts.landlord_type})
    if facts.preferred_tone is not None and tenant.preferred_tone is None:
        tenant = tenant.model_copy(update={"preferred_tone": facts.preferred_tone})
    if market is profile.market and tenant is profile.tenant:
        return profile
    return profile.model_copy(update={"market": market, "tenant": tenant})


class NegotiationEngine:
    """
    Stateless facade: text -> facts/trigger, request -> plan.

    Callers own dialogue state; pass back `previous_facts` from the last
    response to continue a conversation.
    """

    def __init__(self, reconciler: MarketDataReconciler) -> None:
        self.reconciler = reconciler

    def analyze_message(self, text: str) -> MessageAnalysis:
        facts = extract(text)
        decision = decide(text, facts)
        return MessageAnalysis(
            facts=facts,
            decision=decision,
            follow_up_questions=follow_up_questions(decision) if decision.should_trigger else [],
        )

    def estimate_market(
        self,
        location: str,
        property_spec: PropertySpec | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> MarketEstimate:
        return self.reconciler.reconcile(location, property_spec, cancel=cancel)

    def build_plan(self, request: NegotiationRequest, *, cancel: threading.Event | None = None) -> RoadmapPlan:
        market = self.estimate_market(request.location, request.property_spec, cancel=cancel)
        profile = request.situation_profile
        result = score(profile, market, current_rent=request.current_rent)
        plan = generate(
            result.strategy,
            result.leverage,
            profile,
            market,
            current_rent=request.current_rent,
            target_rent=request.target_rent,
            success=result.success,
        )
        logger.info(
            "roadmap_generated",
            extra={
                "context": {
                    "location": request.location,
                    "strategy": plan.strategy.strategy.value,
                    "leverage": plan.leverage.total,
                    "success": plan.success.overall,
                    "market_data": market.has_data,
                }
            },
        )
        return plan

    def plan_from_payload(self, raw_payload: dict[str, Any]) -> RoadmapPlan:
        """
        Entry point for untrusted dict input (HTTP, chat tool calls).
        Raises InvalidRequestError when the payload cannot be normalized.
        """
        request = validate_request_payload(raw_payload)
        return self.build_plan(request)

    def handle_message(
        self,
        text: str,
        profile: SituationProfile | None = None,
        previous_facts: ExtractedFacts | None = None,
    ) -> EngineResponse:
        """
        One chat turn. Returns a plan once rent and location are known,
        otherwise a follow-up asking for what is missing. Never a dead end.
        """
        turn = extract(text)
        facts = _target_from_reduction(turn, turn.merged_over(previous_facts))
        if (
            facts.target_rent is not None
            and facts.current_rent is not None
            and facts.target_rent >= facts.current_rent
        ):
            # an unusable target is dropped; the plan suggests one instead
            facts = facts.model_copy(update={"target_rent": None})

        decision = decide(text, facts)
        continuing = previous_facts is not None and not previous_facts.is_empty
        if not decision.should_trigger and not continuing:
            return EngineResponse(kind="no_trigger", facts=facts, decision=decision, message=NO_TRIGGER_MESSAGE)

        questions = follow_up_questions(decision)
        if not decision.completeness.ready_for_plan:
            return EngineResponse(
                kind="follow_up",
                facts=facts,
                decision=decision,
                message=follow_up_message(decision),
                follow_up_questions=questions,
            )

        request = NegotiationRequest(
            situation_profile=_apply_signals(profile or SituationProfile(), facts),
            location=facts.location.label,
            current_rent=facts.current_rent,
            target_rent=facts.target_rent,
        )
        plan = self.build_plan(request)
        return EngineResponse(
            kind="plan",
            facts=facts,
            decision=decision,
            plan=plan,
            follow_up_questions=questions,
        )
