# src/rentwise/analysis/scoring.py
from __future__ import annotations

from typing import Dict, List, Literal, Mapping, Optional, Tuple

from rentwise.domain.facts import Money
from rentwise.domain.market import MarketEstimate
from rentwise.domain.situation import SituationProfile
from rentwise.domain.strategy import (
    ConfidenceInterval,
    FactorName,
    LeverageFactors,
    LeverageScore,
    MarketPosition,
    NegotiationStrategy,
    ScoreResult,
    StrategyChoice,
    SuccessBreakdown,
    SuccessEstimate,
)

S = NegotiationStrategy
Tier = Literal["high", "moderate", "low"]


# =====================================================================
# Sub-score tables (every entry is on the 0-10 scale)
# =====================================================================

MARKET_WEIGHTS: Mapping[str, float] = {"position": 0.40, "vacancy": 0.25, "trend": 0.15, "power": 0.20}
FINANCIAL_WEIGHTS: Mapping[str, float] = {"alternatives": 0.35, "budget": 0.25, "employment": 0.20, "moving": 0.20}
RELATIONSHIP_WEIGHTS: Mapping[str, float] = {"relationship": 0.60, "history": 0.40}
TIMING_WEIGHTS: Mapping[str, float] = {
    "lease": 0.30,
    "deadline": 0.25,
    "urgency": 0.20,
    "season": 0.15,
    "competing": 0.10,
}

RENT_TREND = {"decreasing": 9.0, "stable": 5.0, "increasing": 3.0}
POWER_BALANCE = {"tenant-favored": 9.0, "balanced": 5.0, "landlord-favored": 2.0}
BUDGET = {"flexible": 8.0, "moderate": 5.0, "tight": 2.0}
EMPLOYMENT = {"stable": 7.0, "variable": 5.0, "unstable": 2.0}
MOVING = {"eager-to-move": 8.0, "willing-to-move": 6.0, "committed-to-stay": 3.0}
RELATIONSHIP = {"positive": 9.0, "neutral": 6.0, "new": 5.0, "strained": 1.0}
HISTORY = {"veteran": 8.0, "experienced": 6.0, "first-time": 3.0}
LEASE_STATUS = {"renewal-period": 9.0, "active-lease": 6.0, "application-pending": 5.0, "pre-application": 3.0}
URGENCY = {"flexible": 8.0, "moderate": 5.0, "urgent": 2.0}
SEASON = {"slow": 9.0, "normal": 5.0, "peak": 3.0}


def _vacancy_sub(rate_pct: float) -> float:
    if rate_pct > 7:
        return 9.0
    if rate_pct > 5:
        return 7.0
    if rate_pct >= 3:
        return 5.0
    return 2.0


def _alternatives_sub(n: int) -> float:
    if n >= 3:
        return 9.0
    if n == 2:
        return 6.5
    if n == 1:
        return 5.0
    return 2.0


def _deadline_sub(days: int) -> float:
    if days > 60:
        return 9.0
    if days > 30:
        return 8.0
    if days >= 14:
        return 6.0
    if days >= 7:
        return 4.0
    return 2.0


def _weighted(subs: Mapping[str, Optional[float]], weights: Mapping[str, float]) -> float:
    """Weighted mean of the sub-scores present; missing ones drop out and weights renormalize."""
    num = 0.0
    den = 0.0
    for key, w in weights.items():
        v = subs.get(key)
        if v is None:
            continue
        num += w * v
        den += w
    if den <= 0:
        return 5.0
    return round(max(0.0, min(10.0, num / den)), 1)


# =====================================================================
# Market position
# =====================================================================


def market_position(percentile: Optional[float]) -> MarketPosition:
    if percentile is None:
        return "unknown"
    if percentile >= 85:
        return "significantly-above"
    if percentile >= 65:
        return "above"
    if percentile <= 35:
        return "below"
    return "at"


def _position_sub(percentile: Optional[float]) -> Optional[float]:
    # paying more than the market is what gives a tenant room to push
    if percentile is None:
        return None
    return round(percentile / 10.0, 2)


# =====================================================================
# Leverage
# =====================================================================


def leverage_factors(
    profile: SituationProfile,
    percentile: Optional[float] = None,
) -> LeverageFactors:
    t, m, tm = profile.tenant, profile.market, profile.timing

    market = _weighted(
        {
            "position": _position_sub(percentile),
            "vacancy": _vacancy_sub(m.vacancy_rate),
            "trend": RENT_TREND[m.rent_trend],
            "power": POWER_BALANCE[m.market_power_balance],
        },
        MARKET_WEIGHTS,
    )
    financial = _weighted(
        {
            "alternatives": _alternatives_sub(t.alternative_options),
            "budget": BUDGET[t.budget_flexibility],
            "employment": EMPLOYMENT[t.employment_stability],
            "moving": MOVING[t.moving_flexibility],
        },
        FINANCIAL_WEIGHTS,
    )
    relationship = _weighted(
        {"relationship": RELATIONSHIP[t.landlord_relationship], "history": HISTORY[t.tenant_history]},
        RELATIONSHIP_WEIGHTS,
    )
    timing = _weighted(
        {
            "lease": LEASE_STATUS[tm.lease_status],
            "deadline": _deadline_sub(tm.days_until_decision),
            "urgency": URGENCY[t.urgency],
            "season": SEASON[m.seasonal_factor],
            "competing": 9.0 if tm.competing_offers else 5.0,
        },
        TIMING_WEIGHTS,
    )
    return LeverageFactors(market=market, financial=financial, relationship=relationship, timing=timing)


_STRENGTH_LABELS: Dict[str, Tuple[str, str]] = {
    "market": ("Strong market position", "Weak market position"),
    "financial": ("Financial stability and alternatives", "Financial constraints"),
    "relationship": ("Good landlord relationship", "Strained or untested relationship"),
    "timing": ("Optimal timing", "Poor timing"),
}


def leverage_score(profile: SituationProfile, percentile: Optional[float] = None) -> LeverageScore:
    factors = leverage_factors(profile, percentile)
    values = factors.as_dict()
    total = round(sum(values.values()) / len(values), 1)

    strengths = tuple(_STRENGTH_LABELS[k][0] for k, v in values.items() if v >= 7)
    weaknesses = tuple(_STRENGTH_LABELS[k][1] for k, v in values.items() if v <= 3)
    return LeverageScore(total=total, factors=factors, strengths=strengths, weaknesses=weaknesses)


def leverage_tier(total: float) -> Tier:
    if total >= 7.0:
        return "high"
    if total >= 4.5:
        return "moderate"
    return "low"


def dominant_factor(factors: LeverageFactors) -> FactorName | Literal["balanced"]:
    ranked = sorted(factors.as_dict().items(), key=lambda kv: kv[1], reverse=True)
    if ranked[0][1] - ranked[1][1] < 1.0:
        return "balanced"
    return ranked[0][0]  # type: ignore[return-value]


# =====================================================================
# Strategy selection
# =====================================================================

# (dominant factor, tier) -> acceptable strategies, preferred first
DECISION_TABLE: Mapping[Tuple[str, Tier], Tuple[NegotiationStrategy, ...]] = {
    ("market", "high"): (S.LEVERAGE_FOCUSED, S.ASSERTIVE_COLLABORATIVE, S.COLLABORATIVE_APPROACH),
    ("market", "moderate"): (S.ASSERTIVE_COLLABORATIVE, S.COLLABORATIVE_APPROACH, S.LEVERAGE_FOCUSED),
    ("market", "low"): (S.STRATEGIC_PATIENCE, S.COLLABORATIVE_APPROACH),
    ("financial", "high"): (S.LEVERAGE_FOCUSED, S.ASSERTIVE_COLLABORATIVE, S.COLLABORATIVE_APPROACH),
    ("financial", "moderate"): (S.COLLABORATIVE_APPROACH, S.ASSERTIVE_COLLABORATIVE, S.STRATEGIC_PATIENCE),
    ("financial", "low"): (S.STRATEGIC_PATIENCE, S.RELATIONSHIP_BUILDING),
    ("relationship", "high"): (S.COLLABORATIVE_APPROACH, S.RELATIONSHIP_BUILDING, S.ASSERTIVE_COLLABORATIVE),
    ("relationship", "moderate"): (S.RELATIONSHIP_BUILDING, S.COLLABORATIVE_APPROACH),
    ("relationship", "low"): (S.RELATIONSHIP_BUILDING, S.STRATEGIC_PATIENCE),
    ("timing", "high"): (S.ASSERTIVE_COLLABORATIVE, S.LEVERAGE_FOCUSED, S.COLLABORATIVE_APPROACH),
    ("timing", "moderate"): (S.COLLABORATIVE_APPROACH, S.ASSERTIVE_COLLABORATIVE, S.STRATEGIC_PATIENCE),
    ("timing", "low"): (S.STRATEGIC_PATIENCE, S.RELATIONSHIP_BUILDING, S.COLLABORATIVE_APPROACH),
    ("balanced", "high"): (S.COLLABORATIVE_APPROACH, S.ASSERTIVE_COLLABORATIVE, S.LEVERAGE_FOCUSED),
    ("balanced", "moderate"): (S.COLLABORATIVE_APPROACH, S.RELATIONSHIP_BUILDING, S.STRATEGIC_PATIENCE),
    ("balanced", "low"): (S.COLLABORATIVE_APPROACH, S.RELATIONSHIP_BUILDING, S.STRATEGIC_PATIENCE),
}

ASSERTIVE_STRATEGIES = frozenset({S.ASSERTIVE_COLLABORATIVE, S.LEVERAGE_FOCUSED})
# aggressive tenants get the leverage-focused plan once leverage reaches this total
AGGRESSIVE_MIN_LEVERAGE = 6.0

TONE_STRATEGY: Mapping[str, NegotiationStrategy] = {
    "assertive": S.LEVERAGE_FOCUSED,
    "direct": S.ASSERTIVE_COLLABORATIVE,
    "diplomatic": S.RELATIONSHIP_BUILDING,
    "collaborative": S.COLLABORATIVE_APPROACH,
}
CONFLICT_STYLE_STRATEGY: Mapping[str, NegotiationStrategy] = {
    "competitor": S.LEVERAGE_FOCUSED,
    "avoider": S.STRATEGIC_PATIENCE,
    "collaborator": S.COLLABORATIVE_APPROACH,
    "compromiser": S.COLLABORATIVE_APPROACH,
}

STRATEGY_INFO: Mapping[NegotiationStrategy, Tuple[str, str]] = {
    S.ASSERTIVE_COLLABORATIVE: (
        "Assertive Collaborative",
        "Confidently present market data while maintaining a collaborative tone",
    ),
    S.STRATEGIC_PATIENCE: (
        "Strategic Patience",
        "Build position over time and wait for optimal negotiation window",
    ),
    S.RELATIONSHIP_BUILDING: (
        "Relationship Building",
        "Focus on strengthening relationship before making requests",
    ),
    S.COLLABORATIVE_APPROACH: (
        "Collaborative Negotiation",
        "Work together with landlord to find mutually beneficial solutions",
    ),
    S.LEVERAGE_FOCUSED: (
        "Leverage-Focused",
        "Use market position and alternatives to negotiate from strength",
    ),
}

_REASONS: Mapping[NegotiationStrategy, str] = {
    S.ASSERTIVE_COLLABORATIVE: "Solid leverage lets you lead with evidence without putting the relationship at risk",
    S.STRATEGIC_PATIENCE: "Current conditions favor building leverage before negotiating",
    S.RELATIONSHIP_BUILDING: "Trust with the landlord is your best lever right now",
    S.COLLABORATIVE_APPROACH: "Mixed signals favor joint problem-solving over pressure",
    S.LEVERAGE_FOCUSED: "Strong leverage supports negotiating from a position of strength",
}


def _tone_strategy(profile: SituationProfile) -> Optional[NegotiationStrategy]:
    t = profile.tenant
    if t.preferred_tone:
        return TONE_STRATEGY.get(t.preferred_tone)
    if t.conflict_style:
        return CONFLICT_STYLE_STRATEGY.get(t.conflict_style)
    return None


def select_strategy(leverage: LeverageScore, profile: SituationProfile) -> StrategyChoice:
    dominant = dominant_factor(leverage.factors)
    tier = leverage_tier(leverage.total)
    row: List[NegotiationStrategy] = list(DECISION_TABLE[(dominant, tier)])

    if profile.tenant.landlord_relationship == "strained":
        row = [s for s in row if s not in ASSERTIVE_STRATEGIES] or [S.RELATIONSHIP_BUILDING]

    leverage_pick = row[0]
    tone = _tone_strategy(profile)

    if tone is None:
        chosen, alignment = leverage_pick, 0.8
    elif tone == leverage_pick:
        chosen, alignment = leverage_pick, 1.0
    elif tone in row:
        chosen, alignment = tone, 0.75
    else:
        chosen, alignment = leverage_pick, 0.6

    risk_note = None
    if tone is None:
        risk = profile.tenant.risk_tolerance
        if risk == "aggressive" and leverage.total >= AGGRESSIVE_MIN_LEVERAGE and profile.tenant.landlord_relationship != "strained":
            alignment = 1.0 if chosen == S.LEVERAGE_FOCUSED else 0.75
            chosen = S.LEVERAGE_FOCUSED
            risk_note = "your aggressive risk tolerance supports pressing the advantage"
        elif risk == "conservative" and chosen in ASSERTIVE_STRATEGIES:
            chosen = next((s for s in row if s not in ASSERTIVE_STRATEGIES), S.COLLABORATIVE_APPROACH)
            alignment = 0.75
            risk_note = "your conservative risk tolerance favors a softer approach"

    where = "no single factor dominates" if dominant == "balanced" else f"{dominant} is your strongest factor"
    reasoning = f"{_REASONS[chosen]} ({tier} leverage {leverage.total}/10; {where})"
    if tone is not None and chosen == tone and tone != leverage_pick:
        reasoning += "; matches the tone you prefer"
    elif tone is not None and chosen != tone:
        reasoning += f"; your preferred {tone.value.replace('_', ' ')} style does not fit this situation"
    if risk_note:
        reasoning += f"; {risk_note}"

    name, description = STRATEGY_INFO[chosen]
    return StrategyChoice(
        strategy=chosen,
        name=name,
        description=description,
        reasoning=reasoning,
        alignment=alignment,
        leverage_strategy=leverage_pick,
        tone_strategy=tone,
    )


# =====================================================================
# Success estimate
# =====================================================================

SUCCESS_WEIGHTS: Mapping[str, float] = {
    "market_conditions": 0.35,
    "relationship_strength": 0.25,
    "timing_optimality": 0.20,
    "strategy_alignment": 0.20,
}


def success_estimate(
    leverage: LeverageScore,
    strategy: StrategyChoice,
    market: MarketEstimate,
    percentile: Optional[float],
) -> SuccessEstimate:
    f = leverage.factors
    if percentile is not None:
        market_conditions = round(0.6 * percentile + 0.4 * f.market * 10)
    else:
        market_conditions = round(f.market * 10)

    breakdown = SuccessBreakdown(
        market_conditions=int(max(0, min(100, market_conditions))),
        relationship_strength=int(round(f.relationship * 10)),
        timing_optimality=int(round(f.timing * 10)),
        strategy_alignment=int(round(strategy.alignment * 100)),
    )
    parts = breakdown.model_dump()
    overall = sum(SUCCESS_WEIGHTS[k] * parts[k] for k in SUCCESS_WEIGHTS)
    overall_i = int(max(5, min(95, round(overall))))

    half = 8 + 20 * (1.0 - market.confidence)
    ci = ConfidenceInterval(
        min=int(max(0, round(overall_i - half))),
        max=int(min(100, round(overall_i + half))),
    )
    return SuccessEstimate(overall=overall_i, breakdown=breakdown, confidence_interval=ci)


# =====================================================================
# Negotiation room
# =====================================================================

NEGOTIATION_ROOM_BASE_PCT: Mapping[str, float] = {
    "significantly-above": 15.0,
    "above": 10.0,
    "at": 5.0,
    "below": 2.0,
    "unknown": 5.0,
}


def negotiation_room_pct(position: MarketPosition, total: float) -> int:
    return int(round(NEGOTIATION_ROOM_BASE_PCT[position] * total / 10.0))


# =====================================================================
# Entry point
# =====================================================================


def score(
    profile: SituationProfile,
    market: MarketEstimate,
    *,
    current_rent: Money | None = None,
) -> ScoreResult:
    """
    Pure function: situation + market estimate -> leverage, strategy, success.

    Without market data (or without a current rent to place in it) the
    market-position sub-score drops out and the rest is renormalized.
    """
    percentile = market.percentile_of(current_rent) if current_rent is not None else None
    position = market_position(percentile)

    leverage = leverage_score(profile, percentile)
    strategy = select_strategy(leverage, profile)
    success = success_estimate(leverage, strategy, market, percentile)

    return ScoreResult(
        leverage=leverage,
        strategy=strategy,
        success=success,
        market_position=position,
        market_percentile=percentile,
        negotiation_room_pct=negotiation_room_pct(position, leverage.total),
    )
