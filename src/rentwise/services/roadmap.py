# src/rentwise/services/roadmap.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from rentwise.analysis.scoring import market_position, negotiation_room_pct, success_estimate
from rentwise.domain.facts import Money
from rentwise.domain.market import MarketEstimate
from rentwise.domain.roadmap import (
    ActionItem,
    AdaptationTrigger,
    MarketSummary,
    Phase,
    RoadmapPlan,
    Step,
)
from rentwise.domain.situation import SituationProfile
from rentwise.domain.strategy import (
    LeverageScore,
    MarketPosition,
    NegotiationStrategy,
    ScoreResult,
    StrategyChoice,
    SuccessEstimate,
)
from rentwise.services.guidance import build_guidance

S = NegotiationStrategy

PHASE_KEYS = ("research", "evidence", "initial_ask", "counter_handling", "close")

# strategy -> five (name, duration, description), one per PHASE_KEYS entry
PHASE_TEMPLATES: Mapping[NegotiationStrategy, Tuple[Tuple[str, str, str], ...]] = {
    S.ASSERTIVE_COLLABORATIVE: (
        ("Foundation Setting", "2-3 days", "Gather market data and prepare a compelling case"),
        ("Evidence Package", "2-3 days", "Turn comparables into a one-page rent comparison"),
        ("Initial Approach", "1 week", "Present your request with market evidence"),
        ("Counter Handling", "3-5 days", "Hold your number while keeping the tone constructive"),
        ("Collaborative Resolution", "1 week", "Agree on terms that work for both sides and put them in writing"),
    ),
    S.STRATEGIC_PATIENCE: (
        ("Intelligence Gathering", "2-3 weeks", "Monitor the market and track vacancies near you"),
        ("Position Building", "3-4 weeks", "Strengthen leverage and demonstrate your value as a tenant"),
        ("Strategic Timing", "1-2 weeks", "Make the request when conditions are optimal"),
        ("Patient Follow-through", "1-2 weeks", "Give the landlord time to respond and revisit calmly"),
        ("Lock In", "3-5 days", "Confirm the outcome before conditions change"),
    ),
    S.RELATIONSHIP_BUILDING: (
        ("Relationship Repair", "2-4 weeks", "Address open issues and rebuild trust"),
        ("Value Demonstration", "2-3 weeks", "Show your worth as a tenant"),
        ("Gentle Approach", "1-2 weeks", "Make the request from a position of trust"),
        ("Listening Round", "1 week", "Understand the landlord's constraints before countering"),
        ("Goodwill Agreement", "3-5 days", "Close on terms that preserve the relationship"),
    ),
    S.COLLABORATIVE_APPROACH: (
        ("Collaborative Setup", "3-5 days", "Frame the conversation as joint problem-solving"),
        ("Shared Facts", "2-4 days", "Assemble the numbers you will look at together"),
        ("Mutual Exploration", "1-2 weeks", "Explore price and non-price options together"),
        ("Option Trading", "3-5 days", "Trade concessions that cost little and matter a lot"),
        ("Win-Win Solution", "1 week", "Finalize a mutually beneficial agreement"),
    ),
    S.LEVERAGE_FOCUSED: (
        ("Leverage Assessment", "1-2 days", "Document every negotiation advantage"),
        ("Alternatives Lined Up", "1-3 days", "Secure concrete alternatives you would actually take"),
        ("Direct Negotiation", "3-5 days", "Present your case with clear alternatives"),
        ("Firm Counters", "2-4 days", "Answer counters quickly and hold your walk-away point"),
        ("Final Agreement", "3-7 days", "Secure commitment and formalize terms"),
    ),
}

BASE_DURATION_DAYS: Mapping[NegotiationStrategy, int] = {
    S.ASSERTIVE_COLLABORATIVE: 14,
    S.STRATEGIC_PATIENCE: 56,
    S.RELATIONSHIP_BUILDING: 42,
    S.COLLABORATIVE_APPROACH: 21,
    S.LEVERAGE_FOCUSED: 10,
}

# one tier up when the current approach stalls
ESCALATION: Mapping[NegotiationStrategy, Optional[NegotiationStrategy]] = {
    S.RELATIONSHIP_BUILDING: S.COLLABORATIVE_APPROACH,
    S.STRATEGIC_PATIENCE: S.COLLABORATIVE_APPROACH,
    S.COLLABORATIVE_APPROACH: S.ASSERTIVE_COLLABORATIVE,
    S.ASSERTIVE_COLLABORATIVE: S.LEVERAGE_FOCUSED,
    S.LEVERAGE_FOCUSED: None,
}

# initial-ask and counter-handling wording differs per strategy
ASK_STEPS: Mapping[NegotiationStrategy, Tuple[str, str]] = {
    S.ASSERTIVE_COLLABORATIVE: ("Present Your Market Case", "Send the request with your comparison attached and propose a meeting"),
    S.STRATEGIC_PATIENCE: ("Make a Well-Timed Request", "Ask once the timing signals line up, leading with your track record"),
    S.RELATIONSHIP_BUILDING: ("Open a Friendly Conversation", "Raise the rent question informally before putting anything in writing"),
    S.COLLABORATIVE_APPROACH: ("Propose Working It Out Together", "Invite the landlord to look at the numbers with you"),
    S.LEVERAGE_FOCUSED: ("State Your Terms", "Put your number and your alternatives on the table in writing"),
}

COUNTER_STEPS: Mapping[NegotiationStrategy, Tuple[str, str]] = {
    S.ASSERTIVE_COLLABORATIVE: ("Respond to Counter-Offers", "Acknowledge their position, restate the evidence, and meet in a defined middle"),
    S.STRATEGIC_PATIENCE: ("Give It Time", "Let a first refusal sit, then revisit with any new market movement"),
    S.RELATIONSHIP_BUILDING: ("Listen Before Countering", "Ask what would make a reduction possible for them"),
    S.COLLABORATIVE_APPROACH: ("Trade Options", "Offer a longer lease, early renewal or autopay in exchange for rent relief"),
    S.LEVERAGE_FOCUSED: ("Hold Your Walk-Away Point", "Counter once, firmly, and be ready to act on your alternative"),
}

_TONE_OPENERS: Mapping[str, str] = {
    "diplomatic": "I hope this email finds you well. I have really enjoyed living here and wanted to reach out",
    "collaborative": "I hope this email finds you well. I wanted to reach out so we can look at something together",
    "direct": "I am writing",
    "assertive": "I am writing",
}


# =====================================================================
# Formatting helpers
# =====================================================================


def _usd(v: float) -> str:
    return f"${v:,.0f}"


def format_duration(days: int) -> str:
    if days <= 7:
        return f"{days} day" if days == 1 else f"{days} days"
    if days <= 28:
        weeks = round(days / 7)
        return f"{weeks} week" if weeks == 1 else f"{weeks} weeks"
    months = round(days / 30)
    return f"{months} month" if months == 1 else f"{months} months"


def estimate_duration_days(strategy: NegotiationStrategy, profile: SituationProfile) -> int:
    factor = 1.0
    if profile.timing.days_until_decision < 14:
        factor *= 0.7
    if profile.tenant.urgency == "urgent":
        factor *= 0.8
    if profile.tenant.landlord_relationship == "strained":
        factor *= 1.3
    return max(1, round(BASE_DURATION_DAYS[strategy] * factor))


# =====================================================================
# Market summary
# =====================================================================


def build_market_summary(
    market: MarketEstimate,
    position: MarketPosition,
    percentile: Optional[float],
    room_pct: int,
    current_rent: Money | None,
    target_rent: Money | None,
) -> MarketSummary:
    reduction = round(current_rent - target_rent, 2) if current_rent and target_rent else None
    suggested = None
    if market.has_data and target_rent is None and current_rent and room_pct > 0:
        suggested = round(current_rent * (1 - room_pct / 100.0), 0)
    return MarketSummary(
        location=market.location,
        data_available=market.has_data,
        current_rent=current_rent,
        target_rent=target_rent,
        target_reduction=reduction,
        suggested_target=suggested,
        median=market.median,
        range=market.range,
        percentile=percentile,
        confidence=market.confidence,
        market_position=position,
        negotiation_room_pct=room_pct,
    )


# =====================================================================
# Templates
# =====================================================================


def email_template(profile: SituationProfile, summary: MarketSummary) -> str:
    tone = profile.tenant.preferred_tone or "diplomatic"
    opener = _TONE_OPENERS.get(tone, _TONE_OPENERS["diplomatic"])

    if summary.data_available and summary.range is not None and summary.median is not None:
        market_par = (
            f"Based on current market data for {summary.location}, comparable units are renting for "
            f"{_usd(summary.range.low)}-{_usd(summary.range.high)} per month, with a typical rent of about "
            f"{_usd(summary.median)}."
        )
        if summary.current_rent:
            market_par += f" My current rent is {_usd(summary.current_rent)}."
    else:
        market_par = (
            "I have been reviewing comparable listings in the area and would like to share what I found "
            "[attach your comparable listings]."
        )

    ask = summary.target_rent or summary.suggested_target
    if ask:
        ask_par = f"I would like to propose a monthly rent of {_usd(ask)} for my next lease term."
    else:
        ask_par = "I would like to discuss an adjustment that reflects current market conditions."

    return (
        "Subject: Request to Discuss Rent Adjustment\n\n"
        "Dear [Landlord Name],\n\n"
        f"{opener} regarding my current lease and the possibility of a rent adjustment.\n\n"
        f"{market_par}\n\n"
        f"{ask_par}\n\n"
        "I value our landlord-tenant relationship and would appreciate the opportunity to discuss this further.\n\n"
        "Best regards,\n"
        "[Your name]"
    )


def phone_script(strategy: NegotiationStrategy, summary: MarketSummary) -> str:
    ask = summary.target_rent or summary.suggested_target
    lines = [
        "Hi [Landlord Name], do you have a few minutes to talk about my lease renewal?",
        "I've enjoyed living here and I'd like to stay.",
    ]
    if summary.data_available and summary.median is not None:
        lines.append(f"I've been looking at similar units nearby and they're going for around {_usd(summary.median)}.")
    else:
        lines.append("I've been looking at similar units nearby and I'd like to share what I found.")
    if ask:
        lines.append(f"Would you consider {_usd(ask)} a month?")
    else:
        lines.append("Would you be open to adjusting the rent?")
    if strategy in (S.LEVERAGE_FOCUSED, S.ASSERTIVE_COLLABORATIVE):
        lines.append("I do have other options I'm considering, but I'd prefer to work this out with you.")
    else:
        lines.append("I'm flexible on how we get there; a longer lease or early renewal is on the table.")
    return "\n".join(lines)


def follow_up_template(profile: SituationProfile, summary: MarketSummary) -> str:
    tone = profile.tenant.preferred_tone or "diplomatic"
    if tone in ("direct", "assertive"):
        opener = "I am following up on my request regarding the rent for my next lease term."
        close = "Could you let me know your decision by [date]? I need to plan around my renewal deadline."
    else:
        opener = "I wanted to follow up on my recent note about the rent for my next lease term."
        close = "I would be happy to talk it through whenever suits you."

    ask = summary.target_rent or summary.suggested_target
    if ask:
        ask_line = f"To recap, I proposed a monthly rent of {_usd(ask)}."
    else:
        ask_line = "To recap, I asked whether the rent could reflect what comparable units are renting for."

    return (
        "Subject: Following Up on My Rent Adjustment Request\n\n"
        "Dear [Landlord Name],\n\n"
        f"{opener} {ask_line}\n\n"
        f"{close}\n\n"
        "Best regards,\n"
        "[Your name]"
    )


# =====================================================================
# Steps
# =====================================================================


def _research_metrics(s: MarketSummary) -> Tuple[str, ...]:
    if s.data_available and s.range is not None and s.median is not None:
        return (
            f"Comparable range {_usd(s.range.low)}-{_usd(s.range.high)} documented",
            f"Market median of {_usd(s.median)} confirmed against at least 3 listings",
        )
    return (
        "At least 3 comparable listings documented",
        "Clear picture of what similar units rent for",
    )


def _evidence_metrics(s: MarketSummary) -> Tuple[str, ...]:
    if s.data_available and s.median is not None and s.current_rent:
        gap = s.current_rent - s.median
        if gap > 0:
            return (f"Gap of {_usd(gap)}/month between your rent and the market median quantified",)
        return ("Non-price arguments (tenancy record, lease length) written down, since your rent is not above the median",)
    return ("One-page summary of comparables, amenities and your payment history",)


def _ask_metrics(s: MarketSummary) -> Tuple[str, ...]:
    if s.target_rent and s.target_reduction:
        return (f"Request for {_usd(s.target_rent)}/month (a {_usd(s.target_reduction)} reduction) delivered in writing",)
    if s.suggested_target and s.current_rent:
        return (
            f"Request for about {_usd(s.suggested_target)}/month "
            f"({s.negotiation_room_pct}% below {_usd(s.current_rent)}) delivered in writing",
        )
    return ("Written request delivered and acknowledged",)


def _counter_metrics(s: MarketSummary) -> Tuple[str, ...]:
    if s.current_rent and s.target_rent:
        walk_away = s.target_rent + (s.current_rent - s.target_rent) / 2
        return (f"Counter-offers at or below {_usd(walk_away)} treated as acceptable",)
    return ("Every counter-offer answered within 48 hours",)


def _close_metrics(s: MarketSummary) -> Tuple[str, ...]:
    return ("New rent and terms confirmed in a signed lease addendum",)


def _tips(base: List[str], profile: SituationProfile) -> Tuple[str, ...]:
    tips = list(base)
    if profile.tenant.tenant_history == "first-time":
        tips.append("As a first-time renter, emphasize your stability and reliability")
    if profile.tenant.landlord_relationship == "strained":
        tips.append("Focus on rebuilding trust before making requests")
    return tuple(tips)


def _build_steps(
    strategy: NegotiationStrategy,
    leverage: LeverageScore,
    profile: SituationProfile,
    summary: MarketSummary,
) -> Dict[str, List[Dict[str, Any]]]:
    weak_market = leverage.factors.market < 5
    research_count = "5-7 comparable properties (more needed due to weak market position)" if weak_market else "3-5 comparable properties"

    ask_title, ask_desc = ASK_STEPS[strategy]
    counter_title, counter_desc = COUNTER_STEPS[strategy]

    return {
        "research": [
            {
                "title": "Market Research",
                "description": "Gather comparable property data to support your negotiation",
                "difficulty": "easy",
                "estimated_time": "2-3 hours",
                "action_items": (
                    ActionItem(type="research", description=f"Find {research_count}", automated=True, priority="high"),
                    ActionItem(type="document", description="Create a comparison summary", priority="high"),
                ),
                "success_metrics": _research_metrics(summary),
                "tips": _tips(
                    ["Focus on similar properties within 0.5 miles", "Include only active listings from the last 30 days"],
                    profile,
                ),
                "risk_factors": ("Don't overwhelm the landlord with too much data",),
            },
        ],
        "evidence": [
            {
                "title": "Build Your Evidence",
                "description": "Turn the research into a short, factual case",
                "difficulty": "medium",
                "estimated_time": "1-2 hours",
                "action_items": (
                    ActionItem(type="analyze", description="Compare your unit's features against each comparable", priority="high"),
                    ActionItem(type="document", description="Collect proof of on-time payments and upkeep", priority="medium"),
                ),
                "success_metrics": _evidence_metrics(summary),
                "tips": ("Lead with the strongest two comparables, not all of them",),
                "risk_factors": ("Comparables with better amenities weaken your case",),
            },
            {
                "title": "Approach Planning",
                "description": "Plan your communication strategy and timing",
                "difficulty": "medium",
                "estimated_time": "1 hour",
                "action_items": (
                    ActionItem(type="analyze", description="Review how your landlord prefers to communicate", priority="medium"),
                    ActionItem(type="document", description="Draft the initial request", priority="high"),
                ),
                "success_metrics": ("Clear communication plan", "Appropriate tone selected"),
                "tips": (
                    "Consider your landlord's preferred communication method",
                    "Choose a time when they are not under pressure",
                ),
                "risk_factors": ("Avoid approaching during busy periods",),
            },
        ],
        "initial_ask": [
            {
                "title": ask_title,
                "description": ask_desc,
                "difficulty": "hard" if strategy == S.LEVERAGE_FOCUSED else "medium",
                "estimated_time": "30-60 minutes",
                "action_items": (
                    ActionItem(type="communicate", description="Send the initial request", priority="high"),
                    ActionItem(type="wait", description="Allow 3-5 days for a reply before following up", priority="medium"),
                ),
                "success_metrics": _ask_metrics(summary),
                "tips": ("Keep the first message short and specific",),
                "risk_factors": ("A vague request invites a vague answer",),
                "templates": {
                    "email": email_template(profile, summary),
                    "phone_script": phone_script(strategy, summary),
                    "follow_up": follow_up_template(profile, summary),
                },
            },
        ],
        "counter_handling": [
            {
                "title": counter_title,
                "description": counter_desc,
                "difficulty": "hard",
                "estimated_time": "1-2 hours",
                "action_items": (
                    ActionItem(type="analyze", description="Compare the counter-offer to your walk-away number", priority="high"),
                    ActionItem(type="communicate", description="Reply in writing within 48 hours", priority="high"),
                ),
                "success_metrics": _counter_metrics(summary),
                "tips": ("Non-price concessions (parking, utilities, lease length) count as wins",),
                "risk_factors": ("Accepting the first counter leaves money on the table",),
            },
        ],
        "close": [
            {
                "title": "Put It in Writing",
                "description": "Confirm the agreed rent and terms in a lease amendment",
                "difficulty": "easy",
                "estimated_time": "30 minutes",
                "action_items": (
                    ActionItem(type="document", description="Request a signed lease addendum with the new rent", priority="high"),
                    ActionItem(type="decide", description="Decide whether to renew on the agreed terms", priority="medium"),
                ),
                "success_metrics": _close_metrics(summary),
                "tips": ("Thank the landlord; you will negotiate with them again next year",),
                "risk_factors": ("Verbal agreements are easy to forget at renewal time",),
            },
        ],
    }


def _phases(
    strategy: NegotiationStrategy,
    leverage: LeverageScore,
    profile: SituationProfile,
    summary: MarketSummary,
) -> Tuple[Phase, ...]:
    steps_by_key = _build_steps(strategy, leverage, profile, summary)
    phases: List[Phase] = []
    step_id = 0
    for idx, (key, (name, duration, description)) in enumerate(zip(PHASE_KEYS, PHASE_TEMPLATES[strategy]), start=1):
        steps: List[Step] = []
        for raw in steps_by_key[key]:
            step_id += 1
            status = "active" if idx == 1 and not steps else "pending"
            steps.append(Step(id=step_id, status=status, **raw))
        phases.append(
            Phase(
                id=idx,
                key=key,
                name=name,
                duration=duration,
                description=description,
                status="active" if idx == 1 else "pending",
                steps=tuple(steps),
            )
        )
    return tuple(phases)


# =====================================================================
# Adaptation triggers
# =====================================================================


def adaptation_triggers(
    strategy: NegotiationStrategy,
    profile: SituationProfile,
    market: MarketEstimate,
    position: MarketPosition,
) -> Tuple[AdaptationTrigger, ...]:
    out: List[AdaptationTrigger] = []
    escalate = ESCALATION[strategy]

    if profile.timing.competing_offers:
        out.append(
            AdaptationTrigger(
                condition="Landlord counters after hearing about your competing offer",
                suggested_adjustment="Move one step firmer and set a response deadline",
                impact="moderate",
                next_strategy=escalate,
            )
        )

    out.append(
        AdaptationTrigger(
            condition="Landlord responds defensively to market data",
            suggested_adjustment="Shift to a relationship-focused approach",
            impact="moderate",
            next_strategy=S.RELATIONSHIP_BUILDING if strategy != S.RELATIONSHIP_BUILDING else S.STRATEGIC_PATIENCE,
        )
    )

    if not market.has_data:
        out.append(
            AdaptationTrigger(
                condition="No market data available for your area",
                suggested_adjustment="Refresh evidence with listings you collect yourself before making the ask",
                impact="major",
            )
        )
    elif market.confidence < 0.5:
        out.append(
            AdaptationTrigger(
                condition="Market sources disagree or coverage is thin",
                suggested_adjustment="Refresh evidence with additional comparables before citing numbers",
                impact="moderate",
            )
        )

    if profile.timing.days_until_decision < 14:
        out.append(
            AdaptationTrigger(
                condition="Decision deadline arrives before an agreement",
                suggested_adjustment="Ask for a short extension on the renewal deadline or accept the best written offer",
                impact="major",
            )
        )

    if profile.market.rent_trend == "increasing":
        out.append(
            AdaptationTrigger(
                condition="Local rents keep rising during the negotiation",
                suggested_adjustment="Shift the ask from price to terms such as a rent freeze or longer lease",
                impact="moderate",
                next_strategy=S.COLLABORATIVE_APPROACH if strategy != S.COLLABORATIVE_APPROACH else None,
            )
        )

    if position == "below":
        out.append(
            AdaptationTrigger(
                condition="Landlord points out your rent is already below market",
                suggested_adjustment="Negotiate non-price terms instead of a reduction",
                impact="moderate",
            )
        )

    out.append(
        AdaptationTrigger(
            condition="New comparable properties listed at lower rents",
            suggested_adjustment="Update market research and increase target reduction",
            impact="major",
        )
    )
    out.append(
        AdaptationTrigger(
            condition="Market conditions improve significantly",
            suggested_adjustment="Accelerate timeline and increase assertiveness",
            impact="minor",
            next_strategy=escalate,
        )
    )
    return tuple(out)


# =====================================================================
# Entry point
# =====================================================================


def generate(
    strategy: StrategyChoice,
    leverage: LeverageScore,
    profile: SituationProfile,
    market: MarketEstimate,
    *,
    current_rent: Money | None = None,
    target_rent: Money | None = None,
    success: SuccessEstimate | None = None,
) -> RoadmapPlan:
    """
    Build the phased plan. Pure and deterministic: the same inputs always
    produce an equal plan. With a zero-data estimate every metric is
    qualitative; no number is invented.
    """
    percentile = market.percentile_of(current_rent) if current_rent is not None else None
    position = market_position(percentile)
    room = negotiation_room_pct(position, leverage.total)
    if success is None:
        success = success_estimate(leverage, strategy, market, percentile)

    summary = build_market_summary(market, position, percentile, room, current_rent, target_rent)
    score = ScoreResult(
        leverage=leverage,
        strategy=strategy,
        success=success,
        market_position=position,
        market_percentile=percentile,
        negotiation_room_pct=room,
    )

    return RoadmapPlan(
        strategy=strategy,
        leverage=leverage,
        success=success,
        estimated_duration=format_duration(estimate_duration_days(strategy.strategy, profile)),
        phases=_phases(strategy.strategy, leverage, profile, summary),
        adaptation_triggers=adaptation_triggers(strategy.strategy, profile, market, position),
        guidance=build_guidance(score, profile, market, current_rent, target_rent),
        market_summary=summary,
    )
