# src/rentwise/services/guidance.py
from __future__ import annotations

from typing import List

from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.facts import Money
from rentwise.domain.market import MarketEstimate
from rentwise.domain.roadmap import Guidance
from rentwise.domain.situation import SituationProfile
from rentwise.domain.strategy import ScoreResult

logger = get_logger(__name__)

LOW_CONFIDENCE = 0.4
# reductions beyond this share of current rent are rarely granted outright
MAX_REALISTIC_REDUCTION = 0.20


def build_guidance(
    score: ScoreResult,
    profile: SituationProfile,
    market: MarketEstimate,
    current_rent: Money | None = None,
    target_rent: Money | None = None,
) -> Guidance:
    """
    Recommendations, warnings, opportunities and next actions for the plan.

    These never block anything; they tell the tenant what to watch for. The
    result always carries at least one next action.
    """
    recommendations: List[str] = []
    warnings: List[str] = []
    opportunities: List[str] = []
    actions: List[str] = []

    lev = score.leverage
    t, m, tm = profile.tenant, profile.market, profile.timing

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------
    if lev.total >= 7:
        recommendations.append("Your strong leverage position allows for confident negotiation")
        actions.append("Prepare market research showing rent comparisons")
    elif lev.total >= 4.5:
        recommendations.append("Lead with your reliability as a tenant and back it with a few solid comparables")
    else:
        recommendations.append("Build leverage before asking: line up alternatives and document your payment record")

    recommendations.append(f"Follow the {score.strategy.name} approach: {score.strategy.description[0].lower()}{score.strategy.description[1:]}")

    if t.alternative_options == 0:
        recommendations.append("Tour at least two comparable units so you have a credible alternative")

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------
    if not market.has_data:
        warnings.append(
            "No market data was available for this location; guidance is qualitative until you gather comparable listings"
        )
    elif market.confidence < LOW_CONFIDENCE:
        warnings.append("Market sources disagree; verify comparables before quoting numbers to your landlord")

    if tm.days_until_decision < 7:
        warnings.append("Limited time may reduce negotiation flexibility")

    if t.landlord_relationship == "strained":
        warnings.append("A strained relationship raises the risk of a defensive response")

    if current_rent and target_rent:
        if (current_rent - target_rent) / current_rent > MAX_REALISTIC_REDUCTION:
            warnings.append("Asking for more than 20% off is rarely accepted; prepare a fallback number")
        if market.range is not None and target_rent < market.range.low:
            warnings.append(
                f"Your target (${target_rent:,.0f}) is below the typical market range "
                f"(${market.range.low:,.0f}-${market.range.high:,.0f}) and may be hard to justify"
            )

    if score.market_position == "below":
        warnings.append("Your rent is already below market, so a price cut is a hard sell")

    # ------------------------------------------------------------------
    # Opportunities
    # ------------------------------------------------------------------
    if score.market_position == "significantly-above":
        opportunities.append("Your rent is significantly above market: strong negotiation opportunity")
    elif score.market_position == "above":
        opportunities.append("Your rent is above the market median")

    if m.rent_trend == "decreasing":
        opportunities.append("Declining rent trend supports your negotiation position")
    if m.vacancy_rate > 7:
        opportunities.append("High local vacancy means landlords are competing for tenants")
    if m.seasonal_factor == "slow":
        opportunities.append("Slow leasing season: landlords prefer keeping a reliable tenant to a vacancy")
    if tm.lease_status == "renewal-period":
        opportunities.append("Renewal period is the natural moment to renegotiate")
    if tm.competing_offers:
        opportunities.append("Your competing offers give you a concrete walk-away option")
    if m.property_condition == "needs-work":
        opportunities.append("Outstanding repairs justify asking for a rent credit or a fix-before-renewal commitment")
    elif m.property_condition == "excellent":
        warnings.append("A unit in excellent condition supports the current rent; lean on comparables rather than upkeep")

    # ------------------------------------------------------------------
    # Next best actions
    # ------------------------------------------------------------------
    if not market.has_data:
        actions.append("Collect 3-5 comparable listings within half a mile of your unit")
    elif market.range is not None:
        actions.append(
            f"Share the comparable range (${market.range.low:,.0f}-${market.range.high:,.0f}) with your landlord in writing"
        )
    if tm.days_until_decision < 14:
        actions.append("Schedule the conversation with your landlord this week")
    if not actions:
        actions.append("Draft your initial request using the email template")

    guidance = Guidance(
        recommendations=tuple(recommendations),
        warnings=tuple(warnings),
        opportunities=tuple(opportunities),
        next_best_actions=tuple(actions),
    )
    logger.debug(
        "guidance_built",
        extra={"context": {"warnings": len(warnings), "opportunities": len(opportunities), "actions": len(actions)}},
    )
    return guidance
