# tests/test_scoring.py

from hypothesis import given, strategies as st

from rentwise.analysis.scoring import (
    dominant_factor,
    leverage_score,
    leverage_tier,
    market_position,
    negotiation_room_pct,
    score,
    select_strategy,
)
from rentwise.domain.market import MarketEstimate
from rentwise.domain.situation import (
    MarketAttributes,
    SituationProfile,
    TenantAttributes,
    TimingAttributes,
)
from rentwise.domain.strategy import LeverageFactors, LeverageScore, NegotiationStrategy

S = NegotiationStrategy


profiles = st.builds(
    SituationProfile,
    tenant=st.builds(
        TenantAttributes,
        budget_flexibility=st.sampled_from(["tight", "moderate", "flexible"]),
        employment_stability=st.sampled_from(["stable", "variable", "unstable"]),
        tenant_history=st.sampled_from(["first-time", "experienced", "veteran"]),
        landlord_relationship=st.sampled_from(["new", "positive", "neutral", "strained"]),
        urgency=st.sampled_from(["flexible", "moderate", "urgent"]),
        alternative_options=st.integers(min_value=0, max_value=10),
        moving_flexibility=st.sampled_from(["committed-to-stay", "willing-to-move", "eager-to-move"]),
        preferred_tone=st.none() | st.sampled_from(["direct", "diplomatic", "collaborative", "assertive"]),
    ),
    market=st.builds(
        MarketAttributes,
        vacancy_rate=st.floats(min_value=0.0, max_value=30.0),
        rent_trend=st.sampled_from(["increasing", "stable", "decreasing"]),
        seasonal_factor=st.sampled_from(["peak", "normal", "slow"]),
        market_power_balance=st.sampled_from(["landlord-favored", "balanced", "tenant-favored"]),
    ),
    timing=st.builds(
        TimingAttributes,
        lease_status=st.sampled_from(["pre-application", "application-pending", "active-lease", "renewal-period"]),
        days_until_decision=st.integers(min_value=0, max_value=365),
        competing_offers=st.booleans(),
    ),
)


def _strong_profile() -> SituationProfile:
    return SituationProfile(
        tenant=TenantAttributes(
            budget_flexibility="flexible",
            landlord_relationship="positive",
            tenant_history="veteran",
            urgency="flexible",
            alternative_options=3,
            moving_flexibility="eager-to-move",
        ),
        market=MarketAttributes(
            vacancy_rate=9.0,
            rent_trend="decreasing",
            seasonal_factor="slow",
            market_power_balance="tenant-favored",
        ),
        timing=TimingAttributes(lease_status="renewal-period", days_until_decision=90, competing_offers=True),
    )


def _weak_profile() -> SituationProfile:
    return SituationProfile(
        tenant=TenantAttributes(
            budget_flexibility="tight",
            employment_stability="unstable",
            landlord_relationship="strained",
            tenant_history="first-time",
            urgency="urgent",
            alternative_options=0,
            moving_flexibility="committed-to-stay",
        ),
        market=MarketAttributes(
            vacancy_rate=1.0,
            rent_trend="increasing",
            seasonal_factor="peak",
            market_power_balance="landlord-favored",
        ),
        timing=TimingAttributes(lease_status="pre-application", days_until_decision=3),
    )


@given(profile=profiles, percentile=st.none() | st.floats(min_value=0.0, max_value=100.0))
def test_leverage_total_is_mean_of_factors(profile, percentile):
    lev = leverage_score(profile, percentile)
    values = lev.factors.as_dict().values()

    assert 0.0 <= lev.total <= 10.0
    assert abs(lev.total - sum(values) / 4) <= 0.05 + 1e-9
    for v in values:
        assert 0.0 <= v <= 10.0


@given(profile=profiles)
def test_score_is_deterministic_and_bounded(profile):
    market = MarketEstimate.no_data("Anywhere")
    a = score(profile, market, current_rent=1500.0)
    b = score(profile, market, current_rent=1500.0)

    assert a == b
    assert 5 <= a.success.overall <= 95
    assert a.success.confidence_interval.min <= a.success.overall <= a.success.confidence_interval.max
    assert a.market_position == "unknown"


@given(profile=profiles)
def test_strained_relationship_never_gets_assertive_strategy(profile):
    strained = profile.model_copy(
        update={"tenant": profile.tenant.model_copy(update={"landlord_relationship": "strained", "preferred_tone": None})}
    )
    choice = select_strategy(leverage_score(strained), strained)
    assert choice.strategy not in (S.ASSERTIVE_COLLABORATIVE, S.LEVERAGE_FOCUSED)


def test_strong_profile_has_high_leverage():
    lev = leverage_score(_strong_profile(), percentile=95.0)
    assert leverage_tier(lev.total) == "high"
    assert "Good landlord relationship" in lev.strengths
    assert lev.weaknesses == ()


def test_weak_profile_has_low_leverage_and_soft_strategy():
    profile = _weak_profile()
    lev = leverage_score(profile, percentile=20.0)
    assert leverage_tier(lev.total) == "low"
    assert "Strained or untested relationship" in lev.weaknesses
    assert dominant_factor(lev.factors) == "balanced"

    choice = select_strategy(lev, profile)
    assert choice.strategy == S.COLLABORATIVE_APPROACH
    assert choice.alignment == 0.8


def test_missing_market_data_renormalizes_market_factor():
    profile = SituationProfile()
    without = leverage_score(profile, None).factors.market
    # defaults: vacancy 5% -> 5, stable -> 5, balanced -> 5
    assert without == 5.0
    assert leverage_score(profile, 90.0).factors.market > without


def test_market_position_thresholds():
    assert market_position(None) == "unknown"
    assert market_position(90.0) == "significantly-above"
    assert market_position(70.0) == "above"
    assert market_position(50.0) == "at"
    assert market_position(20.0) == "below"


def test_dominant_factor_balanced_when_close():
    assert dominant_factor(LeverageFactors(market=6.0, financial=5.5, relationship=5.0, timing=5.0)) == "balanced"
    assert dominant_factor(LeverageFactors(market=8.0, financial=5.0, relationship=5.0, timing=5.0)) == "market"


def test_tone_preference_matching_leverage_pick_is_fully_aligned():
    profile = _strong_profile()
    lev = leverage_score(profile, 95.0)
    base = select_strategy(lev, profile)

    tone_for = {
        S.LEVERAGE_FOCUSED: "assertive",
        S.ASSERTIVE_COLLABORATIVE: "direct",
        S.RELATIONSHIP_BUILDING: "diplomatic",
        S.COLLABORATIVE_APPROACH: "collaborative",
    }
    tone = tone_for[base.leverage_strategy]
    toned = profile.model_copy(update={"tenant": profile.tenant.model_copy(update={"preferred_tone": tone})})
    choice = select_strategy(lev, toned)

    assert base.alignment == 0.8
    assert choice.alignment == 1.0
    assert choice.strategy == base.leverage_strategy


def test_negotiation_room_scales_with_position_and_leverage():
    assert negotiation_room_pct("significantly-above", 10.0) == 15
    assert negotiation_room_pct("below", 5.0) == 1
    assert negotiation_room_pct("unknown", 6.0) == 3


def test_score_places_rent_in_market(buffalo_market):
    result = score(SituationProfile(), buffalo_market, current_rent=1300.0)
    assert result.market_percentile == 90.0
    assert result.market_position == "significantly-above"
    assert result.negotiation_room_pct > 0


def test_aggressive_risk_tolerance_presses_strong_leverage():
    profile = _strong_profile()
    profile = profile.model_copy(update={"tenant": profile.tenant.model_copy(update={"risk_tolerance": "aggressive"})})
    lev = leverage_score(profile, 95.0)
    assert lev.total >= 6

    choice = select_strategy(lev, profile)
    assert choice.strategy == S.LEVERAGE_FOCUSED
    assert "aggressive risk tolerance" in choice.reasoning


def test_aggressive_risk_tolerance_needs_leverage():
    lev = LeverageScore(total=5.0, factors=LeverageFactors(market=5.0, financial=5.0, relationship=5.0, timing=5.0))
    profile = SituationProfile(tenant=TenantAttributes(risk_tolerance="aggressive"))
    assert select_strategy(lev, profile).strategy == S.COLLABORATIVE_APPROACH


def test_conservative_risk_tolerance_avoids_assertive_strategies():
    profile = _strong_profile()
    profile = profile.model_copy(update={"tenant": profile.tenant.model_copy(update={"risk_tolerance": "conservative"})})
    choice = select_strategy(leverage_score(profile, 95.0), profile)
    assert choice.strategy not in (S.ASSERTIVE_COLLABORATIVE, S.LEVERAGE_FOCUSED)


def test_stated_tone_outranks_risk_tolerance():
    profile = _strong_profile()
    profile = profile.model_copy(
        update={"tenant": profile.tenant.model_copy(update={"risk_tolerance": "aggressive", "preferred_tone": "collaborative"})}
    )
    choice = select_strategy(leverage_score(profile, 95.0), profile)
    assert choice.strategy == S.COLLABORATIVE_APPROACH
