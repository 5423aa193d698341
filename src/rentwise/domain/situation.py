# src/rentwise/domain/situation.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rentwise.domain.facts import LandlordType, Money, Tone

BudgetFlexibility = Literal["tight", "moderate", "flexible"]
EmploymentStability = Literal["stable", "variable", "unstable"]
TenantHistory = Literal["first-time", "experienced", "veteran"]
LandlordRelationship = Literal["new", "positive", "neutral", "strained"]
Urgency = Literal["flexible", "moderate", "urgent"]
MovingFlexibility = Literal["committed-to-stay", "willing-to-move", "eager-to-move"]
ConflictStyle = Literal["avoider", "compromiser", "competitor", "collaborator"]
RiskTolerance = Literal["conservative", "moderate", "aggressive"]

RentTrend = Literal["increasing", "stable", "decreasing"]
SeasonalFactor = Literal["peak", "normal", "slow"]
PowerBalance = Literal["landlord-favored", "balanced", "tenant-favored"]
PropertyCondition = Literal["excellent", "good", "fair", "needs-work"]

LeaseStatus = Literal["pre-application", "application-pending", "active-lease", "renewal-period"]


class TenantAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    budget_flexibility: BudgetFlexibility = "moderate"
    employment_stability: EmploymentStability = "stable"
    tenant_history: TenantHistory = "experienced"
    landlord_relationship: LandlordRelationship = "neutral"
    urgency: Urgency = "moderate"
    alternative_options: int = Field(default=1, ge=0, description="Other units the tenant could realistically move to")
    moving_flexibility: MovingFlexibility = "willing-to-move"
    preferred_tone: Tone | None = None
    conflict_style: ConflictStyle | None = None
    risk_tolerance: RiskTolerance = "moderate"


class MarketAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    vacancy_rate: float = Field(default=5.0, ge=0.0, le=100.0, description="Local vacancy, percent (7.5 means 7.5%)")
    rent_trend: RentTrend = "stable"
    landlord_type: LandlordType = "individual"
    seasonal_factor: SeasonalFactor = "normal"
    market_power_balance: PowerBalance = "balanced"
    property_condition: PropertyCondition = "good"

    @field_validator("vacancy_rate", mode="before")
    @classmethod
    def _percent_like(cls, v):
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        return float(v)


class TimingAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    lease_status: LeaseStatus = "active-lease"
    days_until_decision: int = Field(default=30, ge=0)
    competing_offers: bool = False


class SituationProfile(BaseModel):
    """
    Caller-supplied description of the tenant's situation.

    Nothing here is derived from free text; it is an immutable scoring input.
    """
    model_config = ConfigDict(frozen=True)

    tenant: TenantAttributes = TenantAttributes()
    market: MarketAttributes = MarketAttributes()
    timing: TimingAttributes = TimingAttributes()


class PropertySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    bedrooms: float | None = Field(default=None, ge=0)
    bathrooms: float | None = Field(default=None, ge=0)
    sqft: float | None = Field(default=None, ge=0)
    property_type: str = "apartment"
    zipcode: str | None = None


class NegotiationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    situation_profile: SituationProfile = SituationProfile()
    location: str = Field(..., min_length=2)
    current_rent: Money = Field(..., gt=0, description="Monthly rent currently paid or asked")
    target_rent: Money | None = Field(default=None, gt=0)
    property_spec: PropertySpec = PropertySpec()

    @field_validator("location")
    @classmethod
    def _strip_location(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("location must name a city or area")
        return v

    @model_validator(mode="after")
    def _target_below_current(self) -> NegotiationRequest:
        if self.target_rent is not None and self.target_rent >= self.current_rent:
            raise ValueError("target_rent must be lower than current_rent")
        return self

    @property
    def target_reduction(self) -> Money | None:
        if self.target_rent is None:
            return None
        return self.current_rent - self.target_rent
