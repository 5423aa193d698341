# src/rentwise/domain/strategy.py
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FactorName = Literal["market", "financial", "relationship", "timing"]
MarketPosition = Literal["below", "at", "above", "significantly-above", "unknown"]


class NegotiationStrategy(str, Enum):
    ASSERTIVE_COLLABORATIVE = "assertive_collaborative"
    STRATEGIC_PATIENCE = "strategic_patience"
    RELATIONSHIP_BUILDING = "relationship_building"
    COLLABORATIVE_APPROACH = "collaborative_approach"
    LEVERAGE_FOCUSED = "leverage_focused"


class LeverageFactors(BaseModel):
    model_config = ConfigDict(frozen=True)

    market: float = Field(ge=0.0, le=10.0)
    financial: float = Field(ge=0.0, le=10.0)
    relationship: float = Field(ge=0.0, le=10.0)
    timing: float = Field(ge=0.0, le=10.0)

    def as_dict(self) -> dict[str, float]:
        return {
            "market": self.market,
            "financial": self.financial,
            "relationship": self.relationship,
            "timing": self.timing,
        }


class LeverageScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float = Field(ge=0.0, le=10.0)
    factors: LeverageFactors
    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()


class StrategyChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: NegotiationStrategy
    name: str
    description: str
    reasoning: str
    alignment: float = Field(ge=0.0, le=1.0)
    leverage_strategy: NegotiationStrategy
    tone_strategy: NegotiationStrategy | None = None


class SuccessBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    market_conditions: int = Field(ge=0, le=100)
    relationship_strength: int = Field(ge=0, le=100)
    timing_optimality: int = Field(ge=0, le=100)
    strategy_alignment: int = Field(ge=0, le=100)


class ConfidenceInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int = Field(ge=0, le=100)
    max: int = Field(ge=0, le=100)


class SuccessEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: int = Field(ge=0, le=100)
    breakdown: SuccessBreakdown
    confidence_interval: ConfidenceInterval


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    leverage: LeverageScore
    strategy: StrategyChoice
    success: SuccessEstimate
    market_position: MarketPosition = "unknown"
    market_percentile: float | None = None
    negotiation_room_pct: int = 0
