# src/rentwise/domain/facts.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

Money = float

LocationSource = Literal["explicit", "gazetteer", "phrase"]
LandlordType = Literal["individual", "small-company", "corporate", "property-manager"]
Tone = Literal["direct", "diplomatic", "collaborative", "assertive"]


class LocationRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    state: str | None = None
    source: LocationSource = "explicit"

    @property
    def label(self) -> str:
        if self.state:
            return f"{self.city}, {self.state}"
        return self.city

    def __str__(self) -> str:
        return self.label


class ExtractedFacts(BaseModel):
    """
    Facts pulled out of a single user message.

    Every field is optional: a missing fact is None, never an error.
    """
    model_config = ConfigDict(frozen=True)

    current_rent: Money | None = None
    target_rent: Money | None = None
    reduction_amount: Money | None = None
    location: LocationRef | None = None

    # intent signals
    landlord_type: LandlordType | None = None
    preferred_tone: Tone | None = None

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())

    def merged_over(self, previous: ExtractedFacts | None) -> ExtractedFacts:
        """
        Fill fields this extraction left empty from an earlier one.

        Facts present here always win; nothing present is overwritten.
        """
        if previous is None:
            return self
        mine = self.model_dump()
        theirs = previous.model_dump()
        merged = {k: (mine[k] if mine[k] is not None else theirs.get(k)) for k in mine}
        return ExtractedFacts(**merged)


class Completeness(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_rent: bool = False
    has_target: bool = False
    has_location: bool = False

    @property
    def ready_for_plan(self) -> bool:
        # a target can be suggested from market data; rent and location cannot
        return self.has_rent and self.has_location

    @property
    def complete(self) -> bool:
        return self.has_rent and self.has_target and self.has_location


class TriggerDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_trigger: bool
    matched_signals: frozenset[str] = frozenset()
    completeness: Completeness = Completeness()
    score: float = 0.0
    signal_table_version: str = ""

    @property
    def missing_fields(self) -> list[str]:
        out: list[str] = []
        if not self.completeness.has_rent:
            out.append("current_rent")
        if not self.completeness.has_location:
            out.append("location")
        if not self.completeness.has_target:
            out.append("target_rent")
        return out
