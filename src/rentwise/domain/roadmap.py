# src/rentwise/domain/roadmap.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from rentwise.domain.facts import Money
from rentwise.domain.market import RentRange
from rentwise.domain.strategy import LeverageScore, NegotiationStrategy, StrategyChoice, SuccessEstimate

PhaseKey = Literal["research", "evidence", "initial_ask", "counter_handling", "close"]
PhaseStatus = Literal["pending", "active", "completed"]
StepStatus = Literal["pending", "active", "completed", "skipped"]
Difficulty = Literal["easy", "medium", "hard"]
Impact = Literal["minor", "moderate", "major"]
ActionType = Literal["research", "document", "analyze", "communicate", "wait", "decide"]
Priority = Literal["low", "medium", "high"]

_DONE: frozenset[str] = frozenset({"completed", "skipped"})


class ActionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ActionType
    description: str
    automated: bool = False
    priority: Priority = "medium"


class Step(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    difficulty: Difficulty
    status: StepStatus = "pending"
    estimated_time: str = ""
    action_items: tuple[ActionItem, ...] = ()
    success_metrics: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    tips: tuple[str, ...] = ()
    templates: dict[str, str] = {}


class Phase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    key: PhaseKey
    name: str
    duration: str
    description: str
    status: PhaseStatus = "pending"
    steps: tuple[Step, ...] = ()


class AdaptationTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    condition: str
    suggested_adjustment: str
    impact: Impact
    next_strategy: NegotiationStrategy | None = None


class Guidance(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommendations: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    opportunities: tuple[str, ...] = ()
    next_best_actions: tuple[str, ...] = ()


class MarketSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: str
    data_available: bool
    current_rent: Money | None = None
    target_rent: Money | None = None
    target_reduction: Money | None = None
    suggested_target: Money | None = None
    median: Money | None = None
    range: RentRange | None = None
    percentile: float | None = None
    confidence: float = 0.0
    market_position: str = "unknown"
    negotiation_room_pct: int = 0


class RoadmapPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: StrategyChoice
    leverage: LeverageScore
    success: SuccessEstimate | None = None
    estimated_duration: str
    phases: tuple[Phase, ...]
    adaptation_triggers: tuple[AdaptationTrigger, ...] = ()
    guidance: Guidance = Guidance()
    market_summary: MarketSummary

    def step(self, step_id: int) -> Step:
        for phase in self.phases:
            for s in phase.steps:
                if s.id == step_id:
                    return s
        raise KeyError(f"unknown step id {step_id}")

    def advance_step(self, step_id: int, status: StepStatus) -> RoadmapPlan:
        """
        Return a copy of the plan with one step moved to `status`.

        The plan itself is never mutated. When every step of a phase is done
        the phase completes and the next phase (and its first open step)
        becomes active.
        """
        self.step(step_id)

        phases = list(self.phases)
        for i, phase in enumerate(phases):
            if not any(s.id == step_id for s in phase.steps):
                continue

            steps = [s.model_copy(update={"status": status}) if s.id == step_id else s for s in phase.steps]
            if status in _DONE:
                # activate the next open step of this phase
                for j, s in enumerate(steps):
                    if s.status == "pending":
                        steps[j] = s.model_copy(update={"status": "active"})
                        break

            phase_done = all(s.status in _DONE for s in steps)
            phases[i] = phase.model_copy(
                update={"steps": tuple(steps), "status": "completed" if phase_done else "active"}
            )

            if phase_done and i + 1 < len(phases):
                nxt = phases[i + 1]
                nxt_steps = list(nxt.steps)
                for j, s in enumerate(nxt_steps):
                    if s.status == "pending":
                        nxt_steps[j] = s.model_copy(update={"status": "active"})
                        break
                phases[i + 1] = nxt.model_copy(update={"status": "active", "steps": tuple(nxt_steps)})
            break

        return self.model_copy(update={"phases": tuple(phases)})
