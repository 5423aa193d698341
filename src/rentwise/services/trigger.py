# src/rentwise/services/trigger.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from rentwise.adapters.logging_utils import get_logger
from rentwise.domain.facts import Completeness, ExtractedFacts, TriggerDecision
from rentwise.services.extraction import extract, find_amounts

logger = get_logger(__name__)

SIGNAL_TABLE_VERSION = "2024.1"

# signal -> (category, weight). Read-only; bump the version when editing.
SIGNAL_TABLE: Mapping[str, Tuple[str, float]] = MappingProxyType(
    {
        **{
            f"keyword:{kw}": ("direct", 1.0)
            for kw in (
                "negotiate rent",
                "negotiation strategy",
                "how to negotiate",
                "help me negotiate",
                "lower my rent",
                "rent reduction",
                "negotiate with landlord",
                "negotiate with my landlord",
                "ask for lower rent",
                "reduce rent",
                "reduce my rent",
                "rent negotiation",
                "negotiation help",
                "negotiate lease",
                "negotiate my lease",
                "rental negotiation",
                "negotiate my rent",
                "lower rent",
            )
        },
        "negotiate_pattern": ("pattern", 0.9),
        "rent_adjustment": ("pattern", 0.8),
        **{
            f"affordability:{kw}": ("affordability", 0.6)
            for kw in (
                "too expensive",
                "overpriced",
                "can't afford",
                "cannot afford",
                "budget tight",
                "budget is tight",
                "rent too high",
                "rent is too high",
                "above market",
                "similar properties cheaper",
                "rent increase",
            )
        },
    }
)

_RENT_WORDS = re.compile(r"\brent\w*\b", re.IGNORECASE)
_DIRECTION_WORDS = re.compile(r"\b(?:down|lower\w*|reduc\w*)\b", re.IGNORECASE)
_RENT_CONTEXT = re.compile(r"\b(?:rent\w*|current\w*|pay(?:ing)?)\b", re.IGNORECASE)
_TARGET_PHRASES = (
    "down to",
    "get it down",
    "reduce to",
    "lower to",
    "bring it down",
    "decrease to",
    "want it at",
    "like to get",
    "and i'd like",
    "hoping for",
    "reduce it to",
    "want to reduce",
)
_HOUSING_CONTEXT = re.compile(r"\b(?:rent\w*|apartment|lease|landlord)\b", re.IGNORECASE)

FOLLOW_UP_INTRO = (
    "I'd be happy to help you negotiate your rent! To give you the most personalized strategy, "
    "I need a few details:"
)
FOLLOW_UP_OUTRO = (
    "Once I have this information, I can create a detailed negotiation roadmap with real market data "
    "and personalized strategies for your specific situation."
)
FOLLOW_UP_QUESTIONS: Dict[str, str] = {
    "current_rent": "What is your current monthly rent amount?",
    "location": "What city/area is your rental property in?",
    "target_rent": "How much would you like to reduce your rent by, or what target rent amount are you hoping for?",
}


def _normalize(text: str) -> str:
    # curly apostrophes from mobile keyboards
    return text.lower().replace("’", "'")


def match_signals(text: str) -> frozenset[str]:
    """All signals present in `text`. Families are independent of each other."""
    if not isinstance(text, str) or not text.strip():
        return frozenset()
    lower = _normalize(text)
    has_dollar = any(t.explicit for t in find_amounts(text))
    signals: set[str] = set()

    for name, (category, _w) in SIGNAL_TABLE.items():
        if ":" not in name:
            continue
        _, phrase = name.split(":", 1)
        if category == "direct" and phrase in lower:
            signals.add(name)
        elif category == "affordability" and phrase in lower and _HOUSING_CONTEXT.search(lower):
            signals.add(name)

    if "negotiat" in lower and (_RENT_WORDS.search(lower) or has_dollar) and _DIRECTION_WORDS.search(lower):
        signals.add("negotiate_pattern")

    if has_dollar and _RENT_CONTEXT.search(lower) and any(p in lower for p in _TARGET_PHRASES):
        signals.add("rent_adjustment")

    return frozenset(signals)


def completeness_of(facts: ExtractedFacts) -> Completeness:
    return Completeness(
        has_rent=facts.current_rent is not None,
        has_target=facts.target_rent is not None or facts.reduction_amount is not None,
        has_location=facts.location is not None,
    )


def decide(text: str, facts: ExtractedFacts | None = None) -> TriggerDecision:
    """
    Classify `text`. `facts` may be passed when the caller already ran the
    extractor (or merged facts from earlier turns); otherwise it is run here.
    """
    signals = match_signals(text)
    if facts is None:
        facts = extract(text)

    score = round(min(1.0, sum(SIGNAL_TABLE[s][1] for s in signals)), 2)
    decision = TriggerDecision(
        should_trigger=bool(signals),
        matched_signals=signals,
        completeness=completeness_of(facts),
        score=score,
        signal_table_version=SIGNAL_TABLE_VERSION,
    )
    if decision.should_trigger:
        logger.info(
            "negotiation_trigger",
            extra={
                "context": {
                    "signals": sorted(signals),
                    "score": score,
                    "missing": decision.missing_fields,
                }
            },
        )
    return decision


def should_trigger(text: str) -> TriggerDecision:
    return decide(text)


def follow_up_questions(decision: TriggerDecision) -> List[str]:
    return [FOLLOW_UP_QUESTIONS[f] for f in decision.missing_fields]


def follow_up_message(decision: TriggerDecision) -> str | None:
    """Prompt for whatever is still missing, or None when nothing is."""
    questions = follow_up_questions(decision)
    if not questions:
        return None
    numbered = "\n".join(f"{i}. {q}" for i, q in enumerate(questions, start=1))
    return f"{FOLLOW_UP_INTRO}\n\n{numbered}\n{FOLLOW_UP_OUTRO}"
