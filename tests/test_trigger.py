# tests/test_trigger.py
import pytest

from rentwise.domain.facts import ExtractedFacts, LocationRef
from rentwise.services.trigger import (
    SIGNAL_TABLE,
    SIGNAL_TABLE_VERSION,
    decide,
    follow_up_message,
    follow_up_questions,
    match_signals,
    should_trigger,
)


def test_complete_request_triggers_with_everything_known():
    d = should_trigger("My current rent is $1,300 in Buffalo, NY and I'd like to get it down to $1,200")

    assert d.should_trigger is True
    assert "rent_adjustment" in d.matched_signals
    assert d.completeness.has_rent
    assert d.completeness.has_target
    assert d.completeness.has_location
    assert d.completeness.complete
    assert d.missing_fields == []
    assert follow_up_message(d) is None


def test_bare_request_triggers_with_nothing_known():
    d = should_trigger("help me lower my rent")

    assert d.should_trigger is True
    assert "keyword:lower my rent" in d.matched_signals
    assert not d.completeness.has_rent
    assert not d.completeness.has_target
    assert not d.completeness.has_location
    assert d.missing_fields == ["current_rent", "location", "target_rent"]


@pytest.mark.parametrize(
    "text",
    [
        "What's the weather today?",
        "Can you recommend a good pizza place?",
        "",
        "My budget is tight this month",  # affordability without housing context
    ],
)
def test_unrelated_messages_do_not_trigger(text):
    d = should_trigger(text)
    assert d.should_trigger is False
    assert d.score == 0.0


def test_negotiate_pattern_needs_direction():
    assert "negotiate_pattern" in match_signals("Could I negotiate my rent down a bit?")
    assert "negotiate_pattern" not in match_signals("I want to negotiate the move-in date")


def test_affordability_needs_housing_context():
    assert "affordability:too expensive" in match_signals("My apartment is too expensive")
    assert "affordability:too expensive" not in match_signals("That concert was too expensive")


def test_curly_apostrophe_is_normalized():
    assert "affordability:can't afford" in match_signals("I can’t afford my rent anymore")


def test_score_is_capped_at_one():
    d = should_trigger("help me negotiate rent, I want a rent reduction, how to negotiate with my landlord")
    assert len(d.matched_signals) > 1
    assert d.score == 1.0


def test_decision_carries_table_version():
    assert should_trigger("lower rent please").signal_table_version == SIGNAL_TABLE_VERSION


def test_signal_table_is_read_only():
    with pytest.raises(TypeError):
        SIGNAL_TABLE["keyword:new"] = ("direct", 1.0)  # type: ignore[index]


def test_reduction_counts_as_target_for_completeness():
    d = should_trigger("I pay $2,500 a month and want to reduce rent by $300")
    assert d.completeness.has_target
    assert d.completeness.has_rent
    assert d.missing_fields == ["location"]


def test_caller_supplied_facts_are_used():
    facts = ExtractedFacts(current_rent=1500.0, location=LocationRef(city="Denver", state="CO"))
    d = decide("help me lower my rent", facts)
    assert d.completeness.ready_for_plan
    assert d.missing_fields == ["target_rent"]


def test_follow_up_lists_only_missing_questions_in_order():
    d = should_trigger("help me lower my rent, I pay $1,400")
    questions = follow_up_questions(d)
    assert questions == [
        "What city/area is your rental property in?",
        "How much would you like to reduce your rent by, or what target rent amount are you hoping for?",
    ]
    msg = follow_up_message(d)
    assert msg is not None
    assert "1. What city/area" in msg
    assert "2. How much" in msg
