# tests/test_validation.py
import pytest

from rentwise.domain.errors import InvalidRequestError
from rentwise.services.validation import validate_request_payload


def test_money_strings_are_coerced():
    req = validate_request_payload({"location": " Buffalo, NY ", "current_rent": "$1,300.00", "target_rent": "1,150"})
    assert req.location == "Buffalo, NY"
    assert req.current_rent == 1300.0
    assert req.target_rent == 1150.0
    assert req.target_reduction == 150.0


def test_reduction_amount_derives_target():
    req = validate_request_payload({"location": "Austin", "current_rent": 2000, "reduction_amount": "$250"})
    assert req.target_rent == 1750.0


def test_explicit_target_wins_over_reduction():
    req = validate_request_payload(
        {"location": "Austin", "current_rent": 2000, "target_rent": 1900, "reduction_amount": 500}
    )
    assert req.target_rent == 1900.0


def test_percent_vacancy_is_kept_as_percent():
    req = validate_request_payload(
        {
            "location": "Austin",
            "current_rent": 2000,
            "situation_profile": {"market": {"vacancy_rate": "7.5%"}, "timing": {"days_until_decision": "21"}},
        }
    )
    assert req.situation_profile.market.vacancy_rate == 7.5
    assert req.situation_profile.timing.days_until_decision == 21


def test_location_object_is_accepted():
    req = validate_request_payload({"location": {"city": "Denver", "state": "co"}, "current_rent": 1800})
    assert req.location == "Denver, CO"


@pytest.mark.parametrize(
    "payload,fragment",
    [
        ({"current_rent": 1300}, "Missing required field: location"),
        ({"location": "Austin"}, "Missing required field: current_rent"),
        ({"location": "Austin", "current_rent": "lots"}, "Invalid number for current_rent"),
        ({"location": "Austin", "current_rent": True}, "Invalid type for current_rent"),
        ({"location": "Austin", "current_rent": -5}, "current_rent must be positive"),
        ({"location": "Austin", "current_rent": 1300, "target_rent": 1300}, "must be lower than current_rent"),
        ({"location": "Austin", "current_rent": 1300, "reduction_amount": 0}, "reduction_amount must be positive"),
        ({"location": {"state": "TX"}, "current_rent": 1300}, "location.city is required"),
        ({"location": "Austin", "current_rent": 1300, "situation_profile": "nice"}, "situation_profile must be an object"),
    ],
)
def test_bad_payloads_raise_readable_errors(payload, fragment):
    with pytest.raises(InvalidRequestError) as exc:
        validate_request_payload(payload)
    assert fragment in str(exc.value)


def test_pydantic_errors_are_wrapped():
    with pytest.raises(InvalidRequestError):
        validate_request_payload({"location": "X", "current_rent": 1300})


def test_invalid_request_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_request_payload({})
