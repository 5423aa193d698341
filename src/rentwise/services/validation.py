# src/rentwise/services/validation.py

from typing import Any

from pydantic import ValidationError

from rentwise.domain.errors import InvalidRequestError
from rentwise.domain.situation import NegotiationRequest

# Core fields that are truly required to plan a negotiation
REQUIRED_CORE_FIELDS = [
    "location",
    "current_rent",
]

# numeric fields inside situation_profile that callers send as strings
_PROFILE_NUMERIC = {
    ("market", "vacancy_rate"),
    ("tenant", "alternative_options"),
    ("timing", "days_until_decision"),
}


def _to_num(val: Any, field_name: str) -> float:
    """
    Coerce values like:
      - 1300
      - "1300"
      - "$1,300"
      - "1,300.00"
      - "7%"
    into float.
    """
    if val is None:
        raise InvalidRequestError(f"Missing required numeric field: {field_name}")
    if isinstance(val, bool):
        raise InvalidRequestError(f"Invalid type for {field_name}: bool")
    if isinstance(val, (int, float)):
        return float(val)
    if isinstance(val, str):
        s = val.strip().replace("$", "").replace(",", "")
        if s.endswith("%"):
            # strip '%' but leave normalization decision to caller
            s = s[:-1]
        if s.lower().endswith("/month"):
            s = s[: -len("/month")]
        try:
            return float(s)
        except ValueError:
            raise InvalidRequestError(f"Invalid number for {field_name}: {val!r}") from None
    raise InvalidRequestError(f"Invalid type for {field_name}: {type(val).__name__}")


def _to_num_optional(val: Any, field_name: str) -> float | None:
    if val is None:
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return _to_num(val, field_name)


def _location_label(raw: Any) -> str:
    # accept "Buffalo, NY" or {"city": "Buffalo", "state": "NY"}
    if isinstance(raw, dict):
        city = str(raw.get("city") or "").strip()
        state = str(raw.get("state") or "").strip()
        if not city:
            raise InvalidRequestError("location.city is required")
        return f"{city}, {state.upper()}" if state else city
    if isinstance(raw, str):
        return raw.strip()
    raise InvalidRequestError("location must be a string or {city, state}")


def _normalize_profile(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise InvalidRequestError("situation_profile must be an object")
    profile = {k: dict(v) if isinstance(v, dict) else v for k, v in raw.items()}
    for section, field in _PROFILE_NUMERIC:
        block = profile.get(section)
        if isinstance(block, dict) and field in block and block[field] is not None:
            num = _to_num(block[field], f"situation_profile.{section}.{field}")
            block[field] = int(num) if field != "vacancy_rate" else num
    return profile


def validate_request_payload(raw: dict[str, Any]) -> NegotiationRequest:
    """
    Normalize an incoming plan request into a NegotiationRequest.

    Responsibilities:
      - Ensure location and current rent exist.
      - Coerce money/percent strings ("$1,300", "7%").
      - Derive target_rent from reduction_amount when only a reduction is given.
      - Reject target >= current up front with a readable message.

    Raises InvalidRequestError (a ValueError) for anything it cannot fix.
    """
    if not isinstance(raw, dict):
        raise InvalidRequestError("request body must be an object")

    # 1. Check core required fields
    for field in REQUIRED_CORE_FIELDS:
        if raw.get(field) in (None, ""):
            raise InvalidRequestError(f"Missing required field: {field}")

    current = _to_num(raw["current_rent"], "current_rent")
    if current <= 0:
        raise InvalidRequestError("current_rent must be positive")

    # 2. Target: explicit value wins over a reduction amount
    target = _to_num_optional(raw.get("target_rent"), "target_rent")
    reduction = _to_num_optional(raw.get("reduction_amount"), "reduction_amount")
    if target is None and reduction is not None:
        if reduction <= 0:
            raise InvalidRequestError("reduction_amount must be positive")
        target = current - reduction
    if target is not None and target <= 0:
        raise InvalidRequestError("target_rent must be positive")
    if target is not None and target >= current:
        raise InvalidRequestError(
            f"target_rent ({target:,.0f}) must be lower than current_rent ({current:,.0f})"
        )

    cleaned: dict[str, Any] = {
        "location": _location_label(raw["location"]),
        "current_rent": current,
        "target_rent": target,
        "situation_profile": _normalize_profile(raw.get("situation_profile")),
    }
    if raw.get("property_spec") is not None:
        cleaned["property_spec"] = raw["property_spec"]

    try:
        return NegotiationRequest.model_validate(cleaned)
    except ValidationError as e:
        raise InvalidRequestError(str(e)) from e
