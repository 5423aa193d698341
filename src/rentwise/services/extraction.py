# src/rentwise/services/extraction.py
"""
Rent / target / reduction / location extraction from a single chat message.

Everything here is a pure function of the text. Ambiguity is resolved by
anchor specificity and distance, never raised: a fact that cannot be pinned
down is simply left as None.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from rentwise.domain.facts import ExtractedFacts, LandlordType, LocationRef, Tone
from rentwise.domain.places import MAJOR_CITIES, US_STATES

FactName = Literal["current_rent", "target_rent", "reduction_amount"]
Direction = Literal["right", "left"]

# max characters between an anchor and a $-amount it can claim
ANCHOR_WINDOW = 30
# current/target below this are treated as noise ("$5 off", "$50 deposit")
MIN_RENT = 100.0


# ----------------------------
# Amount tokens
# ----------------------------

@dataclass(frozen=True)
class AmountToken:
    value: float
    start: int
    end: int
    explicit: bool  # written with "$"


_AMOUNT_RE = re.compile(
    r"(?:(?P<dollar>\$)\s?|(?<![\w.,$]))"
    r"(?P<num>\d{1,3}(?:,\d{3})+|\d+)"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<k>\s?[kK](?![A-Za-z]))?"
)


def parse_amount(raw: str) -> float | None:
    """
    "$1,300" -> 1300.0, "1300.00" -> 1300.0, "$1.3k" -> 1300.0.
    Returns None for anything that is not a single amount.
    """
    if not isinstance(raw, str):
        return None
    m = _AMOUNT_RE.fullmatch(raw.strip())
    if not m:
        return None
    return _token_value(m)


def _token_value(m: re.Match) -> float:
    digits = m.group("num").replace(",", "")
    value = float(f"{digits}.{m.group('frac')}" if m.group("frac") else digits)
    if m.group("k"):
        value *= 1000.0
    return round(value, 2)


def find_amounts(text: str) -> List[AmountToken]:
    """
    Every amount-looking token. Bare numbers are kept only when they could
    be rents (3-5 digits, or a k suffix); whether they count is decided by
    anchor adjacency later.
    """
    out: List[AmountToken] = []
    for m in _AMOUNT_RE.finditer(text):
        explicit = m.group("dollar") is not None
        digits = m.group("num").replace(",", "")
        if not explicit and not m.group("k") and not (3 <= len(digits) <= 5):
            continue
        value = _token_value(m)
        if value <= 0:
            continue
        out.append(AmountToken(value=value, start=m.start(), end=m.end(), explicit=explicit))
    return out


# ----------------------------
# Anchors
# ----------------------------

@dataclass(frozen=True)
class Anchor:
    fact: FactName
    pattern: re.Pattern
    direction: Direction  # "right": amount follows the anchor
    specificity: int  # lower wins


def _rx(p: str) -> re.Pattern:
    return re.compile(p, re.IGNORECASE)


_FILLER = r"(?:\s+(?:about|around|roughly|approximately|only|just|like))?"

ANCHORS: Tuple[Anchor, ...] = (
    # target
    Anchor("target_rent", _rx(r"\b(?:bring|get)\s+it\s+down\s+to" + _FILLER), "right", 1),
    Anchor("target_rent", _rx(r"\b(?:reduce|lower|decrease|drop)\s+(?:it\s+|the\s+rent\s+|my\s+rent\s+)?to" + _FILLER), "right", 1),
    Anchor("target_rent", _rx(r"\bdown\s+to" + _FILLER), "right", 1),
    Anchor("target_rent", _rx(r"\bwant\s+it\s+at" + _FILLER), "right", 1),
    Anchor("target_rent", _rx(r"\btarget(?:\s+rent)?\s+(?:of|is)" + _FILLER), "right", 1),
    Anchor("target_rent", _rx(r"\bhoping\s+for" + _FILLER), "right", 1),
    # reduction
    Anchor(
        "reduction_amount",
        _rx(r"\b(?:reduc\w*|lower\w*|cut\w*|drop\w*|down|decreas\w*|discount\w*)\b[^$\d.!?]{0,40}?\bby" + _FILLER),
        "right",
        1,
    ),
    Anchor("reduction_amount", _rx(r"\b(?:less|cheaper)\b"), "left", 2),
    # current
    Anchor("current_rent", _rx(r"\bcurrent(?:\s+monthly)?\s+rent(?:\s+(?:is|of))?" + _FILLER), "right", 1),
    Anchor("current_rent", _rx(r"\bcurrently\s+pay(?:ing)?\b" + _FILLER), "right", 1),
    Anchor("current_rent", _rx(r"\bpay(?:ing)?\b" + _FILLER), "right", 2),
    Anchor("current_rent", _rx(r"\brent\s+(?:is|of)" + _FILLER), "right", 2),
    Anchor("current_rent", _rx(r"(?:/\s?mo(?:nth)?\b|\bper\s+month\b|\ba\s+month\b|\bmonthly\b|\beach\s+month\b)"), "left", 3),
    Anchor("current_rent", _rx(r"\brent\b"), "left", 4),
)


@dataclass(frozen=True)
class _Candidate:
    fact: FactName
    specificity: int
    distance: int
    anchor_start: int
    token: AmountToken

    @property
    def key(self) -> Tuple[int, int, int, int]:
        return (self.specificity, self.distance, self.anchor_start, self.token.start)


def _gap_ok(text: str, a: int, b: int, token: AmountToken) -> bool:
    if b < a or b - a > ANCHOR_WINDOW:
        return False
    gap = text[a:b]
    if any(ch in gap for ch in ".!?;"):
        return False
    # bare numbers must sit right next to their anchor
    return token.explicit or gap.strip() == ""


def _candidates(text: str, tokens: List[AmountToken]) -> List[_Candidate]:
    out: List[_Candidate] = []
    for anchor in ANCHORS:
        for m in anchor.pattern.finditer(text):
            for tok in tokens:
                if anchor.direction == "right":
                    if not _gap_ok(text, m.end(), tok.start, tok):
                        continue
                    dist = tok.start - m.end()
                else:
                    if not _gap_ok(text, tok.end, m.start(), tok):
                        continue
                    dist = m.start() - tok.end
                out.append(_Candidate(anchor.fact, anchor.specificity, dist, m.start(), tok))
    return out


def assign_amounts(text: str) -> Dict[str, float]:
    """
    Greedy global assignment of amounts to facts.

    Candidates are ranked by (specificity, distance); each token and each
    fact is used once. The ranking does not depend on which phrase comes
    first in the message.
    """
    tokens = find_amounts(text)
    if not tokens:
        return {}

    taken_tokens: set[int] = set()
    facts: Dict[str, float] = {}
    for cand in sorted(_candidates(text, tokens), key=lambda c: c.key):
        if cand.fact in facts or cand.token.start in taken_tokens:
            continue
        if cand.fact != "reduction_amount" and cand.token.value < MIN_RENT:
            continue
        facts[cand.fact] = cand.token.value
        taken_tokens.add(cand.token.start)
    return facts


# ----------------------------
# Location rules (first match wins)
# ----------------------------

_LEADING_NOISE = {
    "hi", "hello", "hey", "my", "i", "im", "i'm", "in", "at", "near", "around", "the", "we", "our",
    "so", "and", "but", "live", "rent", "apartment", "thanks", "ok", "okay", "yes", "no", "well", "sure",
}

_STATE_NAMES = {name.lower(): code for code, name in US_STATES.items()}

_CITY_WORD = r"[A-Z][a-zA-Z.'\-]*"
_EXPLICIT_RE = re.compile(
    rf"\b(?P<city>{_CITY_WORD}(?:\s+{_CITY_WORD}){{0,3}})\s*,\s*"
    r"(?P<state>[A-Z]{2}\b|" + "|".join(sorted((re.escape(n) for n in US_STATES.values()), key=len, reverse=True)) + r")"
)

_GAZETTEER_RE = re.compile(
    r"\b(?P<city>" + "|".join(re.escape(k) for k in sorted(MAJOR_CITIES, key=len, reverse=True)) + r")(?![\w])",
    re.IGNORECASE,
)

_PHRASE_RE = re.compile(rf"\b(?i:in|at|near|around)\s+(?P<place>{_CITY_WORD}(?:\s+{_CITY_WORD}){{0,2}})")

_PHRASE_STOP = {
    "january", "february", "march", "april", "may", "june", "july", "august", "september",
    "october", "november", "december", "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep",
    "sept", "oct", "nov", "dec", "monday", "tuesday", "wednesday", "thursday", "friday",
    "saturday", "sunday", "i", "me", "my", "you", "your", "he", "she", "it", "we", "they",
    "them", "this", "that", "the", "least", "first", "all", "some", "any", "what", "how",
}


def _strip_leading_noise(city: str) -> str:
    words = city.split()
    while len(words) > 1 and words[0].lower().strip(".,") in _LEADING_NOISE:
        words = words[1:]
    return " ".join(words)


def _explicit_location(text: str) -> Optional[LocationRef]:
    for m in _EXPLICIT_RE.finditer(text):
        raw_state = m.group("state")
        code = raw_state if raw_state in US_STATES else _STATE_NAMES.get(raw_state.lower())
        if not code:
            continue
        city = _strip_leading_noise(m.group("city"))
        if city.lower() in _LEADING_NOISE:
            continue
        return LocationRef(city=city, state=code, source="explicit")
    return None


def _gazetteer_location(text: str) -> Optional[LocationRef]:
    m = _GAZETTEER_RE.search(text)
    if not m:
        return None
    city, state = MAJOR_CITIES[m.group("city").lower()]
    return LocationRef(city=city, state=state, source="gazetteer")


def _phrase_location(text: str) -> Optional[LocationRef]:
    for m in _PHRASE_RE.finditer(text):
        words = m.group("place").split()
        if words[0].lower().strip(".,") in _PHRASE_STOP:
            continue
        city = " ".join(words).rstrip(".,")
        if len(city) < 2:
            continue
        return LocationRef(city=city, state=None, source="phrase")
    return None


LOCATION_RULES: Tuple[Tuple[Callable[[str], bool], Callable[[str], Optional[LocationRef]]], ...] = (
    (lambda t: "," in t, _explicit_location),
    (lambda t: True, _gazetteer_location),
    (lambda t: any(p in t.lower() for p in ("in ", "at ", "near ", "around ")), _phrase_location),
)


def extract_location(text: str) -> Optional[LocationRef]:
    for predicate, extractor in LOCATION_RULES:
        if predicate(text):
            loc = extractor(text)
            if loc is not None:
                return loc
    return None


# ----------------------------
# Intent signals
# ----------------------------

LANDLORD_RULES: Tuple[Tuple[re.Pattern, LandlordType], ...] = (
    (_rx(r"\bproperty\s+manage(?:ment|r)\b|\bmanagement\s+company\b"), "property-manager"),
    (_rx(r"\bcorporate\b|\bbig\s+company\b|\breit\b"), "corporate"),
    (_rx(r"\bsmall\s+(?:company|business|landlord\s+company)\b"), "small-company"),
    (_rx(r"\bindividual\b|\bowner\b|\bprivate\s+landlord\b"), "individual"),
)

TONE_RULES: Tuple[Tuple[re.Pattern, Tone], ...] = (
    (_rx(r"\bpolite\b|\bdiplomatic\b"), "diplomatic"),
    (_rx(r"\bdirect\b|\bstraightforward\b"), "direct"),
    (_rx(r"\bassertive\b|\bfirm\b"), "assertive"),
    (_rx(r"\bcollaborative\b|\bwin[-\s]win\b|\bwork\s+together\b"), "collaborative"),
)


def _first_signal(text: str, rules: Tuple[Tuple[re.Pattern, Any], ...]) -> Any:
    for pattern, value in rules:
        if pattern.search(text):
            return value
    return None


# ----------------------------
# Public entry point
# ----------------------------

def extract(text: Any) -> ExtractedFacts:
    if not isinstance(text, str) or not text.strip():
        return ExtractedFacts()

    amounts = assign_amounts(text)
    current = amounts.get("current_rent")
    target = amounts.get("target_rent")
    reduction = amounts.get("reduction_amount")

    # an explicit target wins over one computed from "by $N"
    if target is None and reduction is not None and current is not None and reduction < current:
        target = round(current - reduction, 2)

    return ExtractedFacts(
        current_rent=current,
        target_rent=target,
        reduction_amount=reduction,
        location=extract_location(text),
        landlord_type=_first_signal(text, LANDLORD_RULES),
        preferred_tone=_first_signal(text, TONE_RULES),
    )
