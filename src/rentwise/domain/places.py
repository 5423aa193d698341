# src/rentwise/domain/places.py
from __future__ import annotations

import re

US_STATES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "DC": "District of Columbia",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois",
    "IN": "Indiana", "IA": "Iowa", "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana",
    "ME": "Maine", "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma", "OR": "Oregon",
    "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina", "SD": "South Dakota",
    "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont", "VA": "Virginia",
    "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
    "PR": "Puerto Rico",
}

# Closed gazetteer: lowercase city name -> (canonical city, state code).
MAJOR_CITIES: dict[str, tuple[str, str]] = {
    "new york city": ("New York", "NY"),
    "new york": ("New York", "NY"),
    "nyc": ("New York", "NY"),
    "brooklyn": ("Brooklyn", "NY"),
    "los angeles": ("Los Angeles", "CA"),
    "san francisco": ("San Francisco", "CA"),
    "san diego": ("San Diego", "CA"),
    "san jose": ("San Jose", "CA"),
    "oakland": ("Oakland", "CA"),
    "sacramento": ("Sacramento", "CA"),
    "seattle": ("Seattle", "WA"),
    "portland": ("Portland", "OR"),
    "chicago": ("Chicago", "IL"),
    "houston": ("Houston", "TX"),
    "dallas": ("Dallas", "TX"),
    "austin": ("Austin", "TX"),
    "san antonio": ("San Antonio", "TX"),
    "fort worth": ("Fort Worth", "TX"),
    "phoenix": ("Phoenix", "AZ"),
    "philadelphia": ("Philadelphia", "PA"),
    "pittsburgh": ("Pittsburgh", "PA"),
    "miami": ("Miami", "FL"),
    "orlando": ("Orlando", "FL"),
    "tampa": ("Tampa", "FL"),
    "jacksonville": ("Jacksonville", "FL"),
    "atlanta": ("Atlanta", "GA"),
    "boston": ("Boston", "MA"),
    "denver": ("Denver", "CO"),
    "las vegas": ("Las Vegas", "NV"),
    "nashville": ("Nashville", "TN"),
    "charlotte": ("Charlotte", "NC"),
    "raleigh": ("Raleigh", "NC"),
    "minneapolis": ("Minneapolis", "MN"),
    "detroit": ("Detroit", "MI"),
    "columbus": ("Columbus", "OH"),
    "cleveland": ("Cleveland", "OH"),
    "indianapolis": ("Indianapolis", "IN"),
    "baltimore": ("Baltimore", "MD"),
    "washington dc": ("Washington", "DC"),
    "salt lake city": ("Salt Lake City", "UT"),
    "kansas city": ("Kansas City", "MO"),
    "st. louis": ("St. Louis", "MO"),
    "new orleans": ("New Orleans", "LA"),
    "buffalo": ("Buffalo", "NY"),
    "rochester": ("Rochester", "NY"),
    "milwaukee": ("Milwaukee", "WI"),
}

_LABEL_RE = re.compile(r"^\s*(?P<city>[^,]+?)\s*,\s*(?P<state>[A-Za-z]{2})\b")


def split_location(label: str) -> tuple[str, str | None]:
    """
    "Buffalo, NY" -> ("Buffalo", "NY"); "austin" -> ("Austin", "TX");
    anything else -> (label, None).
    """
    s = (label or "").strip()
    m = _LABEL_RE.match(s)
    if m and m.group("state").upper() in US_STATES:
        return m.group("city").strip(), m.group("state").upper()
    hit = MAJOR_CITIES.get(s.lower())
    if hit:
        return hit
    return s, None
