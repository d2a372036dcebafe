from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D+")


STATE_ABBREVIATIONS = {
    "alabama": "AL",
    "alaska": "AK",
    "arizona": "AZ",
    "arkansas": "AR",
    "california": "CA",
    "colorado": "CO",
    "connecticut": "CT",
    "delaware": "DE",
    "district of columbia": "DC",
    "florida": "FL",
    "georgia": "GA",
    "hawaii": "HI",
    "idaho": "ID",
    "illinois": "IL",
    "indiana": "IN",
    "iowa": "IA",
    "kansas": "KS",
    "kentucky": "KY",
    "louisiana": "LA",
    "maine": "ME",
    "maryland": "MD",
    "massachusetts": "MA",
    "michigan": "MI",
    "minnesota": "MN",
    "mississippi": "MS",
    "missouri": "MO",
    "montana": "MT",
    "nebraska": "NE",
    "nevada": "NV",
    "new hampshire": "NH",
    "new jersey": "NJ",
    "new mexico": "NM",
    "new york": "NY",
    "north carolina": "NC",
    "north dakota": "ND",
    "ohio": "OH",
    "oklahoma": "OK",
    "oregon": "OR",
    "pennsylvania": "PA",
    "rhode island": "RI",
    "south carolina": "SC",
    "south dakota": "SD",
    "tennessee": "TN",
    "texas": "TX",
    "utah": "UT",
    "vermont": "VT",
    "virginia": "VA",
    "washington": "WA",
    "west virginia": "WV",
    "wisconsin": "WI",
    "wyoming": "WY",
}


@dataclass(frozen=True)
class AddressQuery:
    """Normalized lookup input handed to every property provider."""

    address: str
    city: str
    state: str
    zip: str

    def one_line(self, include_zip: bool = True) -> str:
        tail = f"{self.state} {self.zip}".strip() if include_zip else self.state
        parts = [p for p in (self.address, self.city, tail) if p]
        return ", ".join(parts)


def collapse_whitespace(value: Optional[str]) -> str:
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value)).strip()


def normalize_state(value: Optional[str]) -> str:
    cleaned = collapse_whitespace(value)
    if len(cleaned) == 2:
        return cleaned.upper()
    return STATE_ABBREVIATIONS.get(cleaned.casefold(), cleaned.upper())


def normalize_zip(value: Optional[str]) -> str:
    """Return the leading five digits of a ZIP (ZIP+4 suffix dropped)."""

    raw = collapse_whitespace(value)
    # "94102-1234" -> "94102"; anything after the dash is the +4 suffix.
    head = raw.split("-", 1)[0]
    digits = _NON_DIGIT_RE.sub("", head)
    return digits[:5]


def _is_locality_segment(segment: str, city: str, state: str, zip_code: str) -> bool:
    """True when a comma-separated tail repeats the city, state or ZIP given separately."""

    seg = segment.casefold()
    if not seg:
        return True
    if city and seg == city.casefold():
        return True
    parts = seg.split(" ")
    if zip_code and normalize_zip(parts[-1]) == zip_code:
        parts = parts[:-1]
        if not parts:
            return True
    rest = " ".join(parts)
    return bool(state) and normalize_state(rest) == state


def normalize_address_input(
    address: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
) -> AddressQuery:
    city_n = collapse_whitespace(city)
    state_n = normalize_state(state)
    zip_n = normalize_zip(zip_code)

    # Autocomplete widgets often append ", Springfield, IL 62701"; drop only
    # trailing segments that repeat the locality. Unit designators stay.
    segments = [s.strip() for s in collapse_whitespace(address).split(",")]
    while len(segments) > 1 and _is_locality_segment(segments[-1], city_n, state_n, zip_n):
        segments.pop()
    street = ", ".join(s for s in segments if s)

    return AddressQuery(
        address=street,
        city=city_n,
        state=state_n,
        zip=zip_n,
    )


def property_cache_key(query: AddressQuery) -> str:
    return "|".join(
        [
            query.address.casefold(),
            query.city.casefold(),
            query.state.upper(),
            query.zip,
        ]
    )


def zip_cache_key(zip_code: Optional[str]) -> str:
    return normalize_zip(zip_code)
