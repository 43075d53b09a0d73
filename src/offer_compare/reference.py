"""Built-in reference tables and location resolution.

The tables are used whenever the reference-data endpoint is unreachable or
returns an incomplete payload. Indices are relative to a national average of
100; tax rates are flat percentages.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping, Optional

from .schemas import (
    HEAD_OF_HOUSEHOLD,
    MARRIED_FILING_JOINTLY,
    MARRIED_FILING_SEPARATELY,
    SINGLE,
    MaritalStatusOption,
)

NATIONAL_COL_INDEX = 100.0
FALLBACK_LOCATION = "San Francisco, CA, United States"

DEFAULT_MARITAL_STATUS_OPTIONS = [
    MaritalStatusOption(SINGLE, "Single"),
    MaritalStatusOption(MARRIED_FILING_JOINTLY, "Married Filing Jointly"),
    MaritalStatusOption(MARRIED_FILING_SEPARATELY, "Married Filing Separately"),
    MaritalStatusOption(HEAD_OF_HOUSEHOLD, "Head of Household"),
]

DEFAULT_CITY_COST_OF_LIVING: Dict[str, float] = {
    "San Francisco, CA": 168,
    "San Jose, CA": 156,
    "Seattle, WA": 132,
    "New York, NY": 154,
    "Austin, TX": 111,
    "Chicago, IL": 117,
    "Boston, MA": 148,
    "Los Angeles, CA": 149,
    "Atlanta, GA": 104,
    "Denver, CO": 121,
    "Remote / National Average": 100,
}

# fmt: off
DEFAULT_STATE_COL_BASE: Dict[str, float] = {
    "AL": 89, "AK": 128, "AZ": 104, "AR": 88, "CA": 134, "CO": 112, "CT": 115, "DE": 103,
    "FL": 102, "GA": 97, "HI": 186, "ID": 101, "IL": 101, "IN": 90, "IA": 89, "KS": 90,
    "KY": 91, "LA": 92, "ME": 108, "MD": 112, "MA": 123, "MI": 92, "MN": 98, "MS": 86,
    "MO": 90, "MT": 101, "NE": 92, "NV": 105, "NH": 111, "NJ": 118, "NM": 94, "NY": 123,
    "NC": 95, "ND": 95, "OH": 91, "OK": 89, "OR": 113, "PA": 99, "RI": 109, "SC": 94,
    "SD": 94, "TN": 91, "TX": 97, "UT": 104, "VT": 110, "VA": 105, "WA": 114, "WV": 89,
    "WI": 95, "WY": 97, "DC": 152,
}

DEFAULT_STATE_TAX_RATE: Dict[str, float] = {
    "AK": 0, "FL": 0, "NV": 0, "SD": 0, "TN": 0, "TX": 0, "WA": 0, "WY": 0, "NH": 0,
    "AL": 4.5, "AZ": 2.5, "AR": 4.4, "CA": 8.5, "CO": 4.4, "CT": 5.0, "DE": 5.0,
    "GA": 5.2, "HI": 7.0, "ID": 5.8, "IL": 4.95, "IN": 3.15, "IA": 4.5, "KS": 5.2,
    "KY": 4.0, "LA": 3.5, "ME": 6.0, "MD": 5.0, "MA": 5.0, "MI": 4.25, "MN": 6.2,
    "MS": 4.7, "MO": 4.9, "MT": 5.5, "NE": 5.8, "NJ": 6.0, "NM": 4.7, "NY": 6.8,
    "NC": 4.5, "ND": 2.5, "OH": 3.5, "OK": 4.8, "OR": 7.8, "PA": 3.07, "RI": 5.0,
    "SC": 5.4, "UT": 4.85, "VT": 6.0, "VA": 4.8, "WV": 4.5, "WI": 5.1, "DC": 7.0,
}
# fmt: on

DEFAULT_STATE_NAME_TO_ABBR: Dict[str, str] = {
    "Alabama": "AL",
    "Alaska": "AK",
    "Arizona": "AZ",
    "Arkansas": "AR",
    "California": "CA",
    "Colorado": "CO",
    "Connecticut": "CT",
    "Delaware": "DE",
    "Florida": "FL",
    "Georgia": "GA",
    "Hawaii": "HI",
    "Idaho": "ID",
    "Illinois": "IL",
    "Indiana": "IN",
    "Iowa": "IA",
    "Kansas": "KS",
    "Kentucky": "KY",
    "Louisiana": "LA",
    "Maine": "ME",
    "Maryland": "MD",
    "Massachusetts": "MA",
    "Michigan": "MI",
    "Minnesota": "MN",
    "Mississippi": "MS",
    "Missouri": "MO",
    "Montana": "MT",
    "Nebraska": "NE",
    "Nevada": "NV",
    "New Hampshire": "NH",
    "New Jersey": "NJ",
    "New Mexico": "NM",
    "New York": "NY",
    "North Carolina": "NC",
    "North Dakota": "ND",
    "Ohio": "OH",
    "Oklahoma": "OK",
    "Oregon": "OR",
    "Pennsylvania": "PA",
    "Rhode Island": "RI",
    "South Carolina": "SC",
    "South Dakota": "SD",
    "Tennessee": "TN",
    "Texas": "TX",
    "Utah": "UT",
    "Vermont": "VT",
    "Virginia": "VA",
    "Washington": "WA",
    "West Virginia": "WV",
    "Wisconsin": "WI",
    "Wyoming": "WY",
    "District of Columbia": "DC",
}

_STATE_ABBR_RE = re.compile(r",\s*([A-Z]{2})\b")
_COUNTRY_SUFFIX_RE = re.compile(r",\s*United States$", re.IGNORECASE)


def extract_state_abbr(
    location: str, state_name_to_abbr: Optional[Mapping[str, str]] = None
) -> str:
    """Return the 2-letter state for a free-text location, or "" if none matches.

    A ", XX" component wins; otherwise the first full state name contained in
    the string is mapped through ``state_name_to_abbr``.
    """
    if not location:
        return ""
    match = _STATE_ABBR_RE.search(location)
    if match:
        return match.group(1)
    names = state_name_to_abbr if state_name_to_abbr else DEFAULT_STATE_NAME_TO_ABBR
    for name, abbr in names.items():
        if name in location:
            return abbr
    return ""


def normalize_location(location: str) -> str:
    return _COUNTRY_SUFFIX_RE.sub("", location or "").strip()


def estimate_col_index(
    location: str,
    city_cost_of_living: Optional[Mapping[str, float]] = None,
    state_col_base: Optional[Mapping[str, float]] = None,
    state_name_to_abbr: Optional[Mapping[str, str]] = None,
) -> float:
    """Map a location to a cost-of-living index (100 = national average)."""
    cities = city_cost_of_living if city_cost_of_living else DEFAULT_CITY_COST_OF_LIVING
    states = state_col_base if state_col_base else DEFAULT_STATE_COL_BASE
    location = location or ""

    normalized = normalize_location(location)
    if cities.get(normalized):
        return float(cities[normalized])
    if cities.get(location):
        return float(cities[location])

    abbr = extract_state_abbr(normalized or location, state_name_to_abbr)
    if abbr and states.get(abbr):
        return float(states[abbr])
    return NATIONAL_COL_INDEX
