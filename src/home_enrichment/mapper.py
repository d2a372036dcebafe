from __future__ import annotations

import re
from typing import Optional

from .schema import EnrichedProfile, HomeFields


SINGLE_FAMILY = "single-family"
TOWNHOUSE = "townhouse"
CONDO = "condo"
APARTMENT = "apartment"
MOBILE_HOME = "mobile-home"
MULTI_FAMILY = "multi-family"
OTHER = "other"

HOME_TYPES = (SINGLE_FAMILY, TOWNHOUSE, CONDO, APARTMENT, MOBILE_HOME, MULTI_FAMILY, OTHER)

_NON_ALPHA_RE = re.compile(r"[^a-z]+")

# Checked in order; the more specific spellings come first.
_TYPE_RULES = (
    (("townhouse", "townhome", "rowhouse"), TOWNHOUSE),
    (("multifamily", "duplex", "triplex", "fourplex", "quadplex"), MULTI_FAMILY),
    (("mobile", "manufactured"), MOBILE_HOME),
    (("condo",), CONDO),
    (("apartment",), APARTMENT),
    (("singlefamily", "house", "detached"), SINGLE_FAMILY),
)


def normalize_property_type(raw: Optional[str]) -> Optional[str]:
    """Map a provider's free-text property type to a home type tag.

    Comparison ignores case, spaces and punctuation, so "Town House",
    "town-house" and "TOWNHOUSE" agree. Blank input stays None; anything
    unrecognized becomes "other".
    """

    if raw is None:
        return None
    squashed = _NON_ALPHA_RE.sub("", str(raw).lower())
    if not squashed:
        return None
    for needles, tag in _TYPE_RULES:
        if any(n in squashed for n in needles):
            return tag
    return OTHER


def map_to_home_schema(profile: EnrichedProfile) -> HomeFields:
    return HomeFields(
        year_built=profile.year_built,
        square_footage=profile.square_footage,
        lot_size=profile.lot_size,
        home_type=normalize_property_type(profile.property_type),
        bedrooms=profile.bedrooms,
        bathrooms=profile.bathrooms,
        stories=profile.stories,
        latitude=profile.latitude,
        longitude=profile.longitude,
    )
