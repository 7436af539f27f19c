"""Pincode → courier zone derivation."""
import re
from typing import Optional

from app.models.schemas import Zone
from app.services.pincode_data import (
    DIFFICULT_TERRAIN_PREFIXES,
    EXTREME_REMOTE_PREFIXES,
    METRO_PREFIXES,
    STATE_BY_PREFIX,
)

PINCODE_LENGTH = 6


def _clean(pincode: Optional[str]) -> str:
    return re.sub(r"\s+", "", str(pincode or ""))


def is_valid_pincode(pincode: Optional[str]) -> bool:
    return len(_clean(pincode)) >= PINCODE_LENGTH


def state_for_pincode(pincode: Optional[str]) -> Optional[str]:
    p = _clean(pincode)
    if len(p) < 2:
        return None
    return STATE_BY_PREFIX.get(p[:2])


def resolve_zone(origin_pincode: Optional[str], dest_pincode: Optional[str]) -> Optional[Zone]:
    """
    Derive the zone for an origin → destination pair.

    Returns None when either pincode is too short; callers then fall back to
    the zone stated on the invoice row. Remote zones (D/E) depend on the
    destination only.
    """
    if not (is_valid_pincode(origin_pincode) and is_valid_pincode(dest_pincode)):
        return None
    origin, dest = _clean(origin_pincode), _clean(dest_pincode)

    o3, d3 = origin[:3], dest[:3]
    if d3 in EXTREME_REMOTE_PREFIXES:
        return Zone.E
    if d3 in DIFFICULT_TERRAIN_PREFIXES:
        return Zone.D
    if o3 in METRO_PREFIXES and o3 == d3:
        return Zone.A

    origin_state = state_for_pincode(origin)
    if origin_state is not None and origin_state == state_for_pincode(dest):
        return Zone.B
    return Zone.C
