"""
Provider classification for invoice rows.

When an invoice carries a Provider column, each value is fuzzy-matched
against the couriers we hold rate cards for. Rows are then split into known
and unknown groups so each group gets the right audit path.
"""
import re
from difflib import SequenceMatcher
from typing import Dict, Iterable, List, Optional

from app.models.schemas import ProviderGroups, ProviderMatch, ShipmentRow

PROVIDER_VARIANTS: Dict[str, List[str]] = {
    "Delhivery":    ["delhivery", "delhivery ltd", "delhivery limited", "dlvry", "del"],
    "BlueDart":     ["bluedart", "blue dart", "blue dart express", "bd", "bdl"],
    "Ecom Express": ["ecom express", "ecomexpress", "ecom", "ecom exp", "ecom express ltd"],
    "Shadowfax":    ["shadowfax", "shadow fax", "sfx", "shadowfax technologies"],
}

CLASSIFY_THRESHOLD = 0.7
OTHER_LABEL = "Other"


def _norm(name: str) -> str:
    return re.sub(r"\s+", " ", name.lower()).strip()


def similarity(a: str, b: str) -> float:
    """0–1 similarity of two names, ignoring case and spacing."""
    na, nb = _norm(a), _norm(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0
    return SequenceMatcher(None, na, nb).ratio()


def classify(raw_name: Optional[str]) -> Optional[ProviderMatch]:
    """
    Best match across every courier's canonical name and aliases.
    Returns None when nothing reaches CLASSIFY_THRESHOLD.
    """
    if not raw_name or not raw_name.strip():
        return None

    best_key, best_score = None, 0.0
    for key, variants in PROVIDER_VARIANTS.items():
        score = max([similarity(raw_name, key)] + [similarity(raw_name, v) for v in variants])
        if score > best_score:
            best_key, best_score = key, score

    if best_key and best_score >= CLASSIFY_THRESHOLD:
        return ProviderMatch(canonical=best_key, confidence=round(best_score, 4))
    return None


def group_rows(rows: Iterable[ShipmentRow]) -> ProviderGroups:
    """Split rows into known couriers (by canonical name) and unknown raw labels."""
    known: Dict[str, List[ShipmentRow]] = {}
    unknown: Dict[str, List[ShipmentRow]] = {}
    matches: Dict[str, Optional[ProviderMatch]] = {}

    for row in rows:
        raw = (row.provider or "").strip()
        if raw not in matches:
            matches[raw] = classify(raw)
        match = matches[raw]
        if match:
            known.setdefault(match.canonical, []).append(row)
        else:
            unknown.setdefault(raw or OTHER_LABEL, []).append(row)

    return ProviderGroups(known=known, unknown=unknown)
