"""
Lenient value coercion for raw invoice cells.

Invoice exports arrive with currency symbols, thousands separators, blank
cells and provider-specific zone names. Nothing here raises: a value that
cannot be understood degrades to 0 / None / "" so one bad row never aborts
a batch.
"""
import math
import re
from typing import Any, Optional

NULL_TOKENS = {"", "-", "n/a", "na", "nan", "none", "null"}

# Zone alias normalization: any provider zone naming → letter
ZONE_ALIASES: dict[str, str] = {
    # Words → letter
    "local": "A",   "same city": "A",  "same_city": "A",  "city": "A",  "intracity": "A", "metro": "A",
    "within state": "B", "intrastate": "B", "state": "B",
    "regional": "C", "region": "C",    "national": "C",   "rest of india": "C", "roi": "C",
    "special": "D", "ne": "D",         "north east": "D", "j&k": "D",
    "remote": "E",  "oda": "E",        "extreme remote": "E",
    # Numbers → letter
    "1": "A", "2": "B", "3": "C", "4": "D", "5": "E",
    # Roman → letter
    "i": "A", "ii": "B", "iii": "C", "iv": "D", "v": "E",
    # Delhivery zones
    "z1": "A", "z2": "B", "z3": "C", "z4": "D", "z5": "E",
    "zone a": "A", "zone b": "B", "zone c": "C", "zone d": "D", "zone e": "E",
    "zone 1": "A", "zone 2": "B", "zone 3": "C", "zone 4": "D", "zone 5": "E",
}

PINCODE_RE = re.compile(r"\d{6}")

ORDER_TYPES = {
    "prepaid": "Prepaid", "ppd": "Prepaid", "pre-paid": "Prepaid",
    "cod": "COD", "cash on delivery": "COD",
    "rto": "RTO", "return to origin": "RTO",
    "return": "Return", "reverse": "Return",
}


def _is_null(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, float) and math.isnan(val):
        return True
    return isinstance(val, str) and val.strip().lower() in NULL_TOKENS


def clean_float(val: Any) -> float:
    """Parse a money/weight cell. Unparseable or non-finite values become 0.0."""
    if _is_null(val) or isinstance(val, bool):
        return 0.0
    if isinstance(val, (int, float)):
        num = float(val)
    else:
        text = str(val).replace(",", "").replace("₹", "").replace("INR", "")
        text = re.sub(r"(?i)\s*kgs?$", "", text.strip())
        try:
            num = float(text)
        except ValueError:
            return 0.0
    return num if math.isfinite(num) else 0.0


def clean_optional_float(val: Any) -> Optional[float]:
    """Like clean_float, but absent or invalid values stay None (used for dimensions)."""
    if _is_null(val) or isinstance(val, bool):
        return None
    try:
        num = float(str(val).replace(",", "").strip()) if isinstance(val, str) else float(val)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def clean_identifier(val: Any) -> str:
    """AWBs and pincodes may arrive as floats from spreadsheets (110001.0)."""
    if _is_null(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    text = str(val).strip()
    if re.fullmatch(r"\d+\.0+", text):
        return text.split(".")[0]
    return text


def clean_pincode(val: Any) -> Optional[str]:
    """Six digits, inner spaces allowed ("110 001"). Anything else (a city name) is None."""
    text = re.sub(r"\s+", "", clean_identifier(val))
    return text if PINCODE_RE.fullmatch(text) else None


def normalize_zone(z: Any) -> str:
    """Normalize any zone name to a single letter A-E."""
    if _is_null(z):
        return ""
    z = str(z).strip()
    if len(z) == 1 and z.upper() in "ABCDE":
        return z.upper()
    lower = z.lower()
    if lower in ZONE_ALIASES:
        return ZONE_ALIASES[lower]
    # Partial match, e.g. "Zone_B" → "B"
    match = re.search(r'(?:^|[\s_\-])([A-Ea-e1-5])$', z)
    if match:
        c = match.group(1).upper()
        return c if c in "ABCDE" else ZONE_ALIASES[c]
    return z.upper()


def normalize_order_type(val: Any) -> str:
    if _is_null(val):
        return ""
    text = str(val).strip()
    return ORDER_TYPES.get(text.lower(), text)
