"""
Rate-card extraction for courier contracts.

PDF text is read with pdfplumber first; if the three core zone rates cannot
be found that way, the document is sent to Gemini with a strict JSON prompt.
Fields the contract does not state get the standard defaults (fuel 12%,
docket ₹25, GST 18%).
"""
import base64
import json
import logging
import os
import re
from typing import Dict, Optional

import pdfplumber

from app.core.config import settings
from app.models.schemas import ContractRules, ExtractedContract
from app.services.provider_classifier import PROVIDER_VARIANTS

logger = logging.getLogger(__name__)


class ContractExtractionError(ValueError):
    pass


CONTRACT_EXTRACTION_PROMPT = """You are an AI trained to extract logistics contract rates for Indian D2C e-commerce brands.
Read this courier service agreement PDF and extract the exact pricing details.

Return ONLY a strict JSON object (no markdown, no backticks, no explanation) with these exact keys:
- provider_name         (string)  : courier company name, e.g. "Delhivery"
- zone_a_rate           (number)  : per 500g freight rate for Zone A (intra-city / metro-to-metro)
- zone_b_rate           (number)  : per 500g freight rate for Zone B (same state)
- zone_c_rate           (number)  : per 500g freight rate for Zone C (cross-state)
- zone_d_rate           (number or null) : per 500g rate for Zone D (difficult terrain: J&K, North East, hills), null if the contract has no such zone
- zone_e_rate           (number or null) : per 500g rate for Zone E (extreme remote: Andaman, Ladakh), null if the contract has no such zone
- cod_fee_percentage    (number)  : COD handling fee as a percentage of freight, e.g. 1.5
- rto_flat_fee          (number)  : Return-to-Origin flat fee in INR
- fuel_surcharge_percentage (number) : fuel or handling surcharge as a percentage of base freight
- docket_charge         (number)  : per-shipment docket / AWB charge in INR
- gst_percentage        (number)  : GST rate applied to courier services (typically 18)

Rules:
- All monetary values must be plain numbers in Indian Rupees (no currency symbols).
- Percentages are plain numbers: 12 means 12 percent, NOT 0.12.
- If a field is not explicitly stated in the contract, use these sensible defaults:
  fuel_surcharge_percentage = 12, docket_charge = 25, gst_percentage = 18.
- Never return null for zone_a_rate, zone_b_rate, zone_c_rate, cod_fee_percentage or rto_flat_fee."""

DEFAULTS = {
    "fuel_surcharge_percentage": 12.0,
    "docket_charge":             25.0,
    "gst_percentage":            18.0,
}

# Plausible ranges for extracted percentages
VALID_BOUNDS = {
    "cod_fee_percentage":        (0.1, 15.0),
    "fuel_surcharge_percentage": (1.0, 35.0),
    "gst_percentage":            (5.0, 28.0),
}

REQUIRED_ZONES = ("zone_a_rate", "zone_b_rate", "zone_c_rate")

_NUM = r"([\d,]+(?:\.\d+)?)"
ZONE_RATE_RE = re.compile(r"\bzone\s*[-_:]?\s*([a-e])\b[^\d\n]*?(?:₹|rs\.?|inr)?\s*" + _NUM, re.IGNORECASE)
PERCENT_PATTERNS = {
    "fuel_surcharge_percentage": re.compile(r"\b(?:fuel|fsc)\b[^\d\n]*" + _NUM + r"\s*%", re.IGNORECASE),
    "cod_fee_percentage":        re.compile(r"\b(?:cod|cash on delivery)\b[^\d\n]*" + _NUM + r"\s*%", re.IGNORECASE),
    "gst_percentage":            re.compile(r"\b(?:gst|igst)\b[^\d\n]*" + _NUM + r"\s*%", re.IGNORECASE),
}
FLAT_PATTERNS = {
    "docket_charge": re.compile(r"\b(?:docket|awb charge)\b[^\d\n]*?(?:₹|rs\.?|inr)?\s*" + _NUM, re.IGNORECASE),
    "rto_flat_fee":  re.compile(r"\b(?:rto|return to origin)\b[^\d\n%]*?(?:₹|rs\.?|inr)?\s*" + _NUM + r"\b(?!\s*%)", re.IGNORECASE),
}


def _to_number(val) -> Optional[float]:
    if val is None or isinstance(val, bool):
        return None
    try:
        return float(str(val).replace(",", "").replace("₹", "").replace("%", "").strip())
    except ValueError:
        return None


def _validate_rates(data: dict) -> dict:
    """Fix percentages that are out of bounds, usually a fraction (0.12) instead of percent (12)."""
    for field, (lo, hi) in VALID_BOUNDS.items():
        val = _to_number(data.get(field))
        if val is None:
            data[field] = DEFAULTS.get(field, 0.0)
        elif val == 0:
            data[field] = 0.0  # stated as nil in the contract
        elif lo <= val <= hi:
            data[field] = val
        elif lo <= val * 100 <= hi:
            data[field] = round(val * 100, 2)
        else:
            logger.warning(f"Contract {field}={val} outside {lo}-{hi}, using default")
            data[field] = DEFAULTS.get(field, 0.0)
    return data


def build_contract(data: Dict) -> ContractRules:
    """Assemble ContractRules from loosely typed extracted values."""
    data = _validate_rates(dict(data))
    fields = {}
    for zone_field in REQUIRED_ZONES:
        rate = _to_number(data.get(zone_field))
        if rate is None or rate <= 0:
            raise ContractExtractionError(f"No {zone_field.replace('_', ' ')} found in contract")
        fields[zone_field] = rate
    for zone_field in ("zone_d_rate", "zone_e_rate"):
        rate = _to_number(data.get(zone_field))
        fields[zone_field] = rate if rate and rate > 0 else None

    docket = _to_number(data.get("docket_charge"))
    fields["docket_charge"] = docket if docket is not None else DEFAULTS["docket_charge"]
    fields["rto_flat_fee"] = _to_number(data.get("rto_flat_fee")) or 0.0
    for field in VALID_BOUNDS:
        fields[field] = data[field]
    return ContractRules(**fields)


def detect_provider(text: str) -> Optional[str]:
    """Known courier named anywhere in the document text, if any."""
    text_lower = text.lower()
    for provider, variants in PROVIDER_VARIANTS.items():
        if any(v in text_lower for v in [provider.lower()] + [v for v in variants if len(v) > 4]):
            return provider
    return None


def parse_contract_text(text: str) -> Dict:
    """Scan rate-card text for zone rates and surcharge lines. Returns only what was found."""
    found: Dict = {}
    for m in ZONE_RATE_RE.finditer(text):
        key = f"zone_{m.group(1).lower()}_rate"
        found.setdefault(key, m.group(2))
    for field, pattern in list(PERCENT_PATTERNS.items()) + list(FLAT_PATTERNS.items()):
        m = pattern.search(text)
        if m:
            found[field] = m.group(1)
    provider = detect_provider(text)
    if provider:
        found["provider_name"] = provider
    return found


def parse_contract_response(text: str) -> ExtractedContract:
    """Parse and validate Gemini's contract JSON response."""
    text = text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ContractExtractionError("Contract extraction response is not valid JSON") from e
    if not isinstance(data, dict):
        raise ContractExtractionError("Contract extraction response is not a JSON object")
    return ExtractedContract(provider_name=data.get("provider_name") or None, contract=build_contract(data))


def extract_contract_from_pdf(file_path: str) -> Optional[ExtractedContract]:
    """pdfplumber text pass. None when the core zone rates are not all present."""
    with pdfplumber.open(file_path) as pdf:
        text = "\n".join(page.extract_text() or "" for page in pdf.pages)
    found = parse_contract_text(text)
    if not all(z in found for z in REQUIRED_ZONES):
        logger.info(f"pdfplumber found {sorted(k for k in found if k.startswith('zone_'))}, need Gemini")
        return None
    return ExtractedContract(provider_name=found.get("provider_name"), contract=build_contract(found))


def _get_gemini_model():
    if not settings.GEMINI_API_KEY:
        return None
    import google.generativeai as genai
    genai.configure(api_key=settings.GEMINI_API_KEY)
    return genai.GenerativeModel(settings.GEMINI_CONTRACT_MODEL)


async def extract_contract(file_path: str) -> ExtractedContract:
    ext = os.path.splitext(file_path)[1].lower()
    if ext != ".pdf":
        raise ContractExtractionError("Rate cards must be uploaded as PDF.")

    try:
        result = extract_contract_from_pdf(file_path)
        if result is not None:
            return result
    except ContractExtractionError:
        raise
    except Exception:
        logger.exception("pdfplumber could not read contract, trying Gemini")

    model = _get_gemini_model()
    if not model:
        raise ContractExtractionError(
            "Could not read zone rates from the PDF text. Set GEMINI_API_KEY for AI-based extraction."
        )

    with open(file_path, "rb") as f:
        pdf_b64 = base64.b64encode(f.read()).decode()
    response = model.generate_content([
        {"mime_type": "application/pdf", "data": pdf_b64},
        CONTRACT_EXTRACTION_PROMPT,
    ])
    return parse_contract_response(response.text)
