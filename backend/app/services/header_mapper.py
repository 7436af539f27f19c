"""
Raw invoice header → standard field name mapping.

Gemini maps headers when GEMINI_API_KEY is configured; any header it leaves
unmapped (or every header, when it is unavailable) goes through the alias
table below.
"""
import json
import logging
import re
from typing import Dict, List, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

STANDARD_FIELDS = [
    "AWB", "OrderType", "BilledWeight", "ActualWeight", "BilledZone", "ActualZone",
    "TotalBilledAmount", "ShipmentDate", "OriginPincode", "DestPincode",
    "Provider", "Length", "Width", "Height",
]

HEADER_ALIASES: Dict[str, List[str]] = {
    "AWB":               ["awb", "awb_number", "awb_no", "tracking_id", "tracking_number", "waybill",
                          "airway_bill", "consignment", "docket", "shipment_id", "lrn", "cn_no"],
    "OrderType":         ["ordertype", "order_type", "payment_mode", "payment_type", "shipment_type", "mode"],
    "BilledWeight":      ["billedweight", "billed_weight", "charged_weight", "chargeable_weight",
                          "billed_weight_kg", "charge_wt", "weight_billed"],
    "ActualWeight":      ["actualweight", "actual_weight", "dead_weight", "actual_weight_kg", "weight_kg", "weight"],
    "BilledZone":        ["billedzone", "billed_zone", "zone_billed", "charged_zone", "zone"],
    "ActualZone":        ["actualzone", "actual_zone", "zone_actual", "delivery_zone", "correct_zone"],
    "TotalBilledAmount": ["totalbilledamount", "total_billed_amount", "total_billed", "total_amount",
                          "invoice_amount", "grand_total", "amount", "total"],
    "ShipmentDate":      ["shipmentdate", "shipment_date", "booking_date", "dispatch_date", "ship_date", "date"],
    "OriginPincode":     ["originpincode", "origin_pincode", "origin_pin", "from_pincode", "pickup_pincode",
                          "source_pincode"],
    "DestPincode":       ["destpincode", "dest_pincode", "destination_pincode", "dest_pin", "to_pincode",
                          "delivery_pincode"],
    "Provider":          ["provider", "courier", "carrier", "courier_partner", "logistics_partner", "shipping_partner"],
    "Length":            ["length", "length_cm", "l_cm"],
    "Width":             ["width", "breadth", "width_cm", "b_cm"],
    "Height":            ["height", "height_cm", "h_cm"],
}

HEADER_MAPPING_PROMPT = """You are a data engineer for an Indian D2C brand. Map the following raw CSV headers to our standard schema. Our standard keys are: {keys}. Return ONLY a strict JSON object (no markdown, no backticks) where the keys are the RAW headers and the values are the STANDARD keys. If a raw header doesn't match anything, map it to null.

Raw headers:
{headers}"""


def _norm(s: str) -> str:
    return re.sub(r'[^a-z0-9]+', '_', str(s).lower().strip()).strip('_')


def _get_gemini_model():
    """Lazy-load Gemini, only when an API key is configured."""
    if not settings.GEMINI_API_KEY:
        return None
    import google.generativeai as genai
    genai.configure(api_key=settings.GEMINI_API_KEY)
    return genai.GenerativeModel(settings.GEMINI_HEADER_MODEL)


def parse_mapping_response(text: str, raw_headers: List[str]) -> Dict[str, Optional[str]]:
    """Keep only raw headers we sent and values that are standard fields."""
    text = text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Header mapping response is not a JSON object")
    return {
        h: (data.get(h) if data.get(h) in STANDARD_FIELDS else None)
        for h in raw_headers
    }


def alias_map_headers(raw_headers: List[str], claimed: Optional[set] = None) -> Dict[str, Optional[str]]:
    """Deterministic mapping. Exact alias hits first, then substring hits; each field claimed once."""
    claimed = set(claimed or ())
    result: Dict[str, Optional[str]] = {h: None for h in raw_headers}
    normed = {h: _norm(h) for h in raw_headers}

    for exact in (True, False):
        for field, aliases in HEADER_ALIASES.items():
            if field in claimed:
                continue
            for alias in aliases:
                hit = next(
                    (h for h in raw_headers
                     if result[h] is None and (normed[h] == alias if exact else alias in normed[h])),
                    None,
                )
                if hit is not None:
                    result[hit] = field
                    claimed.add(field)
                    break
    return result


def map_headers(raw_headers: List[str]) -> Dict[str, Optional[str]]:
    if not raw_headers:
        raise ValueError("rawHeaders must be a non-empty list")

    mapping: Dict[str, Optional[str]] = {h: None for h in raw_headers}
    model = _get_gemini_model()
    if model is not None:
        try:
            response = model.generate_content(HEADER_MAPPING_PROMPT.format(
                keys=", ".join(STANDARD_FIELDS), headers=json.dumps(raw_headers),
            ))
            mapping = parse_mapping_response(response.text, raw_headers)
        except Exception:
            logger.exception("Gemini header mapping failed, falling back to aliases")

    # one raw header per standard field
    claimed = set()
    for h, field in mapping.items():
        if field in claimed:
            mapping[h] = None
        elif field:
            claimed.add(field)

    unmapped = [h for h, field in mapping.items() if field is None]
    if unmapped:
        mapping.update(alias_map_headers(unmapped, claimed))
    logger.info(f"Header mapping: {sum(1 for v in mapping.values() if v)} of {len(raw_headers)} headers mapped")
    return mapping
