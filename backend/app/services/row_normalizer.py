"""Batch-ingestion boundary: raw CSV/JSON records → typed ShipmentRow."""
import logging
from typing import Any, Iterable, List, Mapping

from pydantic import ValidationError

from app.core.coercion import clean_identifier
from app.models.schemas import ShipmentRow

logger = logging.getLogger(__name__)

AWB_KEYS = ("AWB", "awb", "awb_number")


def _awb_of(record: Mapping[str, Any]) -> str:
    for key in AWB_KEYS:
        if key in record:
            return clean_identifier(record[key])
    return ""


def normalize_row(record: Mapping[str, Any]) -> ShipmentRow:
    """Malformed numbers coerce to 0 and unknown zones pass through; only a missing AWB is rejected."""
    data = dict(record)
    if "AWB" not in data and "awb" not in data:
        data["AWB"] = _awb_of(record)
    return ShipmentRow.model_validate(data)


def normalize_rows(records: Iterable[Mapping[str, Any]]) -> List[ShipmentRow]:
    rows = []
    skipped = 0
    for i, record in enumerate(records):
        if not _awb_of(record):
            skipped += 1
            continue
        try:
            rows.append(normalize_row(record))
        except ValidationError as e:
            logger.warning(f"Row {i}: could not be read as a shipment ({e.error_count()} errors), skipped")
            skipped += 1
    if skipped:
        logger.info(f"Ingestion: {len(rows)} rows kept, {skipped} skipped")
    return rows
