"""CSV invoice → ShipmentRow list (pandas + header mapping)."""
import io
import logging
from typing import List

import pandas as pd

from app.models.schemas import ShipmentRow
from app.services.header_mapper import map_headers
from app.services.row_normalizer import normalize_rows

logger = logging.getLogger(__name__)

DATA_COLUMN_KEYWORDS = ["awb", "tracking", "waybill", "consignment", "weight", "zone", "amount", "total"]
MAX_PREAMBLE_ROWS = 6


def _load_frame(content: bytes) -> pd.DataFrame:
    """Skip provider/letterhead lines above the real header row."""
    for skip in range(0, MAX_PREAMBLE_ROWS):
        try:
            candidate = pd.read_csv(
                io.BytesIO(content),
                skiprows=skip,
                dtype=str,
                keep_default_na=False,
                on_bad_lines="warn",   # keep rows with extra cols (e.g. Notes column)
                engine="python",       # python engine handles ragged CSVs
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError):
            continue
        cols = " ".join(str(c).lower() for c in candidate.columns)
        if any(kw in cols for kw in DATA_COLUMN_KEYWORDS) and len(candidate) > 0:
            return candidate
    raise ValueError("No invoice header row found in the first rows of the CSV.")


def read_invoice_csv(content: bytes) -> List[ShipmentRow]:
    df = _load_frame(content)
    headers = [str(c) for c in df.columns]
    mapping = map_headers(headers)
    if "AWB" not in mapping.values():
        raise ValueError("CSV doesn't look like an invoice: no AWB column could be identified.")

    renamed = df.rename(columns={raw: std for raw, std in mapping.items() if std})
    standard_cols = [std for std in mapping.values() if std]
    records = renamed[standard_cols].to_dict("records")

    rows = normalize_rows(records)
    logger.info(f"CSV invoice: {len(records)} records read, {len(rows)} shipment rows")
    return rows
