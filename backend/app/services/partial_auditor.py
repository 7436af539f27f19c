"""
Degraded audit for providers with no rate card on file.

Without contract rates the only monetary claim that can be made is a
duplicate AWB. Weight and zone findings are reported qualitatively with a
zero difference so they never inflate the overcharge total.
"""
import logging
from typing import Iterable, List

from app.models.schemas import AnalysisResult, Discrepancy, ShipmentRow
from app.services.discrepancy_engine import (
    WEIGHT_OVERCHARGE,
    ZONE_MISMATCH,
    duplicate_discrepancy,
    summarize,
)

logger = logging.getLogger(__name__)

UNKNOWN_PROVIDER_PREFIX = "Unknown Provider — "
PARTIAL_WEIGHT_TOLERANCE = 1.01  # billed may exceed actual by up to 1%


def qualitative_issues(row: ShipmentRow) -> List[str]:
    labels = []
    if row.billed_weight > row.actual_weight * PARTIAL_WEIGHT_TOLERANCE:
        labels.append(WEIGHT_OVERCHARGE)
    if row.billed_zone and row.actual_zone and row.billed_zone != row.actual_zone:
        labels.append(ZONE_MISMATCH)
    return labels


def partial_audit(rows: Iterable[ShipmentRow]) -> AnalysisResult:
    rows = list(rows)
    discrepancies: List[Discrepancy] = []
    awb_seen = set()

    for row in rows:
        if row.awb in awb_seen:
            discrepancies.append(duplicate_discrepancy(row))
            continue
        awb_seen.add(row.awb)

        labels = qualitative_issues(row)
        if labels:
            discrepancies.append(Discrepancy(
                awb_number=row.awb,
                issue_type=UNKNOWN_PROVIDER_PREFIX + ", ".join(labels),
                billed_amount=row.total_billed_amount,
                correct_amount=row.total_billed_amount,
                difference=0,
            ))

    analysis = summarize(rows, discrepancies)
    logger.info(
        f"Partial audit: {analysis.total_rows} rows, {len(discrepancies)} flagged, "
        f"duplicate overcharge ₹{analysis.total_overcharge:.2f}"
    )
    return analysis
