"""
Full-rate audit against a provider's contracted rate card.

Expected cost per shipment (slab billing):
  Slabs         = ceil(chargeable weight / 0.5 kg), minimum 1
  Base freight  = zone rate × slabs
  Fuel          = fuel_surcharge_percentage % of base freight
  Docket        = flat docket_charge
  COD           = cod_fee_percentage % of (base + fuel), COD orders only
  GST           = gst_percentage % of (base + fuel + docket + COD)
  RTO / Return  = rto_flat_fee grossed up by GST, nothing else applies

A row is reported only when billed − expected exceeds FLAG_TOLERANCE.
Issue labels are magnitude heuristics, not a causal diagnosis.
"""
import logging
import math
from typing import Iterable, List, Optional, Tuple

from app.models.schemas import (
    AnalysisResult,
    BreakdownDetail,
    ContractRules,
    Discrepancy,
    OrderType,
    ShipmentRow,
    Zone,
)
from app.services.weight_calculator import chargeable_weight
from app.services.zone_resolver import resolve_zone

logger = logging.getLogger(__name__)

AUDIT_FORMULA_VERSION = "slab-v3"

SLAB_KG = 0.5
FLAG_TOLERANCE = 2.0         # ₹, smaller deltas are carrier rounding
WEIGHT_TOLERANCE_KG = 0.01
RTO_TOLERANCE = 1.0
SURCHARGE_THRESHOLD = 50.0   # ₹, unexplained gap above this reads as a surcharge

DUPLICATE_CHARGE = "Duplicate Charge"
ZONE_MISMATCH = "Zone Mismatch"
WEIGHT_OVERCHARGE = "Weight Overcharge"
WEIGHT_DISCREPANCY = "Weight Discrepancy"
RTO_OVERCHARGE = "RTO Overcharge"
NON_CONTRACTED_SURCHARGE = "Non-contracted Surcharge"
RATE_OVERCHARGE = "Rate Overcharge"


def zone_rate_unavailable(zone: str) -> str:
    return f"Zone Rate Unavailable (Zone {zone}) — manual review required"


def duplicate_discrepancy(row: ShipmentRow) -> Discrepancy:
    """The whole billed amount of a repeated AWB is the overcharge."""
    return Discrepancy(
        awb_number=row.awb,
        issue_type=DUPLICATE_CHARGE,
        billed_amount=row.total_billed_amount,
        correct_amount=0,
        difference=round(row.total_billed_amount, 2),
    )


def summarize(rows: List[ShipmentRow], discrepancies: List[Discrepancy]) -> AnalysisResult:
    # differences are already rounded per row; the total is their rounded sum
    total_overcharge = sum(d.difference for d in discrepancies)
    total_billed = sum(r.total_billed_amount for r in rows)
    return AnalysisResult(
        discrepancies=discrepancies,
        total_overcharge=round(total_overcharge, 2),
        total_rows=len(rows),
        total_billed=round(total_billed, 2),
    )


def rate_for_zone(contract: ContractRules, zone: str) -> Optional[float]:
    """Contract rate for a zone letter. None means D/E with no rate configured."""
    if zone == Zone.A.value:
        return contract.zone_a_rate
    if zone == Zone.B.value:
        return contract.zone_b_rate
    if zone == Zone.C.value:
        return contract.zone_c_rate
    if zone in (Zone.D.value, Zone.E.value):
        rate = contract.zone_d_rate if zone == Zone.D.value else contract.zone_e_rate
        if rate is None or rate <= 0:
            return None
        return rate
    # Unrecognized zone label: no contract rate applies
    return 0.0


def freight_slabs(weight: float) -> int:
    return max(1, math.ceil(weight / SLAB_KG))


def expected_rto(contract: ContractRules) -> float:
    return contract.rto_flat_fee * (1 + contract.gst_percentage / 100)


def compute_breakdown(
    row: ShipmentRow,
    contract: ContractRules,
    zone: str,
    zone_source: str,
    rate: float,
    weight: float,
    volumetric: Optional[float],
) -> Tuple[float, BreakdownDetail]:
    """Returns (unrounded expected total, rounded breakdown)."""
    gst_pct = contract.gst_percentage
    slabs = 0
    base = fuel = docket = cod = rto = 0.0

    if row.is_return:
        rto = contract.rto_flat_fee
        pre_gst = rto
    else:
        slabs = freight_slabs(weight)
        base = rate * slabs
        fuel = base * contract.fuel_surcharge_percentage / 100
        docket = contract.docket_charge
        if row.order_type == OrderType.COD.value:
            cod = (base + fuel) * contract.cod_fee_percentage / 100
        pre_gst = base + fuel + docket + cod

    gst = pre_gst * gst_pct / 100
    expected = pre_gst + gst

    breakdown = BreakdownDetail(
        zone=zone,
        zone_source=zone_source,
        billed_zone=row.billed_zone,
        dead_weight=round(row.actual_weight, 3),
        volumetric_weight=volumetric,
        chargeable_weight=round(weight, 3),
        billed_weight=round(row.billed_weight, 3),
        slabs=slabs,
        zone_rate=round(rate, 2),
        base_freight=round(base, 2),
        fuel_surcharge=round(fuel, 2),
        docket_charge=round(docket, 2),
        cod_fee=round(cod, 2),
        rto_fee=round(rto, 2),
        pre_gst=round(pre_gst, 2),
        gst=round(gst, 2),
        expected_total=round(expected, 2),
    )
    return expected, breakdown


def classify_issues(
    row: ShipmentRow,
    contract: ContractRules,
    pincode_zone: Optional[str],
    weight: float,
    volumetric: Optional[float],
    difference: float,
) -> List[str]:
    """All applicable labels, in reporting order. Falls back to Rate Overcharge."""
    labels = []

    reference_zone = pincode_zone or row.actual_zone
    zone_mismatch = row.billed_zone != reference_zone
    if zone_mismatch:
        labels.append(f"{ZONE_MISMATCH} (Pincode Zone {pincode_zone})" if pincode_zone else ZONE_MISMATCH)

    weight_overcharge = row.billed_weight > weight + WEIGHT_TOLERANCE_KG
    if weight_overcharge:
        labels.append(WEIGHT_OVERCHARGE)

    if volumetric is not None and row.billed_weight < weight - WEIGHT_TOLERANCE_KG:
        labels.append(WEIGHT_DISCREPANCY)

    if row.is_return and row.total_billed_amount > expected_rto(contract) + RTO_TOLERANCE:
        labels.append(RTO_OVERCHARGE)

    if difference > SURCHARGE_THRESHOLD and not zone_mismatch and not weight_overcharge:
        labels.append(NON_CONTRACTED_SURCHARGE)

    if not labels:
        labels.append(RATE_OVERCHARGE)
    return labels


def audit_row(row: ShipmentRow, contract: ContractRules) -> Optional[Discrepancy]:
    """Audit a single, non-duplicate row. None when the bill is within tolerance."""
    weight, volumetric = chargeable_weight(row.actual_weight, row.length, row.width, row.height)

    derived = resolve_zone(row.origin_pincode, row.dest_pincode)
    pincode_zone = derived.value if derived is not None else None
    zone = pincode_zone or row.actual_zone
    zone_source = "pincode" if pincode_zone else "stated"

    rate = rate_for_zone(contract, zone)
    if rate is None:
        return Discrepancy(
            awb_number=row.awb,
            issue_type=zone_rate_unavailable(zone),
            billed_amount=row.total_billed_amount,
            correct_amount=row.total_billed_amount,
            difference=0,
        )

    expected, breakdown = compute_breakdown(row, contract, zone, zone_source, rate, weight, volumetric)
    difference = row.total_billed_amount - expected
    if difference <= FLAG_TOLERANCE:
        return None

    labels = classify_issues(row, contract, pincode_zone, weight, volumetric, difference)
    return Discrepancy(
        awb_number=row.awb,
        issue_type=", ".join(labels),
        billed_amount=row.total_billed_amount,
        correct_amount=round(expected, 2),
        difference=round(difference, 2),
        breakdown=breakdown,
    )


def audit(rows: Iterable[ShipmentRow], contract: ContractRules) -> AnalysisResult:
    """Audit a batch in input order. The first occurrence of an AWB is canonical."""
    rows = list(rows)
    discrepancies: List[Discrepancy] = []
    awb_seen = set()

    for row in rows:
        if row.awb in awb_seen:
            discrepancies.append(duplicate_discrepancy(row))
            continue
        awb_seen.add(row.awb)

        result = audit_row(row, contract)
        if result is not None:
            discrepancies.append(result)

    analysis = summarize(rows, discrepancies)
    logger.info(
        f"Full audit ({AUDIT_FORMULA_VERSION}): {analysis.total_rows} rows, "
        f"{len(discrepancies)} discrepancies, overcharge ₹{analysis.total_overcharge:.2f}"
    )
    return analysis
