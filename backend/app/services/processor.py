"""Batch audit orchestration: group rows by provider, pick the audit path, merge results."""
import logging
from typing import Dict, List, Mapping, Optional

from app.models.schemas import (
    AnalysisResult,
    BatchAuditReport,
    ContractRules,
    GroupAuditResult,
    ShipmentRow,
    UnknownProvider,
)
from app.services.contract_store import provider_key
from app.services.discrepancy_engine import audit
from app.services.partial_auditor import partial_audit
from app.services.provider_classifier import classify, group_rows

logger = logging.getLogger(__name__)

ALL_ROWS_LABEL = "All"


def merge_results(results: List[AnalysisResult]) -> AnalysisResult:
    discrepancies = [d for r in results for d in r.discrepancies]
    return AnalysisResult(
        discrepancies=discrepancies,
        total_overcharge=round(sum(d.difference for d in discrepancies), 2),
        total_rows=sum(r.total_rows for r in results),
        total_billed=round(sum(r.total_billed for r in results), 2),
    )


def _group(provider: str, known: bool, rows: List[ShipmentRow], contract: Optional[ContractRules],
           confidence: Optional[float] = None) -> GroupAuditResult:
    if contract is not None:
        mode, result = "full", audit(rows, contract)
    else:
        mode, result = "partial", partial_audit(rows)
    return GroupAuditResult(
        provider=provider, known=known, confidence=confidence,
        mode=mode, row_count=len(rows), result=result,
    )


def run_audit(
    rows: List[ShipmentRow],
    default_contract: Optional[ContractRules] = None,
    provider_contracts: Optional[Mapping[str, ContractRules]] = None,
    custom_contracts: Optional[Mapping[str, ContractRules]] = None,
) -> BatchAuditReport:
    """
    Audit a batch that may mix couriers.

    Known couriers use their own contract (or the default one). Unknown
    providers are promoted to a full audit when a custom contract is stored
    under their normalised name; otherwise they get the partial audit.
    """
    provider_contracts = provider_contracts or {}
    custom_contracts = custom_contracts or {}

    if default_contract is not None and not any(r.provider for r in rows):
        groups = [_group(ALL_ROWS_LABEL, True, rows, default_contract)]
    else:
        grouped = group_rows(rows)
        groups = []
        for canonical, group in grouped.known.items():
            match = classify(group[0].provider)
            contract = provider_contracts.get(canonical, default_contract)
            groups.append(_group(canonical, True, group, contract, match.confidence if match else None))
        for label, group in grouped.unknown.items():
            groups.append(_group(label, False, group, custom_contracts.get(provider_key(label))))

    unknown_providers = [
        UnknownProvider(name=g.provider, row_count=g.row_count)
        for g in groups if not g.known and g.mode == "partial"
    ]
    report = BatchAuditReport(
        groups=groups,
        combined=merge_results([g.result for g in groups]),
        unknown_providers=unknown_providers,
    )
    logger.info(
        f"Batch audit: {len(rows)} rows in {len(groups)} provider group(s), "
        f"{len(unknown_providers)} unknown, overcharge ₹{report.combined.total_overcharge:.2f}"
    )
    return report


def reaudit_provider(rows: List[ShipmentRow], contract: ContractRules) -> AnalysisResult:
    """Full audit of a group that was previously only partially audited."""
    return audit(rows, contract)


def contracts_by_provider(contracts: Dict[str, ContractRules]) -> Dict[str, ContractRules]:
    """Key caller-supplied contracts by canonical courier name where the name is recognised."""
    resolved: Dict[str, ContractRules] = {}
    for name, contract in contracts.items():
        match = classify(name)
        resolved[match.canonical if match else name] = contract
    return resolved
