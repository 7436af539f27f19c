import io
import logging
import os
import shutil
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, Form
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.models.schemas import (
    AnalysisResult,
    AuditRequest,
    BatchAuditReport,
    ClassifyOut,
    ClassifyRequest,
    ContractRules,
    CustomContract,
    CustomContractOut,
    ExtractedContract,
    HeaderMapRequest,
    ReauditRequest,
)
from app.services.contract_extractor import ContractExtractionError, extract_contract
from app.services.contract_store import (
    as_rules,
    clear_custom_contracts,
    get_custom_contract,
    load_custom_contracts,
    save_custom_contract,
)
from app.services.csv_generator import generate_discrepancy_csv, generate_summary_csv
from app.services.header_mapper import map_headers
from app.services.invoice_reader import read_invoice_csv
from app.services.processor import contracts_by_provider, reaudit_provider, run_audit
from app.services.provider_classifier import classify
from app.services.row_normalizer import normalize_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def upload_file_path(filename: str) -> str:
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    ts = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")
    return os.path.join(settings.UPLOAD_DIR, f"{ts}_{os.path.basename(filename or 'upload')}")


async def _audit(payload: AuditRequest, db: AsyncSession) -> BatchAuditReport:
    rows = normalize_rows(payload.rows)
    custom = as_rules(await load_custom_contracts(db))
    return run_audit(rows, payload.contract, contracts_by_provider(payload.provider_contracts), custom)


@router.post("/audit", response_model=BatchAuditReport)
async def audit_rows(payload: AuditRequest, db: AsyncSession = Depends(get_db)):
    return await _audit(payload, db)


@router.post("/audit/upload", response_model=BatchAuditReport)
async def audit_upload(
    invoice_file: UploadFile = File(...),
    contract_json: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
):
    contract = None
    if contract_json:
        try:
            contract = ContractRules.model_validate_json(contract_json)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid contract: {e.error_count()} field error(s).")

    try:
        rows = read_invoice_csv(await invoice_file.read())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    custom = as_rules(await load_custom_contracts(db))
    return run_audit(rows, contract, custom_contracts=custom)


@router.post("/audit/export")
async def export_audit(payload: AuditRequest, kind: str = "discrepancy", db: AsyncSession = Depends(get_db)):
    report = await _audit(payload, db)
    if kind == "discrepancy":
        content = generate_discrepancy_csv(report.combined)
    elif kind == "summary":
        content = generate_summary_csv(report)
    else:
        raise HTTPException(400, "kind must be 'discrepancy' or 'summary'")

    return StreamingResponse(
        io.StringIO(content),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{kind}_audit.csv"'},
    )


@router.post("/providers/classify", response_model=List[ClassifyOut])
async def classify_providers(payload: ClassifyRequest):
    out = []
    for name in payload.names:
        match = classify(name)
        out.append(ClassifyOut(
            name=name,
            canonical=match.canonical if match else None,
            confidence=match.confidence if match else 0.0,
        ))
    return out


@router.post("/headers/map")
async def map_raw_headers(payload: HeaderMapRequest):
    try:
        return map_headers(payload.rawHeaders)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/contracts/extract", response_model=ExtractedContract)
async def extract_rate_card(file: UploadFile = File(...)):
    if file.content_type != "application/pdf" and not (file.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Request must include a 'file' field containing a PDF.")

    path = upload_file_path(file.filename if (file.filename or "").lower().endswith(".pdf") else "contract.pdf")
    with open(path, "wb") as f:
        shutil.copyfileobj(file.file, f)

    try:
        return await extract_contract(path)
    except ContractExtractionError as e:
        logger.warning(f"Contract extraction failed for {file.filename}: {e}")
    except Exception:
        logger.exception(f"Contract extraction error for {file.filename}")
    finally:
        os.remove(path)
    raise HTTPException(status_code=500, detail="Failed to extract contract data from PDF.")


@router.post("/contracts/custom", response_model=CustomContractOut)
async def save_contract(payload: CustomContract, db: AsyncSession = Depends(get_db)):
    try:
        return await save_custom_contract(db, payload.provider_name, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/contracts/custom", response_model=List[CustomContractOut])
async def list_contracts(db: AsyncSession = Depends(get_db)):
    return list((await load_custom_contracts(db)).values())


@router.delete("/contracts/custom")
async def delete_contracts(db: AsyncSession = Depends(get_db)):
    return {"deleted": await clear_custom_contracts(db)}


@router.post("/contracts/custom/{provider_name}/reaudit", response_model=AnalysisResult)
async def reaudit_with_custom_contract(provider_name: str, payload: ReauditRequest, db: AsyncSession = Depends(get_db)):
    stored = await get_custom_contract(db, provider_name)
    if not stored:
        raise HTTPException(status_code=404, detail=f"No custom contract stored for '{provider_name}'.")
    return reaudit_provider(normalize_rows(payload.rows), stored.rules())
