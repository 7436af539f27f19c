"""
Persistence for custom provider contracts.

When a rate card is uploaded for a provider outside the known courier list,
its rules are stored under the normalised provider name so later audits can
run the full rate-based engine for that provider.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import db_models
from app.models.schemas import ContractRules, CustomContract, CustomContractOut

logger = logging.getLogger(__name__)


def provider_key(raw_name: str) -> str:
    """Case-insensitive lookup key: lower-cased and trimmed."""
    return (raw_name or "").lower().strip()


def _to_out(row: db_models.CustomContract) -> CustomContractOut:
    return CustomContractOut(
        provider_key=row.provider_key,
        provider_name=row.provider_name,
        created_at=row.created_at,
        updated_at=row.updated_at,
        **(row.rules or {}),
    )


async def save_custom_contract(db: AsyncSession, raw_name: str, contract: ContractRules) -> CustomContractOut:
    key = provider_key(raw_name)
    if not key:
        raise ValueError("provider_name is required to save a custom contract.")

    rules = ContractRules(**contract.model_dump(include=set(ContractRules.model_fields))).model_dump()
    result = await db.execute(select(db_models.CustomContract).where(db_models.CustomContract.provider_key == key))
    row = result.scalar_one_or_none()
    if row is None:
        row = db_models.CustomContract(provider_key=key, provider_name=raw_name.strip(), rules=rules)
        db.add(row)
    else:
        row.provider_name = raw_name.strip()
        row.rules = rules
        row.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(row)
    logger.info(f"Custom contract saved for '{key}'")
    return _to_out(row)


async def get_custom_contract(db: AsyncSession, raw_name: str) -> Optional[CustomContractOut]:
    result = await db.execute(
        select(db_models.CustomContract).where(db_models.CustomContract.provider_key == provider_key(raw_name))
    )
    row = result.scalar_one_or_none()
    return _to_out(row) if row else None


async def load_custom_contracts(db: AsyncSession) -> Dict[str, CustomContractOut]:
    result = await db.execute(select(db_models.CustomContract).order_by(db_models.CustomContract.created_at))
    return {row.provider_key: _to_out(row) for row in result.scalars().all()}


async def clear_custom_contracts(db: AsyncSession) -> int:
    result = await db.execute(delete(db_models.CustomContract))
    await db.commit()
    return result.rowcount or 0


def as_rules(contracts: Dict[str, CustomContract]) -> Dict[str, ContractRules]:
    return {key: c.rules() for key, c in contracts.items()}
