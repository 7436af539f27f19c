"""
Shared fixtures.

The database URL is pointed at a throwaway SQLite file before any app module
is imported, so nothing here needs Postgres. Gemini stays disabled
(GEMINI_API_KEY is empty) and every extraction/mapping test exercises the
deterministic paths.
"""
import asyncio
import os
import tempfile

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="courier_audit_")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["GEMINI_API_KEY"] = ""

from sqlalchemy import delete  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.database import Base  # noqa: E402
from app.models import db_models  # noqa: E402
from app.models.schemas import ContractRules, ShipmentRow  # noqa: E402

test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


async def _reset_db():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(delete(db_models.CustomContract))


@pytest.fixture
def session_factory():
    """Empty custom_contracts table, fresh per test."""
    asyncio.run(_reset_db())
    return TestSessionLocal


@pytest.fixture
def client(session_factory, tmp_path):
    from fastapi.testclient import TestClient

    from app.core.config import settings
    from app.core.database import get_db
    from app.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    original_upload_dir = settings.UPLOAD_DIR
    settings.UPLOAD_DIR = str(tmp_path / "uploads")
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        settings.UPLOAD_DIR = original_upload_dir


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================

@pytest.fixture
def contract() -> ContractRules:
    """Rate card used across engine tests: ₹30/₹40/₹55 per slab, no D/E rates."""
    return ContractRules(
        zone_a_rate=30,
        zone_b_rate=40,
        zone_c_rate=55,
        cod_fee_percentage=2,
        rto_flat_fee=50,
        fuel_surcharge_percentage=12,
        docket_charge=25,
        gst_percentage=18,
    )


@pytest.fixture
def make_row():
    """Factory for ShipmentRow with sensible Prepaid / Zone A defaults."""
    def _make(**overrides) -> ShipmentRow:
        data = {
            "awb": "AWB001",
            "order_type": "Prepaid",
            "billed_weight": 0.4,
            "actual_weight": 0.4,
            "billed_zone": "A",
            "actual_zone": "A",
            "total_billed_amount": 70,
        }
        data.update(overrides)
        return ShipmentRow(**data)
    return _make
