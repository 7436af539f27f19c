import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import engine, Base
from app.models import db_models  # registers custom_contracts on Base.metadata
from app.api.routes import router
from app.services.discrepancy_engine import AUDIT_FORMULA_VERSION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(
        f"Courier audit API ready (formula {AUDIT_FORMULA_VERSION}, "
        f"Gemini {'enabled' if settings.GEMINI_API_KEY else 'disabled'})"
    )
    yield
    await engine.dispose()


app = FastAPI(title="Courier Invoice Audit API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok", "formula": AUDIT_FORMULA_VERSION}
