from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from app.core.database import Base


class CustomContract(Base):
    """Rate card extracted for a provider outside the built-in courier list."""
    __tablename__ = "custom_contracts"
    id = Column(Integer, primary_key=True, index=True)
    provider_key = Column(String, unique=True, index=True)  # lower-cased, trimmed provider name
    provider_name = Column(String)
    rules = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
