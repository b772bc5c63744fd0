import uuid
from typing import Optional, List, Dict, Any
from decimal import Decimal
from datetime import datetime

from sqlalchemy import Column, DateTime, Numeric, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field

from src.core.utils import utcnow

def new_quote_id() -> str:
    return uuid.uuid4().hex

class QuoteRecord(SQLModel, table=True):
    """Une révision de devis. La contrainte (folio, version) départage les écritures concurrentes."""
    __tablename__ = "quotes"
    __table_args__ = (
        UniqueConstraint("folio", "version", name="uq_quotes_folio_version"),
    )

    id: str = Field(default_factory=new_quote_id, primary_key=True, max_length=32)
    folio: str = Field(index=True, max_length=40, nullable=False)
    version: int = Field(nullable=False)
    parent_folio: Optional[str] = Field(default=None, max_length=40)
    client_id: int = Field(foreign_key="clients.id", index=True, nullable=False)
    # Lignes sérialisées en JSON (montants en chaînes pour garder la précision)
    items: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    subtotal: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))
    tax: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))
    total: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))
    status: str = Field(max_length=20, index=True, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    created_by: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None)
    terms: Optional[str] = Field(default=None)
    validity_days: int = Field(default=30, nullable=False)
