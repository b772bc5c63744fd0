from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel

from src.quotes.domain.entities import QuoteStatus
from src.quotes.application.schemas import QuoteItemResponse

class VerifiedQuoteView(BaseModel):
    """Vue publique d'une révision, affichée après vérification."""
    quote_id: str
    folio: str
    version: int
    latest_version: int
    issued_at: datetime
    client_legal_name: str
    client_tax_id: str
    status: QuoteStatus
    items: List[QuoteItemResponse]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    notes: Optional[str] = None
    terms: Optional[str] = None
    validity_days: int

class DocumentLink(BaseModel):
    part_number: str
    name: str
    spec_url: str

class DocumentListResponse(BaseModel):
    folio: str
    version: int
    documents: List[DocumentLink]
