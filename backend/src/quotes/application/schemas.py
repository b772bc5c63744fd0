from typing import Optional, List
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, Field

from src.quotes.domain.entities import QuoteStatus, ItemSpecs

# --- Schémas pour les lignes ---

class QuoteItemInput(BaseModel):
    # Bornes (quantité, prix >= 0 à 2 décimales) vérifiées par le service: ValidationError métier
    part_number: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int
    unit_price: Decimal
    spec_url: Optional[str] = Field(None, max_length=500)
    specs: Optional[ItemSpecs] = None
    # Ignoré: recalculé côté serveur
    line_total: Optional[Decimal] = None

class QuoteItemResponse(BaseModel):
    part_number: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    spec_url: Optional[str] = None
    specs: Optional[ItemSpecs] = None

    class Config:
        from_attributes = True

# --- Schémas pour Quote ---

class QuoteDraft(BaseModel):
    client_id: int
    items: List[QuoteItemInput] = []
    notes: Optional[str] = None
    terms: Optional[str] = None
    validity_days: int = Field(30, ge=1, le=365)
    submit: bool = Field(True, description="True: statut initial Open, False: Draft")
    # Totaux éventuellement calculés par le client: jamais persistés
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None

class RevisionChanges(BaseModel):
    """Champs modifiables d'une révision; les champs absents sont copiés du parent."""
    items: Optional[List[QuoteItemInput]] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    validity_days: Optional[int] = Field(None, ge=1, le=365)
    # Accepté uniquement s'il est identique à celui du parent
    client_id: Optional[int] = None

class StatusTransitionRequest(BaseModel):
    status: QuoteStatus

class QuoteResponse(BaseModel):
    id: str
    folio: str
    version: int
    parent_folio: Optional[str] = None
    client_id: int
    items: List[QuoteItemResponse] = []
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: QuoteStatus
    created_at: datetime
    created_by: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    validity_days: int

    class Config:
        from_attributes = True

class QuoteLineageResponse(BaseModel):
    folio: str
    latest_version: int
    revisions: List[QuoteResponse]
