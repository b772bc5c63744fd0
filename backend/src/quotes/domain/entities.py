from enum import Enum
from typing import Optional, List, Literal, Union, Annotated
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.core.utils import as_utc

# Entités du Domaine "Quotes"

class QuoteStatus(str, Enum):
    DRAFT = "Draft"
    OPEN = "Open"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    INVOICED = "Invoiced"
    IN_PRODUCTION = "InProduction"

# --- Fiches techniques par catégorie de produit ---

class SensorSpecs(BaseModel):
    category: Literal["sensor"] = "sensor"
    sensor_type: Literal["Temperatura", "Humedad", "Presión", "Vibración"]
    accuracy: Optional[str] = Field(None, max_length=50)
    sampling_rate: Optional[str] = Field(None, max_length=50)

class GatewaySpecs(BaseModel):
    category: Literal["gateway"] = "gateway"
    max_devices: int = Field(..., ge=1)
    uplink_type: Literal["Ethernet", "4G/LTE", "Wi-Fi"]
    protocols_supported: List[str] = []

ItemSpecs = Annotated[Union[SensorSpecs, GatewaySpecs], Field(discriminator="category")]

class QuoteItem(BaseModel):
    part_number: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    spec_url: Optional[str] = None
    specs: Optional[ItemSpecs] = None

    class Config:
        from_attributes = True

class Quote(BaseModel):
    id: str
    folio: str
    version: int
    parent_folio: Optional[str] = None
    client_id: int
    items: List[QuoteItem] = []
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: QuoteStatus
    created_at: datetime
    created_by: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    validity_days: int

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    class Config:
        from_attributes = True
