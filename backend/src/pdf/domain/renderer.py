from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from src.quotes.domain.entities import QuoteItem

class ClientSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    legal_name: str
    tax_id: str

class QuoteSnapshot(BaseModel):
    """État figé d'une révision, seule entrée du rendu."""
    model_config = ConfigDict(frozen=True)

    folio: str
    version: int
    client: ClientSnapshot
    items: Tuple[QuoteItem, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    notes: Optional[str] = None
    terms: Optional[str] = None
    validity_days: int
    issued_at: datetime

class RenderedDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    # Valeur encodée dans le code QR du document
    verification_code: str
    filename: str
    media_type: str = "application/pdf"

class AbstractQuoteRenderer(ABC):
    """Interface abstraite de rendu d'un devis imprimable.

    Deux appels avec le même instantané et la même URL produisent le même document.
    """

    @abstractmethod
    async def render(self, snapshot: QuoteSnapshot, verification_url: str) -> RenderedDocument:
        """Produit le document et le code de vérification embarqué.

        Raises:
            PDFGenerationException: Si une erreur survient durant la génération.
        """
        raise NotImplementedError
