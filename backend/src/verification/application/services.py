"""
Résolution publique des devis par folio (dernière version) ou par ID (révision exacte).

Toute absence est signalée par le même message, quel que soit le chemin,
pour ne pas permettre l'énumération des identifiants.
"""
import logging
from typing import Optional

from src.config import settings
from src.core.exceptions import NotFoundError, TransientError
from src.core.retry import retry_async
from src.clients.domain.registry import AbstractClientRegistry
from src.pdf.domain.exceptions import PDFGenerationException
from src.pdf.domain.renderer import AbstractQuoteRenderer, QuoteSnapshot, ClientSnapshot, RenderedDocument
from src.quotes.domain.entities import Quote
from src.quotes.domain.repositories import AbstractQuoteRepository
from src.quotes.application.schemas import QuoteItemResponse

from .schemas import VerifiedQuoteView, DocumentLink, DocumentListResponse

logger = logging.getLogger(__name__)

NOT_REGISTERED_MESSAGE = "Document non enregistré."
UNKNOWN_CLIENT = ClientSnapshot(legal_name="-", tax_id="-")

def verification_url_for(quote_id: str) -> str:
    """URL encodée dans le QR: elle désigne la révision exacte imprimée."""
    return f"{settings.PUBLIC_BASE_URL}{settings.API_V1_PREFIX}/verify/id/{quote_id}"

class VerificationService:
    """Service applicatif du résolveur de vérification."""

    def __init__(
        self,
        quote_repo: AbstractQuoteRepository,
        client_registry: AbstractClientRegistry,
        renderer: Optional[AbstractQuoteRenderer] = None,
    ):
        self.quote_repo = quote_repo
        self.client_registry = client_registry
        self.renderer = renderer

    # --- Résolution ---

    async def resolve_by_folio(self, folio: str) -> Quote:
        """Retourne la révision de plus haute version du folio."""
        quote = await self.quote_repo.get_latest_by_folio(folio)
        if quote is None:
            logger.info(f"[Verification] Folio inconnu: {folio}")
            raise NotFoundError(NOT_REGISTERED_MESSAGE)
        return quote

    async def resolve_by_id(self, quote_id: str) -> Quote:
        """Retourne exactement la révision référencée, même si elle a été révisée depuis."""
        quote = await self.quote_repo.get_by_id(quote_id)
        if quote is None:
            logger.info(f"[Verification] ID inconnu: {quote_id}")
            raise NotFoundError(NOT_REGISTERED_MESSAGE)
        return quote

    # --- Vues ---

    async def view_by_folio(self, folio: str) -> VerifiedQuoteView:
        return await self._build_view(await self.resolve_by_folio(folio))

    async def view_by_id(self, quote_id: str) -> VerifiedQuoteView:
        return await self._build_view(await self.resolve_by_id(quote_id))

    async def documents_by_folio(self, folio: str) -> DocumentListResponse:
        return self._build_documents(await self.resolve_by_folio(folio))

    async def documents_by_id(self, quote_id: str) -> DocumentListResponse:
        return self._build_documents(await self.resolve_by_id(quote_id))

    # --- Rendu ---

    async def render_by_folio(self, folio: str) -> RenderedDocument:
        return await self.render_quote(await self.resolve_by_folio(folio))

    async def render_by_id(self, quote_id: str) -> RenderedDocument:
        return await self.render_quote(await self.resolve_by_id(quote_id))

    async def render_quote(self, quote: Quote) -> RenderedDocument:
        if self.renderer is None:
            raise RuntimeError("Aucun moteur de rendu configuré pour VerificationService.")
        snapshot = await self.build_snapshot(quote)
        url = verification_url_for(quote.id)

        async def _render() -> RenderedDocument:
            try:
                return await self.renderer.render(snapshot, url)
            except PDFGenerationException as e:
                raise TransientError("Génération du document impossible pour le moment.", original_exception=e)

        return await retry_async(_render, label=f"rendu {quote.folio} v{quote.version}")

    async def build_snapshot(self, quote: Quote) -> QuoteSnapshot:
        client = await self._client_snapshot(quote.client_id)
        return QuoteSnapshot(
            folio=quote.folio,
            version=quote.version,
            client=client,
            items=tuple(quote.items),
            subtotal=quote.subtotal,
            tax=quote.tax,
            total=quote.total,
            notes=quote.notes,
            terms=quote.terms,
            validity_days=quote.validity_days,
            issued_at=quote.created_at,
        )

    # --- Helpers ---

    async def _client_snapshot(self, client_id: int) -> ClientSnapshot:
        client = await retry_async(
            lambda: self.client_registry.get_client(client_id),
            label="registre clients",
        )
        if client is None:
            logger.warning(f"[Verification] Client ID {client_id} introuvable pour un devis existant.")
            return UNKNOWN_CLIENT
        return ClientSnapshot(legal_name=client.legal_name, tax_id=client.tax_id)

    async def _build_view(self, quote: Quote) -> VerifiedQuoteView:
        client = await self._client_snapshot(quote.client_id)
        latest_version = await self.quote_repo.get_max_version(quote.folio) or quote.version
        return VerifiedQuoteView(
            quote_id=quote.id,
            folio=quote.folio,
            version=quote.version,
            latest_version=latest_version,
            issued_at=quote.created_at,
            client_legal_name=client.legal_name,
            client_tax_id=client.tax_id,
            status=quote.status,
            items=[QuoteItemResponse.model_validate(i) for i in quote.items],
            subtotal=quote.subtotal,
            tax=quote.tax,
            total=quote.total,
            notes=quote.notes,
            terms=quote.terms,
            validity_days=quote.validity_days,
        )

    def _build_documents(self, quote: Quote) -> DocumentListResponse:
        documents = [
            DocumentLink(part_number=i.part_number, name=i.name, spec_url=i.spec_url)
            for i in quote.items
            if i.spec_url
        ]
        return DocumentListResponse(folio=quote.folio, version=quote.version, documents=documents)
