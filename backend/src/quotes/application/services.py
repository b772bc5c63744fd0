import logging
from typing import Optional, List, Dict, Any, Sequence
from decimal import Decimal

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

# Repositories et collaborateurs (interfaces)
from src.quotes.domain.repositories import AbstractQuoteRepository
from src.clients.domain.registry import AbstractClientRegistry
from src.folios.sequencer import AbstractFolioSequencer

# Domaine
from src.quotes.domain.entities import Quote, QuoteItem, QuoteStatus
from src.quotes.domain.pricing import (
    compute_line_total, compute_totals, fits_money_scale, QuoteTotals, MAX_AMOUNT, MAX_QUANTITY,
)
from src.quotes.domain.state_machine import ensure_transition, is_terminal
from src.quotes.domain.exceptions import (
    QuoteNotFoundException, LineageNotFoundException, VersionCollisionException,
    StaleRevisionException, StatusConflictException,
)
from src.core.exceptions import ValidationError, InvalidStateTransition, TransientError
from src.core.retry import retry_async
from src.config import settings

# Application
from src.auth.models import StaffContext
from .schemas import QuoteDraft, RevisionChanges, QuoteItemInput, QuoteResponse, QuoteLineageResponse

logger = logging.getLogger(__name__)

class QuoteService:
    """Service applicatif pour la création, la révision et le cycle de vie des devis.

    Le service possède la transaction: chaque opération d'écriture se termine par
    un commit ou un rollback complet.
    """

    def __init__(
        self,
        session: AsyncSession,
        quote_repo: AbstractQuoteRepository,
        client_registry: AbstractClientRegistry,
        folio_sequencer: AbstractFolioSequencer,
        tax_rate: Optional[Decimal] = None,
        max_attempts: Optional[int] = None,
    ):
        self.session = session
        self.quote_repo = quote_repo
        self.client_registry = client_registry
        self.folio_sequencer = folio_sequencer
        self.tax_rate = tax_rate if tax_rate is not None else settings.TAX_RATE
        self.max_attempts = max_attempts or settings.REVISION_MAX_ATTEMPTS

    # --- Lectures ---

    async def get_quote(self, quote_id: str) -> QuoteResponse:
        logger.debug(f"[QuoteService] Récupération devis ID: {quote_id}")
        quote = await self.quote_repo.get_by_id(quote_id)
        if not quote:
            logger.warning(f"[QuoteService] Devis ID {quote_id} non trouvé.")
            raise QuoteNotFoundException(quote_id)
        return QuoteResponse.model_validate(quote)

    async def list_lineage(self, folio: str) -> QuoteLineageResponse:
        logger.debug(f"[QuoteService] Lignée du folio {folio}")
        revisions = await self.quote_repo.list_lineage(folio)
        if not revisions:
            raise LineageNotFoundException(folio)
        return QuoteLineageResponse(
            folio=folio,
            latest_version=revisions[-1].version,
            revisions=[QuoteResponse.model_validate(q) for q in revisions],
        )

    # --- Création ---

    async def create_quote(self, draft: QuoteDraft, actor: StaffContext) -> QuoteResponse:
        """Valide un brouillon, alloue un folio et persiste la version 1."""
        logger.info(f"[QuoteService] Tentative création devis pour client ID {draft.client_id} par {actor.email}")
        items = self._price_items(draft.items)

        client = await retry_async(
            lambda: self.client_registry.get_active_client(draft.client_id),
            label="registre clients",
        )
        if client is None:
            logger.warning(f"[QuoteService] Client ID {draft.client_id} inconnu ou inactif.")
            raise ValidationError(f"Le client {draft.client_id} n'existe pas ou n'est plus actif.")

        totals = self._compute_totals(items)
        self._warn_on_client_totals(draft, totals)
        status = QuoteStatus.OPEN if draft.submit else QuoteStatus.DRAFT

        async def _attempt() -> Quote:
            folio = await self.folio_sequencer.issue_folio()
            quote = await self.quote_repo.add(self._record_data(
                folio=folio,
                version=1,
                parent_folio=None,
                client_id=draft.client_id,
                items=items,
                totals=totals,
                status=status,
                actor=actor,
                notes=draft.notes,
                terms=draft.terms,
                validity_days=draft.validity_days,
            ))
            await self._commit()
            return quote

        quote = await retry_async(
            _attempt,
            attempts=self.max_attempts,
            retry_on=(TransientError, VersionCollisionException),
            label="création devis",
        )
        logger.info(f"[QuoteService] Devis {quote.folio} v1 créé (ID {quote.id}, total {quote.total}).")
        return QuoteResponse.model_validate(quote)

    # --- Révisions ---

    async def create_revision(
        self,
        parent_id: str,
        changes: Optional[RevisionChanges],
        actor: StaffContext,
    ) -> QuoteResponse:
        """Crée la révision suivante d'un devis sans modifier le parent.

        Une collision sur (folio, version) est rejouée contre l'état relu de la
        lignée; si le parent n'est plus la dernière version, ConflictError.
        """
        changes = changes or RevisionChanges()
        logger.info(f"[QuoteService] Tentative révision du devis ID {parent_id} par {actor.email}")

        async def _attempt() -> Quote:
            parent = await self.quote_repo.get_by_id(parent_id)
            if not parent:
                raise QuoteNotFoundException(parent_id)
            if is_terminal(parent.status):
                logger.warning(f"[QuoteService] Révision refusée: {parent.folio} v{parent.version} est {parent.status.value}.")
                raise InvalidStateTransition(current=parent.status.value, target=QuoteStatus.OPEN.value)
            if changes.client_id is not None and changes.client_id != parent.client_id:
                raise ValidationError("Une révision ne peut pas changer de client.")

            head_version = await self.quote_repo.get_max_version(parent.folio)
            if head_version is not None and head_version != parent.version:
                raise StaleRevisionException(parent.folio, parent.version, head_version)

            if changes.items is not None:
                items = self._price_items(changes.items)
            else:
                items = self._reprice_items(parent.items)
            totals = self._compute_totals(items)

            quote = await self.quote_repo.add(self._record_data(
                folio=parent.folio,
                version=parent.version + 1,
                parent_folio=parent.folio,
                client_id=parent.client_id,
                items=items,
                totals=totals,
                status=QuoteStatus.OPEN,
                actor=actor,
                notes=changes.notes if changes.notes is not None else parent.notes,
                terms=changes.terms if changes.terms is not None else parent.terms,
                validity_days=changes.validity_days if changes.validity_days is not None else parent.validity_days,
            ))
            await self._commit()
            return quote

        quote = await retry_async(
            _attempt,
            attempts=self.max_attempts,
            retry_on=(TransientError, VersionCollisionException),
            label=f"révision devis {parent_id}",
        )
        logger.info(f"[QuoteService] Révision {quote.folio} v{quote.version} créée (ID {quote.id}).")
        return QuoteResponse.model_validate(quote)

    # --- Statut ---

    async def transition_status(self, quote_id: str, target: QuoteStatus, actor: StaffContext) -> QuoteResponse:
        """Applique une transition autorisée de façon atomique (test et écriture en une requête)."""
        logger.info(f"[QuoteService] Tentative transition devis ID {quote_id} vers '{target.value}' par {actor.email}")
        quote = await self.quote_repo.get_by_id(quote_id)
        if not quote:
            raise QuoteNotFoundException(quote_id)

        ensure_transition(quote.status, target)

        applied = await self.quote_repo.update_status(quote_id, expected=quote.status, target=target)
        if not applied:
            await self.session.rollback()
            logger.warning(f"[QuoteService] Statut du devis {quote_id} modifié en concurrence.")
            raise StatusConflictException(quote_id)
        await self._commit()

        updated = await self.quote_repo.get_by_id(quote_id)
        logger.info(f"[QuoteService] Devis {quote.folio} v{quote.version}: {quote.status.value} -> {target.value}.")
        return QuoteResponse.model_validate(updated)

    # --- Helpers ---

    def _price_items(self, items_in: Sequence[QuoteItemInput]) -> List[QuoteItem]:
        if not items_in:
            raise ValidationError("Impossible de créer un devis sans articles.")
        priced = []
        for index, item in enumerate(items_in, start=1):
            if not 1 <= item.quantity <= MAX_QUANTITY:
                raise ValidationError(f"Ligne {index} ({item.part_number}): quantité invalide ({item.quantity}).")
            if item.unit_price < 0:
                raise ValidationError(f"Ligne {index} ({item.part_number}): prix unitaire négatif.")
            if not fits_money_scale(item.unit_price):
                raise ValidationError(
                    f"Ligne {index} ({item.part_number}): prix unitaire hors format (2 décimales, {MAX_AMOUNT} max)."
                )
            priced.append(QuoteItem(
                part_number=item.part_number,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=compute_line_total(item.quantity, item.unit_price),
                spec_url=item.spec_url,
                specs=item.specs,
            ))
        return priced

    def _reprice_items(self, items: Sequence[QuoteItem]) -> List[QuoteItem]:
        return [
            item.model_copy(update={"line_total": compute_line_total(item.quantity, item.unit_price)})
            for item in items
        ]

    def _compute_totals(self, items: Sequence[QuoteItem]) -> QuoteTotals:
        totals = compute_totals([i.line_total for i in items], self.tax_rate)
        if totals.total > MAX_AMOUNT:
            raise ValidationError(f"Montant total {totals.total} supérieur au maximum autorisé ({MAX_AMOUNT}).")
        return totals

    def _warn_on_client_totals(self, draft: QuoteDraft, totals: QuoteTotals) -> None:
        submitted = (draft.subtotal, draft.tax, draft.total)
        computed = (totals.subtotal, totals.tax, totals.total)
        if any(s is not None and s != c for s, c in zip(submitted, computed)):
            logger.warning(
                f"[QuoteService] Totaux transmis {submitted} ignorés, recalculés: {computed}"
            )

    def _record_data(
        self,
        *,
        folio: str,
        version: int,
        parent_folio: Optional[str],
        client_id: int,
        items: List[QuoteItem],
        totals: QuoteTotals,
        status: QuoteStatus,
        actor: StaffContext,
        notes: Optional[str],
        terms: Optional[str],
        validity_days: int,
    ) -> Dict[str, Any]:
        return {
            "folio": folio,
            "version": version,
            "parent_folio": parent_folio,
            "client_id": client_id,
            "items": [i.model_dump(mode="json") for i in items],
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "total": totals.total,
            "status": status.value,
            "created_by": actor.email,
            "notes": notes,
            "terms": terms,
            "validity_days": validity_days,
        }

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except OperationalError as e:
            await self.session.rollback()
            logger.error(f"[QuoteService] Commit impossible: {e}", exc_info=True)
            raise TransientError("Base de données indisponible.", original_exception=e)
