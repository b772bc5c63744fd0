import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Path, Body, Response

# Services Applicatifs (via dépendances)
from .dependencies import QuoteServiceDep
from src.verification.interfaces.dependencies import VerificationServiceDep

# Schémas/DTOs
from src.quotes.application.schemas import (
    QuoteDraft, RevisionChanges, StatusTransitionRequest, QuoteResponse, QuoteLineageResponse
)

# Exceptions du Domaine (pour mapping)
from src.core.exceptions import (
    DomainException, ValidationError, NotFoundError, InvalidStateTransition, ConflictError, TransientError
)
from src.config import settings

# Dépendances d'Authentification
from src.auth.dependencies import StaffContextDep, QuoteWriterDep

logger = logging.getLogger(__name__)

# --- Création du Routeur ---
quote_router = APIRouter(
    tags=["Quotes"]
)

def _http_error(e: DomainException, label: str) -> HTTPException:
    """Traduit une erreur du domaine en réponse HTTP."""
    if isinstance(e, ValidationError):
        logger.warning(f"Erreur validation {label}: {e.message}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, (InvalidStateTransition, ConflictError)):
        logger.warning(f"Conflit {label}: {e.message}")
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, TransientError):
        logger.error(f"Erreur transitoire {label}: {e.message}")
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=settings.TRANSIENT_ERROR_MSG)
    logger.error(f"Erreur domaine non gérée {label}: {e.message}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne devis.")

# --- Endpoints pour les Devis ---

@quote_router.post("/", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_new_quote(
    draft: QuoteDraft,
    quote_service: QuoteServiceDep,
    staff: QuoteWriterDep
):
    """Crée un devis (version 1) et lui attribue un nouveau folio."""
    logger.info(f"API create_quote pour client ID {draft.client_id} par {staff.email}")
    try:
        return await quote_service.create_quote(draft, staff)
    except DomainException as e:
        raise _http_error(e, "create_quote")
    except Exception as e:
        logger.error(f"Erreur API create_quote par {staff.email}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne création devis.")

@quote_router.post("/{quote_id}/revisions", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_quote_revision(
    quote_service: QuoteServiceDep,
    staff: QuoteWriterDep,
    quote_id: str = Path(..., title="ID de la révision parente", min_length=1, max_length=64),
    changes: Optional[RevisionChanges] = Body(None),
):
    """Crée la version suivante du folio à partir de la dernière révision."""
    logger.info(f"API create_revision depuis ID={quote_id} par {staff.email}")
    try:
        return await quote_service.create_revision(quote_id, changes, staff)
    except DomainException as e:
        raise _http_error(e, "create_revision")
    except Exception as e:
        logger.error(f"Erreur API create_revision {quote_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne révision devis.")

@quote_router.patch("/{quote_id}/status", response_model=QuoteResponse)
async def update_quote_status(
    quote_service: QuoteServiceDep,
    staff: QuoteWriterDep,
    quote_id: str = Path(..., title="ID du devis à MAJ", min_length=1, max_length=64),
    transition: StatusTransitionRequest = Body(...)
):
    """Fait évoluer le statut d'une révision."""
    logger.info(f"API update_quote_status: ID={quote_id} à '{transition.status.value}' par {staff.email}")
    try:
        return await quote_service.transition_status(quote_id, transition.status, staff)
    except DomainException as e:
        raise _http_error(e, "update_quote_status")
    except Exception as e:
        logger.error(f"Erreur API update_quote_status {quote_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne MAJ statut devis.")

@quote_router.get("/lineage/{folio}", response_model=QuoteLineageResponse)
async def read_quote_lineage(
    quote_service: QuoteServiceDep,
    staff: StaffContextDep,
    folio: str = Path(..., title="Folio", min_length=1, max_length=50)
):
    """Toutes les révisions d'un folio, par version croissante."""
    logger.info(f"API read_lineage: {folio} par {staff.email}")
    try:
        return await quote_service.list_lineage(folio)
    except DomainException as e:
        raise _http_error(e, "read_lineage")

@quote_router.get("/{quote_id}", response_model=QuoteResponse)
async def read_quote(
    quote_service: QuoteServiceDep,
    staff: StaffContextDep,
    quote_id: str = Path(..., title="ID du devis", min_length=1, max_length=64)
):
    logger.info(f"API read_quote: ID={quote_id} par {staff.email}")
    try:
        return await quote_service.get_quote(quote_id)
    except DomainException as e:
        raise _http_error(e, "read_quote")

@quote_router.get("/{quote_id}/pdf")
async def download_quote_pdf(
    verification: VerificationServiceDep,
    staff: StaffContextDep,
    quote_id: str = Path(..., title="ID du devis", min_length=1, max_length=64)
):
    """PDF de la révision, avec QR de vérification."""
    logger.info(f"API download_quote_pdf: ID={quote_id} par {staff.email}")
    try:
        document = await verification.render_by_id(quote_id)
    except DomainException as e:
        raise _http_error(e, "download_quote_pdf")
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
