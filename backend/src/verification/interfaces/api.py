"""
Routes publiques de vérification et de documents.

Chaque route exige une session d'accès dont la portée est exactement le
chemin appelé. Une révision inconnue répond toujours le même 404.
"""
import logging
from typing import Awaitable, Callable, TypeVar

from fastapi import APIRouter, HTTPException, Path, Response, status

from src.config import settings
from src.core.exceptions import NotFoundError, TransientError
from src.access.interfaces.dependencies import DocumentAccessDep
from src.pdf.domain.renderer import RenderedDocument
from src.verification.application.schemas import VerifiedQuoteView, DocumentListResponse
from src.verification.application.services import NOT_REGISTERED_MESSAGE

from .dependencies import VerificationServiceDep

logger = logging.getLogger(__name__)

T = TypeVar("T")

verify_router = APIRouter(
    tags=["Verification"]
)

documents_router = APIRouter(
    tags=["Documents"]
)

async def _resolve(operation: Callable[[], Awaitable[T]], label: str) -> T:
    try:
        return await operation()
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_REGISTERED_MESSAGE)
    except TransientError as e:
        logger.error(f"Erreur transitoire {label}: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=settings.TRANSIENT_ERROR_MSG)
    except Exception as e:
        logger.error(f"Erreur API {label}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne vérification.")

def _pdf_response(document: RenderedDocument) -> Response:
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": f'inline; filename="{document.filename}"',
            "X-Verification-Code": document.verification_code,
        },
    )

# --- Vérification ---

@verify_router.get("/folio/{folio}", response_model=VerifiedQuoteView)
async def verify_by_folio(
    access: DocumentAccessDep,
    verification: VerificationServiceDep,
    folio: str = Path(..., min_length=1, max_length=50),
):
    """Dernière révision du folio."""
    logger.info(f"API verify_by_folio: {folio} par {access.email}")
    return await _resolve(lambda: verification.view_by_folio(folio), "verify_by_folio")

@verify_router.get("/id/{quote_id}", response_model=VerifiedQuoteView)
async def verify_by_id(
    access: DocumentAccessDep,
    verification: VerificationServiceDep,
    quote_id: str = Path(..., min_length=1, max_length=64),
):
    """Révision exacte (cible du QR imprimé)."""
    logger.info(f"API verify_by_id: {quote_id} par {access.email}")
    return await _resolve(lambda: verification.view_by_id(quote_id), "verify_by_id")

# --- Documents ---

@documents_router.get("/folio/{folio}", response_model=DocumentListResponse)
async def documents_by_folio(
    access: DocumentAccessDep,
    verification: VerificationServiceDep,
    folio: str = Path(..., min_length=1, max_length=50),
):
    logger.info(f"API documents_by_folio: {folio} par {access.email}")
    return await _resolve(lambda: verification.documents_by_folio(folio), "documents_by_folio")

@documents_router.get("/id/{quote_id}", response_model=DocumentListResponse)
async def documents_by_id(
    access: DocumentAccessDep,
    verification: VerificationServiceDep,
    quote_id: str = Path(..., min_length=1, max_length=64),
):
    logger.info(f"API documents_by_id: {quote_id} par {access.email}")
    return await _resolve(lambda: verification.documents_by_id(quote_id), "documents_by_id")

@documents_router.get("/folio/{folio}/pdf")
async def pdf_by_folio(
    access: DocumentAccessDep,
    verification: VerificationServiceDep,
    folio: str = Path(..., min_length=1, max_length=50),
):
    """PDF de la dernière révision du folio."""
    logger.info(f"API pdf_by_folio: {folio} par {access.email}")
    return _pdf_response(await _resolve(lambda: verification.render_by_folio(folio), "pdf_by_folio"))

@documents_router.get("/id/{quote_id}/pdf")
async def pdf_by_id(
    access: DocumentAccessDep,
    verification: VerificationServiceDep,
    quote_id: str = Path(..., min_length=1, max_length=64),
):
    """PDF de la révision exacte."""
    logger.info(f"API pdf_by_id: {quote_id} par {access.email}")
    return _pdf_response(await _resolve(lambda: verification.render_by_id(quote_id), "pdf_by_id"))
