import logging
from typing import Annotated

from fastapi import Depends

from src.quotes.interfaces.dependencies import QuoteRepositoryDep
from src.clients.interfaces.dependencies import ClientRegistryDep
from src.pdf.interfaces.dependencies import QuoteRendererDep
from src.verification.application.services import VerificationService

logger = logging.getLogger(__name__)

def get_verification_service(
    quote_repo: QuoteRepositoryDep,
    client_registry: ClientRegistryDep,
    renderer: QuoteRendererDep,
) -> VerificationService:
    """Injecte VerificationService (lecture seule, avec moteur de rendu PDF)."""
    logger.debug("Fourniture de VerificationService")
    return VerificationService(quote_repo=quote_repo, client_registry=client_registry, renderer=renderer)

VerificationServiceDep = Annotated[VerificationService, Depends(get_verification_service)]
