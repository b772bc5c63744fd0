import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db_session

# Repositories et collaborateurs
from src.quotes.domain.repositories import AbstractQuoteRepository
from src.quotes.infrastructure.persistence import SQLAlchemyQuoteRepository
from src.clients.interfaces.dependencies import ClientRegistryDep
from src.folios.dependencies import FolioSequencerDep

# Services
from src.quotes.application.services import QuoteService

logger = logging.getLogger(__name__)

# --- Dépendances Repository ---
def get_quote_repository(db: AsyncSession = Depends(get_db_session)) -> AbstractQuoteRepository:
    """Injecte SQLAlchemyQuoteRepository."""
    logger.debug("Fourniture de SQLAlchemyQuoteRepository")
    return SQLAlchemyQuoteRepository(session=db)

QuoteRepositoryDep = Annotated[AbstractQuoteRepository, Depends(get_quote_repository)]

# --- Dépendances Service ---
def get_quote_service(
    quote_repo: QuoteRepositoryDep,
    client_registry: ClientRegistryDep,
    folio_sequencer: FolioSequencerDep,
    db: AsyncSession = Depends(get_db_session),
) -> QuoteService:
    """Injecte QuoteService avec ses dépendances (même session pour tous)."""
    logger.debug("Fourniture de QuoteService")
    return QuoteService(
        session=db,
        quote_repo=quote_repo,
        client_registry=client_registry,
        folio_sequencer=folio_sequencer,
    )

QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
