import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db_session
from src.clients.domain.registry import AbstractClientRegistry
from src.clients.infrastructure.registry import SQLAlchemyClientRegistry

logger = logging.getLogger(__name__)

def get_client_registry(db: AsyncSession = Depends(get_db_session)) -> AbstractClientRegistry:
    """Injecte SQLAlchemyClientRegistry."""
    logger.debug("Fourniture de SQLAlchemyClientRegistry")
    return SQLAlchemyClientRegistry(session=db)

ClientRegistryDep = Annotated[AbstractClientRegistry, Depends(get_client_registry)]
