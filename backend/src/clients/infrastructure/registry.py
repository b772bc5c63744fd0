import logging
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.models import Client, ClientContact
from src.clients.domain.entities import ClientSummary
from src.clients.domain.registry import AbstractClientRegistry
from src.core.exceptions import TransientError

logger = logging.getLogger(__name__)

class SQLAlchemyClientRegistry(AbstractClientRegistry):
    """Implémentation SQLAlchemy du registre clients (lecture seule)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_client(self, client_id: int) -> Optional[ClientSummary]:
        return await self._get(client_id, active_only=True)

    async def get_client(self, client_id: int) -> Optional[ClientSummary]:
        return await self._get(client_id, active_only=False)

    async def _get(self, client_id: int, active_only: bool) -> Optional[ClientSummary]:
        stmt = select(Client).where(Client.id == client_id)
        if active_only:
            stmt = stmt.where(Client.deleted_at.is_(None))
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"[ClientRegistry] Registre injoignable (client {client_id}): {e}", exc_info=True)
            await self.session.rollback()
            raise TransientError("Registre clients indisponible.", original_exception=e)

        client = result.scalar_one_or_none()
        if client is None:
            logger.debug(f"[ClientRegistry] Client ID {client_id} non trouvé (actif seulement: {active_only}).")
            return None
        return ClientSummary.model_validate(client)

    async def has_active_client_for_domain(self, domain: str) -> bool:
        # Correspondance exacte sur "@domaine": sous-domaines et domaines voisins exclus
        suffix = f"@{domain.lower()}"
        stmt = (
            select(Client.id)
            .outerjoin(ClientContact, ClientContact.client_id == Client.id)
            .where(
                Client.deleted_at.is_(None),
                or_(
                    func.lower(ClientContact.email).endswith(suffix, autoescape=True),
                    func.lower(Client.contact_email).endswith(suffix, autoescape=True),
                ),
            )
            .limit(1)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"[ClientRegistry] Registre injoignable (domaine {domain}): {e}", exc_info=True)
            await self.session.rollback()
            raise TransientError("Registre clients indisponible.", original_exception=e)

        found = result.scalar_one_or_none() is not None
        logger.debug(f"[ClientRegistry] Domaine {domain}: client actif trouvé={found}")
        return found
