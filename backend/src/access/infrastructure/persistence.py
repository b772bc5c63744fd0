import logging
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import select, update as sqlalchemy_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.domain.entities import AccessGrant
from src.access.domain.repositories import AbstractAccessGrantRepository
from src.access.infrastructure.models import AccessGrantRecord

logger = logging.getLogger(__name__)

class SQLAlchemyAccessGrantRepository(AbstractAccessGrantRepository):
    """Implémentation SQLAlchemy du stockage des liens d'accès."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, grant_data: Dict[str, Any]) -> AccessGrant:
        record = AccessGrantRecord(**grant_data)
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return AccessGrant.model_validate(record)

    async def get_by_id(self, grant_id: str) -> Optional[AccessGrant]:
        stmt = (
            select(AccessGrantRecord)
            .where(AccessGrantRecord.id == grant_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        record = result.scalar_one_or_none()
        return AccessGrant.model_validate(record) if record else None

    async def redeem(self, token_hash: str, now: datetime, session_expires_at: datetime) -> Optional[AccessGrant]:
        # Condition et écriture dans la même requête: un seul appelant peut consommer le lien
        stmt = (
            sqlalchemy_update(AccessGrantRecord)
            .where(
                AccessGrantRecord.token_hash == token_hash,
                AccessGrantRecord.redeemed_at.is_(None),
                AccessGrantRecord.revoked_at.is_(None),
                AccessGrantRecord.expires_at > now,
            )
            .values(redeemed_at=now, session_expires_at=session_expires_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.debug("Lien d'accès non consommable (inconnu, expiré, révoqué ou déjà utilisé).")
            return None

        select_stmt = (
            select(AccessGrantRecord)
            .where(AccessGrantRecord.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        record = (await self.session.execute(select_stmt)).scalar_one()
        return AccessGrant.model_validate(record)

    async def revoke(self, grant_id: str, now: datetime) -> bool:
        stmt = (
            sqlalchemy_update(AccessGrantRecord)
            .where(AccessGrantRecord.id == grant_id, AccessGrantRecord.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
