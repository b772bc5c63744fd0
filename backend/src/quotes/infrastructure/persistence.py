import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import select, func, update as sqlalchemy_update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.quotes.infrastructure.models import QuoteRecord
from src.quotes.domain.entities import Quote, QuoteStatus
from src.quotes.domain.exceptions import VersionCollisionException
from src.quotes.domain.repositories import AbstractQuoteRepository
from src.core.exceptions import TransientError

logger = logging.getLogger(__name__)

class SQLAlchemyQuoteRepository(AbstractQuoteRepository):
    """Implémentation SQLAlchemy du repository de Devis."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, quote_id: str) -> Optional[Quote]:
        # populate_existing: relire l'état en base même si l'objet est déjà dans la session
        stmt = (
            select(QuoteRecord)
            .where(QuoteRecord.id == quote_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        record = result.scalar_one_or_none()
        if not record:
            logger.debug(f"Devis ID {quote_id} non trouvé dans get_by_id().")
            return None
        return Quote.model_validate(record)

    async def get_latest_by_folio(self, folio: str) -> Optional[Quote]:
        stmt = (
            select(QuoteRecord)
            .where(QuoteRecord.folio == folio)
            .order_by(QuoteRecord.version.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        record = result.scalar_one_or_none()
        if not record:
            logger.debug(f"Folio {folio} non trouvé dans get_latest_by_folio().")
            return None
        return Quote.model_validate(record)

    async def list_lineage(self, folio: str) -> List[Quote]:
        stmt = (
            select(QuoteRecord)
            .where(QuoteRecord.folio == folio)
            .order_by(QuoteRecord.version.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [Quote.model_validate(r) for r in result.scalars().all()]

    async def get_max_version(self, folio: str) -> Optional[int]:
        stmt = select(func.max(QuoteRecord.version)).where(QuoteRecord.folio == folio)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, quote_data: Dict[str, Any]) -> Quote:
        record = QuoteRecord(**quote_data)
        self.session.add(record)
        try:
            # flush pour déclencher la contrainte (folio, version) dans la transaction courante
            await self.session.flush()
            await self.session.refresh(record)
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                f"Collision (folio={quote_data.get('folio')}, version={quote_data.get('version')}): {e}"
            )
            raise VersionCollisionException(folio=quote_data.get("folio"), version=quote_data.get("version"))
        except OperationalError as e:
            # Verrou ou connexion perdue: l'appelant rejoue sur un état relu
            await self.session.rollback()
            logger.error(f"Écriture du devis {quote_data.get('folio')} impossible: {e}", exc_info=True)
            raise TransientError("Base de données indisponible.", original_exception=e)
        logger.info(f"Devis {record.folio} v{record.version} ajouté (ID {record.id}).")
        return Quote.model_validate(record)

    async def update_status(self, quote_id: str, expected: QuoteStatus, target: QuoteStatus) -> bool:
        stmt = (
            sqlalchemy_update(QuoteRecord)
            .where(QuoteRecord.id == quote_id, QuoteRecord.status == expected.value)
            .values(status=target.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        updated = result.rowcount == 1
        logger.debug(f"update_status {quote_id}: {expected.value} -> {target.value}, appliqué={updated}")
        return updated
