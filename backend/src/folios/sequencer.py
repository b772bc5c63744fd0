"""
Allocation des folios de devis.

Un folio est alloué une seule fois par lignée (à la version 1) à partir d'un
compteur en base incrémenté par une instruction unique `UPDATE ... RETURNING`.
L'allocation participe à la transaction de création du devis: un rollback de
la création ne consomme pas de folio.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError, DBAPIError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.exceptions import TransientError
from src.folios.models import FolioCounter

logger = logging.getLogger(__name__)

def format_folio(prefix: str, value: int) -> str:
    return f"{prefix}-{value}"

class AbstractFolioSequencer(ABC):
    """Interface d'émission de folios uniques et monotones."""

    @abstractmethod
    async def issue_folio(self) -> str:
        """Alloue le prochain folio. Lève TransientError si le backend est injoignable."""
        raise NotImplementedError

class SQLAlchemyFolioSequencer(AbstractFolioSequencer):
    """Séquenceur adossé à la table `folio_counters`."""

    def __init__(
        self,
        session: AsyncSession,
        prefix: Optional[str] = None,
        start: Optional[int] = None,
        counter_name: Optional[str] = None,
    ):
        self.session = session
        self.prefix = prefix or settings.FOLIO_PREFIX
        self.start = start if start is not None else settings.FOLIO_START
        self.counter_name = counter_name or settings.FOLIO_COUNTER_NAME

    async def issue_folio(self) -> str:
        try:
            value = await self._increment()
            if value is None:
                value = await self._initialize()
        except IntegrityError as e:
            # Deux premières allocations concurrentes: le perdant est rejoué par l'appelant
            logger.warning(f"[FolioSequencer] Initialisation concurrente du compteur '{self.counter_name}': {e}")
            await self.session.rollback()
            raise TransientError("Compteur de folios initialisé en concurrence.", original_exception=e)
        except (OperationalError, DBAPIError, PoolTimeoutError) as e:
            logger.error(f"[FolioSequencer] Backend d'allocation injoignable: {e}", exc_info=True)
            await self.session.rollback()
            raise TransientError("Allocation de folio impossible pour le moment.", original_exception=e)

        folio = format_folio(self.prefix, value)
        logger.info(f"[FolioSequencer] Folio alloué: {folio}")
        return folio

    async def _increment(self) -> Optional[int]:
        stmt = (
            update(FolioCounter)
            .where(FolioCounter.name == self.counter_name)
            .values(last_value=FolioCounter.last_value + 1)
            .returning(FolioCounter.last_value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _initialize(self) -> int:
        logger.info(f"[FolioSequencer] Création du compteur '{self.counter_name}' à {self.start}")
        self.session.add(FolioCounter(name=self.counter_name, last_value=self.start))
        await self.session.flush()
        return self.start
