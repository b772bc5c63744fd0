from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any

from .entities import Quote, QuoteStatus

class AbstractQuoteRepository(ABC):
    """Interface abstraite pour le repository des Devis.

    Les lignes existantes ne sont jamais modifiées, à l'exception du statut.
    """

    @abstractmethod
    async def get_by_id(self, quote_id: str) -> Optional[Quote]:
        """Récupère la révision exacte référencée par son ID."""
        raise NotImplementedError

    @abstractmethod
    async def get_latest_by_folio(self, folio: str) -> Optional[Quote]:
        """Récupère la révision de plus haute version d'une lignée."""
        raise NotImplementedError

    @abstractmethod
    async def list_lineage(self, folio: str) -> List[Quote]:
        """Liste toutes les révisions d'un folio, par version croissante."""
        raise NotImplementedError

    @abstractmethod
    async def get_max_version(self, folio: str) -> Optional[int]:
        """Retourne la plus haute version connue pour un folio."""
        raise NotImplementedError

    @abstractmethod
    async def add(self, quote_data: Dict[str, Any]) -> Quote:
        """Insère une nouvelle révision.

        Raises:
            VersionCollisionException: si (folio, version) existe déjà.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_status(self, quote_id: str, expected: QuoteStatus, target: QuoteStatus) -> bool:
        """Écrit `target` seulement si le statut courant vaut encore `expected`."""
        raise NotImplementedError
