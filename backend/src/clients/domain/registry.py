from abc import ABC, abstractmethod
from typing import Optional

from src.clients.domain.entities import ClientSummary

class AbstractClientRegistry(ABC):
    """Interface de consultation (lecture seule) du registre clients.

    Les implémentations lèvent `TransientError` si le registre est injoignable.
    """

    @abstractmethod
    async def get_active_client(self, client_id: int) -> Optional[ClientSummary]:
        """Retourne le client s'il existe et n'est pas supprimé logiquement, sinon None."""
        raise NotImplementedError

    @abstractmethod
    async def get_client(self, client_id: int) -> Optional[ClientSummary]:
        """Retourne le client même supprimé logiquement (affichage de devis historiques)."""
        raise NotImplementedError

    @abstractmethod
    async def has_active_client_for_domain(self, domain: str) -> bool:
        """Indique si un client actif possède un email de contact sur ce domaine exact."""
        raise NotImplementedError
