from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Dict, Any

from .entities import AccessGrant

class AbstractAccessGrantRepository(ABC):
    """Interface abstraite pour le stockage des autorisations d'accès."""

    @abstractmethod
    async def add(self, grant_data: Dict[str, Any]) -> AccessGrant:
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, grant_id: str) -> Optional[AccessGrant]:
        raise NotImplementedError

    @abstractmethod
    async def redeem(self, token_hash: str, now: datetime, session_expires_at: datetime) -> Optional[AccessGrant]:
        """Consomme le lien si non utilisé, non révoqué et non expiré (opération atomique).

        Retourne None si le lien ne peut pas (ou plus) être utilisé.
        """
        raise NotImplementedError

    @abstractmethod
    async def revoke(self, grant_id: str, now: datetime) -> bool:
        raise NotImplementedError
