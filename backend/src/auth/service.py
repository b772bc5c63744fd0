"""
Service d'authentification du personnel.

Contient la logique métier pour:
- L'authentification par email / mot de passe
- L'obtention du membre du personnel à partir d'un token JWT
"""
import logging
from typing import Optional, Dict, Any

from fastcrud import FastCRUD
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.security import verify_password, decode_access_token
from src.users.models import StaffUserRead

logger = logging.getLogger(__name__)

class AuthService:
    """Service pour gérer l'authentification du personnel avec FastCRUD."""

    def __init__(self, staff_crud: FastCRUD, db: AsyncSession):
        self.staff_crud = staff_crud
        self.db = db

    async def authenticate_user(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Authentifie un membre du personnel par email et mot de passe.
        Retourne la ligne (dict) si succès, sinon None.
        """
        logger.debug(f"[AuthService] Tentative d'authentification pour: {email}")

        user = await self.staff_crud.get(db=self.db, email=email.strip().lower())
        if user is None:
            logger.warning(f"[AuthService] Utilisateur non trouvé: {email}")
            return None

        if not verify_password(password, user["password_hash"]):
            logger.warning(f"[AuthService] Mot de passe incorrect pour: {email}")
            return None

        if not user["is_active"]:
            logger.warning(f"[AuthService] Tentative de connexion d'un utilisateur inactif: {email}")
            return None

        logger.info(f"[AuthService] Authentification réussie pour: {email} (ID: {user['id']})")
        return user

    async def get_user_from_token(self, token: str) -> Optional[StaffUserRead]:
        """Retourne le membre du personnel porteur du token, ou None."""
        user_id = decode_access_token(token)
        if user_id is None:
            logger.warning("[AuthService] Token invalide ou expiré")
            return None

        user = await self.staff_crud.get(
            db=self.db,
            schema_to_select=StaffUserRead,
            return_as_model=True,
            id=user_id,
        )
        if user is None:
            logger.warning(f"[AuthService] Utilisateur ID {user_id} du token non trouvé en base")
            return None

        logger.debug(f"[AuthService] Utilisateur récupéré depuis token: ID {user_id}")
        return user
