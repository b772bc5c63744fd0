"""
Module définissant les dépendances FastAPI pour l'authentification du personnel.

Fournit des dépendances pour:
- Le service d'authentification (AuthService)
- L'obtention de l'utilisateur courant à partir du token JWT
- Le contexte explicite (StaffContext) transmis aux services métier
- La vérification des rôles autorisés à modifier les devis
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.service import AuthService
from src.auth.constants import OAUTH2_TOKEN_URL
from src.auth.exceptions import (
    TokenMissingException, TokenInvalidException, InactiveUserException, PermissionDeniedException
)
from src.auth.models import StaffContext
from src.users.models import StaffUserRead
from src.users.dependencies import StaffCRUDDep
from src.database import get_db_session

logger = logging.getLogger(__name__)

# --- Dépendances OAuth2 ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=OAUTH2_TOKEN_URL, auto_error=False)

DbSessionDep = Annotated[AsyncSession, Depends(get_db_session)]

def get_auth_service(staff_crud: StaffCRUDDep, db: DbSessionDep) -> AuthService:
    """Fournit une instance du service d'authentification."""
    logger.debug("Fourniture de AuthService")
    return AuthService(staff_crud=staff_crud, db=db)

async def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
) -> StaffUserRead:
    """
    Vérifie le token JWT et retourne le membre du personnel courant.

    Raises:
        TokenMissingException: Si le token est manquant
        TokenInvalidException: Si le token est invalide
    """
    if token is None:
        logger.warning("Token manquant dans la requête.")
        raise TokenMissingException()

    user = await auth_service.get_user_from_token(token)
    if user is None:
        logger.warning("Token invalide ou utilisateur non trouvé.")
        raise TokenInvalidException()

    logger.debug(f"Utilisateur authentifié: ID {user.id}")
    return user

async def get_current_active_user(
    current_user: Annotated[StaffUserRead, Depends(get_current_user)]
) -> StaffUserRead:
    if not current_user.is_active:
        logger.warning(f"Tentative d'accès par un utilisateur inactif: ID {current_user.id}")
        raise InactiveUserException()
    return current_user

async def get_staff_context(
    current_user: Annotated[StaffUserRead, Depends(get_current_active_user)]
) -> StaffContext:
    """Construit le contexte explicite passé aux services."""
    return StaffContext(user_id=current_user.id, email=current_user.email, role=current_user.role)

async def get_quote_writer_context(
    staff: Annotated[StaffContext, Depends(get_staff_context)]
) -> StaffContext:
    """Exige un rôle autorisé à créer, réviser ou faire évoluer un devis."""
    if not staff.can_write_quotes:
        logger.warning(f"Rôle '{staff.role.value}' non autorisé à modifier les devis: ID {staff.user_id}")
        raise PermissionDeniedException()
    return staff

StaffContextDep = Annotated[StaffContext, Depends(get_staff_context)]
QuoteWriterDep = Annotated[StaffContext, Depends(get_quote_writer_context)]
