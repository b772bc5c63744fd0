"""
Routes API FastAPI pour l'authentification du personnel.

Contient les endpoints pour:
- /token : Connexion et obtention d'un token JWT
- /me : Récupération des informations de l'utilisateur connecté
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from src.auth.dependencies import get_auth_service, get_current_active_user
from src.auth.exceptions import InvalidCredentialsException
from src.auth.models import Token
from src.auth.security import create_access_token
from src.auth.service import AuthService
from src.users.models import StaffUserRead

logger = logging.getLogger(__name__)

auth_router = APIRouter()

@auth_router.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
):
    """
    Authentifie un membre du personnel et retourne un token JWT.

    - **username**: Email (utilisé comme identifiant)
    - **password**: Mot de passe
    """
    logger.info("[Router] Tentative de login pour: %s", form_data.username)

    user = await auth_service.authenticate_user(email=form_data.username, password=form_data.password)
    if not user:
        logger.warning("[Router] Échec authentification pour: %s", form_data.username)
        raise InvalidCredentialsException()

    access_token = create_access_token(data={"sub": str(user["id"])})
    logger.info("[Router] Token créé pour user ID: %s", user["id"])
    return Token(access_token=access_token, token_type="bearer")

@auth_router.get("/me", response_model=StaffUserRead)
async def read_users_me(
    current_user: Annotated[StaffUserRead, Depends(get_current_active_user)]
):
    """Retourne le membre du personnel authentifié."""
    return current_user
