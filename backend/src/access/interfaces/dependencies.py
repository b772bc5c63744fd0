"""
Dépendances FastAPI de la passerelle d'accès aux documents.

`require_document_access` protège les routes publiques de vérification:
la session (cookie propre à la ressource ou en-tête Bearer) doit couvrir exactement
le chemin demandé.
"""
import logging
from typing import Annotated, List, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database import get_db_session
from src.core.exceptions import AccessDenied
from src.clients.interfaces.dependencies import ClientRegistryDep
from src.email.interfaces.dependencies import EmailServiceDep
from src.access.constants import SESSION_REQUIRED_MESSAGE
from src.access.domain.entities import AccessSession
from src.access.domain.rate_limiter import SlidingWindowRateLimiter
from src.access.domain.repositories import AbstractAccessGrantRepository
from src.access.infrastructure.persistence import SQLAlchemyAccessGrantRepository
from src.access.application.services import AccessGatewayService, hash_token

logger = logging.getLogger(__name__)

# Partagé par toutes les requêtes du processus
access_rate_limiter = SlidingWindowRateLimiter(
    limit=settings.ACCESS_RATE_LIMIT_PER_WINDOW,
    window_seconds=settings.ACCESS_RATE_LIMIT_WINDOW_SECONDS,
)

def get_rate_limiter() -> SlidingWindowRateLimiter:
    return access_rate_limiter

def get_access_grant_repository(db: AsyncSession = Depends(get_db_session)) -> AbstractAccessGrantRepository:
    """Injecte SQLAlchemyAccessGrantRepository."""
    logger.debug("Fourniture de SQLAlchemyAccessGrantRepository")
    return SQLAlchemyAccessGrantRepository(session=db)

AccessGrantRepositoryDep = Annotated[AbstractAccessGrantRepository, Depends(get_access_grant_repository)]

def get_access_gateway_service(
    grant_repo: AccessGrantRepositoryDep,
    client_registry: ClientRegistryDep,
    email_service: EmailServiceDep,
    rate_limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    db: AsyncSession = Depends(get_db_session),
) -> AccessGatewayService:
    logger.debug("Fourniture de AccessGatewayService")
    return AccessGatewayService(
        session=db,
        grant_repo=grant_repo,
        client_registry=client_registry,
        email_service=email_service,
        rate_limiter=rate_limiter,
    )

AccessGatewayServiceDep = Annotated[AccessGatewayService, Depends(get_access_gateway_service)]

# La vérification d'une session n'envoie jamais d'email: pas de dépendance SMTP ici
def get_session_checker(
    grant_repo: AccessGrantRepositoryDep,
    client_registry: ClientRegistryDep,
    rate_limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    db: AsyncSession = Depends(get_db_session),
) -> AccessGatewayService:
    return AccessGatewayService(
        session=db,
        grant_repo=grant_repo,
        client_registry=client_registry,
        email_service=None,
        rate_limiter=rate_limiter,
    )

SessionCheckerDep = Annotated[AccessGatewayService, Depends(get_session_checker)]

def session_cookie_name(scope: str) -> str:
    """Un cookie par ressource: une nouvelle session n'écrase pas celle d'une autre portée."""
    return f"{settings.ACCESS_COOKIE_NAME}_{hash_token(scope)[:16]}"

def session_cookie_names(request: Request) -> List[str]:
    prefix = f"{settings.ACCESS_COOKIE_NAME}_"
    return [name for name in request.cookies if name.startswith(prefix)]

def extract_bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None

def extract_session_tokens(request: Request, path: str) -> List[str]:
    """Jetons candidats pour `path`: le cookie de cette portée, puis l'en-tête Authorization."""
    candidates = [request.cookies.get(session_cookie_name(path)), extract_bearer_token(request)]
    return [token for token in candidates if token]

def _access_required(resource_path: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": SESSION_REQUIRED_MESSAGE, "resource_path": resource_path},
    )

async def require_document_access(request: Request, checker: SessionCheckerDep) -> AccessSession:
    """Exige une session dont la portée est exactement le chemin de la requête."""
    path = request.url.path
    tokens = extract_session_tokens(request, path)
    if not tokens:
        logger.info(f"[AccessGateway] Accès sans session à {path}")
        raise _access_required(path)
    for token in tokens:
        try:
            return await checker.authorize(token, path)
        except AccessDenied as e:
            logger.info(f"[AccessGateway] Session refusée pour {path}: {e.message}")
    raise _access_required(path)

DocumentAccessDep = Annotated[AccessSession, Depends(require_document_access)]
