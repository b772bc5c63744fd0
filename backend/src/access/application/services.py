"""
Passerelle d'accès aux documents.

Cycle: Non authentifié -> (email soumis) -> En attente de vérification
-> (lien consommé) -> Authentifié(portée = ressource demandée);
expiration ou déconnexion ramènent à Non authentifié.

Ordre des règles d'admission:
1. domaine de messagerie grand public -> refus (prioritaire sur tout le reste)
2. domaine interne -> admis
3. client actif (non supprimé) ayant un contact sur ce domaine -> admis
Tout refus renvoie le même message; une panne du registre est une TransientError.
"""
import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.exceptions import AccessDenied, RateLimitExceeded, TransientError
from src.core.retry import retry_async
from src.core.utils import utcnow, as_utc
from src.auth.constants import TOKEN_TYPE_DOCUMENT_ACCESS
from src.auth.security import create_access_token, decode_token_payload
from src.clients.domain.registry import AbstractClientRegistry
from src.email.application.services import EmailService
from src.email.domain.exceptions import EmailSendingException
from src.access.constants import (
    ACCESS_DENIED_MESSAGE, SESSION_INVALID_MESSAGE, RATE_LIMIT_MESSAGE, LINK_INVALID_MESSAGE,
)
from src.access.domain.entities import AccessRequestResult, AccessSession, RedeemedAccess
from src.access.domain.rate_limiter import SlidingWindowRateLimiter
from src.access.domain.repositories import AbstractAccessGrantRepository
from src.access.domain.rules import (
    normalize_email, extract_domain, is_blocked_domain, is_internal_domain, is_gated_path,
)

logger = logging.getLogger(__name__)

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

class AccessGatewayService:
    """Admission par domaine et émission de sessions limitées à une ressource."""

    def __init__(
        self,
        session: AsyncSession,
        grant_repo: AbstractAccessGrantRepository,
        client_registry: AbstractClientRegistry,
        email_service: Optional[EmailService],
        rate_limiter: SlidingWindowRateLimiter,
        internal_domains: Optional[Iterable[str]] = None,
        link_ttl_minutes: Optional[int] = None,
        session_ttl_minutes: Optional[int] = None,
    ):
        self.session = session
        self.grant_repo = grant_repo
        self.client_registry = client_registry
        self.email_service = email_service
        self.rate_limiter = rate_limiter
        self.internal_domains = list(internal_domains if internal_domains is not None else settings.INTERNAL_DOMAINS)
        self.link_ttl = timedelta(minutes=link_ttl_minutes or settings.ACCESS_LINK_TTL_MINUTES)
        self.session_ttl = timedelta(minutes=session_ttl_minutes or settings.ACCESS_SESSION_TTL_MINUTES)

    # --- Demande d'accès ---

    async def request_access(self, email: str, resource_path: str) -> AccessRequestResult:
        """Évalue l'adresse et, si elle est admise, envoie un lien à usage unique."""
        normalized = normalize_email(email)

        limit = self.rate_limiter.check(normalized)
        if not limit.allowed:
            logger.warning(f"[AccessGateway] Limite de demandes atteinte pour {normalized}")
            raise RateLimitExceeded(RATE_LIMIT_MESSAGE, retry_after=int(limit.retry_after_seconds) + 1)

        domain = extract_domain(normalized)
        if domain is None:
            self._deny(normalized, "adresse invalide")
        if not is_gated_path(resource_path):
            self._deny(normalized, f"ressource non protégée: {resource_path!r}")
        if is_blocked_domain(domain):
            self._deny(normalized, "domaine grand public")

        if is_internal_domain(domain, self.internal_domains):
            logger.info(f"[AccessGateway] {normalized} admis (domaine interne)")
        else:
            # Panne du registre: TransientError propagée, aucun lien émis
            found = await retry_async(
                lambda: self.client_registry.has_active_client_for_domain(domain),
                label="registre clients",
            )
            if not found:
                self._deny(normalized, "aucun client actif sur ce domaine")
            logger.info(f"[AccessGateway] {normalized} admis (domaine client)")

        return await self._issue_link(normalized, domain, resource_path)

    async def _issue_link(self, email: str, domain: str, scope: str) -> AccessRequestResult:
        if self.email_service is None:
            raise TransientError("Envoi du lien d'accès indisponible.")
        raw_token = secrets.token_urlsafe(32)
        now = utcnow()
        grant = await self.grant_repo.add({
            "email": email,
            "domain": domain,
            "scope": scope,
            "token_hash": hash_token(raw_token),
            "issued_at": now,
            "expires_at": now + self.link_ttl,
        })
        link = f"{settings.PUBLIC_BASE_URL}{settings.API_V1_PREFIX}/access/redeem?token={raw_token}"

        try:
            sent = await self.email_service.send_access_link_email(
                recipient_email=email,
                access_link=link,
                resource_path=scope,
                expires_at=grant.expires_at,
            )
        except EmailSendingException as e:
            await self.session.rollback()
            logger.error(f"[AccessGateway] Envoi du lien impossible pour {email}: {e}")
            raise TransientError("Envoi du lien d'accès impossible pour le moment.", original_exception=e)
        if not sent:
            await self.session.rollback()
            raise TransientError("Envoi du lien d'accès impossible pour le moment.")

        await self.session.commit()
        logger.info(f"[AccessGateway] Lien émis (grant {grant.id}) pour {email}, portée {scope}")
        return AccessRequestResult(grant_id=grant.id, scope=grant.scope, expires_at=grant.expires_at)

    def _deny(self, email: str, reason: str) -> None:
        # Le motif reste dans les logs serveur, jamais dans la réponse
        logger.info(f"[AccessGateway] Accès refusé pour {email}: {reason}")
        raise AccessDenied(ACCESS_DENIED_MESSAGE)

    # --- Consommation du lien ---

    async def redeem(self, token: str) -> RedeemedAccess:
        """Consomme le lien (une seule fois) et ouvre une session limitée à sa portée."""
        now = utcnow()
        session_expires_at = now + self.session_ttl
        grant = await self.grant_repo.redeem(hash_token(token), now=now, session_expires_at=session_expires_at)
        if grant is None:
            await self.session.rollback()
            logger.warning("[AccessGateway] Lien d'accès refusé à la consommation.")
            raise AccessDenied(LINK_INVALID_MESSAGE)
        await self.session.commit()

        session_token = create_access_token(
            data={"sub": grant.email, "scope": grant.scope, "jti": grant.id},
            expires_delta=self.session_ttl,
            token_type=TOKEN_TYPE_DOCUMENT_ACCESS,
        )
        logger.info(f"[AccessGateway] Session ouverte pour {grant.email} (grant {grant.id}), portée {grant.scope}")
        return RedeemedAccess(session_token=session_token, redirect_to=grant.scope, expires_at=session_expires_at)

    # --- Contrôle d'accès ---

    async def authorize(self, session_token: str, path: str) -> AccessSession:
        """Vérifie signature, expiration, révocation et portée exacte."""
        payload = decode_token_payload(session_token, TOKEN_TYPE_DOCUMENT_ACCESS)
        if payload is None:
            raise AccessDenied(SESSION_INVALID_MESSAGE)

        scope = payload.get("scope")
        grant_id = payload.get("jti")
        if scope != path:
            logger.warning(f"[AccessGateway] Portée {scope!r} ne couvre pas {path!r}")
            raise AccessDenied(SESSION_INVALID_MESSAGE)

        grant = await self.grant_repo.get_by_id(grant_id) if grant_id else None
        if grant is None or grant.scope != scope or grant.redeemed_at is None or grant.revoked_at is not None:
            raise AccessDenied(SESSION_INVALID_MESSAGE)
        expires_at = as_utc(grant.session_expires_at)
        if expires_at is None or expires_at <= utcnow():
            raise AccessDenied(SESSION_INVALID_MESSAGE)

        return AccessSession(grant_id=grant.id, email=grant.email, scope=grant.scope, expires_at=expires_at)

    async def logout(self, session_token: str) -> None:
        """Révoque la session; un jeton invalide est ignoré."""
        payload = decode_token_payload(session_token, TOKEN_TYPE_DOCUMENT_ACCESS)
        if payload is None or not payload.get("jti"):
            return
        revoked = await self.grant_repo.revoke(payload["jti"], now=utcnow())
        await self.session.commit()
        logger.info(f"[AccessGateway] Déconnexion grant {payload['jti']} (révoqué: {revoked})")
