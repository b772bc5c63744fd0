from typing import Optional
from datetime import datetime

from pydantic import BaseModel, field_validator

from src.core.utils import as_utc

class AccessGrant(BaseModel):
    """Autorisation d'accès à une ressource unique, émise pour une adresse email."""
    id: str
    email: str
    domain: str
    scope: str
    issued_at: datetime
    expires_at: datetime
    redeemed_at: Optional[datetime] = None
    session_expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None

    @field_validator("issued_at", "expires_at", "redeemed_at", "session_expires_at", "revoked_at")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    class Config:
        from_attributes = True

class AccessSession(BaseModel):
    """Session authentifiée, limitée à `scope`."""
    grant_id: str
    email: str
    scope: str
    expires_at: datetime

class RedeemedAccess(BaseModel):
    session_token: str
    redirect_to: str
    expires_at: datetime

class AccessRequestResult(BaseModel):
    """Résultat d'une demande admise (un lien a été envoyé)."""
    grant_id: str
    scope: str
    expires_at: datetime
