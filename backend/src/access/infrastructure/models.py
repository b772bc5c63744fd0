import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field

def new_grant_id() -> str:
    return uuid.uuid4().hex

class AccessGrantRecord(SQLModel, table=True):
    """Lien d'accès émis par la passerelle. Le jeton brut n'est jamais stocké."""
    __tablename__ = "access_grants"

    id: str = Field(default_factory=new_grant_id, primary_key=True, max_length=32)
    email: str = Field(index=True, max_length=255, nullable=False)
    domain: str = Field(max_length=255, nullable=False)
    # Écrit à l'émission, jamais modifié ensuite
    scope: str = Field(max_length=500, nullable=False)
    token_hash: str = Field(unique=True, index=True, max_length=64, nullable=False)
    issued_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    redeemed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    session_expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
