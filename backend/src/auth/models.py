"""
Schémas du module d'authentification.

- Token : réponse de l'endpoint /token.
- StaffContext : identité explicite du membre du personnel transmise aux services.
"""
from pydantic import BaseModel, ConfigDict
from sqlmodel import SQLModel

from src.users.models import StaffRole, QUOTE_WRITER_ROLES

class Token(SQLModel):
    """Schéma pour la réponse du token d'accès."""
    access_token: str
    token_type: str

class StaffContext(BaseModel):
    """Identité de l'auteur d'une opération, passée en argument aux services."""
    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    role: StaffRole

    @property
    def can_write_quotes(self) -> bool:
        return self.role in QUOTE_WRITER_ROLES
