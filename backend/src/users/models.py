# src/users/models.py
"""
Module définissant les modèles SQLModel pour le personnel interne.

Ce module contient :
- StaffRole : Rôles du personnel (droits sur les devis).
- StaffUserBase : Classe SQLModel de base avec les champs communs.
- StaffUser : Modèle de table SQLModel (table=True).
- StaffUserRead : Schéma de lecture pour l'API.
"""
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field

class StaffRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    SALES = "vendedor"
    TECHNICIAN = "tecnico"

# Rôles autorisés à créer, réviser et faire évoluer un devis
QUOTE_WRITER_ROLES = frozenset({StaffRole.SUPER_ADMIN, StaffRole.ADMIN, StaffRole.SALES})

class StaffUserBase(SQLModel):
    """Données communes d'un membre du personnel."""
    email: str = Field(unique=True, index=True, max_length=255, nullable=False)
    name: Optional[str] = Field(default=None, max_length=100)
    role: StaffRole = Field(default=StaffRole.SALES, nullable=False)
    is_active: bool = Field(default=True, nullable=False)

# ----- Modèle de Table -----
class StaffUser(StaffUserBase, table=True):
    __tablename__ = "staff_users"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    password_hash: str = Field(nullable=False, max_length=255)

# ----- Schémas API -----
class StaffUserRead(StaffUserBase):
    id: int
