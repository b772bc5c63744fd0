# src/clients/models.py
"""
Modèles SQLModel du registre clients.

Le registre est consulté en lecture seule par ce service: la gestion
des fiches clients (création, édition, suppression logique) est faite ailleurs.
"""
from typing import Optional, List
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field, Relationship

class Client(SQLModel, table=True):
    """Entreprise cliente. Active tant que `deleted_at` est NULL."""
    __tablename__ = "clients"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    legal_name: str = Field(max_length=255, nullable=False)
    tax_id: str = Field(max_length=20, index=True, nullable=False)
    # Contact historique unique, conservé à côté de la table des contacts
    contact_email: Optional[str] = Field(default=None, max_length=255)
    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    contacts: List["ClientContact"] = Relationship(back_populates="client")

class ClientContact(SQLModel, table=True):
    """Contact nommé d'un client; son domaine email sert à l'admission."""
    __tablename__ = "client_contacts"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    client_id: int = Field(foreign_key="clients.id", index=True, nullable=False)
    name: str = Field(max_length=255, nullable=False)
    email: str = Field(max_length=255, nullable=False)
    position: Optional[str] = Field(default=None, max_length=100)
    is_primary: bool = Field(default=False, nullable=False)

    client: Optional[Client] = Relationship(back_populates="contacts")
