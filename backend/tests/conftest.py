# Standard Library
import re
from typing import AsyncGenerator, List, Optional

# Third-Party Libraries
import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# First-Party Libraries (Your project)
from src.main import app
from src.config import settings
from src.database import get_db_session, register_models
from src.clients.models import Client, ClientContact
from src.users.models import StaffUser, StaffRole
from src.auth.models import StaffContext
from src.auth.security import get_password_hash, create_access_token
from src.email.domain.sender import AbstractEmailSender
from src.email.interfaces.dependencies import get_email_sender
from src.access.interfaces.dependencies import access_rate_limiter

# URL de base pour la DB en mémoire
TEST_DATABASE_BASE_URL = "sqlite+aiosqlite:///:memory:"

register_models()

# --- Réglages globaux ---

@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """Pas d'attente réelle entre deux tentatives."""
    monkeypatch.setattr(settings, "RETRY_BACKOFF_SECONDS", 0.0)

@pytest.fixture(autouse=True)
def reset_rate_limiter():
    access_rate_limiter.reset()
    yield
    access_rate_limiter.reset()

# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crée un engine, des tables, et fournit une session DB en mémoire pour chaque test."""
    engine: AsyncEngine = create_async_engine(
        TEST_DATABASE_BASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with TestingSessionLocal() as session:
        yield session

    await engine.dispose()

# --- Envoi d'emails simulé ---

class CapturingEmailSender(AbstractEmailSender):
    """Enregistre les emails au lieu de les envoyer."""

    def __init__(self, result: bool = True):
        self.result = result
        self.sent: List[dict] = []

    async def send_email(
        self,
        recipient_email: str,
        subject: str,
        html_content: str,
        sender_email: Optional[str] = None,
    ) -> bool:
        self.sent.append({"recipient_email": recipient_email, "subject": subject, "html_content": html_content})
        return self.result

    def last_token(self) -> str:
        """Jeton du dernier lien d'accès envoyé."""
        match = re.search(r"token=([A-Za-z0-9_\-]+)", self.sent[-1]["html_content"])
        assert match, "Aucun lien d'accès dans le dernier email"
        return match.group(1)

@pytest.fixture
def email_sender() -> CapturingEmailSender:
    return CapturingEmailSender()

@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession, email_sender: CapturingEmailSender) -> AsyncGenerator[AsyncClient, None]:
    """Fournit un AsyncClient httpx qui utilise la session DB de test isolée."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

# --- Fixtures Registre Clients ---

@pytest_asyncio.fixture(scope="function")
async def active_client(db_session: AsyncSession) -> Client:
    """Client actif avec un contact sur le domaine clientco.com."""
    client = Client(
        legal_name="ClientCo Minería SpA",
        tax_id="76.543.210-3",
        contact_email="compras@clientco.com",
    )
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)

    contact = ClientContact(
        client_id=client.id,
        name="Juan Pérez",
        email="jperez@clientco.com",
        position="Jefe de Compras",
        is_primary=True,
    )
    db_session.add(contact)
    await db_session.commit()
    return client

@pytest_asyncio.fixture(scope="function")
async def deleted_client(db_session: AsyncSession) -> Client:
    """Client supprimé logiquement (domaine oldco.cl)."""
    from src.core.utils import utcnow

    client = Client(
        legal_name="OldCo Ltda",
        tax_id="77.111.222-K",
        contact_email="ventas@oldco.cl",
        deleted_at=utcnow(),
    )
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)
    return client

# --- Fixtures Personnel et Authentification ---

async def _create_staff(db_session: AsyncSession, email: str, role: StaffRole) -> StaffUser:
    user = StaffUser(
        email=email,
        password_hash=get_password_hash("testpassword"),
        name=email.split("@")[0],
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user

@pytest_asyncio.fixture(scope="function")
async def sales_user(db_session: AsyncSession) -> StaffUser:
    return await _create_staff(db_session, "vendedor@comtec.cl", StaffRole.SALES)

@pytest_asyncio.fixture(scope="function")
async def technician_user(db_session: AsyncSession) -> StaffUser:
    return await _create_staff(db_session, "tecnico@comtec.cl", StaffRole.TECHNICIAN)

@pytest.fixture
def auth_headers_sales(sales_user: StaffUser) -> dict[str, str]:
    access_token = create_access_token(data={"sub": str(sales_user.id)})
    return {"Authorization": f"Bearer {access_token}"}

@pytest.fixture
def auth_headers_technician(technician_user: StaffUser) -> dict[str, str]:
    access_token = create_access_token(data={"sub": str(technician_user.id)})
    return {"Authorization": f"Bearer {access_token}"}

@pytest.fixture
def sales_context() -> StaffContext:
    """Contexte explicite pour les tests de service (sans passer par HTTP)."""
    return StaffContext(user_id=1, email="vendedor@comtec.cl", role=StaffRole.SALES)

# --- Données de devis ---

@pytest.fixture
def item_payload() -> dict:
    return {
        "part_number": "TMP-100",
        "name": "Sensor de temperatura industrial",
        "quantity": 1,
        "unit_price": "100",
        "spec_url": "https://docs.comtec.cl/fichas/TMP-100.pdf",
        "specs": {"category": "sensor", "sensor_type": "Temperatura", "accuracy": "±0.5 °C"},
    }
