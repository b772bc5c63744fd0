import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
# Toutes les tables partagent SQLModel.metadata
from sqlmodel import SQLModel

from src.config import settings

logger = logging.getLogger(__name__)

try:
    # Créer le moteur de base de données asynchrone
    engine = create_async_engine(
        settings.database_url,
        echo=settings.DB_ECHO_LOG,
        future=True # Utilise l'API 2.0 de SQLAlchemy
    )

    # Créer une classe de session asynchrone
    AsyncSessionLocal = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False # Empêche les objets d'expirer après commit
    )
    logger.info("Moteur et Session Factory SQLAlchemy Async configurés.")

except Exception as e:
    logger.critical(f"Erreur lors de la configuration de SQLAlchemy Async: {e}", exc_info=True)
    engine = None
    AsyncSessionLocal = None

# Fonction dépendance pour obtenir une session de base de données asynchrone
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides an async database session."""
    if AsyncSessionLocal is None:
        logger.error("La factory de session SQLAlchemy n'est pas initialisée.")
        raise RuntimeError("Database session factory is not initialized.")

    async with AsyncSessionLocal() as session:
        try:
            # Les commits sont gérés par les services applicatifs
            yield session
        except Exception as e:
            logger.error(f"Erreur durant la session DB, rollback: {e}", exc_info=True)
            await session.rollback()
            raise
        finally:
            await session.close()
            logger.debug("Session DB fermée.")

def register_models() -> None:
    """Importe les modèles de table pour qu'ils soient enregistrés dans SQLModel.metadata."""
    from src.clients import models as _clients  # noqa: F401
    from src.folios import models as _folios  # noqa: F401
    from src.quotes.infrastructure import models as _quotes  # noqa: F401
    from src.access.infrastructure import models as _access  # noqa: F401
    from src.users import models as _users  # noqa: F401

async def create_tables():
    """Crée toutes les tables définies dans SQLModel.metadata."""
    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

async def drop_tables():
    """Supprime toutes les tables définies."""
    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
