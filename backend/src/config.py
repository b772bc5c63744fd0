import logging
from decimal import Decimal
from typing import Optional, List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()

DEFAULT_JWT_SECRET = "remplacer_par_une_vraie_cle_secrete_forte"

# Classe de configuration utilisant Pydantic BaseSettings
class Settings(BaseSettings):
    # --- SMTP ---
    SENDER_EMAIL: str = "cotizaciones@comtec.cl"
    SENDER_PASSWORD: str = ""
    SMTP_HOST: str = "smtp.comtec.cl"
    SMTP_PORT: int = 587
    SMTP_USE_TLS: bool = True

    # --- Base de Données ---
    # Si DATABASE_URL est défini il est prioritaire sur les variables POSTGRES_*
    DATABASE_URL: Optional[str] = None
    POSTGRES_DB: str = "cotizaciones"
    POSTGRES_USER: str = "comtec"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_LOG: bool = False

    # --- Application URLs ---
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    API_V1_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # --- JWT ---
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Devis ---
    TAX_RATE: Decimal = Decimal("0.19")
    FOLIO_PREFIX: str = "COT"
    FOLIO_START: int = 1000
    FOLIO_COUNTER_NAME: str = "quote_folio"
    REVISION_MAX_ATTEMPTS: int = 3

    # --- Passerelle d'accès aux documents ---
    INTERNAL_DOMAINS: List[str] = ["comtec.cl", "comtecindustrial.cl"]
    ACCESS_LINK_TTL_MINUTES: int = 15
    ACCESS_SESSION_TTL_MINUTES: int = 60
    ACCESS_RATE_LIMIT_PER_WINDOW: int = 5
    ACCESS_RATE_LIMIT_WINDOW_SECONDS: int = 900
    ACCESS_COOKIE_NAME: str = "doc_access"
    ACCESS_COOKIE_SECURE: bool = False

    # --- Retry sur erreurs transitoires ---
    RETRY_ATTEMPTS: int = 3
    RETRY_BACKOFF_SECONDS: float = 0.2

    # --- Messages Génériques ---
    TRANSIENT_ERROR_MSG: str = "Service temporairement indisponible. Veuillez réessayer."

    class Config:
        # Charger depuis les variables d'environnement (respecte load_dotenv)
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore' # Ignorer les variables d'env non définies dans le modèle

    @property
    def database_url(self) -> str:
        """URL SQLAlchemy effective (asyncpg par défaut)."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

# Instancier la classe de configuration
settings = Settings()

if settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
    logger.warning("La variable JWT_SECRET_KEY utilise la valeur par défaut. Veuillez définir une clé secrète forte.")
if not settings.SENDER_PASSWORD:
    logger.warning("SENDER_PASSWORD non défini: l'envoi des liens d'accès échouera.")

logger.info(f"Configuration chargée: DB={settings.POSTGRES_DB}@{settings.POSTGRES_HOST}, Sender={settings.SENDER_EMAIL}, Folio={settings.FOLIO_PREFIX}")
