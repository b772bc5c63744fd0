"""
Module principal de l'application FastAPI de cotizaciones Comtec.

Ce module configure l'instance FastAPI, ajoute le middleware CORS et inclut
les routeurs: authentification du personnel, devis, vérification publique,
documents et passerelle d'accès.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings

# --- Importer les routeurs ---
from src.auth.router import auth_router
from src.quotes.interfaces.api import quote_router
from src.verification.interfaces.api import verify_router, documents_router
from src.access.interfaces.api import access_router

# Configurer le logging
logging.basicConfig(level=logging.DEBUG if settings.DB_ECHO_LOG else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Comtec Cotizaciones API",
    description="API d'émission, de révision et de vérification des devis, avec passerelle d'accès aux documents.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Verification-Code"],
)

# ======================================================
# Inclure les routeurs
# ======================================================
prefix = settings.API_V1_PREFIX

# Personnel
app.include_router(auth_router, prefix=f"{prefix}/auth", tags=["Authentification"])
app.include_router(quote_router, prefix=f"{prefix}/quotes", tags=["Quotes"])

# Public (sessions d'accès limitées à une ressource)
app.include_router(access_router, prefix=f"{prefix}/access", tags=["Document Access"])
app.include_router(verify_router, prefix=f"{prefix}/verify", tags=["Verification"])
app.include_router(documents_router, prefix=f"{prefix}/documents", tags=["Documents"])

@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}

logger.info("Application FastAPI configurée.")
