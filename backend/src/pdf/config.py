"""Configuration spécifique au module PDF.

Utilise Pydantic BaseSettings pour permettre la surcharge par
des variables d'environnement si nécessaire.
"""

from pydantic_settings import BaseSettings

class PDFSettings(BaseSettings):
    """Paramètres de mise en page des devis."""

    COMPANY_NAME: str = "Comtec Industrial"
    COMPANY_INFO_HTML: str = (
        "<b>Comtec Industrial SpA</b><br/>"
        "RUT 76.123.456-7<br/>"
        "Av. Apoquindo 4501, Las Condes, Santiago<br/>"
        "ventas@comtec.cl"
    )
    FOOTER_TEXT: str = "Comtec Industrial - Soluciones IoT para la industria"
    PRIMARY_COLOR_HEX: str = "#1e3a5f"
    CURRENCY_LABEL: str = "CLP"
    QR_SIZE_POINTS: float = 90.0

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        env_prefix = 'PDF_'
        extra = 'ignore'

pdf_settings = PDFSettings()
