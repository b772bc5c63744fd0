from typing import Annotated
from fastapi import Depends

# Domain
from src.pdf.domain.renderer import AbstractQuoteRenderer

# Infrastructure
from src.pdf.infrastructure.reportlab_renderer import ReportLabQuoteRenderer

def get_quote_renderer() -> AbstractQuoteRenderer:
    """Fournit l'implémentation concrète du rendu (ReportLab)."""
    return ReportLabQuoteRenderer()

QuoteRendererDep = Annotated[AbstractQuoteRenderer, Depends(get_quote_renderer)]
