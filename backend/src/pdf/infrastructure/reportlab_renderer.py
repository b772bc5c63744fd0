import io
import logging
import re
from xml.sax.saxutils import escape
from decimal import Decimal

# ReportLab Imports
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.pagesizes import letter
from reportlab.lib import colors
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing

# Domain
from src.pdf.config import pdf_settings
from src.pdf.domain.renderer import AbstractQuoteRenderer, QuoteSnapshot, RenderedDocument
from src.pdf.domain.exceptions import PDFGenerationException

logger = logging.getLogger(__name__)

def format_amount(value: Decimal) -> str:
    """Séparateur de milliers '.', décimales seulement si nécessaires (ex: 1.190 ou 10,50)."""
    if value == value.to_integral_value():
        text = f"{value:,.0f}"
    else:
        text = f"{value:,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")

def document_filename(folio: str, version: int) -> str:
    safe_folio = re.sub(r"[^A-Za-z0-9_-]", "_", folio)
    suffix = f"_Rev{version}" if version > 1 else ""
    return f"Cotizacion_{safe_folio}{suffix}.pdf"

def build_qr_drawing(value: str, size: float) -> Drawing:
    widget = QrCodeWidget(value)
    x1, y1, x2, y2 = widget.getBounds()
    width, height = x2 - x1, y2 - y1
    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return drawing

class ReportLabQuoteRenderer(AbstractQuoteRenderer):
    """Rendu PDF des devis avec ReportLab.

    Le document est construit en mode `invariant` (date de création et
    identifiant fixes): même instantané et même URL donnent les mêmes octets.
    """

    def __init__(self):
        self.primary_color = colors.HexColor(pdf_settings.PRIMARY_COLOR_HEX)

    async def render(self, snapshot: QuoteSnapshot, verification_url: str) -> RenderedDocument:
        label = f"{snapshot.folio} v{snapshot.version}"
        logger.info(f"[PDFGen] Génération PDF devis {label}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            invariant=1,
            title=f"Cotización {snapshot.folio}",
            author=pdf_settings.COMPANY_NAME,
        )
        try:
            elements = self._build_elements(snapshot, verification_url)
            footer_style = ParagraphStyle(name="Footer", fontSize=8, textColor=colors.gray, alignment=1)

            def add_footer(canvas, doc):
                canvas.saveState()
                footer = Paragraph(pdf_settings.FOOTER_TEXT, footer_style)
                w, h = footer.wrap(doc.width, doc.bottomMargin)
                footer.drawOn(canvas, doc.leftMargin, h)
                canvas.restoreState()

            doc.build(elements, onFirstPage=add_footer, onLaterPages=add_footer)
            pdf_bytes = buffer.getvalue()
        except Exception as e:
            logger.error(f"[PDFGen] Erreur ReportLab build() pour devis {label}: {e}", exc_info=True)
            raise PDFGenerationException(f"Erreur lors de la construction du PDF: {e}", original_exception=e)
        finally:
            buffer.close()

        logger.info(f"[PDFGen] PDF devis {label} généré en mémoire ({len(pdf_bytes)} bytes).")
        return RenderedDocument(
            content=pdf_bytes,
            verification_code=verification_url,
            filename=document_filename(snapshot.folio, snapshot.version),
        )

    def _build_elements(self, snapshot: QuoteSnapshot, verification_url: str) -> list:
        styles = getSampleStyleSheet()
        normal_style = styles["Normal"]
        title_style = ParagraphStyle(name="QuoteTitle", parent=styles["Heading1"], textColor=self.primary_color)
        bold_style = ParagraphStyle(name="Bold", parent=normal_style, fontName='Helvetica-Bold')
        small_style = ParagraphStyle(name="Small", parent=normal_style, fontSize=8, textColor=colors.gray)
        currency = pdf_settings.CURRENCY_LABEL
        elements = []

        # 1. En-tête: société à gauche, QR de vérification à droite
        header = Table(
            [[Paragraph(pdf_settings.COMPANY_INFO_HTML, normal_style),
              build_qr_drawing(verification_url, pdf_settings.QR_SIZE_POINTS)]],
            colWidths=[5.2 * inch, 1.6 * inch],
        )
        header.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ALIGN', (1, 0), (1, 0), 'RIGHT'),
        ]))
        elements.append(header)
        elements.append(Spacer(1, 0.2 * inch))

        # 2. Titre, révision et date
        title = f"COTIZACIÓN {snapshot.folio}"
        if snapshot.version > 1:
            title += f" (Rev. {snapshot.version})"
        elements.append(Paragraph(title, title_style))
        elements.append(Paragraph(f"Fecha: {snapshot.issued_at.strftime('%d/%m/%Y')}", normal_style))
        elements.append(Paragraph(f"Validez: {snapshot.validity_days} días", normal_style))
        elements.append(Spacer(1, 0.1 * inch))

        # 3. Client
        elements.append(Paragraph(
            f"<b>Cliente:</b> {escape(snapshot.client.legal_name)} (RUT {escape(snapshot.client.tax_id)})", normal_style
        ))
        elements.append(Spacer(1, 0.2 * inch))

        # 4. Lignes
        table_data = [[
            Paragraph("<b>N° Parte</b>", normal_style),
            Paragraph("<b>Descripción</b>", normal_style),
            Paragraph("<b>Cant.</b>", normal_style),
            Paragraph(f"<b>P. Unitario ({currency})</b>", normal_style),
            Paragraph(f"<b>Total ({currency})</b>", normal_style),
        ]]
        for item in snapshot.items:
            table_data.append([
                Paragraph(escape(item.part_number), normal_style),
                Paragraph(escape(item.name), normal_style),
                str(item.quantity),
                format_amount(item.unit_price),
                format_amount(item.line_total),
            ])
        for label, amount in (("Neto", snapshot.subtotal), ("IVA", snapshot.tax), ("Total", snapshot.total)):
            table_data.append(["", "", "", Paragraph(f"<b>{label}</b>", bold_style), format_amount(amount)])

        totals_start = len(snapshot.items) + 1
        table = Table(table_data, colWidths=[1.2 * inch, 2.6 * inch, 0.6 * inch, 1.2 * inch, 1.2 * inch])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), self.primary_color),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, totals_start - 1), 0.5, colors.darkgrey),
            ('GRID', (3, totals_start), (-1, -1), 0.5, colors.darkgrey),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 0.3 * inch))

        # 5. Notes et conditions
        if snapshot.notes:
            elements.append(Paragraph(f"<b>Notas:</b> {escape(snapshot.notes)}", normal_style))
        if snapshot.terms:
            elements.append(Paragraph(f"<b>Condiciones:</b> {escape(snapshot.terms)}", normal_style))
        elements.append(Spacer(1, 0.2 * inch))
        elements.append(Paragraph(f"Verifique la autenticidad de este documento en: {escape(verification_url)}", small_style))
        return elements
