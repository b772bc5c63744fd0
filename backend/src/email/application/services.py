import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

import jinja2

from src.access.constants import ACCESS_LINK_EMAIL_SUBJECT
from src.email.domain.sender import AbstractEmailSender
from src.email.domain.exceptions import EmailSendingException
from src.pdf.config import pdf_settings

logger = logging.getLogger(__name__)

# Configuration du moteur de templates Jinja2
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=jinja2.select_autoescape(['html', 'xml']),
)

class EmailService:
    """Service applicatif pour l'envoi d'emails métier."""

    def __init__(self, email_sender: AbstractEmailSender):
        self.email_sender = email_sender

    def _render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Charge et rend un template Jinja2."""
        try:
            template = env.get_template(template_name)
        except jinja2.TemplateNotFound as e:
            logger.error(f"[EmailService] Template email non trouvé: {template_name} dans {TEMPLATE_DIR}")
            raise EmailSendingException(f"Template '{template_name}' introuvable.", original_exception=e)
        return template.render(context)

    async def send_access_link_email(
        self,
        recipient_email: str,
        access_link: str,
        resource_path: str,
        expires_at: datetime,
    ) -> bool:
        """Envoie le lien d'accès à usage unique. Retourne False si le destinataire est refusé."""
        logger.info(f"[EmailService] Préparation email de lien d'accès pour {recipient_email}")
        context = {
            "subject": ACCESS_LINK_EMAIL_SUBJECT,
            "company_name": pdf_settings.COMPANY_NAME,
            "recipient_email": recipient_email,
            "access_link": access_link,
            "resource_path": resource_path,
            "expires_at": expires_at,
        }
        html_content = self._render_template("access_link.html", context)

        success = await self.email_sender.send_email(
            recipient_email=recipient_email,
            subject=ACCESS_LINK_EMAIL_SUBJECT,
            html_content=html_content,
        )
        if success:
            logger.info(f"[EmailService] Lien d'accès envoyé à {recipient_email}")
        else:
            logger.warning(f"[EmailService] Échec de l'envoi du lien d'accès à {recipient_email}")
        return success
