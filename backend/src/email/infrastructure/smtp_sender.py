import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from src.config import settings
from src.email.domain.exceptions import EmailSendingException, EmailConfigurationException
from src.email.domain.sender import AbstractEmailSender

logger = logging.getLogger(__name__)

class SmtpEmailSender(AbstractEmailSender):
    """Implémentation de l'envoi d'email via SMTP standard."""

    def __init__(self,
                 smtp_host: str = settings.SMTP_HOST,
                 smtp_port: int = settings.SMTP_PORT,
                 smtp_user: Optional[str] = settings.SENDER_EMAIL,
                 smtp_password: Optional[str] = settings.SENDER_PASSWORD,
                 default_sender: Optional[str] = settings.SENDER_EMAIL,
                 use_tls: bool = settings.SMTP_USE_TLS):

        if not all([smtp_host, smtp_port, smtp_user, smtp_password, default_sender]):
            logger.error("[SmtpEmailSender] Configuration SMTP incomplète.")
            raise EmailConfigurationException("Configuration SMTP (host, port, user, password, sender) incomplète.")

        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.default_sender = default_sender
        self.use_tls = use_tls
        logger.info(f"[SmtpEmailSender] Initialisé pour {smtp_host}:{smtp_port}")

    async def send_email(
        self,
        recipient_email: str,
        subject: str,
        html_content: str,
        sender_email: Optional[str] = None,
    ) -> bool:
        final_sender = sender_email or self.default_sender
        msg = MIMEMultipart('alternative')
        msg["From"] = final_sender
        msg["To"] = recipient_email
        msg["Subject"] = subject
        msg.attach(MIMEText(html_content, "html", "utf-8"))

        # smtplib est bloquant: exécution dans le pool de threads
        return await run_in_threadpool(self._deliver, final_sender, recipient_email, subject, msg.as_string())

    def _deliver(self, sender: str, recipient_email: str, subject: str, payload: str) -> bool:
        try:
            logger.debug(f"[SmtpEmailSender] Connexion à {self.smtp_host}:{self.smtp_port}")
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=15) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                logger.info(f"[SmtpEmailSender] Envoi de l'email à {recipient_email} (Sujet: {subject})")
                server.sendmail(sender, [recipient_email], payload)
            logger.info(f"[SmtpEmailSender] Email envoyé avec succès à {recipient_email}")
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"[SmtpEmailSender] Échec authentification SMTP: {e}", exc_info=True)
            raise EmailSendingException("Échec authentification SMTP.", original_exception=e)
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"[SmtpEmailSender] Destinataire refusé: {recipient_email}. Détails: {e.recipients}")
            return False
        except smtplib.SMTPSenderRefused as e:
            logger.error(f"[SmtpEmailSender] Expéditeur refusé: {sender}. Détails: {e.sender}", exc_info=True)
            raise EmailSendingException(f"Expéditeur refusé par le serveur: {sender}", original_exception=e)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[SmtpEmailSender] Erreur SMTP lors de l'envoi à {recipient_email}: {e}", exc_info=True)
            raise EmailSendingException(f"Erreur SMTP: {e}", original_exception=e)
