import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status

from src.config import settings

# Domain
from src.email.domain.sender import AbstractEmailSender
from src.email.domain.exceptions import EmailConfigurationException

# Infrastructure
from src.email.infrastructure.smtp_sender import SmtpEmailSender

# Application
from src.email.application.services import EmailService

logger = logging.getLogger(__name__)

# --- Email Sender Dependency ---

def get_email_sender() -> AbstractEmailSender:
    """Fournit l'implémentation concrète (SMTP, configurée via `settings`)."""
    try:
        return SmtpEmailSender()
    except EmailConfigurationException as e:
        logger.error(f"Envoi d'emails indisponible: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=settings.TRANSIENT_ERROR_MSG)

EmailSenderDep = Annotated[AbstractEmailSender, Depends(get_email_sender)]

# --- Email Service Dependency ---

def get_email_service(email_sender: EmailSenderDep) -> EmailService:
    """Injecte l'Email Sender et fournit une instance de EmailService."""
    return EmailService(email_sender=email_sender)

EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]
