import smtplib
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from src.email.domain.exceptions import EmailSendingException, EmailConfigurationException
from src.email.infrastructure.smtp_sender import SmtpEmailSender
from src.email.interfaces.dependencies import get_email_sender

def make_sender(**overrides) -> SmtpEmailSender:
    params = {
        "smtp_host": "smtp.test.cl",
        "smtp_port": 587,
        "smtp_user": "cotizaciones@comtec.cl",
        "smtp_password": "secret",
        "default_sender": "cotizaciones@comtec.cl",
        "use_tls": True,
    }
    params.update(overrides)
    return SmtpEmailSender(**params)

def test_initialization_missing_config():
    with pytest.raises(EmailConfigurationException):
        make_sender(smtp_password="")

def test_dependency_maps_missing_config_to_503():
    with patch("src.email.interfaces.dependencies.SmtpEmailSender", side_effect=EmailConfigurationException("incomplète")):
        with pytest.raises(HTTPException) as exc_info:
            get_email_sender()
    assert exc_info.value.status_code == 503

@pytest.mark.asyncio
async def test_send_email_success():
    sender = make_sender()
    with patch("src.email.infrastructure.smtp_sender.smtplib.SMTP") as mock_smtp:
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server

        result = await sender.send_email("buyer@clientco.com", "Asunto", "<p>Hola</p>")

    assert result is True
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("cotizaciones@comtec.cl", "secret")
    server.sendmail.assert_called_once()
    assert server.sendmail.call_args[0][1] == ["buyer@clientco.com"]

@pytest.mark.asyncio
async def test_send_email_recipient_refused():
    sender = make_sender(use_tls=False)
    with patch("src.email.infrastructure.smtp_sender.smtplib.SMTP") as mock_smtp:
        server = MagicMock()
        server.sendmail.side_effect = smtplib.SMTPRecipientsRefused({"buyer@clientco.com": (550, b"unknown")})
        mock_smtp.return_value.__enter__.return_value = server

        result = await sender.send_email("buyer@clientco.com", "Asunto", "<p>Hola</p>")

    assert result is False
    server.starttls.assert_not_called()

@pytest.mark.asyncio
async def test_send_email_auth_failure():
    sender = make_sender()
    with patch("src.email.infrastructure.smtp_sender.smtplib.SMTP") as mock_smtp:
        server = MagicMock()
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        mock_smtp.return_value.__enter__.return_value = server

        with pytest.raises(EmailSendingException):
            await sender.send_email("buyer@clientco.com", "Asunto", "<p>Hola</p>")

@pytest.mark.asyncio
async def test_send_email_connection_error():
    sender = make_sender()
    with patch("src.email.infrastructure.smtp_sender.smtplib.SMTP", side_effect=OSError("connection refused")):
        with pytest.raises(EmailSendingException):
            await sender.send_email("buyer@clientco.com", "Asunto", "<p>Hola</p>")
