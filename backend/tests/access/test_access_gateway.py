"""
Tests de la passerelle d'accès: règles d'admission, lien à usage unique, sessions à portée exacte.
"""
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import update

from src.core.exceptions import AccessDenied, RateLimitExceeded, TransientError
from src.core.utils import utcnow
from src.clients.infrastructure.registry import SQLAlchemyClientRegistry
from src.clients.models import Client, ClientContact
from src.email.application.services import EmailService
from src.access.application.services import AccessGatewayService
from src.access.constants import ACCESS_DENIED_MESSAGE
from src.access.domain.rate_limiter import SlidingWindowRateLimiter
from src.access.infrastructure.models import AccessGrantRecord
from src.access.infrastructure.persistence import SQLAlchemyAccessGrantRepository

pytestmark = pytest.mark.asyncio

RESOURCE = "/api/v1/verify/folio/COT-1000"

def build_gateway(db_session, email_sender, client_registry=None, limit=5) -> AccessGatewayService:
    return AccessGatewayService(
        session=db_session,
        grant_repo=SQLAlchemyAccessGrantRepository(db_session),
        client_registry=client_registry or SQLAlchemyClientRegistry(db_session),
        email_service=EmailService(email_sender=email_sender),
        rate_limiter=SlidingWindowRateLimiter(limit=limit, window_seconds=900),
        internal_domains=["comtec.cl"],
    )

# --- Admission ---

async def test_consumer_domain_denied_even_if_registered(db_session, email_sender):
    client = Client(legal_name="Persona Natural", tax_id="12.345.678-9", contact_email="user@gmail.com")
    db_session.add(client)
    await db_session.commit()
    db_session.add(ClientContact(client_id=client.id, name="Usuario", email="user@gmail.com"))
    await db_session.commit()
    gateway = build_gateway(db_session, email_sender)

    with pytest.raises(AccessDenied) as exc_info:
        await gateway.request_access("user@gmail.com", RESOURCE)
    assert exc_info.value.message == ACCESS_DENIED_MESSAGE
    assert email_sender.sent == []

async def test_client_domain_accepted_then_denied_after_soft_delete(db_session, email_sender, active_client):
    client_id = active_client.id
    gateway = build_gateway(db_session, email_sender)

    result = await gateway.request_access("buyer@clientco.com", RESOURCE)
    assert result.scope == RESOURCE
    assert len(email_sender.sent) == 1
    assert email_sender.sent[0]["recipient_email"] == "buyer@clientco.com"

    await db_session.execute(update(Client).where(Client.id == client_id).values(deleted_at=utcnow()))
    await db_session.commit()

    with pytest.raises(AccessDenied) as exc_info:
        await gateway.request_access("buyer@clientco.com", RESOURCE)
    assert exc_info.value.message == ACCESS_DENIED_MESSAGE
    assert len(email_sender.sent) == 1

async def test_legacy_contact_email_domain_is_accepted(db_session, email_sender):
    db_session.add(Client(legal_name="Agrícola Sur Ltda", tax_id="78.000.111-2", contact_email="Compras@AgriSur.cl"))
    await db_session.commit()
    gateway = build_gateway(db_session, email_sender)

    await gateway.request_access("gerencia@agrisur.cl", RESOURCE)
    assert len(email_sender.sent) == 1

async def test_internal_domain_skips_registry(db_session, email_sender):
    registry = AsyncMock()
    gateway = build_gateway(db_session, email_sender, client_registry=registry)

    await gateway.request_access("vendedor@comtec.cl", RESOURCE)
    registry.has_active_client_for_domain.assert_not_called()
    assert len(email_sender.sent) == 1

@pytest.mark.parametrize("email, resource", [
    ("buyer@unknown-company.com", RESOURCE),
    ("not-an-email", RESOURCE),
    ("buyer@clientco.com", "/api/v1/quotes/abc"),
    ("buyer@clientco.com", "https://evil.example/phish"),
])
async def test_denials_are_opaque(db_session, email_sender, active_client, email, resource):
    gateway = build_gateway(db_session, email_sender)
    with pytest.raises(AccessDenied) as exc_info:
        await gateway.request_access(email, resource)
    assert exc_info.value.message == ACCESS_DENIED_MESSAGE
    assert email_sender.sent == []

async def test_registry_outage_is_transient_and_fails_closed(db_session, email_sender):
    registry = AsyncMock()
    registry.has_active_client_for_domain.side_effect = TransientError("Registre clients indisponible.")
    gateway = build_gateway(db_session, email_sender, client_registry=registry)

    with pytest.raises(TransientError):
        await gateway.request_access("buyer@clientco.com", RESOURCE)
    assert registry.has_active_client_for_domain.await_count == 3
    assert email_sender.sent == []

async def test_requests_are_rate_limited_per_email(db_session, email_sender, active_client):
    gateway = build_gateway(db_session, email_sender, limit=2)
    await gateway.request_access("buyer@clientco.com", RESOURCE)
    await gateway.request_access("BUYER@clientco.com", RESOURCE)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await gateway.request_access("buyer@clientco.com", RESOURCE)
    assert exc_info.value.retry_after > 0
    # Limite par adresse: une autre adresse du même domaine reste admise
    await gateway.request_access("other@clientco.com", RESOURCE)

async def test_failed_email_delivery_leaves_no_grant(db_session, email_sender, active_client):
    email_sender.result = False
    gateway = build_gateway(db_session, email_sender)

    with pytest.raises(TransientError):
        await gateway.request_access("buyer@clientco.com", RESOURCE)
    rows = (await db_session.execute(AccessGrantRecord.__table__.select())).all()
    assert rows == []

# --- Lien et session ---

async def test_link_redeems_once_into_scoped_session(db_session, email_sender, active_client):
    gateway = build_gateway(db_session, email_sender)
    await gateway.request_access("buyer@clientco.com", RESOURCE)
    token = email_sender.last_token()

    redeemed = await gateway.redeem(token)
    assert redeemed.redirect_to == RESOURCE

    session = await gateway.authorize(redeemed.session_token, RESOURCE)
    assert session.email == "buyer@clientco.com"
    assert session.scope == RESOURCE

    with pytest.raises(AccessDenied):
        await gateway.redeem(token)

async def test_session_does_not_cover_other_resources(db_session, email_sender, active_client):
    gateway = build_gateway(db_session, email_sender)
    await gateway.request_access("buyer@clientco.com", RESOURCE)
    redeemed = await gateway.redeem(email_sender.last_token())

    for other in ("/api/v1/verify/folio/COT-1001", "/api/v1/documents/folio/COT-1000"):
        with pytest.raises(AccessDenied):
            await gateway.authorize(redeemed.session_token, other)

async def test_expired_link_is_refused(db_session, email_sender, active_client):
    gateway = build_gateway(db_session, email_sender)
    result = await gateway.request_access("buyer@clientco.com", RESOURCE)
    await db_session.execute(
        update(AccessGrantRecord)
        .where(AccessGrantRecord.id == result.grant_id)
        .values(expires_at=utcnow() - timedelta(minutes=1))
    )
    await db_session.commit()

    with pytest.raises(AccessDenied):
        await gateway.redeem(email_sender.last_token())

async def test_logout_revokes_session(db_session, email_sender, active_client):
    gateway = build_gateway(db_session, email_sender)
    await gateway.request_access("buyer@clientco.com", RESOURCE)
    redeemed = await gateway.redeem(email_sender.last_token())

    await gateway.logout(redeemed.session_token)

    with pytest.raises(AccessDenied):
        await gateway.authorize(redeemed.session_token, RESOURCE)

async def test_unknown_or_staff_tokens_are_refused(db_session, email_sender):
    from src.auth.security import create_access_token

    gateway = build_gateway(db_session, email_sender)
    with pytest.raises(AccessDenied):
        await gateway.redeem("jeton-inconnu")
    with pytest.raises(AccessDenied):
        await gateway.authorize("pas-un-jwt", RESOURCE)
    staff_token = create_access_token(data={"sub": "1", "scope": RESOURCE})
    with pytest.raises(AccessDenied):
        await gateway.authorize(staff_token, RESOURCE)
