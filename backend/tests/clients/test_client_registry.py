"""
Tests du registre clients SQLAlchemy, dont la reprise après une panne passagère.
"""
import pytest
from sqlalchemy.exc import OperationalError, PendingRollbackError

from src.clients.infrastructure.registry import SQLAlchemyClientRegistry
from src.core.exceptions import TransientError
from src.core.retry import retry_async

pytestmark = pytest.mark.asyncio

def make_flaky(mocker, session, failures: int = 1) -> dict:
    """Fait échouer les `failures` premiers execute, puis exige un rollback comme PostgreSQL."""
    state = {"failures": failures, "aborted": False, "rollbacks": 0}
    real_execute = session.execute
    real_rollback = session.rollback

    async def flaky_execute(*args, **kwargs):
        if state["aborted"]:
            raise PendingRollbackError("La transaction précédente a échoué: rollback requis.")
        if state["failures"] > 0:
            state["failures"] -= 1
            state["aborted"] = True
            raise OperationalError("SELECT clients", {}, Exception("connection reset"))
        return await real_execute(*args, **kwargs)

    async def tracking_rollback():
        state["aborted"] = False
        state["rollbacks"] += 1
        await real_rollback()

    mocker.patch.object(session, "execute", side_effect=flaky_execute)
    mocker.patch.object(session, "rollback", side_effect=tracking_rollback)
    return state

async def test_active_client_lookup(db_session, active_client, deleted_client):
    registry = SQLAlchemyClientRegistry(db_session)
    active_id, deleted_id = active_client.id, deleted_client.id

    summary = await registry.get_active_client(active_id)
    assert summary.legal_name == "ClientCo Minería SpA"
    assert await registry.get_active_client(deleted_id) is None
    assert (await registry.get_client(deleted_id)).legal_name == "OldCo Ltda"

async def test_domain_lookup_matches_contacts_and_legacy_email(db_session, active_client, deleted_client):
    registry = SQLAlchemyClientRegistry(db_session)

    assert await registry.has_active_client_for_domain("clientco.com") is True
    assert await registry.has_active_client_for_domain("CLIENTCO.COM") is True
    assert await registry.has_active_client_for_domain("oldco.cl") is False
    assert await registry.has_active_client_for_domain("sub.clientco.com") is False

async def test_domain_lookup_recovers_after_failed_statement(db_session, active_client, mocker):
    registry = SQLAlchemyClientRegistry(db_session)
    state = make_flaky(mocker, db_session)

    found = await retry_async(
        lambda: registry.has_active_client_for_domain("clientco.com"),
        label="registre clients",
    )

    assert found is True
    assert state["rollbacks"] == 1

async def test_client_lookup_recovers_after_failed_statement(db_session, active_client, mocker):
    client_id = active_client.id
    registry = SQLAlchemyClientRegistry(db_session)
    state = make_flaky(mocker, db_session, failures=2)

    summary = await retry_async(lambda: registry.get_active_client(client_id), label="registre clients")

    assert summary.id == client_id
    assert state["rollbacks"] == 2

async def test_persistent_outage_is_transient(db_session, active_client, mocker):
    registry = SQLAlchemyClientRegistry(db_session)
    state = make_flaky(mocker, db_session, failures=3)

    with pytest.raises(TransientError):
        await retry_async(lambda: registry.has_active_client_for_domain("clientco.com"), label="registre clients")
    assert state["rollbacks"] == 3
