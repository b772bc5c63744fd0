from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.core.exceptions import TransientError
from src.folios.sequencer import SQLAlchemyFolioSequencer, format_folio

pytestmark = pytest.mark.asyncio

async def test_first_folio_starts_at_configured_value(db_session):
    sequencer = SQLAlchemyFolioSequencer(db_session, prefix="COT", start=1000)
    assert await sequencer.issue_folio() == "COT-1000"
    assert await sequencer.issue_folio() == "COT-1001"

async def test_folios_survive_commit_and_new_sequencer(db_session):
    await SQLAlchemyFolioSequencer(db_session, prefix="COT", start=1000).issue_folio()
    await db_session.commit()

    assert await SQLAlchemyFolioSequencer(db_session, prefix="COT", start=1000).issue_folio() == "COT-1001"

async def test_rolled_back_allocation_is_not_consumed(db_session):
    sequencer = SQLAlchemyFolioSequencer(db_session, prefix="COT", start=1000)
    await sequencer.issue_folio()
    await db_session.commit()

    await sequencer.issue_folio()
    await db_session.rollback()

    assert await sequencer.issue_folio() == "COT-1001"

async def test_counters_are_independent(db_session):
    quotes = SQLAlchemyFolioSequencer(db_session, prefix="COT", start=1000, counter_name="quote_folio")
    other = SQLAlchemyFolioSequencer(db_session, prefix="OT", start=1, counter_name="work_orders")
    assert await quotes.issue_folio() == "COT-1000"
    assert await other.issue_folio() == "OT-1"
    assert await quotes.issue_folio() == "COT-1001"

async def test_unreachable_backend_is_transient():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("UPDATE folio_counters", {}, Exception("connection refused"))
    sequencer = SQLAlchemyFolioSequencer(session, prefix="COT", start=1000)

    with pytest.raises(TransientError):
        await sequencer.issue_folio()
    session.rollback.assert_awaited_once()

def test_format_folio():
    assert format_folio("Q", 1000) == "Q-1000"
