from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db_session
from src.folios.sequencer import AbstractFolioSequencer, SQLAlchemyFolioSequencer

def get_folio_sequencer(db: AsyncSession = Depends(get_db_session)) -> AbstractFolioSequencer:
    """Injecte le séquenceur lié à la session de la requête."""
    return SQLAlchemyFolioSequencer(session=db)

FolioSequencerDep = Annotated[AbstractFolioSequencer, Depends(get_folio_sequencer)]
