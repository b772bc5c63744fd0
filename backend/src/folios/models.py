from sqlmodel import SQLModel, Field

class FolioCounter(SQLModel, table=True):
    """Compteur nommé servant à l'allocation des folios."""
    __tablename__ = "folio_counters"

    name: str = Field(primary_key=True, max_length=50)
    last_value: int = Field(nullable=False)
