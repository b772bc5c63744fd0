from pydantic import BaseModel, ConfigDict

class ClientSummary(BaseModel):
    """Vue minimale d'un client actif, utilisée par les devis et le rendu PDF."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    legal_name: str
    tax_id: str
