"""Exceptions spécifiques au domaine Quote."""

from src.core.exceptions import NotFoundError, ConflictError

class QuoteNotFoundException(NotFoundError):
    """Levée lorsqu'un devis spécifique n'est pas trouvé."""
    def __init__(self, quote_id: str):
        super().__init__(f"Devis avec ID {quote_id} non trouvé.")
        self.quote_id = quote_id

class LineageNotFoundException(NotFoundError):
    """Levée lorsqu'aucune révision n'existe pour un folio."""
    def __init__(self, folio: str):
        super().__init__(f"Aucun devis pour le folio {folio}.")
        self.folio = folio

class VersionCollisionException(ConflictError):
    """Deux écritures ont visé le même (folio, version). Rejouable."""
    def __init__(self, folio: str, version: int):
        super().__init__(f"La version {version} du folio {folio} existe déjà.")
        self.folio = folio
        self.version = version

class StaleRevisionException(ConflictError):
    """La révision demandée part d'une version qui n'est plus la dernière de la lignée."""
    def __init__(self, folio: str, parent_version: int, head_version: int):
        super().__init__(
            f"Le devis {folio} v{parent_version} a déjà été révisé (dernière version: v{head_version})."
        )
        self.folio = folio
        self.parent_version = parent_version
        self.head_version = head_version

class StatusConflictException(ConflictError):
    """Le statut a changé entre la lecture et l'écriture."""
    def __init__(self, quote_id: str):
        super().__init__(f"Le statut du devis {quote_id} a été modifié entre-temps.")
        self.quote_id = quote_id
