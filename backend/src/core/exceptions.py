"""Exceptions métier partagées par tous les modules.

Chaque routeur traduit ces exceptions en `HTTPException` avec le code adapté.
"""

from typing import Optional

class DomainException(Exception):
    """Classe de base pour les exceptions du domaine."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class ValidationError(DomainException):
    """Données d'entrée invalides (items vides, quantité < 1, client inactif...)."""
    pass

class NotFoundError(DomainException):
    """Ressource inexistante."""
    pass

class InvalidStateTransition(DomainException):
    """Transition de statut non autorisée par la machine d'états."""
    def __init__(self, current: str, target: str):
        super().__init__(f"Transition de statut interdite: {current} -> {target}.")
        self.current = current
        self.target = target

class ConflictError(DomainException):
    """Écriture concurrente perdue (version déjà prise, statut modifié entre-temps)."""
    pass

class AccessDenied(DomainException):
    """Accès refusé. Le message reste volontairement opaque."""
    pass

class RateLimitExceeded(DomainException):
    """Trop de demandes pour une même clé dans la fenêtre courante."""
    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after

class TransientError(DomainException):
    """Dépendance momentanément indisponible (base, registre, SMTP, rendu)."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception
