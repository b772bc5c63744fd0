from typing import Dict, FrozenSet

from src.core.exceptions import InvalidStateTransition
from src.quotes.domain.entities import QuoteStatus

# Transitions autorisées; Draft -> Open correspond à la soumission d'un brouillon
ALLOWED_TRANSITIONS: Dict[QuoteStatus, FrozenSet[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.OPEN}),
    QuoteStatus.OPEN: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.IN_PRODUCTION}),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.INVOICED, QuoteStatus.IN_PRODUCTION}),
    QuoteStatus.IN_PRODUCTION: frozenset(),
    QuoteStatus.REJECTED: frozenset(),
    QuoteStatus.INVOICED: frozenset(),
}

TERMINAL_STATUSES: FrozenSet[QuoteStatus] = frozenset({QuoteStatus.REJECTED, QuoteStatus.INVOICED})

def can_transition(current: QuoteStatus, target: QuoteStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())

def ensure_transition(current: QuoteStatus, target: QuoteStatus) -> None:
    """Lève InvalidStateTransition si `current -> target` n'est pas autorisée."""
    if not can_transition(current, target):
        raise InvalidStateTransition(current=current.value, target=target.value)

def is_terminal(status: QuoteStatus) -> bool:
    return status in TERMINAL_STATUSES
