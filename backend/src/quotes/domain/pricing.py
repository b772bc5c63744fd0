"""Calcul des montants d'un devis.

Les montants sont toujours recalculés côté serveur à partir des lignes:
les totaux éventuellement transmis par le client ne sont jamais persistés.
Prix et montants sont à l'échelle des colonnes `Numeric(14, 2)`.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

WHOLE_UNIT = Decimal("1")
MONEY_SCALE = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999999.99")
MAX_QUANTITY = 1_000_000

@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal

def fits_money_scale(amount: Decimal) -> bool:
    """Vrai si `amount` tient dans une colonne monétaire sans arrondi."""
    return abs(amount) <= MAX_AMOUNT and amount == amount.quantize(MONEY_SCALE)

def compute_line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(quantity) * unit_price).quantize(MONEY_SCALE, rounding=ROUND_HALF_UP)

def compute_tax(subtotal: Decimal, rate: Decimal) -> Decimal:
    """IVA arrondi à l'unité monétaire, demi-unité vers le haut."""
    return (subtotal * rate).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)

def compute_totals(line_totals: Iterable[Decimal], rate: Decimal) -> QuoteTotals:
    subtotal = sum(line_totals, Decimal("0"))
    tax = compute_tax(subtotal, rate)
    return QuoteTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)
