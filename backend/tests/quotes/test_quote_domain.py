"""
Tests unitaires du calcul des montants et de la machine à états des devis.
"""
from decimal import Decimal

import pytest

from src.core.exceptions import InvalidStateTransition
from src.quotes.domain.entities import QuoteStatus, QuoteItem
from src.quotes.domain.pricing import compute_line_total, compute_tax, compute_totals, fits_money_scale
from src.quotes.domain.state_machine import can_transition, ensure_transition, is_terminal

RATE = Decimal("0.19")

# --- Montants ---

def test_scenario_single_item_totals():
    totals = compute_totals([compute_line_total(1, Decimal("100"))], RATE)
    assert totals.subtotal == Decimal("100")
    assert totals.tax == Decimal("19")
    assert totals.total == Decimal("119")

@pytest.mark.parametrize("subtotal, expected_tax", [
    (Decimal("0"), Decimal("0")),
    (Decimal("250"), Decimal("48")),        # 47.50 -> 48 (demi-unité vers le haut)
    (Decimal("249"), Decimal("47")),        # 47.31 -> 47
    (Decimal("1234567"), Decimal("234568")),
])
def test_tax_is_rounded_to_whole_units(subtotal, expected_tax):
    assert compute_tax(subtotal, RATE) == expected_tax

def test_total_is_subtotal_plus_tax_for_many_lines():
    lines = [compute_line_total(q, p) for q, p in [(3, Decimal("15990")), (1, Decimal("249990")), (12, Decimal("1250"))]]
    totals = compute_totals(lines, RATE)
    assert totals.subtotal == Decimal("312960")
    assert totals.total == totals.subtotal + totals.tax
    assert totals.tax == (totals.subtotal * RATE).quantize(Decimal("1"))

def test_line_total_uses_money_scale():
    assert str(compute_line_total(3, Decimal("0.33"))) == "0.99"
    assert str(compute_line_total(2, Decimal("15990"))) == "31980.00"

@pytest.mark.parametrize("amount, fits", [
    (Decimal("0.33"), True),
    (Decimal("15990"), True),
    (Decimal("999999999999.99"), True),
    (Decimal("0.333"), False),
    (Decimal("1000000000000"), False),
])
def test_fits_money_scale(amount, fits):
    assert fits_money_scale(amount) is fits

def test_item_specs_discriminated_by_category():
    item = QuoteItem(
        part_number="GW-4G",
        name="Gateway LTE",
        quantity=2,
        unit_price=Decimal("350000"),
        line_total=Decimal("700000"),
        specs={"category": "gateway", "max_devices": 64, "uplink_type": "4G/LTE", "protocols_supported": ["Modbus"]},
    )
    assert item.specs.category == "gateway"
    assert item.specs.max_devices == 64

# --- Machine à états ---

@pytest.mark.parametrize("current, target", [
    (QuoteStatus.DRAFT, QuoteStatus.OPEN),
    (QuoteStatus.OPEN, QuoteStatus.ACCEPTED),
    (QuoteStatus.OPEN, QuoteStatus.REJECTED),
    (QuoteStatus.OPEN, QuoteStatus.IN_PRODUCTION),
    (QuoteStatus.ACCEPTED, QuoteStatus.INVOICED),
    (QuoteStatus.ACCEPTED, QuoteStatus.IN_PRODUCTION),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)

@pytest.mark.parametrize("current, target", [
    (QuoteStatus.ACCEPTED, QuoteStatus.OPEN),
    (QuoteStatus.DRAFT, QuoteStatus.ACCEPTED),
    (QuoteStatus.REJECTED, QuoteStatus.OPEN),
    (QuoteStatus.INVOICED, QuoteStatus.IN_PRODUCTION),
    (QuoteStatus.IN_PRODUCTION, QuoteStatus.INVOICED),
    (QuoteStatus.OPEN, QuoteStatus.OPEN),
])
def test_forbidden_transitions(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidStateTransition):
        ensure_transition(current, target)

def test_terminal_statuses():
    assert is_terminal(QuoteStatus.REJECTED)
    assert is_terminal(QuoteStatus.INVOICED)
    assert not is_terminal(QuoteStatus.IN_PRODUCTION)
    assert not is_terminal(QuoteStatus.OPEN)
