"""Unit tests for the document totals calculation."""

from decimal import Decimal

import pytest

from commerce_erp.business_logic.entities.line_item_entity import LineItemEntity
from commerce_erp.business_logic.entities.tax_entity import TaxEntity
from commerce_erp.business_logic.exceptions import ValidationError
from commerce_erp.business_logic.totals_calculator import (
    calculate_line_total, calculate_totals, verify_submitted_totals
)


def test_reference_scenario():
    """qty 2 x 100, 10% overall discount, 18% tax."""
    totals = calculate_totals([{"quantity": 2, "unit_price": 100}], 10, [18])

    assert totals.subtotal == Decimal("200")
    assert totals.discount_amount == Decimal("20")
    assert totals.final_subtotal == Decimal("180")
    assert totals.tax_amount == Decimal("32.4")
    assert totals.total == Decimal("212.4")


def test_subtotal_is_raw_sum_before_discounts():
    items = [
        {"quantity": 3, "unit_price": "10.50", "discount_percent": 50},
        {"quantity": 1, "unit_price": 20},
    ]
    totals = calculate_totals(items, 25)
    assert totals.subtotal == Decimal("51.50")
    assert totals.line_totals == (Decimal("15.75"), Decimal("20"))


def test_taxes_are_additive_not_compounded():
    totals = calculate_totals([{"quantity": 1, "unit_price": 1000}], 0, [10, 5])
    assert totals.tax_amount == Decimal("150")
    assert totals.total == Decimal("1150")


def test_item_discount_applies_before_overall_discount():
    totals = calculate_totals([{"quantity": 1, "unit_price": 100, "discount_percent": 10}], 10)
    assert totals.item_discounts_total == Decimal("10")
    assert totals.overall_discount_amount == Decimal("9")
    assert totals.final_subtotal == Decimal("81")
    assert totals.discount_amount == Decimal("19")


def test_same_input_gives_same_totals():
    items = [LineItemEntity(quantity=Decimal("4"), unit_price=Decimal("12.5"), discount_percent=Decimal("5"))]
    taxes = [TaxEntity(name="VAT", value=Decimal("18"))]
    assert calculate_totals(items, 3, taxes) == calculate_totals(items, 3, taxes)


def test_missing_and_out_of_range_values_are_coerced():
    totals = calculate_totals(
        [{"quantity": None, "unit_price": 50}, {"quantity": -2, "unit_price": 10}, {"quantity": 1, "unit_price": 10, "discount_percent": 150}],
        overall_discount_percent="not a number",
        taxes=[{"value": None}, -5],
    )
    assert totals.subtotal == Decimal("10")
    assert totals.final_subtotal == Decimal("0")
    assert totals.total == Decimal("0")


def test_empty_document():
    totals = calculate_totals([])
    assert totals.total == Decimal("0")
    assert totals.line_totals == ()


def test_calculate_line_total():
    assert calculate_line_total(2, "99.99", 10) == Decimal("179.982")


def test_submitted_totals_within_tolerance_are_accepted():
    totals = calculate_totals([{"quantity": 2, "unit_price": 100}], 10, [18])
    verify_submitted_totals({"subtotal": 200, "total": "212.405"}, totals)


def test_submitted_totals_mismatch_is_rejected():
    totals = calculate_totals([{"quantity": 2, "unit_price": 100}], 10, [18])
    with pytest.raises(ValidationError, match="total"):
        verify_submitted_totals({"total": 250}, totals)
