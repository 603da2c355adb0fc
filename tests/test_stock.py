"""Stock receipts, adjustments, transfers and alerts."""

from decimal import Decimal

import pytest

from commerce_erp.business_logic.exceptions import NotFoundError, ValidationError
from commerce_erp.constants import StockTransactionType


def test_receive_creates_stock_row(app, product):
    txn = app.stock_manager.receive_stock(product.id, 25, "Main Warehouse", unit_price=Decimal("100"))
    assert txn.balance_before == 0
    assert txn.balance_after == 25
    assert txn.total_value == Decimal("2500")
    assert app.stock_manager.get_quantity(product.id) == Decimal("25")


def test_adjustment_cannot_go_negative(app, product):
    app.stock_manager.receive_stock(product.id, 5)
    with pytest.raises(ValidationError, match="Insufficient stock"):
        app.stock_manager.adjust_stock(product.id, -6)
    assert app.stock_manager.get_quantity(product.id) == Decimal("5")

    stock, txn = app.stock_manager.adjust_stock(product.id, -2, transaction_type=StockTransactionType.DAMAGE,
                                                reason="dropped")
    assert stock.quantity == Decimal("3")
    assert txn.from_location == "Main Warehouse"
    assert txn.reference_number.startswith("ADJ-")


def test_adjustment_needs_existing_stock(app, product):
    with pytest.raises(NotFoundError):
        app.stock_manager.adjust_stock(product.id, 1)


def test_transfer_between_locations(app, product):
    app.stock_manager.receive_stock(product.id, 10, "Main Warehouse")
    app.stock_manager.transfer_stock(product.id, 4, "Main Warehouse", "Shop")

    balance = app.stock_manager.get_stock_balance(product.id)
    assert balance["total_quantity"] == Decimal("10")
    quantities = {row["location"]: row["quantity"] for row in balance["locations"]}
    assert quantities == {"Main Warehouse": Decimal("6"), "Shop": Decimal("4")}

    with pytest.raises(ValidationError, match="Insufficient stock"):
        app.stock_manager.transfer_stock(product.id, 5, "Shop", "Main Warehouse")
    with pytest.raises(ValidationError):
        app.stock_manager.transfer_stock(product.id, 1, "Shop", "Shop")


def test_low_stock_alerts(app, product, second_product):
    app.stock_manager.receive_stock(product.id, 15)
    app.stock_manager.receive_stock(second_product.id, 50)
    alerts = app.stock_manager.get_low_stock_alerts()
    assert [s.product_id for s in alerts] == [product.id]
    assert alerts[0].needs_reorder
    assert not alerts[0].is_low_stock

    app.stock_manager.update_levels(second_product.id, reorder_level=60)
    assert {s.product_id for s in app.stock_manager.get_low_stock_alerts()} == {product.id, second_product.id}


def test_transaction_history(app, product):
    app.stock_manager.receive_stock(product.id, 3)
    app.stock_manager.adjust_stock(product.id, 1)
    history = app.stock_manager.get_transactions(product.id)
    assert len(history) == 2
    assert {t.transaction_type for t in history} == {StockTransactionType.STOCK_IN, StockTransactionType.ADJUSTMENT}
