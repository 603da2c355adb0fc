"""Admin dashboard statistics and sales metrics."""

from datetime import date
from decimal import Decimal

import pytest

from commerce_erp.business_logic.dashboard_manager import month_bounds
from commerce_erp.business_logic.exceptions import PreconditionFailed
from commerce_erp.constants import UserRole

TODAY = date(2025, 6, 15)


@pytest.fixture
def trading_month(app, customer, supplier, product, second_product):
    invoices = app.invoice_manager
    paid = invoices.create_invoice(customer.id, [{"product_id": product.id, "quantity": 2}],
                                   invoice_date=date(2025, 6, 3), tax_ids=[])
    invoices.send_invoice(paid.id, UserRole.USER)
    app.payment_manager.record_payment(paid.id, 200, payment_date=date(2025, 6, 5))

    invoices.create_invoice(customer.id, [{"product_id": product.id, "quantity": 1}],
                            invoice_date=date(2025, 5, 20), tax_ids=[])

    partial = invoices.create_invoice(customer.id, [{"product_id": product.id, "quantity": 3}],
                                      invoice_date=date(2025, 6, 10), tax_ids=[])
    invoices.send_invoice(partial.id, UserRole.USER)
    app.payment_manager.record_payment(partial.id, 50, payment_date=date(2025, 6, 11))

    app.quotation_manager.create_quotation(customer.id, [{"product_id": product.id, "quantity": 1}],
                                           quotation_date=date(2025, 6, 1), tax_ids=[])

    app.stock_manager.receive_stock(product.id, 5)
    app.stock_manager.receive_stock(second_product.id, 15)
    app.grn_manager.create_grn([{"product_id": product.id, "received_quantity": 2}], supplier_id=supplier.id)


def test_month_bounds():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_dashboard_stats(app, trading_month):
    stats = app.dashboard_manager.get_stats(UserRole.ADMIN, today=TODAY)

    assert stats["paid_invoice"] == Decimal("200")
    assert stats["unpaid_invoice"] == Decimal("350")
    assert stats["draft_invoice"] == Decimal("100")
    assert stats["invoices_this_month"] == Decimal("500")
    assert stats["invoices_this_month_count"] == 2
    assert stats["quotes_this_month"] == Decimal("100")
    assert stats["quotes_this_month_count"] == 1
    assert stats["payments_this_month"] == Decimal("250")
    assert stats["payments_this_month_count"] == 2
    assert stats["invoices_by_status"]["paid"]["count"] == 1
    assert stats["invoices_by_status"]["partial"]["total"] == Decimal("300")
    assert stats["quotes_by_status"]["draft"]["count"] == 1
    assert stats["total_customers"] == 1

    assert stats["total_stock_items"] == 2
    assert stats["low_stock_count"] == 1
    assert stats["reorder_count"] == 1
    assert stats["total_stock_value"] == Decimal("575")

    assert stats["total_grns"] == 1
    assert stats["pending_grns"] == 1


def test_dashboard_is_admin_only(app):
    with pytest.raises(PreconditionFailed) as exc_info:
        app.dashboard_manager.get_stats(UserRole.MANAGER)
    assert exc_info.value.guard == "role"
    with pytest.raises(PreconditionFailed):
        app.dashboard_manager.get_metrics("user")


def test_sales_metrics(app, trading_month):
    metrics = app.dashboard_manager.get_metrics(UserRole.ADMIN, date(2025, 6, 1), date(2025, 6, 30))

    assert metrics["sales_by_day"] == {"2025-06-03": {"total": Decimal("200"), "count": 1}}
    top = metrics["top_customers"]
    assert len(top) == 1
    assert top[0]["name"] == "Acme Retail"
    assert top[0]["total"] == Decimal("200")
