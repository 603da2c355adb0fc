"""Quotation and invoice lifecycle, including quotation-to-invoice conversion."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.constants import ApprovalStatus, InvoiceStatus, QuotationStatus, UserRole


@pytest.fixture
def approved_quotation(app, customer, product, vat):
    quotation = app.quotation_manager.create_quotation(
        customer.id,
        [{"product_id": product.id, "quantity": 2}],
        quotation_date=date(2025, 5, 1),
        valid_until=date(2025, 5, 31),
        discount_percent=10,
        tax_ids=[vat.id],
    )
    app.quotation_manager.send_quotation(quotation.id, UserRole.USER)
    return app.quotation_manager.approve_quotation(quotation.id, UserRole.MANAGER)


def test_quotation_totals_are_computed_server_side(app, customer, product, vat):
    quotation = app.quotation_manager.create_quotation(
        customer.id, [{"product_id": product.id, "quantity": 2}],
        discount_percent=10, tax_ids=[vat.id],
        submitted_totals={"subtotal": 200, "total": 212.4})

    assert quotation.quotation_number == "SQ-00001"
    assert quotation.status == QuotationStatus.DRAFT
    stored = app.quotation_manager.get_quotation(quotation.id)
    assert stored.subtotal == Decimal("200")
    assert stored.discount_amount == Decimal("20")
    assert stored.tax_amount == Decimal("32.4")
    assert stored.total == Decimal("212.4")
    assert stored.tax_ids == [vat.id]
    assert stored.items[0].description == "Steel bolt"


def test_quotation_rejects_tampered_totals(app, customer, product):
    with pytest.raises(ValidationError):
        app.quotation_manager.create_quotation(
            customer.id, [{"product_id": product.id, "quantity": 2}], tax_ids=[],
            submitted_totals={"total": 1})
    assert app.quotation_manager.list_quotations() == []


def test_default_taxes_apply_when_none_selected(app, customer, product):
    app.tax_manager.add_tax("Service Tax", 5, is_default=True)
    quotation = app.quotation_manager.create_quotation(customer.id, [{"product_id": product.id, "quantity": 1}])
    assert quotation.tax_amount == Decimal("5")

    untaxed = app.quotation_manager.create_quotation(
        customer.id, [{"product_id": product.id, "quantity": 1}], tax_ids=[])
    assert untaxed.tax_amount == 0


def test_quotation_for_supplier_is_refused(app, supplier, product):
    with pytest.raises(ValidationError):
        app.quotation_manager.create_quotation(supplier.id, [{"product_id": product.id, "quantity": 1}])


def test_free_text_line_needs_description(app, customer):
    quotation = app.quotation_manager.create_quotation(
        customer.id, [{"description": "Installation", "quantity": 1, "unit_price": 250}], tax_ids=[])
    assert quotation.total == Decimal("250")
    with pytest.raises(ValidationError, match="description"):
        app.quotation_manager.create_quotation(customer.id, [{"quantity": 1, "unit_price": 250}])


def test_convert_quotation_to_invoice(app, approved_quotation, vat):
    invoice = app.quotation_manager.convert_to_invoice(
        approved_quotation.id, UserRole.ADMIN, invoice_date=date(2025, 5, 10))

    assert invoice.invoice_number == "SI-00001"
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.approval_status == ApprovalStatus.PENDING
    assert invoice.quotation_id == approved_quotation.id
    assert invoice.due_date == date(2025, 5, 10) + timedelta(days=30)
    assert invoice.total == Decimal("212.4")
    assert invoice.balance_amount == invoice.total
    assert invoice.paid_amount == 0

    stored = app.invoice_manager.get_invoice(invoice.id)
    assert len(stored.items) == 1
    assert stored.items[0].quantity == 2
    assert stored.tax_ids == [vat.id]

    quotation = app.quotation_manager.get_quotation(approved_quotation.id)
    assert quotation.converted_to_invoice is True
    assert quotation.invoice_id == invoice.id
    assert quotation.status == QuotationStatus.CONVERTED
    assert len(quotation.items) == 1


def test_quotation_converts_only_once(app, approved_quotation):
    app.quotation_manager.convert_to_invoice(approved_quotation.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed):
        app.quotation_manager.convert_to_invoice(approved_quotation.id, UserRole.ADMIN)
    assert len(app.invoice_manager.list_invoices()) == 1


def test_user_cannot_convert_quotation(app, approved_quotation):
    with pytest.raises(PreconditionFailed) as exc_info:
        app.quotation_manager.convert_to_invoice(approved_quotation.id, UserRole.USER)
    assert exc_info.value.guard == "role"


def test_converted_quotation_cannot_be_deleted(app, approved_quotation):
    app.quotation_manager.convert_to_invoice(approved_quotation.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed):
        app.quotation_manager.delete_quotation(approved_quotation.id, UserRole.ADMIN)


def test_quotation_edit_only_while_open(app, approved_quotation, product):
    with pytest.raises(PreconditionFailed):
        app.quotation_manager.update_quotation(
            approved_quotation.id, UserRole.ADMIN, items_data=[{"product_id": product.id, "quantity": 5}])


def test_expire_outdated_quotations(app, customer, product):
    quotation = app.quotation_manager.create_quotation(
        customer.id, [{"product_id": product.id, "quantity": 1}],
        quotation_date=date(2025, 1, 1), valid_until=date(2025, 1, 15), tax_ids=[])
    expired = app.quotation_manager.expire_outdated(today=date(2025, 2, 1))
    assert [q.id for q in expired] == [quotation.id]
    assert app.quotation_manager.get_quotation(quotation.id).status == QuotationStatus.EXPIRED


def test_invoice_lifecycle(app, customer, product):
    invoice = app.invoice_manager.create_invoice(
        customer.id, [{"product_id": product.id, "quantity": 3}],
        invoice_date=date(2025, 6, 1), tax_ids=[])
    assert invoice.invoice_number == "SI-00001"
    assert invoice.due_date == date(2025, 7, 1)
    assert invoice.balance_amount == Decimal("300")

    invoice = app.invoice_manager.update_invoice(invoice.id, UserRole.USER, discount_percent=10)
    assert invoice.total == Decimal("270")
    assert invoice.balance_amount == Decimal("270")

    invoice = app.invoice_manager.send_invoice(invoice.id, UserRole.USER)
    assert invoice.status == InvoiceStatus.SENT
    assert app.invoice_manager.get_effective_status(invoice.id, today=date(2025, 7, 2)) == InvoiceStatus.OVERDUE
    assert [i.id for i in app.invoice_manager.list_overdue(date(2025, 7, 2))] == [invoice.id]

    invoice = app.invoice_manager.cancel_invoice(invoice.id, UserRole.MANAGER)
    assert invoice.status == InvoiceStatus.CANCELLED
    app.invoice_manager.delete_invoice(invoice.id, UserRole.ADMIN)
    with pytest.raises(NotFoundError):
        app.invoice_manager.get_invoice(invoice.id)


def test_invoice_due_date_follows_settings(app, customer, product):
    app.settings_manager.update_company_settings(UserRole.ADMIN, invoice_due_days=14)
    invoice = app.invoice_manager.create_invoice(
        customer.id, [{"product_id": product.id, "quantity": 1}], invoice_date=date(2025, 6, 1))
    assert invoice.due_date == date(2025, 6, 15)


def test_approved_invoice_edit_is_admin_only(app, customer, product):
    invoice = app.invoice_manager.create_invoice(customer.id, [{"product_id": product.id, "quantity": 1}])
    app.invoice_manager.approve_invoice(invoice.id, UserRole.MANAGER)
    with pytest.raises(PreconditionFailed):
        app.invoice_manager.update_invoice(invoice.id, UserRole.MANAGER, notes="x")
    assert app.invoice_manager.update_invoice(invoice.id, UserRole.ADMIN, notes="x").notes == "x"
