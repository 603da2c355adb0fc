"""Customer payments on invoices and supplier payments on GRNs."""

from decimal import Decimal

import pytest

from commerce_erp.business_logic.exceptions import PreconditionFailed, ValidationError
from commerce_erp.constants import (
    InvoiceStatus, PaymentMethod, PaymentStatus, SupplierPaymentStatus, UserRole
)


@pytest.fixture
def sent_invoice(app, customer, product):
    invoice = app.invoice_manager.create_invoice(
        customer.id, [{"product_id": product.id, "quantity": 5}], tax_ids=[])
    return app.invoice_manager.send_invoice(invoice.id, UserRole.USER)


def test_partial_then_full_payment(app, sent_invoice):
    payment = app.payment_manager.record_payment(sent_invoice.id, "200", payment_method=PaymentMethod.BANK)
    assert payment.payment_number == "PAY-00001"

    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == Decimal("200")
    assert invoice.balance_amount == Decimal("300")
    assert invoice.status == InvoiceStatus.PARTIAL

    app.payment_manager.record_payment(sent_invoice.id, 300)
    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.balance_amount == 0
    assert invoice.status == InvoiceStatus.PAID


def test_payment_cannot_exceed_balance(app, sent_invoice):
    with pytest.raises(ValidationError, match="exceeds"):
        app.payment_manager.record_payment(sent_invoice.id, 501)
    with pytest.raises(ValidationError):
        app.payment_manager.record_payment(sent_invoice.id, 0)
    assert app.payment_manager.get_payments_for_invoice(sent_invoice.id) == []


def test_draft_invoice_takes_no_payment(app, customer, product):
    invoice = app.invoice_manager.create_invoice(customer.id, [{"product_id": product.id, "quantity": 1}])
    with pytest.raises(PreconditionFailed) as exc_info:
        app.payment_manager.record_payment(invoice.id, 10)
    assert exc_info.value.guard == "state"


def test_deleting_payment_reverts_invoice(app, sent_invoice):
    first = app.payment_manager.record_payment(sent_invoice.id, 100)
    second = app.payment_manager.record_payment(sent_invoice.id, 400)

    app.payment_manager.delete_payment(second.id, UserRole.MANAGER)
    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == Decimal("100")
    assert invoice.status == InvoiceStatus.PARTIAL

    app.payment_manager.delete_payment(first.id, UserRole.ADMIN)
    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == 0
    assert invoice.balance_amount == Decimal("500")
    assert invoice.status == InvoiceStatus.SENT


def test_invoice_with_payments_cannot_be_deleted(app, sent_invoice):
    app.payment_manager.record_payment(sent_invoice.id, 100)
    app.invoice_manager.cancel_invoice(sent_invoice.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed) as exc_info:
        app.invoice_manager.delete_invoice(sent_invoice.id, UserRole.ADMIN)
    assert exc_info.value.guard == "payments"


@pytest.fixture
def approved_grn(app, supplier, product):
    grn = app.grn_manager.create_grn([{"product_id": product.id, "received_quantity": 10}], supplier_id=supplier.id)
    app.grn_manager.inspect_grn(grn.id, UserRole.USER)
    return app.grn_manager.approve_grn(grn.id, UserRole.ADMIN)


def test_supplier_payment_flow(app, approved_grn):
    payment = app.supplier_payment_manager.create_payment(approved_grn.id, 400, UserRole.MANAGER)
    assert payment.payment_number == "SUPPAY-00001"
    assert payment.status == SupplierPaymentStatus.DRAFT
    # drafts don't count
    assert app.grn_manager.get_grn(approved_grn.id).paid_amount == 0

    app.supplier_payment_manager.approve_payment(payment.id, UserRole.ADMIN)
    grn = app.grn_manager.get_grn(approved_grn.id)
    assert grn.paid_amount == Decimal("400")
    assert grn.balance_amount == Decimal("600")
    assert grn.payment_status == PaymentStatus.PARTIAL

    rest = app.supplier_payment_manager.create_payment(approved_grn.id, 600, UserRole.ADMIN)
    app.supplier_payment_manager.approve_payment(rest.id, UserRole.ADMIN)
    app.supplier_payment_manager.mark_paid(rest.id, UserRole.ADMIN)
    grn = app.grn_manager.get_grn(approved_grn.id)
    assert grn.payment_status == PaymentStatus.PAID
    assert grn.balance_amount == 0


def test_supplier_payment_guards(app, approved_grn, supplier, product):
    with pytest.raises(PreconditionFailed):
        app.supplier_payment_manager.create_payment(approved_grn.id, 100, UserRole.USER)
    with pytest.raises(ValidationError):
        app.supplier_payment_manager.create_payment(approved_grn.id, "1000.02", UserRole.ADMIN)
    app.supplier_payment_manager.create_payment(approved_grn.id, "1000.01", UserRole.ADMIN)

    draft_grn = app.grn_manager.create_grn([{"product_id": product.id, "received_quantity": 1}])
    with pytest.raises(PreconditionFailed) as exc_info:
        app.supplier_payment_manager.create_payment(draft_grn.id, 10, UserRole.ADMIN)
    assert exc_info.value.guard == "state"


def test_supplier_payment_approval_is_admin_only(app, approved_grn):
    payment = app.supplier_payment_manager.create_payment(approved_grn.id, 100, UserRole.MANAGER)
    with pytest.raises(PreconditionFailed):
        app.supplier_payment_manager.approve_payment(payment.id, UserRole.MANAGER)
    with pytest.raises(PreconditionFailed):
        app.supplier_payment_manager.mark_paid(payment.id, UserRole.ADMIN)

    app.supplier_payment_manager.delete_payment(payment.id, UserRole.ADMIN)
    assert app.supplier_payment_manager.get_payments_for_grn(approved_grn.id) == []


def test_editing_invoice_down_to_paid_amount_settles_it(app, sent_invoice, product):
    app.payment_manager.record_payment(sent_invoice.id, 200)

    invoice = app.invoice_manager.update_invoice(
        sent_invoice.id, UserRole.ADMIN, items_data=[{"product_id": product.id, "quantity": 2}])
    assert invoice.total == Decimal("200")
    assert invoice.balance_amount == 0
    assert invoice.status == InvoiceStatus.PAID

    with pytest.raises(PreconditionFailed):
        app.payment_manager.record_payment(sent_invoice.id, "0.001")
    stored = app.invoice_manager.get_invoice(sent_invoice.id)
    assert stored.status == InvoiceStatus.PAID
    assert stored.paid_amount == Decimal("200")


def test_editing_partially_paid_invoice_stays_partial(app, sent_invoice, product):
    app.payment_manager.record_payment(sent_invoice.id, 200)
    invoice = app.invoice_manager.update_invoice(
        sent_invoice.id, UserRole.ADMIN, items_data=[{"product_id": product.id, "quantity": 3}])
    assert invoice.balance_amount == Decimal("100")
    assert invoice.status == InvoiceStatus.PARTIAL


def test_paid_amount_never_exceeds_total(app, sent_invoice):
    app.payment_manager.record_payment(sent_invoice.id, "500.005")
    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == Decimal("500")
    assert invoice.balance_amount == 0
    assert invoice.status == InvoiceStatus.PAID


def test_updating_payment_amount_moves_invoice(app, sent_invoice):
    payment = app.payment_manager.record_payment(sent_invoice.id, 200)

    updated = app.payment_manager.update_payment(payment.id, UserRole.MANAGER, amount=500, reference="TT-881")
    assert updated.amount == Decimal("500")
    assert updated.reference == "TT-881"
    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == Decimal("500")
    assert invoice.balance_amount == 0
    assert invoice.status == InvoiceStatus.PAID

    app.payment_manager.update_payment(payment.id, UserRole.ADMIN, amount="150")
    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == Decimal("150")
    assert invoice.balance_amount == Decimal("350")
    assert invoice.status == InvoiceStatus.PARTIAL
    assert app.payment_manager.get_payment(payment.id).amount == Decimal("150")


def test_payment_update_guards(app, sent_invoice):
    first = app.payment_manager.record_payment(sent_invoice.id, 100)
    app.payment_manager.record_payment(sent_invoice.id, 300)

    with pytest.raises(ValidationError, match="exceeds"):
        app.payment_manager.update_payment(first.id, UserRole.ADMIN, amount=201)
    with pytest.raises(PreconditionFailed) as exc_info:
        app.payment_manager.update_payment(first.id, UserRole.USER, amount=50)
    assert exc_info.value.guard == "role"

    invoice = app.invoice_manager.get_invoice(sent_invoice.id)
    assert invoice.paid_amount == Decimal("400")
    assert app.payment_manager.get_payment(first.id).amount == Decimal("100")
