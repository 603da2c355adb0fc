"""The request-boundary envelope and its serializer."""

from datetime import date
from decimal import Decimal

from commerce_erp.business_logic.exceptions import PreconditionFailed
from commerce_erp.constants import UserRole
from commerce_erp.presentation.api_envelope import handle_request, serialize


def test_success_envelope_serializes_entity(app, customer, product):
    status, body = handle_request(
        app.invoice_manager.create_invoice, customer.id, [{"product_id": product.id, "quantity": 2}],
        invoice_date=date(2025, 1, 10), tax_ids=[])
    assert status == 200
    assert body["success"] is True
    result = body["result"]
    assert result["invoice_number"] == "SI-00001"
    assert result["total"] == 200.0
    assert result["status"] == "draft"
    assert result["invoice_date"] == "2025-01-10"
    assert result["items"][0]["quantity"] == 2.0


def test_validation_error_is_400(app, customer):
    status, body = handle_request(app.invoice_manager.create_invoice, customer.id, [])
    assert status == 400
    assert body == {"success": False, "message": "At least one item is required."}


def test_precondition_failure_is_400_with_guard(app, approved_po):
    app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    status, body = handle_request(app.po_manager.convert_to_grn, approved_po.id, UserRole.ADMIN)
    assert status == 400
    assert body["success"] is False
    assert body["guard"] == "state"


def test_not_found_is_404(app):
    status, body = handle_request(app.grn_manager.get_grn, 12345)
    assert status == 404
    assert "12345" in body["message"]


def test_unexpected_error_is_500():
    def broken():
        raise RuntimeError("disk on fire")

    status, body = handle_request(broken)
    assert status == 500
    assert body == {"success": False, "message": "Internal server error"}


def test_jalali_display_dates():
    data = serialize({"when": date(2025, 3, 21), "amount": Decimal("1.5")}, calendar="jalali")
    assert data == {"when": "2025-03-21", "amount": 1.5}

    exc = PreconditionFailed("nope", guard="role")
    assert serialize([exc]) == ["nope"]


def test_jalali_display_field_on_entities(app, customer, product):
    invoice = app.invoice_manager.create_invoice(
        customer.id, [{"product_id": product.id, "quantity": 1}], invoice_date=date(2025, 3, 21), tax_ids=[])
    data = serialize(invoice, calendar="jalali")
    assert data["invoice_date"] == "2025-03-21"
    assert data["invoice_date_display"] == "1404/01/01"
