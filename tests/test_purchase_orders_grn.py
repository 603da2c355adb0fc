"""Purchase order lifecycle, conversion to GRN, inspection and stock update."""

from datetime import date
from decimal import Decimal

import pytest

from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.constants import (
    GRNStatus, PaymentStatus, PurchaseOrderStatus, QualityStatus, ReferenceType, StockTransactionType, UserRole
)


def test_create_po_numbers_and_totals(app, supplier, product):
    po = app.po_manager.create_purchase_order(
        supplier_id=supplier.id,
        items_data=[{"product_id": product.id, "quantity": 2}],
        po_date=date(2025, 1, 1),
        expected_delivery_date=date(2025, 1, 5),
        discount_percent=10,
    )
    assert po.po_number == "PO-0001"
    assert po.status == PurchaseOrderStatus.DRAFT
    assert po.items[0].unit_price == Decimal("100")
    assert po.total == Decimal("180")

    second = app.po_manager.create_purchase_order(
        supplier_id=supplier.id, items_data=[{"product_id": product.id, "quantity": 1}],
        expected_delivery_date=date.today())
    assert second.po_number == "PO-0002"


def test_create_po_validation(app, supplier, customer, product):
    items = [{"product_id": product.id, "quantity": 1}]
    with pytest.raises(ValidationError, match="Supplier is required"):
        app.po_manager.create_purchase_order(None, items, date(2025, 1, 5), po_date=date(2025, 1, 1))
    with pytest.raises(ValidationError):
        app.po_manager.create_purchase_order(customer.id, items, date(2025, 1, 5), po_date=date(2025, 1, 1))
    with pytest.raises(ValidationError, match="At least one item"):
        app.po_manager.create_purchase_order(supplier.id, [], date(2025, 1, 5), po_date=date(2025, 1, 1))
    with pytest.raises(ValidationError, match="Expected delivery date"):
        app.po_manager.create_purchase_order(supplier.id, items, date(2024, 12, 31), po_date=date(2025, 1, 1))
    with pytest.raises(ValidationError, match="quantity"):
        app.po_manager.create_purchase_order(
            supplier.id, [{"product_id": product.id, "quantity": 0}], date(2025, 1, 5), po_date=date(2025, 1, 1))
    with pytest.raises(NotFoundError):
        app.po_manager.create_purchase_order(
            supplier.id, [{"product_id": 999, "quantity": 1}], date(2025, 1, 5), po_date=date(2025, 1, 1))


def test_only_supervisors_approve(app, supplier, product):
    po = app.po_manager.create_purchase_order(
        supplier.id, [{"product_id": product.id, "quantity": 1}], date(2025, 1, 5), po_date=date(2025, 1, 1))
    with pytest.raises(PreconditionFailed) as exc_info:
        app.po_manager.approve_purchase_order(po.id, UserRole.USER)
    assert exc_info.value.guard == "role"
    assert app.po_manager.approve_purchase_order(po.id, "admin").status == PurchaseOrderStatus.APPROVED


def test_convert_po_to_grn(app, approved_po, product):
    grn = app.po_manager.convert_to_grn(approved_po.id, UserRole.MANAGER, grn_date=date(2025, 3, 12))

    assert grn.grn_number == "GRN-2025-0001"
    assert grn.status == GRNStatus.DRAFT
    assert grn.quality_status == QualityStatus.PENDING
    assert grn.purchase_order_id == approved_po.id
    assert grn.po_number == approved_po.po_number
    assert grn.total_value == Decimal("1000")
    assert grn.payment_status == PaymentStatus.UNPAID
    item = grn.items[0]
    assert (item.ordered_quantity, item.received_quantity, item.accepted_quantity) == (10, 10, 10)

    po = app.po_manager.get_purchase_order(approved_po.id)
    assert po.converted_to_grn is True
    assert po.grn_id == grn.id
    assert po.status == PurchaseOrderStatus.CONVERTED


def test_second_conversion_is_refused(app, approved_po):
    app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed):
        app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    assert len(app.grns_repo.get_by_purchase_order_id(approved_po.id)) == 1


def test_draft_po_cannot_be_converted(app, supplier, product):
    po = app.po_manager.create_purchase_order(
        supplier.id, [{"product_id": product.id, "quantity": 1}], date(2025, 1, 5), po_date=date(2025, 1, 1))
    with pytest.raises(PreconditionFailed) as exc_info:
        app.po_manager.convert_to_grn(po.id, UserRole.ADMIN)
    assert exc_info.value.guard == "state"
    assert app.grns_repo.get_all() == []


def test_converted_po_cannot_be_cancelled_or_edited(app, approved_po):
    app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed):
        app.po_manager.cancel_purchase_order(approved_po.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed):
        app.po_manager.update_purchase_order(approved_po.id, UserRole.ADMIN, notes="late")


def test_inspection_short_delivery(app, approved_po):
    """ordered 10, received 8, accepted 8: nothing rejected, 2 short."""
    grn = app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    item_id = grn.items[0].id
    grn = app.grn_manager.inspect_grn(grn.id, UserRole.USER, [
        {"item_id": item_id, "received_quantity": 8, "accepted_quantity": 8},
    ])
    item = grn.items[0]
    assert item.rejected_quantity == 0
    assert item.short_quantity == 2
    assert grn.status == GRNStatus.INSPECTED
    assert grn.quality_status == QualityStatus.PASSED
    assert grn.total_value == Decimal("800")


def test_inspection_rejects_part_of_delivery(app, approved_po):
    """received 8, accepted 5: 3 rejected."""
    grn = app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    grn = app.grn_manager.inspect_grn(grn.id, UserRole.USER, [
        {"item_id": grn.items[0].id, "received_quantity": 8, "accepted_quantity": 5,
         "rejection_reason": "damaged packaging"},
    ])
    assert grn.items[0].rejected_quantity == 3
    assert grn.quality_status == QualityStatus.PARTIAL

    reloaded = app.grn_manager.get_grn(grn.id)
    assert reloaded.items[0].rejection_reason == "damaged packaging"
    assert reloaded.total_value == Decimal("500")


def test_accepting_more_than_received_is_refused(app, approved_po):
    grn = app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    with pytest.raises(ValidationError, match="accepted quantity"):
        app.grn_manager.inspect_grn(grn.id, UserRole.USER, [
            {"item_id": grn.items[0].id, "received_quantity": 5, "accepted_quantity": 6},
        ])
    assert app.grn_manager.get_grn(grn.id).status == GRNStatus.DRAFT


def _approved_grn(app, approved_po, accepted=8):
    grn = app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    app.grn_manager.inspect_grn(grn.id, UserRole.USER, [
        {"item_id": grn.items[0].id, "received_quantity": 10, "accepted_quantity": accepted},
    ])
    return app.grn_manager.approve_grn(grn.id, UserRole.MANAGER)


def test_update_stock_posts_accepted_quantity_once(app, approved_po, product):
    grn = _approved_grn(app, approved_po)

    grn = app.grn_manager.update_stock(grn.id, UserRole.USER)
    assert grn.stock_updated is True
    assert grn.status == GRNStatus.COMPLETED
    assert app.stock_manager.get_quantity(product.id, grn.location) == Decimal("8")

    with pytest.raises(PreconditionFailed):
        app.grn_manager.update_stock(grn.id, UserRole.ADMIN)
    assert app.stock_manager.get_quantity(product.id, grn.location) == Decimal("8")

    transactions = app.stock_transactions_repo.get_by_reference(ReferenceType.GRN, grn.id)
    assert len(transactions) == 1
    assert transactions[0].transaction_type == StockTransactionType.GRN
    assert transactions[0].balance_before == 0
    assert transactions[0].balance_after == 8
    assert transactions[0].reference_number == grn.grn_number


def test_update_stock_requires_approval(app, approved_po):
    grn = app.po_manager.convert_to_grn(approved_po.id, UserRole.ADMIN)
    with pytest.raises(PreconditionFailed) as exc_info:
        app.grn_manager.update_stock(grn.id, UserRole.ADMIN)
    assert exc_info.value.guard == "state"


def test_completed_grn_items_are_frozen(app, approved_po, product):
    grn = _approved_grn(app, approved_po)
    app.grn_manager.update_stock(grn.id, UserRole.ADMIN)

    with pytest.raises(PreconditionFailed) as exc_info:
        app.grn_manager.update_grn(grn.id, UserRole.MANAGER, notes="changed")
    assert exc_info.value.guard == "role"
    with pytest.raises(PreconditionFailed) as exc_info:
        app.grn_manager.update_grn(grn.id, UserRole.ADMIN,
                                   items_data=[{"product_id": product.id, "received_quantity": 1}])
    assert exc_info.value.guard == "stock_updated"
    assert app.grn_manager.update_grn(grn.id, UserRole.ADMIN, notes="checked").notes == "checked"


def test_match_supplier_invoice(app, approved_po):
    grn = _approved_grn(app, approved_po)
    grn = app.grn_manager.match_invoice(grn.id, UserRole.USER, "SUP-INV-77",
                                        invoice_date=date(2025, 3, 15), invoice_amount="800")
    assert grn.invoice_matched is True
    assert grn.invoice_amount == Decimal("800")

    with pytest.raises(ValidationError):
        app.grn_manager.match_invoice(grn.id, UserRole.USER, "  ")


def test_direct_grn_and_delete(app, supplier, product):
    grn = app.grn_manager.create_grn(
        [{"product_id": product.id, "ordered_quantity": 4, "received_quantity": 5}],
        supplier_id=supplier.id, grn_date=date(2026, 2, 1))
    assert grn.grn_number == "GRN-2026-0001"
    assert grn.items[0].accepted_quantity == 5
    assert grn.total_value == Decimal("500")

    with pytest.raises(PreconditionFailed):
        app.grn_manager.delete_grn(grn.id, UserRole.MANAGER)
    app.grn_manager.delete_grn(grn.id, UserRole.ADMIN)
    with pytest.raises(NotFoundError):
        app.grn_manager.get_grn(grn.id)


def test_po_and_grn_reports(app, approved_po, supplier):
    grn = _approved_grn(app, approved_po, accepted=7)

    po_report = app.po_manager.get_reports(supplier_id=supplier.id)
    assert po_report["total_orders"] == 1
    assert po_report["by_status"]["converted"] == 1
    assert po_report["converted_to_grn"] == 1
    assert po_report["pending_conversion"] == 0
    assert po_report["supplier_totals"][0]["supplier_name"] == supplier.name

    grn_report = app.grn_manager.get_reports()
    assert grn_report["total_grns"] == 1
    assert grn_report["by_status"]["approved"] == 1
    assert grn_report["by_quality"]["partial"] == 1
    assert grn_report["total_accepted_quantity"] == 7
    assert grn_report["total_rejected_quantity"] == 3
    assert grn_report["total_value"] == grn.total_value
