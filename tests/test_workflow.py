"""Unit tests for the transition table and its guards."""

from datetime import date
from decimal import Decimal

import pytest

from commerce_erp.business_logic import workflow
from commerce_erp.business_logic.entities.grn_entity import GRNEntity
from commerce_erp.business_logic.entities.invoice_entity import InvoiceEntity
from commerce_erp.business_logic.entities.purchase_order_entity import PurchaseOrderEntity
from commerce_erp.business_logic.exceptions import PreconditionFailed, ValidationError
from commerce_erp.business_logic.workflow import DocumentKind, WorkflowAction
from commerce_erp.constants import (
    ApprovalStatus, GRNStatus, InvoiceStatus, PurchaseOrderStatus, QuotationStatus, UserRole
)


def _po(status, converted=False):
    return PurchaseOrderEntity(po_number="PO-0001", supplier_id=1, po_date=date(2025, 1, 1),
                               expected_delivery_date=date(2025, 1, 5), status=status,
                               converted_to_grn=converted)


def test_completed_and_converted_po_cannot_be_converted():
    with pytest.raises(PreconditionFailed) as exc_info:
        workflow.require(DocumentKind.PURCHASE_ORDER, WorkflowAction.CONVERT, UserRole.ADMIN,
                         _po(PurchaseOrderStatus.COMPLETED, converted=True))
    assert exc_info.value.guard == "state"


def test_converted_flag_blocks_conversion_even_in_approved_state():
    with pytest.raises(PreconditionFailed) as exc_info:
        workflow.require(DocumentKind.PURCHASE_ORDER, WorkflowAction.CONVERT, UserRole.ADMIN,
                         _po(PurchaseOrderStatus.APPROVED, converted=True))
    assert exc_info.value.guard == "converted_to_grn"


def test_user_role_cannot_approve_po():
    assert not workflow.can_perform(DocumentKind.PURCHASE_ORDER, WorkflowAction.APPROVE, "user",
                                    PurchaseOrderStatus.DRAFT)
    assert workflow.can_perform(DocumentKind.PURCHASE_ORDER, WorkflowAction.APPROVE, "manager",
                                PurchaseOrderStatus.DRAFT)


def test_apply_moves_document_to_target_state():
    po = _po(PurchaseOrderStatus.DRAFT)
    assert workflow.apply(DocumentKind.PURCHASE_ORDER, WorkflowAction.APPROVE, UserRole.ADMIN, po) \
        == PurchaseOrderStatus.APPROVED
    assert po.status == PurchaseOrderStatus.APPROVED


def test_quotation_cannot_skip_from_draft_to_converted():
    assert not workflow.can_perform(DocumentKind.QUOTATION, WorkflowAction.CONVERT, UserRole.ADMIN,
                                    QuotationStatus.DRAFT)


def test_invoice_approval_uses_approval_status_field():
    invoice = InvoiceEntity(invoice_number="SI-00001", customer_id=1, invoice_date=date(2025, 1, 1))
    workflow.apply(DocumentKind.INVOICE, WorkflowAction.APPROVE, UserRole.MANAGER, invoice)
    assert invoice.approval_status == ApprovalStatus.APPROVED
    assert invoice.status == InvoiceStatus.DRAFT


def test_approved_invoice_is_admin_only_to_edit():
    invoice = InvoiceEntity(invoice_number="SI-00001", customer_id=1, invoice_date=date(2025, 1, 1),
                            status=InvoiceStatus.SENT, approval_status=ApprovalStatus.APPROVED)
    with pytest.raises(PreconditionFailed) as exc_info:
        workflow.require(DocumentKind.INVOICE, WorkflowAction.EDIT, UserRole.MANAGER, invoice)
    assert exc_info.value.guard == "role"
    workflow.require(DocumentKind.INVOICE, WorkflowAction.EDIT, UserRole.ADMIN, invoice)


def test_stock_update_blocked_once_done():
    grn = GRNEntity(grn_number="GRN-2025-0001", grn_date=date(2025, 1, 1),
                    status=GRNStatus.APPROVED, stock_updated=True)
    with pytest.raises(PreconditionFailed) as exc_info:
        workflow.require(DocumentKind.GRN, WorkflowAction.UPDATE_STOCK, UserRole.ADMIN, grn)
    assert exc_info.value.guard == "stock_updated"


def test_allowed_actions_for_draft_grn():
    grn = GRNEntity(grn_number="GRN-2025-0001", grn_date=date(2025, 1, 1))
    actions = workflow.allowed_actions(DocumentKind.GRN, UserRole.USER, grn)
    assert WorkflowAction.INSPECT in actions
    assert WorkflowAction.EDIT in actions
    assert WorkflowAction.APPROVE not in actions
    assert WorkflowAction.DELETE not in actions


def test_unknown_role_is_a_validation_error():
    with pytest.raises(ValidationError):
        workflow.to_role("superuser")


def test_effective_status_reads_overdue_after_due_date():
    invoice = InvoiceEntity(invoice_number="SI-00001", customer_id=1, invoice_date=date(2025, 1, 1),
                            due_date=date(2025, 1, 31), status=InvoiceStatus.PARTIAL,
                            paid_amount=Decimal("10"))
    assert workflow.effective_invoice_status(invoice, date(2025, 1, 31)) == InvoiceStatus.PARTIAL
    assert workflow.effective_invoice_status(invoice, date(2025, 2, 1)) == InvoiceStatus.OVERDUE

    invoice.status = InvoiceStatus.PAID
    assert workflow.effective_invoice_status(invoice, date(2025, 2, 1)) == InvoiceStatus.PAID
