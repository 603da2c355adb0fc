# commerce_erp/business_logic/document_converter.py

"""
Field mapping from a source document to the draft document created from it.

These functions only build entities; the managers check eligibility first
and persist the result and the source's one-way flag in one transaction.
"""

from copy import copy
from datetime import date, datetime, timedelta
from decimal import Decimal

from commerce_erp.business_logic.entities.grn_entity import GRNEntity
from commerce_erp.business_logic.entities.grn_item_entity import GRNItemEntity
from commerce_erp.business_logic.entities.invoice_entity import InvoiceEntity
from commerce_erp.business_logic.entities.purchase_order_entity import PurchaseOrderEntity
from commerce_erp.business_logic.entities.quotation_entity import QuotationEntity
from commerce_erp.config import DEFAULT_INVOICE_DUE_DAYS, DEFAULT_STOCK_LOCATION
from commerce_erp.constants import GRNStatus, QualityStatus, PaymentStatus, InvoiceStatus, ApprovalStatus


def purchase_order_to_grn(po: PurchaseOrderEntity, grn_number: str, grn_date: date,
                          location: str = DEFAULT_STOCK_LOCATION) -> GRNEntity:
    """
    Each PO line becomes a GRN line whose ordered, received and accepted
    quantities all start at the ordered quantity; inspection adjusts them later.
    """
    items = [
        GRNItemEntity(
            product_id=line.product_id,
            ordered_quantity=line.quantity,
            received_quantity=line.quantity,
            accepted_quantity=line.quantity,
            unit_price=line.unit_price,
        )
        for line in po.items
    ]
    total_value = sum((item.accepted_value for item in items), Decimal("0"))
    return GRNEntity(
        grn_number=grn_number,
        grn_date=grn_date,
        supplier_id=po.supplier_id,
        purchase_order_id=po.id,
        po_number=po.po_number,
        location=location,
        status=GRNStatus.DRAFT,
        quality_status=QualityStatus.PENDING,
        stock_updated=False,
        total_value=total_value,
        balance_amount=total_value,
        payment_status=PaymentStatus.UNPAID,
        notes=f"Created from purchase order {po.po_number}",
        created_at=datetime.now(),
        items=items,
    )


def quotation_to_invoice(quotation: QuotationEntity, invoice_number: str, invoice_date: date,
                         due_days: int = DEFAULT_INVOICE_DUE_DAYS) -> InvoiceEntity:
    """Items, discount, taxes and totals are carried over verbatim; nothing is recalculated."""
    items = []
    for line in quotation.items:
        item = copy(line)
        item.id = None
        item.document_id = None
        items.append(item)

    return InvoiceEntity(
        invoice_number=invoice_number,
        customer_id=quotation.customer_id,
        invoice_date=invoice_date,
        due_date=invoice_date + timedelta(days=due_days),
        status=InvoiceStatus.DRAFT,
        approval_status=ApprovalStatus.PENDING,
        discount_percent=quotation.discount_percent,
        subtotal=quotation.subtotal,
        discount_amount=quotation.discount_amount,
        tax_amount=quotation.tax_amount,
        total=quotation.total,
        paid_amount=Decimal("0.0"),
        balance_amount=quotation.total,
        quotation_id=quotation.id,
        notes=quotation.notes,
        created_at=datetime.now(),
        items=items,
        tax_ids=list(quotation.tax_ids),
    )
