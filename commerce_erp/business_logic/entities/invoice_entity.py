# commerce_erp/business_logic/entities/invoice_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from decimal import Decimal
from .commercial_document_entity import CommercialDocumentEntity
from commerce_erp.constants import InvoiceStatus, ApprovalStatus

@dataclass(kw_only=True)
class InvoiceEntity(CommercialDocumentEntity):
    invoice_number: str
    customer_id: int
    invoice_date: date
    due_date: Optional[date] = field(default=None)
    status: InvoiceStatus = field(default=InvoiceStatus.DRAFT)
    approval_status: ApprovalStatus = field(default=ApprovalStatus.PENDING)
    paid_amount: Decimal = field(default_factory=lambda: Decimal("0.0"))
    balance_amount: Decimal = field(default_factory=lambda: Decimal("0.0"))
    quotation_id: Optional[int] = field(default=None) # source quotation, if converted

    @property
    def remaining_amount(self) -> Decimal:
        return self.total - self.paid_amount
