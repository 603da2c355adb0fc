# commerce_erp/business_logic/entities/quotation_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from .commercial_document_entity import CommercialDocumentEntity
from commerce_erp.constants import QuotationStatus

@dataclass(kw_only=True)
class QuotationEntity(CommercialDocumentEntity):
    quotation_number: str
    customer_id: int
    quotation_date: date
    valid_until: Optional[date] = field(default=None)
    status: QuotationStatus = field(default=QuotationStatus.DRAFT)
    converted_to_invoice: bool = field(default=False)
    invoice_id: Optional[int] = field(default=None)
