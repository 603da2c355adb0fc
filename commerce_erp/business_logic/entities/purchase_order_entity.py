# commerce_erp/business_logic/entities/purchase_order_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from .commercial_document_entity import CommercialDocumentEntity
from commerce_erp.constants import PurchaseOrderStatus

@dataclass(kw_only=True)
class PurchaseOrderEntity(CommercialDocumentEntity):
    po_number: str
    supplier_id: int
    po_date: date
    expected_delivery_date: date
    status: PurchaseOrderStatus = field(default=PurchaseOrderStatus.DRAFT)
    converted_to_grn: bool = field(default=False)
    grn_id: Optional[int] = field(default=None) # the one GRN created from this PO
