# commerce_erp/business_logic/entities/grn_entity.py
from dataclasses import dataclass, field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from .base_entity import BaseEntity, NOT_A_COLUMN
from .grn_item_entity import GRNItemEntity
from commerce_erp.constants import GRNStatus, QualityStatus, PaymentStatus
from commerce_erp.config import DEFAULT_STOCK_LOCATION

@dataclass
class GRNEntity(BaseEntity):
    grn_number: str
    grn_date: date
    supplier_id: Optional[int] = field(default=None)
    purchase_order_id: Optional[int] = field(default=None)
    po_number: Optional[str] = field(default=None)
    location: str = field(default=DEFAULT_STOCK_LOCATION)

    status: GRNStatus = field(default=GRNStatus.DRAFT)
    quality_status: QualityStatus = field(default=QualityStatus.PENDING)
    stock_updated: bool = field(default=False)

    # payment tracking (fed by supplier payments)
    total_value: Decimal = field(default_factory=lambda: Decimal("0.0"))
    paid_amount: Decimal = field(default_factory=lambda: Decimal("0.0"))
    balance_amount: Decimal = field(default_factory=lambda: Decimal("0.0"))
    payment_status: PaymentStatus = field(default=PaymentStatus.UNPAID)

    # supplier invoice matching
    invoice_number: Optional[str] = field(default=None)
    invoice_date: Optional[date] = field(default=None)
    invoice_amount: Optional[Decimal] = field(default=None)
    invoice_matched: bool = field(default=False)

    notes: Optional[str] = field(default=None)
    created_at: Optional[datetime] = field(default=None)
    items: List[GRNItemEntity] = field(default_factory=list, metadata=NOT_A_COLUMN)
