# commerce_erp/business_logic/entities/commercial_document_entity.py
from dataclasses import dataclass, field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from .base_entity import BaseEntity, NOT_A_COLUMN
from .line_item_entity import LineItemEntity

@dataclass(kw_only=True)
class CommercialDocumentEntity(BaseEntity):
    """Fields shared by quotations, invoices and purchase orders.

    subtotal/discount_amount/tax_amount/total are snapshots of the totals
    calculation at the last save.
    """
    discount_percent: Decimal = field(default_factory=lambda: Decimal("0.0")) # overall discount
    subtotal: Decimal = field(default_factory=lambda: Decimal("0.0"))
    discount_amount: Decimal = field(default_factory=lambda: Decimal("0.0"))
    tax_amount: Decimal = field(default_factory=lambda: Decimal("0.0"))
    total: Decimal = field(default_factory=lambda: Decimal("0.0"))
    notes: Optional[str] = field(default=None)
    created_at: Optional[datetime] = field(default=None)

    items: List[LineItemEntity] = field(default_factory=list, metadata=NOT_A_COLUMN)
    tax_ids: List[int] = field(default_factory=list, metadata=NOT_A_COLUMN)
