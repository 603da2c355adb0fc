# commerce_erp/business_logic/entities/line_item_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from .base_entity import BaseEntity

@dataclass
class LineItemEntity(BaseEntity):
    """One row of a quotation, invoice or purchase order."""
    document_id: Optional[int] = None
    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal = field(default_factory=lambda: Decimal("0.0"))
    unit_price: Decimal = field(default_factory=lambda: Decimal("0.0"))
    discount_percent: Decimal = field(default_factory=lambda: Decimal("0.0"))
    line_total: Decimal = field(default_factory=lambda: Decimal("0.0"))

    @property
    def gross_amount(self) -> Decimal:
        qty = self.quantity if self.quantity is not None else Decimal("0.0")
        price = self.unit_price if self.unit_price is not None else Decimal("0.0")
        return qty * price
