# commerce_erp/business_logic/entities/grn_item_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from .base_entity import BaseEntity

@dataclass
class GRNItemEntity(BaseEntity):
    product_id: int
    grn_id: Optional[int] = None
    ordered_quantity: Decimal = field(default_factory=lambda: Decimal("0.0"))
    received_quantity: Decimal = field(default_factory=lambda: Decimal("0.0"))
    accepted_quantity: Decimal = field(default_factory=lambda: Decimal("0.0"))
    unit_price: Decimal = field(default_factory=lambda: Decimal("0.0"))
    batch_number: Optional[str] = None
    rejection_reason: Optional[str] = None
    inspection_notes: Optional[str] = None

    @property
    def rejected_quantity(self) -> Decimal:
        return self.received_quantity - self.accepted_quantity

    @property
    def short_quantity(self) -> Decimal:
        """Ordered but not received; never negative."""
        return max(self.ordered_quantity - self.received_quantity, Decimal("0"))

    @property
    def accepted_value(self) -> Decimal:
        return self.accepted_quantity * self.unit_price
