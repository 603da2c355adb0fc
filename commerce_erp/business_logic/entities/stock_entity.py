# commerce_erp/business_logic/entities/stock_entity.py
from dataclasses import dataclass, field
from decimal import Decimal
from .base_entity import BaseEntity
from commerce_erp.config import DEFAULT_STOCK_LOCATION, DEFAULT_MIN_STOCK_LEVEL, DEFAULT_REORDER_LEVEL

@dataclass
class StockEntity(BaseEntity):
    product_id: int
    location: str = field(default=DEFAULT_STOCK_LOCATION)
    quantity: Decimal = field(default_factory=lambda: Decimal("0.0"))
    min_level: Decimal = field(default_factory=lambda: Decimal(DEFAULT_MIN_STOCK_LEVEL))
    reorder_level: Decimal = field(default_factory=lambda: Decimal(DEFAULT_REORDER_LEVEL))

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_level

    @property
    def needs_reorder(self) -> bool:
        return self.quantity <= self.reorder_level
