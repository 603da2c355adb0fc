# commerce_erp/business_logic/entities/product_entity.py
from dataclasses import dataclass, field
from typing import Optional
from .base_entity import BaseEntity
from decimal import Decimal

@dataclass
class ProductEntity(BaseEntity):
    name: str

    sku: Optional[str] = field(default=None)
    unit_price: Decimal = field(default_factory=lambda: Decimal("0.0"))
    unit_of_measure: Optional[str] = field(default=None)
    description: Optional[str] = field(default=None)
    is_active: bool = field(default=True)
