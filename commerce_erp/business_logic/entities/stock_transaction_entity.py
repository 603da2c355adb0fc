# commerce_erp/business_logic/entities/stock_transaction_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from .base_entity import BaseEntity
from commerce_erp.constants import StockTransactionType, ReferenceType

@dataclass
class StockTransactionEntity(BaseEntity):
    transaction_type: StockTransactionType
    product_id: int
    quantity: Decimal # always positive, direction is given by from/to location
    balance_before: Decimal
    balance_after: Decimal
    transaction_date: datetime

    from_location: Optional[str] = field(default=None)
    to_location: Optional[str] = field(default=None)
    reference_type: Optional[ReferenceType] = field(default=None)
    reference_id: Optional[int] = field(default=None)
    reference_number: Optional[str] = field(default=None)
    unit_price: Optional[Decimal] = field(default=None)
    total_value: Optional[Decimal] = field(default=None)
    reason: Optional[str] = field(default=None)
