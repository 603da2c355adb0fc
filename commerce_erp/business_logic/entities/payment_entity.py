# commerce_erp/business_logic/entities/payment_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from decimal import Decimal
from .base_entity import BaseEntity
from commerce_erp.constants import PaymentMethod

@dataclass
class PaymentEntity(BaseEntity):
    """A customer payment recorded against an invoice."""
    payment_number: str
    invoice_id: int
    customer_id: int
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod = field(default=PaymentMethod.CASH)
    reference: Optional[str] = field(default=None)
    notes: Optional[str] = field(default=None)
