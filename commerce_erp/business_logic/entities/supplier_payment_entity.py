# commerce_erp/business_logic/entities/supplier_payment_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from decimal import Decimal
from .base_entity import BaseEntity
from commerce_erp.constants import PaymentMethod, SupplierPaymentStatus

@dataclass
class SupplierPaymentEntity(BaseEntity):
    payment_number: str
    grn_id: int
    supplier_id: Optional[int]
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod = field(default=PaymentMethod.BANK_TRANSFER)
    status: SupplierPaymentStatus = field(default=SupplierPaymentStatus.DRAFT)
    reference: Optional[str] = field(default=None)
    notes: Optional[str] = field(default=None)
