# commerce_erp/business_logic/entities/tax_entity.py
from dataclasses import dataclass, field
from decimal import Decimal
from .base_entity import BaseEntity
from commerce_erp.constants import TaxType

@dataclass
class TaxEntity(BaseEntity):
    name: str
    value: Decimal # percentage, 0-100
    tax_type: TaxType = field(default=TaxType.OTHER)
    is_default: bool = field(default=False)
    enabled: bool = field(default=True)
