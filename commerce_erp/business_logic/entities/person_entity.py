# commerce_erp/business_logic/entities/person_entity.py
from dataclasses import dataclass, field
from typing import Optional
from .base_entity import BaseEntity
from commerce_erp.constants import PersonType

@dataclass
class PersonEntity(BaseEntity):
    name: str
    person_type: PersonType # Enum: Customer, Supplier
    email: Optional[str] = field(default=None)
    phone: Optional[str] = field(default=None)
    address: Optional[str] = field(default=None)
    is_active: bool = field(default=True)
