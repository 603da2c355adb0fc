# commerce_erp/business_logic/entities/base_entity.py
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class BaseEntity:
    id: Optional[int] = field(default=None, kw_only=True) # kw_only=True makes it a keyword-only argument

# Mark list fields that live in a child table, not in the entity's own table.
NOT_A_COLUMN = {"db": False}
