# commerce_erp/business_logic/tax_manager.py

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional
from commerce_erp.business_logic.entities.tax_entity import TaxEntity
from commerce_erp.business_logic.exceptions import ValidationError, NotFoundError
from commerce_erp.data_access.taxes_repository import TaxesRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.constants import TaxType
import logging

logger = logging.getLogger(__name__)

class TaxManager:
    def __init__(self, taxes_repository: TaxesRepository, db_manager: DatabaseManager):
        if taxes_repository is None: raise ValueError("taxes_repository cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")
        self.taxes_repository = taxes_repository
        self.db_manager = db_manager

    def _rate(self, value: Any) -> Decimal:
        try:
            rate = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"Invalid tax value: {value!r}") from None
        if rate < 0 or rate > 100:
            raise ValidationError("Tax value must be between 0 and 100.")
        return rate

    def add_tax(self, name: str, value: Any, tax_type: TaxType = TaxType.OTHER,
                is_default: bool = False, enabled: bool = True) -> TaxEntity:
        if not name or not name.strip():
            raise ValidationError("Tax name is required.")
        if not isinstance(tax_type, TaxType):
            raise ValidationError(f"Invalid tax type: {tax_type}")
        tax = TaxEntity(name=name.strip(), value=self._rate(value), tax_type=tax_type,
                        is_default=is_default, enabled=enabled)
        with self.db_manager.transaction():
            created = self.taxes_repository.add(tax)
            if created.is_default:
                self.taxes_repository.clear_default_flag(except_tax_id=created.id)
        logger.info(f"Tax '{created.name}' ({created.value}%) added with ID {created.id}.")
        return created

    def update_tax(self, tax_id: int, **changes) -> TaxEntity:
        tax = self.require_tax(tax_id)
        if "value" in changes:
            changes["value"] = self._rate(changes["value"])
        for key in ("name", "value", "tax_type", "is_default", "enabled"):
            if key in changes:
                setattr(tax, key, changes[key])
        with self.db_manager.transaction():
            self.taxes_repository.update(tax)
            if tax.is_default:
                self.taxes_repository.clear_default_flag(except_tax_id=tax.id)
        logger.info(f"Tax ID {tax_id} updated.")
        return tax

    def delete_tax(self, tax_id: int) -> None:
        self.require_tax(tax_id)
        self.taxes_repository.delete(tax_id)
        logger.info(f"Tax ID {tax_id} deleted.")

    def require_tax(self, tax_id: int) -> TaxEntity:
        tax = self.taxes_repository.get_by_id(tax_id)
        if tax is None:
            logger.warning(f"Tax with ID {tax_id} not found.")
            raise NotFoundError(f"Tax with ID {tax_id} not found.")
        return tax

    def get_all_taxes(self, enabled_only: bool = False) -> List[TaxEntity]:
        if enabled_only:
            return self.taxes_repository.find_by_criteria({"enabled": True}, order_by="name")
        return self.taxes_repository.get_all(order_by="name")

    def get_default_taxes(self) -> List[TaxEntity]:
        return self.taxes_repository.get_defaults()

    def resolve_taxes(self, tax_ids: Optional[Iterable[int]]) -> List[TaxEntity]:
        """Loads the taxes selected for a document; each must exist and be enabled."""
        taxes = []
        for tax_id in dict.fromkeys(tax_ids or []):
            tax = self.require_tax(tax_id)
            if not tax.enabled:
                raise ValidationError(f"Tax '{tax.name}' is disabled and cannot be applied.")
            taxes.append(tax)
        return taxes
