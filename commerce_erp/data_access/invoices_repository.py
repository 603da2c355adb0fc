# commerce_erp/data_access/invoices_repository.py

from typing import Optional, List
from datetime import date
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.invoice_entity import InvoiceEntity
from commerce_erp.constants import InvoiceStatus

class InvoicesRepository(BaseRepository[InvoiceEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=InvoiceEntity, table_name="invoices")

    def get_by_invoice_number(self, invoice_number: str) -> Optional[InvoiceEntity]:
        results = self.find_by_criteria({"invoice_number": invoice_number})
        return results[0] if results else None

    def get_by_quotation_id(self, quotation_id: int) -> List[InvoiceEntity]:
        return self.find_by_criteria({"quotation_id": quotation_id})

    def get_past_due(self, as_of: date) -> List[InvoiceEntity]:
        """Invoices whose due date has passed and that are still collectable."""
        query = (f"SELECT * FROM {self._table_name} WHERE due_date < ? "
                 f"AND status NOT IN (?, ?, ?) ORDER BY due_date")
        params = (as_of.isoformat(), InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value, InvoiceStatus.DRAFT.value)
        rows = self.db_manager.fetch_all(query, params)
        return [self._entity_from_row(dict(row)) for row in rows]
