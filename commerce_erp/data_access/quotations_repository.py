# commerce_erp/data_access/quotations_repository.py

from typing import Optional, List
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.quotation_entity import QuotationEntity
from commerce_erp.constants import QuotationStatus

class QuotationsRepository(BaseRepository[QuotationEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=QuotationEntity, table_name="quotations")

    def get_by_quotation_number(self, quotation_number: str) -> Optional[QuotationEntity]:
        results = self.find_by_criteria({"quotation_number": quotation_number})
        return results[0] if results else None

    def get_by_status(self, status: QuotationStatus) -> List[QuotationEntity]:
        return self.find_by_criteria({"status": status}, order_by="quotation_date DESC")
