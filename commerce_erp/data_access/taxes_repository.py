# commerce_erp/data_access/taxes_repository.py

from typing import List
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.tax_entity import TaxEntity

class TaxesRepository(BaseRepository[TaxEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=TaxEntity, table_name="taxes")

    def get_defaults(self) -> List[TaxEntity]:
        return self.find_by_criteria({"is_default": True, "enabled": True})

    def clear_default_flag(self, except_tax_id: int) -> None:
        query = f"UPDATE {self._table_name} SET is_default = 0 WHERE id != ?"
        self.db_manager.execute_query(query, (except_tax_id,))
