# commerce_erp/data_access/grns_repository.py

from typing import Optional, List
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.grn_entity import GRNEntity
from commerce_erp.business_logic.entities.grn_item_entity import GRNItemEntity

class GRNsRepository(BaseRepository[GRNEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=GRNEntity, table_name="grns")

    def get_by_grn_number(self, grn_number: str) -> Optional[GRNEntity]:
        results = self.find_by_criteria({"grn_number": grn_number})
        return results[0] if results else None

    def get_by_purchase_order_id(self, purchase_order_id: int) -> List[GRNEntity]:
        return self.find_by_criteria({"purchase_order_id": purchase_order_id})


class GRNItemsRepository(BaseRepository[GRNItemEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=GRNItemEntity, table_name="grn_items")

    def get_by_grn_id(self, grn_id: int) -> List[GRNItemEntity]:
        return self.find_by_criteria({"grn_id": grn_id}, order_by="id")

    def delete_by_grn_id(self, grn_id: int) -> None:
        self.db_manager.execute_query(f"DELETE FROM {self._table_name} WHERE grn_id = ?", (grn_id,))
