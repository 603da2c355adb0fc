# commerce_erp/data_access/stock_repository.py

from typing import Optional, List
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.stock_entity import StockEntity
from commerce_erp.business_logic.entities.stock_transaction_entity import StockTransactionEntity

class StockRepository(BaseRepository[StockEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=StockEntity, table_name="stock")

    def get_by_product_and_location(self, product_id: int, location: str) -> Optional[StockEntity]:
        results = self.find_by_criteria({"product_id": product_id, "location": location})
        return results[0] if results else None

    def get_by_product_id(self, product_id: int) -> List[StockEntity]:
        return self.find_by_criteria({"product_id": product_id}, order_by="location")

    def get_low_stock(self) -> List[StockEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE quantity <= reorder_level ORDER BY quantity"
        rows = self.db_manager.fetch_all(query)
        return [self._entity_from_row(dict(row)) for row in rows]


class StockTransactionsRepository(BaseRepository[StockTransactionEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=StockTransactionEntity, table_name="stock_transactions")

    def get_by_product_id(self, product_id: int) -> List[StockTransactionEntity]:
        return self.find_by_criteria({"product_id": product_id}, order_by="transaction_date DESC, id DESC")

    def get_by_reference(self, reference_type: str, reference_id: int) -> List[StockTransactionEntity]:
        return self.find_by_criteria({"reference_type": reference_type, "reference_id": reference_id}, order_by="id")
