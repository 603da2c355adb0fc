# commerce_erp/data_access/purchase_orders_repository.py

from typing import Dict, Any, Optional, List
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.purchase_order_entity import PurchaseOrderEntity
from commerce_erp.constants import PurchaseOrderStatus
import logging

logger = logging.getLogger(__name__)

class PurchaseOrdersRepository(BaseRepository[PurchaseOrderEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=PurchaseOrderEntity, table_name="purchase_orders")

    def get_by_po_number(self, po_number: str) -> Optional[PurchaseOrderEntity]:
        results = self.find_by_criteria({"po_number": po_number})
        return results[0] if results else None

    def get_by_supplier_id(self, supplier_id: int) -> List[PurchaseOrderEntity]:
        return self.find_by_criteria({"supplier_id": supplier_id}, order_by="po_date DESC")

    def get_by_status(self, status: PurchaseOrderStatus) -> List[PurchaseOrderEntity]:
        return self.find_by_criteria({"status": status}, order_by="po_date DESC")

    def supplier_totals(self, criteria_sql: str = "", params: tuple = ()) -> List[Dict[str, Any]]:
        """Count and total value of POs per supplier."""
        query = (f"SELECT po.supplier_id, p.name AS supplier_name, COUNT(*) AS count, SUM(po.total) AS total_value "
                 f"FROM {self._table_name} po LEFT JOIN persons p ON p.id = po.supplier_id "
                 f"{criteria_sql} GROUP BY po.supplier_id, p.name ORDER BY total_value DESC")
        rows = self.db_manager.fetch_all(query, params)
        return [dict(row) for row in rows]
