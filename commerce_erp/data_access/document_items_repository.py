# commerce_erp/data_access/document_items_repository.py

from typing import List
from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.line_item_entity import LineItemEntity
import logging

logger = logging.getLogger(__name__)

class DocumentItemsRepository(BaseRepository[LineItemEntity]):
    """Line items of one document kind; each kind has its own table."""

    def get_by_document_id(self, document_id: int) -> List[LineItemEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE document_id = ? ORDER BY id"
        rows = self.db_manager.fetch_all(query, (document_id,))
        return [self._entity_from_row(dict(row)) for row in rows]

    def delete_by_document_id(self, document_id: int) -> None:
        query = f"DELETE FROM {self._table_name} WHERE document_id = ?"
        self.db_manager.execute_query(query, (document_id,))
        logger.debug(f"Deleted items of document {document_id} from {self._table_name}.")

    def replace_items(self, document_id: int, items: List[LineItemEntity]) -> List[LineItemEntity]:
        self.delete_by_document_id(document_id)
        saved = []
        for item in items:
            item.id = None
            item.document_id = document_id
            saved.append(self.add(item))
        return saved


class QuotationItemsRepository(DocumentItemsRepository):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=LineItemEntity, table_name="quotation_items")


class InvoiceItemsRepository(DocumentItemsRepository):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=LineItemEntity, table_name="invoice_items")


class PurchaseOrderItemsRepository(DocumentItemsRepository):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager, model_type=LineItemEntity, table_name="purchase_order_items")
