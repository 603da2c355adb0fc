# commerce_erp/data_access/document_taxes_repository.py

from typing import List
from commerce_erp.data_access.database_manager import DatabaseManager
import logging

logger = logging.getLogger(__name__)

class DocumentTaxesRepository:
    """Link table between a document (by kind and id) and the taxes applied to it."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.table_name = "document_taxes"

    def get_tax_ids(self, document_type: str, document_id: int) -> List[int]:
        query = f"SELECT tax_id FROM {self.table_name} WHERE document_type = ? AND document_id = ? ORDER BY tax_id"
        rows = self.db_manager.fetch_all(query, (document_type, document_id))
        return [row['tax_id'] for row in rows]

    def set_tax_ids(self, document_type: str, document_id: int, tax_ids: List[int]) -> None:
        self.delete_for_document(document_type, document_id)
        query = f"INSERT INTO {self.table_name} (document_type, document_id, tax_id) VALUES (?, ?, ?)"
        for tax_id in dict.fromkeys(tax_ids): # de-duplicated, order kept
            self.db_manager.execute_query(query, (document_type, document_id, tax_id))

    def delete_for_document(self, document_type: str, document_id: int) -> None:
        query = f"DELETE FROM {self.table_name} WHERE document_type = ? AND document_id = ?"
        self.db_manager.execute_query(query, (document_type, document_id))
