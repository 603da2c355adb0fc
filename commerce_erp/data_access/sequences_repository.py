# commerce_erp/data_access/sequences_repository.py

from commerce_erp.data_access.database_manager import DatabaseManager
import logging

logger = logging.getLogger(__name__)

class SequencesRepository:
    """Named monotonically increasing counters."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.table_name = "sequences"

    def next_value(self, name: str) -> int:
        with self.db_manager.transaction():
            self.db_manager.execute_query(
                f"INSERT OR IGNORE INTO {self.table_name} (name, value) VALUES (?, 0)", (name,))
            self.db_manager.execute_query(
                f"UPDATE {self.table_name} SET value = value + 1 WHERE name = ?", (name,))
            row = self.db_manager.fetch_one(f"SELECT value FROM {self.table_name} WHERE name = ?", (name,))
        logger.debug(f"Sequence '{name}' advanced to {row['value']}")
        return int(row['value'])

    def current_value(self, name: str) -> int:
        row = self.db_manager.fetch_one(f"SELECT value FROM {self.table_name} WHERE name = ?", (name,))
        return int(row['value']) if row else 0
