# commerce_erp/data_access/persons_repository.py

from typing import List

from commerce_erp.data_access.base_repository import BaseRepository
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.business_logic.entities.person_entity import PersonEntity
from commerce_erp.constants import PersonType
import logging

logger = logging.getLogger(__name__)

class PersonsRepository(BaseRepository[PersonEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=PersonEntity,
                         table_name="persons")

    def get_by_name(self, name: str, exact: bool = True) -> List[PersonEntity]:
        if exact:
            query = f"SELECT * FROM {self._table_name} WHERE name = ?"
            params = (name,)
        else:
            query = f"SELECT * FROM {self._table_name} WHERE name LIKE ?"
            params = (f"%{name}%",)

        rows = self.db_manager.fetch_all(query, params)
        return [self._entity_from_row(dict(row)) for row in rows if row]

    def get_by_type(self, person_type: PersonType, active_only: bool = False) -> List[PersonEntity]:
        query = f"SELECT * FROM {self._table_name} WHERE person_type = ?"
        if active_only:
            query += " AND is_active = 1"
        rows = self.db_manager.fetch_all(query + " ORDER BY name", (person_type.value,))
        return [self._entity_from_row(dict(row)) for row in rows if row]
