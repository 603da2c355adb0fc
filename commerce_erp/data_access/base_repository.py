# commerce_erp/data_access/base_repository.py

from typing import Generic, TypeVar, Type, List, Optional, Dict, Any, TYPE_CHECKING, Union

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from dataclasses import fields, MISSING
import logging

from commerce_erp.data_access.database_manager import DatabaseManager
# Forward reference so BaseEntity isn't imported at module level.
if TYPE_CHECKING:
    from commerce_erp.business_logic.entities.base_entity import BaseEntity

logger = logging.getLogger(__name__)

T = TypeVar('T', bound='BaseEntity')


def to_db_value(value: Any) -> Any:
    if isinstance(value, Decimal): return float(value)
    if isinstance(value, Enum): return value.value
    if isinstance(value, bool): return 1 if value else 0
    if isinstance(value, (datetime, date)): return value.isoformat()
    return value


class BaseRepository(Generic[T]):
    """
    Generic CRUD over a dataclass entity. Columns are the dataclass init
    fields, minus those tagged with metadata {"db": False}.
    """

    def __init__(self, db_manager: DatabaseManager, model_type: Type[T], table_name: str):
        self.db_manager = db_manager
        self.model_type = model_type
        self._table_name = table_name
        self._db_columns = [f.name for f in fields(model_type) if f.init and f.metadata.get("db", True)]
        logger.debug(f"BaseRepository for {self._table_name} initialized. Columns: {self._db_columns}")

    @property
    def table_name(self) -> str:
        return self._table_name

    def get_by_id(self, entity_id: int) -> Optional[T]:
        query = f"SELECT * FROM {self._table_name} WHERE id = ?"
        row = self.db_manager.fetch_one(query, (entity_id,))
        return self._entity_from_row(dict(row)) if row else None

    def get_all(self, order_by: Optional[str] = None) -> List[T]:
        query = f"SELECT * FROM {self._table_name}"
        if order_by:
            query += f" ORDER BY {order_by}"
        rows = self.db_manager.fetch_all(query)
        return [self._entity_from_row(dict(row)) for row in rows]

    def _entity_to_dict_for_db(self, entity: T) -> Dict[str, Any]:
        """Maps the entity's column fields to sqlite-friendly values."""
        return {col: to_db_value(getattr(entity, col, None)) for col in self._db_columns}

    def add(self, entity: T) -> T:
        fields_to_insert = self._entity_to_dict_for_db(entity)
        fields_to_insert.pop('id', None) # id is AUTOINCREMENT

        if not fields_to_insert:
            raise ValueError(f"No columns to insert for entity {type(entity).__name__}.")

        columns = ', '.join(fields_to_insert.keys())
        placeholders = ', '.join(['?'] * len(fields_to_insert))
        values_tuple = tuple(fields_to_insert.values())
        query = f"INSERT INTO {self._table_name} ({columns}) VALUES ({placeholders})"
        logger.debug(f"BaseRepository.add: Query: {query}, Values: {values_tuple}")

        try:
            cursor = self.db_manager.execute_query(query, values_tuple)
        except Exception as e:
            logger.error(f"Error during INSERT into {self._table_name}: {e}", exc_info=True)
            raise
        entity.id = cursor.lastrowid
        logger.debug(f"BaseRepository.add: {type(entity).__name__} ID set to {entity.id} after insert.")
        return entity

    def update(self, entity: T) -> T:
        if getattr(entity, 'id', None) is None:
            raise ValueError(f"Entity of type {type(entity).__name__} must have an ID to be updated.")

        fields_to_update = self._entity_to_dict_for_db(entity)
        fields_to_update.pop('id', None) # id goes to the WHERE clause

        set_clause = ', '.join([f"{key} = ?" for key in fields_to_update.keys()])
        values_tuple = tuple(fields_to_update.values()) + (entity.id,)
        query = f"UPDATE {self._table_name} SET {set_clause} WHERE id = ?"
        logger.debug(f"BaseRepository.update: Query: {query}, Values: {values_tuple}")

        try:
            self.db_manager.execute_query(query, values_tuple)
        except Exception as e:
            logger.error(f"Error during UPDATE for entity ID {entity.id} in table {self._table_name}: {e}", exc_info=True)
            raise
        return entity

    def delete(self, entity_id: int) -> None:
        query = f"DELETE FROM {self._table_name} WHERE id = ?"
        self.db_manager.execute_query(query, (entity_id,))
        logger.debug(f"BaseRepository.delete: ID {entity_id} removed from {self._table_name}.")

    def find_by_criteria(self, criteria: Dict[str, Any], order_by: Optional[str] = None) -> List[T]:
        """
        Finds entities matching every criterion. A value may be a plain value
        (equality), an (operator, value) tuple, or ('BETWEEN', (low, high)).
        """
        if not criteria:
            return self.get_all(order_by=order_by)

        conditions = []
        params = []
        for key, value in criteria.items():
            if isinstance(value, tuple) and len(value) == 2:
                operator, val = value
                if str(operator).upper() == 'BETWEEN' and isinstance(val, (list, tuple)) and len(val) == 2:
                    conditions.append(f"{key} BETWEEN ? AND ?")
                    params.extend(to_db_value(v) for v in val)
                else:
                    conditions.append(f"{key} {operator} ?")
                    params.append(to_db_value(val))
            else:
                conditions.append(f"{key} = ?")
                params.append(to_db_value(value))

        query = f"SELECT * FROM {self._table_name} WHERE " + " AND ".join(conditions)
        if order_by:
            query += f" ORDER BY {order_by}"

        logger.debug(f"BaseRepository.find_by_criteria: Query: {query}, Values: {tuple(params)}")
        rows = self.db_manager.fetch_all(query, tuple(params))
        return [self._entity_from_row(dict(row)) for row in rows]

    def _entity_from_row(self, row: Dict[str, Any]) -> T:
        """
        Builds the dataclass from a row dict, converting each column by the
        declared field type (Enum, Decimal, date, datetime, bool).
        """
        entity_data = {}

        for f in fields(self.model_type):
            if not f.init or not f.metadata.get("db", True):
                continue

            field_name = f.name
            field_type = f.type
            value_from_db = row.get(field_name)

            if value_from_db is None:
                if f.default is MISSING and f.default_factory is MISSING:
                    is_optional = getattr(field_type, '__origin__', None) is Union and type(None) in getattr(field_type, '__args__', [])
                    if not is_optional:
                        raise ValueError(
                            f"Database integrity error: NULL value found for required field '{field_name}' "
                            f"in table '{self._table_name}' for row: {row}"
                        )
                    entity_data[field_name] = None
                continue

            actual_type = field_type
            if getattr(field_type, '__origin__', None) is Union:
                possible_types = [arg for arg in getattr(field_type, '__args__', []) if arg is not type(None)]
                if possible_types:
                    actual_type = possible_types[0]

            try:
                if isinstance(actual_type, type) and issubclass(actual_type, Enum):
                    entity_data[field_name] = actual_type(value_from_db)
                elif actual_type == Decimal:
                    entity_data[field_name] = Decimal(str(value_from_db))
                elif actual_type == datetime and isinstance(value_from_db, str):
                    entity_data[field_name] = datetime.fromisoformat(value_from_db)
                elif actual_type == date and isinstance(value_from_db, str):
                    entity_data[field_name] = date.fromisoformat(value_from_db.split(" ")[0][:10])
                elif actual_type == bool and isinstance(value_from_db, int):
                    entity_data[field_name] = bool(value_from_db)
                else:
                    entity_data[field_name] = value_from_db
            except (ValueError, TypeError) as e:
                logger.error(f"Type conversion failed for field '{field_name}' with value '{value_from_db}' in {self._table_name}: {e}")
                raise

        try:
            return self.model_type(**entity_data)
        except TypeError as e:
            missing_fields = [f.name for f in fields(self.model_type) if f.init and f.name not in entity_data and f.default is MISSING and f.default_factory is MISSING]
            logger.error(f"Failed to instantiate {self.model_type.__name__}. Missing: {missing_fields}. Data passed: {entity_data}")
            raise TypeError(f"Missing required arguments for {self.model_type.__name__}: {missing_fields}. Original error: {e}") from e
