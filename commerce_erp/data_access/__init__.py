# commerce_erp/data_access/__init__.py

from .database_manager import DatabaseManager
