# commerce_erp/utils/__init__.py
