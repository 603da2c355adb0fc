# commerce_erp/presentation/__init__.py
