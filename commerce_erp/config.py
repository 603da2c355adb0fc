# commerce_erp/config.py

import os
import logging

# --- Database Configuration ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))  # project root
DATA_DIR = os.environ.get("COMMERCE_ERP_DATA_DIR", os.path.join(BASE_DIR, "data"))
DB_NAME = "commerce_erp.db"
DATABASE_PATH = os.path.join(DATA_DIR, DB_NAME)

# --- Logging Configuration ---
LOGS_DIR = os.environ.get("COMMERCE_ERP_LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE_NAME = "app.log"
LOG_FILE_PATH = os.path.join(LOGS_DIR, LOG_FILE_NAME)

LOG_LEVEL = logging.DEBUG  # logging.INFO, logging.WARNING, ...
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': LOG_FORMAT,
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': logging.INFO,
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': LOG_FILE_PATH,
            'maxBytes': 1024*1024*5,  # 5 MB
            'backupCount': 5,
            'level': logging.DEBUG,
            'encoding': 'utf-8',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': LOG_LEVEL,
    },
}


def ensure_runtime_dirs() -> None:
    """Creates the data and logs directories if they don't exist."""
    for directory in (DATA_DIR, LOGS_DIR):
        if not os.path.exists(directory):
            os.makedirs(directory)


# --- Application Settings (Defaults that might be overridden by DB settings) ---
COMPANY_NAME = "Your Company"
DEFAULT_CURRENCY = "LKR"
DEFAULT_INVOICE_DUE_DAYS = 30
DEFAULT_STOCK_LOCATION = "Main Warehouse"
DEFAULT_MIN_STOCK_LEVEL = 10
DEFAULT_REORDER_LEVEL = 20
DISPLAY_CALENDAR = "gregorian"  # or "jalali"
DEFAULT_TERMS = "Payment due within 30 days."
DEFAULT_NOTES = "Thank you for your business!"

# Keyed by DocumentType.value
DOCUMENT_NUMBER_PREFIXES = {
    "quotation": "SQ-",
    "invoice": "SI-",
    "payment": "PAY-",
    "purchase_order": "PO-",
    "supplier_payment": "SUPPAY-",
    "grn": "GRN-",
}
