# commerce_erp/constants.py

from decimal import Decimal
from enum import Enum

# General
DATE_FORMAT = "%Y-%m-%d"

MONEY_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class UserRole(Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class PersonType(Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class TaxType(Enum):
    VAT = "VAT"
    SERVICE_TAX = "Service Tax"
    LOCAL_TAX = "Local Tax"
    OTHER = "Other"


class QuotationStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class InvoiceStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class ApprovalStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PurchaseOrderStatus(Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    SENT = "sent"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CONVERTED = "converted"


class GRNStatus(Enum):
    DRAFT = "draft"
    INSPECTED = "inspected"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


class QualityStatus(Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(Enum):
    CASH = "cash"
    BANK = "bank"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CARD = "card"
    ONLINE = "online"


class SupplierPaymentStatus(Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


class StockTransactionType(Enum):
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    GRN = "grn"
    DAMAGE = "damage"
    LOSS = "loss"
    EXPIRY = "expiry"


class ReferenceType(Enum):
    GRN = "GRN"
    ADJUSTMENT = "Adjustment"
    TRANSFER = "Transfer"
    MANUAL = "Manual"


class DocumentType(Enum):
    """Keys of the document number counters."""
    QUOTATION = "quotation"
    INVOICE = "invoice"
    PAYMENT = "payment"
    PURCHASE_ORDER = "purchase_order"
    SUPPLIER_PAYMENT = "supplier_payment"
    GRN = "grn"


# Zero padding of the numeric part of each document number
DOCUMENT_NUMBER_PADDING = {
    DocumentType.QUOTATION: 5,
    DocumentType.INVOICE: 5,
    DocumentType.PAYMENT: 5,
    DocumentType.PURCHASE_ORDER: 4,
    DocumentType.SUPPLIER_PAYMENT: 5,
    DocumentType.GRN: 4,
}

# Settings keys
SETTING_COMPANY_NAME = "company_name"
SETTING_CURRENCY = "currency"
SETTING_INVOICE_DUE_DAYS = "invoice_due_days"
SETTING_DISPLAY_CALENDAR = "display_calendar"
SETTING_PREFIX_TEMPLATE = "prefix_{}"
SETTING_DEFAULT_TERMS = "default_terms"
SETTING_DEFAULT_NOTES = "default_notes"
