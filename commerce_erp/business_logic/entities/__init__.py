# commerce_erp/business_logic/entities/__init__.py
from .base_entity import BaseEntity
from .person_entity import PersonEntity
from .product_entity import ProductEntity
from .tax_entity import TaxEntity
from .setting_entity import SettingEntity
from .line_item_entity import LineItemEntity
from .commercial_document_entity import CommercialDocumentEntity
from .quotation_entity import QuotationEntity
from .invoice_entity import InvoiceEntity
from .purchase_order_entity import PurchaseOrderEntity
from .grn_item_entity import GRNItemEntity
from .grn_entity import GRNEntity
from .payment_entity import PaymentEntity
from .supplier_payment_entity import SupplierPaymentEntity
from .stock_entity import StockEntity
from .stock_transaction_entity import StockTransactionEntity
