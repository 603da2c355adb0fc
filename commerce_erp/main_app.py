# commerce_erp/main_app.py
import sys
import logging
import logging.config

# --- Configuration ---
from commerce_erp.config import DATABASE_PATH, LOGGING_CONFIG, ensure_runtime_dirs

# --- Data Access Layer (DAL) ---
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.data_access.persons_repository import PersonsRepository
from commerce_erp.data_access.products_repository import ProductsRepository
from commerce_erp.data_access.taxes_repository import TaxesRepository
from commerce_erp.data_access.settings_repository import SettingsRepository
from commerce_erp.data_access.sequences_repository import SequencesRepository
from commerce_erp.data_access.quotations_repository import QuotationsRepository
from commerce_erp.data_access.invoices_repository import InvoicesRepository
from commerce_erp.data_access.purchase_orders_repository import PurchaseOrdersRepository
from commerce_erp.data_access.document_items_repository import (
    QuotationItemsRepository, InvoiceItemsRepository, PurchaseOrderItemsRepository
)
from commerce_erp.data_access.document_taxes_repository import DocumentTaxesRepository
from commerce_erp.data_access.grns_repository import GRNsRepository, GRNItemsRepository
from commerce_erp.data_access.payments_repository import PaymentsRepository, SupplierPaymentsRepository
from commerce_erp.data_access.stock_repository import StockRepository, StockTransactionsRepository

# --- Business Logic Layer (BLL) ---
from commerce_erp.business_logic.person_manager import PersonManager
from commerce_erp.business_logic.product_manager import ProductManager
from commerce_erp.business_logic.tax_manager import TaxManager
from commerce_erp.business_logic.settings_manager import SettingsManager
from commerce_erp.business_logic.sequence_manager import SequenceManager
from commerce_erp.business_logic.stock_manager import StockManager
from commerce_erp.business_logic.invoice_manager import InvoiceManager
from commerce_erp.business_logic.quotation_manager import QuotationManager
from commerce_erp.business_logic.payment_manager import PaymentManager
from commerce_erp.business_logic.grn_manager import GRNManager
from commerce_erp.business_logic.purchase_order_manager import PurchaseOrderManager
from commerce_erp.business_logic.supplier_payment_manager import SupplierPaymentManager
from commerce_erp.business_logic.dashboard_manager import DashboardManager

logger = logging.getLogger(__name__)


class ErpApplication:
    """Wires the database, the repositories and the managers together."""

    def __init__(self, db_path=DATABASE_PATH, create_tables: bool = True):
        logger.info("Initializing Database Manager...")
        self.db_manager = DatabaseManager(db_path)
        if create_tables:
            self.db_manager.create_tables()
            logger.info("Database tables checked/created successfully.")

        logger.info("Initializing Repositories...")
        self.persons_repo = PersonsRepository(self.db_manager)
        self.products_repo = ProductsRepository(self.db_manager)
        self.taxes_repo = TaxesRepository(self.db_manager)
        self.settings_repo = SettingsRepository(self.db_manager)
        self.sequences_repo = SequencesRepository(self.db_manager)
        self.quotations_repo = QuotationsRepository(self.db_manager)
        self.quotation_items_repo = QuotationItemsRepository(self.db_manager)
        self.invoices_repo = InvoicesRepository(self.db_manager)
        self.invoice_items_repo = InvoiceItemsRepository(self.db_manager)
        self.po_repo = PurchaseOrdersRepository(self.db_manager)
        self.po_items_repo = PurchaseOrderItemsRepository(self.db_manager)
        self.document_taxes_repo = DocumentTaxesRepository(self.db_manager)
        self.grns_repo = GRNsRepository(self.db_manager)
        self.grn_items_repo = GRNItemsRepository(self.db_manager)
        self.payments_repo = PaymentsRepository(self.db_manager)
        self.supplier_payments_repo = SupplierPaymentsRepository(self.db_manager)
        self.stock_repo = StockRepository(self.db_manager)
        self.stock_transactions_repo = StockTransactionsRepository(self.db_manager)

        logger.info("Initializing Managers...")
        self.person_manager = PersonManager(self.persons_repo)
        self.product_manager = ProductManager(self.products_repo)
        self.tax_manager = TaxManager(self.taxes_repo, self.db_manager)
        self.settings_manager = SettingsManager(self.settings_repo)
        self.sequence_manager = SequenceManager(self.sequences_repo, self.settings_manager)
        self.stock_manager = StockManager(
            stock_repository=self.stock_repo,
            stock_transactions_repository=self.stock_transactions_repo,
            product_manager=self.product_manager,
            db_manager=self.db_manager
        )
        self.invoice_manager = InvoiceManager(
            invoices_repository=self.invoices_repo,
            invoice_items_repository=self.invoice_items_repo,
            document_taxes_repository=self.document_taxes_repo,
            payments_repository=self.payments_repo,
            person_manager=self.person_manager,
            product_manager=self.product_manager,
            tax_manager=self.tax_manager,
            sequence_manager=self.sequence_manager,
            settings_manager=self.settings_manager,
            db_manager=self.db_manager
        )
        self.quotation_manager = QuotationManager(
            quotations_repository=self.quotations_repo,
            quotation_items_repository=self.quotation_items_repo,
            document_taxes_repository=self.document_taxes_repo,
            person_manager=self.person_manager,
            product_manager=self.product_manager,
            tax_manager=self.tax_manager,
            sequence_manager=self.sequence_manager,
            settings_manager=self.settings_manager,
            invoice_manager=self.invoice_manager,
            db_manager=self.db_manager
        )
        self.payment_manager = PaymentManager(
            payments_repository=self.payments_repo,
            invoice_manager=self.invoice_manager,
            sequence_manager=self.sequence_manager,
            settings_manager=self.settings_manager,
            db_manager=self.db_manager
        )
        self.grn_manager = GRNManager(
            grns_repository=self.grns_repo,
            grn_items_repository=self.grn_items_repo,
            supplier_payments_repository=self.supplier_payments_repo,
            person_manager=self.person_manager,
            product_manager=self.product_manager,
            stock_manager=self.stock_manager,
            sequence_manager=self.sequence_manager,
            settings_manager=self.settings_manager,
            db_manager=self.db_manager
        )
        self.po_manager = PurchaseOrderManager(
            po_repository=self.po_repo,
            po_items_repository=self.po_items_repo,
            document_taxes_repository=self.document_taxes_repo,
            person_manager=self.person_manager,
            product_manager=self.product_manager,
            tax_manager=self.tax_manager,
            sequence_manager=self.sequence_manager,
            settings_manager=self.settings_manager,
            grn_manager=self.grn_manager,
            db_manager=self.db_manager
        )
        self.supplier_payment_manager = SupplierPaymentManager(
            supplier_payments_repository=self.supplier_payments_repo,
            grn_manager=self.grn_manager,
            sequence_manager=self.sequence_manager,
            settings_manager=self.settings_manager,
            db_manager=self.db_manager
        )
        self.dashboard_manager = DashboardManager(
            invoices_repository=self.invoices_repo,
            quotations_repository=self.quotations_repo,
            payments_repository=self.payments_repo,
            grns_repository=self.grns_repo,
            stock_repository=self.stock_repo,
            person_manager=self.person_manager,
            product_manager=self.product_manager
        )
        logger.info("Application initialized.")


def main() -> int:
    ensure_runtime_dirs()
    logging.config.dictConfig(LOGGING_CONFIG)
    try:
        app = ErpApplication(DATABASE_PATH)
    except Exception as e:
        logger.error(f"FATAL: Could not initialize database: {e}", exc_info=True)
        return 1
    company = app.settings_manager.get_company_settings()
    logger.info(f"{company.get('company_name')} ready, database at {app.db_manager.db_path}.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
