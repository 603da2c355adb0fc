# commerce_erp/data_access/database_manager.py

import sqlite3
import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from commerce_erp.config import DATABASE_PATH
from commerce_erp.constants import (
    PersonType, TaxType, QuotationStatus, InvoiceStatus, ApprovalStatus,
    PurchaseOrderStatus, GRNStatus, QualityStatus, PaymentStatus, PaymentMethod,
    SupplierPaymentStatus, StockTransactionType, ReferenceType
)

logger = logging.getLogger(__name__)


def _sql_values(enum_cls) -> str:
    return ', '.join(f"'{member.value}'" for member in enum_cls)


# Columns shared by quotation_items, invoice_items and purchase_order_items
_LINE_ITEM_TABLE = """
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id INTEGER NOT NULL,
                product_id INTEGER,
                description TEXT,
                quantity REAL NOT NULL DEFAULT 0.0,
                unit_price REAL NOT NULL DEFAULT 0.0,
                discount_percent REAL NOT NULL DEFAULT 0.0,
                line_total REAL NOT NULL DEFAULT 0.0,
                FOREIGN KEY (document_id) REFERENCES {parent}(id) ON DELETE CASCADE,
                FOREIGN KEY (product_id) REFERENCES products(id)
            );
            """

# Columns shared by quotations, invoices and purchase_orders
_DOCUMENT_TOTAL_COLUMNS = """
                discount_percent REAL NOT NULL DEFAULT 0.0,
                subtotal REAL NOT NULL DEFAULT 0.0,
                discount_amount REAL NOT NULL DEFAULT 0.0,
                tax_amount REAL NOT NULL DEFAULT 0.0,
                total REAL NOT NULL DEFAULT 0.0,
                notes TEXT,
                created_at TEXT,"""


class DatabaseManager:
    """
    Opens one sqlite3 connection per call, except inside `transaction()`,
    where every repository call made through this manager shares the same
    connection and commits (or rolls back) once at the end.
    """

    def __init__(self, db_path=DATABASE_PATH):
        self.db_path = db_path
        self.conn = None
        self._tx_conn: Optional[sqlite3.Connection] = None

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path, timeout=30)
            conn.row_factory = sqlite3.Row # Access columns by name
            conn.execute("PRAGMA foreign_keys = ON;") # Enforce foreign key constraints
            logger.debug(f"Database connection established to {self.db_path}")
            return conn
        except sqlite3.Error as e:
            logger.error(f"Error connecting to database {self.db_path}: {e}")
            raise

    def __enter__(self):
        if self._tx_conn is not None:
            return self._tx_conn
        self.conn = self._connect()
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._tx_conn is not None:
            return
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Database connection closed.")

    @property
    def in_transaction(self) -> bool:
        return self._tx_conn is not None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Groups several writes into one atomic unit. BEGIN IMMEDIATE takes the
        write lock up front, so two concurrent transactions are serialized.
        Nested calls join the outer transaction.
        """
        if self._tx_conn is not None:
            yield self._tx_conn
            return

        conn = self._connect()
        conn.execute("BEGIN IMMEDIATE")
        self._tx_conn = conn
        logger.debug("Transaction started.")
        try:
            yield conn
            conn.commit()
            logger.debug("Transaction committed.")
        except Exception:
            conn.rollback()
            logger.warning("Transaction rolled back.")
            raise
        finally:
            self._tx_conn = None
            conn.close()

    def execute_query(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                if not self.in_transaction:
                    conn.commit()
                return cursor
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {query} with params {params} - {e}")
            raise

    def fetch_one(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Fetch one failed: {query} with params {params} - {e}")
            raise

    def fetch_all(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"Fetch all failed: {query} with params {params} - {e}")
            raise

    def create_tables(self):
        queries = [
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS sequences (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL DEFAULT 0
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS persons (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                person_type TEXT NOT NULL CHECK(person_type IN ({})),
                email TEXT,
                phone TEXT,
                address TEXT,
                is_active INTEGER NOT NULL DEFAULT 1
            );
            """.format(_sql_values(PersonType)),
            """
            CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                sku TEXT UNIQUE,
                unit_price REAL NOT NULL DEFAULT 0.0,
                unit_of_measure TEXT,
                description TEXT,
                is_active INTEGER NOT NULL DEFAULT 1
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS taxes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                tax_type TEXT NOT NULL CHECK(tax_type IN ({})),
                value REAL NOT NULL CHECK(value >= 0 AND value <= 100),
                is_default INTEGER NOT NULL DEFAULT 0,
                enabled INTEGER NOT NULL DEFAULT 1
            );
            """.format(_sql_values(TaxType)),
            """
            CREATE TABLE IF NOT EXISTS quotations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                quotation_number TEXT NOT NULL UNIQUE,
                customer_id INTEGER NOT NULL,
                quotation_date TEXT NOT NULL,
                valid_until TEXT,{totals}
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                converted_to_invoice INTEGER NOT NULL DEFAULT 0,
                invoice_id INTEGER,
                FOREIGN KEY (customer_id) REFERENCES persons(id)
            );
            """.format(totals=_DOCUMENT_TOTAL_COLUMNS, statuses=_sql_values(QuotationStatus)),
            """
            CREATE TABLE IF NOT EXISTS invoices (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                invoice_number TEXT NOT NULL UNIQUE,
                customer_id INTEGER NOT NULL,
                invoice_date TEXT NOT NULL,
                due_date TEXT,{totals}
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                approval_status TEXT NOT NULL CHECK(approval_status IN ({approvals})),
                paid_amount REAL NOT NULL DEFAULT 0.0,
                balance_amount REAL NOT NULL DEFAULT 0.0,
                quotation_id INTEGER,
                FOREIGN KEY (customer_id) REFERENCES persons(id),
                FOREIGN KEY (quotation_id) REFERENCES quotations(id) ON DELETE SET NULL
            );
            """.format(totals=_DOCUMENT_TOTAL_COLUMNS, statuses=_sql_values(InvoiceStatus),
                       approvals=_sql_values(ApprovalStatus)),
            """
            CREATE TABLE IF NOT EXISTS purchase_orders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                po_number TEXT NOT NULL UNIQUE,
                supplier_id INTEGER NOT NULL,
                po_date TEXT NOT NULL,
                expected_delivery_date TEXT NOT NULL,{totals}
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                converted_to_grn INTEGER NOT NULL DEFAULT 0,
                grn_id INTEGER,
                FOREIGN KEY (supplier_id) REFERENCES persons(id)
            );
            """.format(totals=_DOCUMENT_TOTAL_COLUMNS, statuses=_sql_values(PurchaseOrderStatus)),
            _LINE_ITEM_TABLE.format(table="quotation_items", parent="quotations"),
            _LINE_ITEM_TABLE.format(table="invoice_items", parent="invoices"),
            _LINE_ITEM_TABLE.format(table="purchase_order_items", parent="purchase_orders"),
            """
            CREATE TABLE IF NOT EXISTS document_taxes (
                document_type TEXT NOT NULL,
                document_id INTEGER NOT NULL,
                tax_id INTEGER NOT NULL,
                PRIMARY KEY (document_type, document_id, tax_id),
                FOREIGN KEY (tax_id) REFERENCES taxes(id)
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS grns (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                grn_number TEXT NOT NULL UNIQUE,
                grn_date TEXT NOT NULL,
                supplier_id INTEGER,
                purchase_order_id INTEGER UNIQUE, -- at most one GRN per PO
                po_number TEXT,
                location TEXT NOT NULL,
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                quality_status TEXT NOT NULL CHECK(quality_status IN ({qualities})),
                stock_updated INTEGER NOT NULL DEFAULT 0,
                total_value REAL NOT NULL DEFAULT 0.0,
                paid_amount REAL NOT NULL DEFAULT 0.0,
                balance_amount REAL NOT NULL DEFAULT 0.0,
                payment_status TEXT NOT NULL CHECK(payment_status IN ({payments})),
                invoice_number TEXT,
                invoice_date TEXT,
                invoice_amount REAL,
                invoice_matched INTEGER NOT NULL DEFAULT 0,
                notes TEXT,
                created_at TEXT,
                FOREIGN KEY (supplier_id) REFERENCES persons(id),
                FOREIGN KEY (purchase_order_id) REFERENCES purchase_orders(id) ON DELETE SET NULL
            );
            """.format(statuses=_sql_values(GRNStatus), qualities=_sql_values(QualityStatus),
                       payments=_sql_values(PaymentStatus)),
            """
            CREATE TABLE IF NOT EXISTS grn_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                grn_id INTEGER NOT NULL,
                product_id INTEGER NOT NULL,
                ordered_quantity REAL NOT NULL DEFAULT 0.0,
                received_quantity REAL NOT NULL DEFAULT 0.0,
                accepted_quantity REAL NOT NULL DEFAULT 0.0,
                unit_price REAL NOT NULL DEFAULT 0.0,
                batch_number TEXT,
                rejection_reason TEXT,
                inspection_notes TEXT,
                FOREIGN KEY (grn_id) REFERENCES grns(id) ON DELETE CASCADE,
                FOREIGN KEY (product_id) REFERENCES products(id)
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS payments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                payment_number TEXT NOT NULL UNIQUE,
                invoice_id INTEGER NOT NULL,
                customer_id INTEGER NOT NULL,
                amount REAL NOT NULL,
                payment_date TEXT NOT NULL,
                payment_method TEXT NOT NULL CHECK(payment_method IN ({methods})),
                reference TEXT,
                notes TEXT,
                FOREIGN KEY (invoice_id) REFERENCES invoices(id),
                FOREIGN KEY (customer_id) REFERENCES persons(id)
            );
            """.format(methods=_sql_values(PaymentMethod)),
            """
            CREATE TABLE IF NOT EXISTS supplier_payments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                payment_number TEXT NOT NULL UNIQUE,
                grn_id INTEGER NOT NULL,
                supplier_id INTEGER,
                amount REAL NOT NULL,
                payment_date TEXT NOT NULL,
                payment_method TEXT NOT NULL CHECK(payment_method IN ({methods})),
                status TEXT NOT NULL CHECK(status IN ({statuses})),
                reference TEXT,
                notes TEXT,
                FOREIGN KEY (grn_id) REFERENCES grns(id),
                FOREIGN KEY (supplier_id) REFERENCES persons(id)
            );
            """.format(methods=_sql_values(PaymentMethod), statuses=_sql_values(SupplierPaymentStatus)),
            """
            CREATE TABLE IF NOT EXISTS stock (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_id INTEGER NOT NULL,
                location TEXT NOT NULL,
                quantity REAL NOT NULL DEFAULT 0.0 CHECK(quantity >= 0),
                min_level REAL NOT NULL DEFAULT 10,
                reorder_level REAL NOT NULL DEFAULT 20,
                UNIQUE (product_id, location),
                FOREIGN KEY (product_id) REFERENCES products(id)
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS stock_transactions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                transaction_type TEXT NOT NULL CHECK(transaction_type IN ({types})),
                product_id INTEGER NOT NULL,
                quantity REAL NOT NULL,
                balance_before REAL NOT NULL,
                balance_after REAL NOT NULL,
                transaction_date TEXT NOT NULL,
                from_location TEXT,
                to_location TEXT,
                reference_type TEXT CHECK(reference_type IN ({references})),
                reference_id INTEGER,
                reference_number TEXT,
                unit_price REAL,
                total_value REAL,
                reason TEXT,
                FOREIGN KEY (product_id) REFERENCES products(id)
            );
            """.format(types=_sql_values(StockTransactionType), references=_sql_values(ReferenceType)),
        ]

        try:
            with self as conn:
                cursor = conn.cursor()
                logger.info(f"Attempting to execute {len(queries)} table creation SQL query(ies).")
                for query_index, query_sql in enumerate(queries):
                    first_line = query_sql.strip().splitlines()[0]
                    table_name = first_line.upper().split("CREATE TABLE IF NOT EXISTS")[1].split("(")[0].strip().lower()
                    logger.debug(f"Executing SQL for: {table_name} (Query {query_index+1}/{len(queries)})")
                    try:
                        cursor.execute(query_sql)
                    except sqlite3.Error as e_exec:
                        logger.error(f"SQLite error creating table '{table_name}': {e_exec}\nProblematic SQL (first 200 chars):\n{query_sql[:200]}...")
                        raise
                conn.commit()
                logger.info("Database tables checked/created successfully.")
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database schema: {e}", exc_info=True)
            raise
