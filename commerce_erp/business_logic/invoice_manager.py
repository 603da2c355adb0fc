# commerce_erp/business_logic/invoice_manager.py

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from commerce_erp.business_logic.entities.invoice_entity import InvoiceEntity
from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.business_logic.line_items import (
    build_line_items, delete_children, load_children, parse_percent, price_document, save_children
)
from commerce_erp.business_logic.person_manager import PersonManager
from commerce_erp.business_logic.product_manager import ProductManager
from commerce_erp.business_logic.sequence_manager import SequenceManager
from commerce_erp.business_logic.settings_manager import SettingsManager
from commerce_erp.business_logic.tax_manager import TaxManager
from commerce_erp.business_logic.totals_calculator import verify_submitted_totals
from commerce_erp.business_logic import workflow
from commerce_erp.business_logic.workflow import DocumentKind, WorkflowAction
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.data_access.document_items_repository import InvoiceItemsRepository
from commerce_erp.data_access.document_taxes_repository import DocumentTaxesRepository
from commerce_erp.data_access.invoices_repository import InvoicesRepository
from commerce_erp.data_access.payments_repository import PaymentsRepository
from commerce_erp.constants import DocumentType, InvoiceStatus, PersonType, UserRole
import logging

logger = logging.getLogger(__name__)

KIND = DocumentKind.INVOICE



def _settle_payment_status(invoice: InvoiceEntity) -> None:
    """Invoices carrying payments are paid once the balance is gone, partial until then."""
    if invoice.paid_amount <= 0 or invoice.status == InvoiceStatus.CANCELLED:
        return
    invoice.status = InvoiceStatus.PAID if invoice.balance_amount <= 0 else InvoiceStatus.PARTIAL


class InvoiceManager:
    """
    Customer invoices. Totals are always recomputed here; paid and balance
    amounts only move through `register_payment` / `reverse_payment`, which
    the payment manager calls.
    """

    def __init__(self,
                 invoices_repository: InvoicesRepository,
                 invoice_items_repository: InvoiceItemsRepository,
                 document_taxes_repository: DocumentTaxesRepository,
                 payments_repository: PaymentsRepository,
                 person_manager: PersonManager,
                 product_manager: ProductManager,
                 tax_manager: TaxManager,
                 sequence_manager: SequenceManager,
                 settings_manager: SettingsManager,
                 db_manager: DatabaseManager):
        if invoices_repository is None: raise ValueError("invoices_repository cannot be None")
        if invoice_items_repository is None: raise ValueError("invoice_items_repository cannot be None")
        if document_taxes_repository is None: raise ValueError("document_taxes_repository cannot be None")
        if payments_repository is None: raise ValueError("payments_repository cannot be None")
        if person_manager is None: raise ValueError("person_manager cannot be None")
        if product_manager is None: raise ValueError("product_manager cannot be None")
        if tax_manager is None: raise ValueError("tax_manager cannot be None")
        if sequence_manager is None: raise ValueError("sequence_manager cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.invoices_repository = invoices_repository
        self.invoice_items_repository = invoice_items_repository
        self.document_taxes_repository = document_taxes_repository
        self.payments_repository = payments_repository
        self.person_manager = person_manager
        self.product_manager = product_manager
        self.tax_manager = tax_manager
        self.sequence_manager = sequence_manager
        self.settings_manager = settings_manager
        self.db_manager = db_manager

    def _resolve_taxes(self, tax_ids: Optional[List[int]]):
        # None means "use the default taxes"; an empty list means no tax at all
        if tax_ids is None:
            return self.tax_manager.get_default_taxes()
        return self.tax_manager.resolve_taxes(tax_ids)

    def create_invoice(self, customer_id: int, items_data: List[Dict[str, Any]],
                       invoice_date: Optional[date] = None,
                       due_date: Optional[date] = None,
                       discount_percent: Any = 0,
                       tax_ids: Optional[List[int]] = None,
                       notes: Optional[str] = None,
                       submitted_totals: Optional[Dict[str, Any]] = None) -> InvoiceEntity:
        logger.info(f"Creating invoice for customer {customer_id} with {len(items_data or [])} item(s).")
        if customer_id is None:
            raise ValidationError("Customer is required.")
        self.person_manager.require_person(customer_id, PersonType.CUSTOMER)

        invoice_date = self.settings_manager.parse_date(invoice_date, "invoice date") or date.today()
        due_date = self.settings_manager.parse_date(due_date, "due date")
        if due_date is None:
            due_date = invoice_date + timedelta(days=self.settings_manager.get_invoice_due_days())
        if due_date < invoice_date:
            raise ValidationError("Due date cannot be before the invoice date.")

        taxes = self._resolve_taxes(tax_ids)
        invoice = InvoiceEntity(
            invoice_number="",
            customer_id=customer_id,
            invoice_date=invoice_date,
            due_date=due_date,
            discount_percent=parse_percent(discount_percent),
            notes=notes,
            created_at=datetime.now(),
            items=build_line_items(items_data, self.product_manager),
            tax_ids=[t.id for t in taxes],
        )
        totals = price_document(invoice, taxes)
        verify_submitted_totals(submitted_totals, totals)
        invoice.balance_amount = invoice.total

        with self.db_manager.transaction():
            invoice.invoice_number = self.sequence_manager.next_number(DocumentType.INVOICE)
            self.persist_new_invoice(invoice)

        logger.info(f"Invoice {invoice.invoice_number} (ID: {invoice.id}) created, total {invoice.total}.")
        return invoice

    def persist_new_invoice(self, invoice: InvoiceEntity) -> InvoiceEntity:
        """Inserts an invoice with its items and taxes. Also used by quotation conversion."""
        with self.db_manager.transaction():
            self.invoices_repository.add(invoice)
            save_children(invoice, self.invoice_items_repository, self.document_taxes_repository, KIND.value)
        return invoice

    def update_invoice(self, invoice_id: int, role: Union[UserRole, str],
                       items_data: Optional[List[Dict[str, Any]]] = None,
                       due_date: Optional[date] = None,
                       discount_percent: Any = None,
                       tax_ids: Optional[List[int]] = None,
                       notes: Optional[str] = None,
                       submitted_totals: Optional[Dict[str, Any]] = None) -> InvoiceEntity:
        invoice = self.get_invoice(invoice_id)
        workflow.require(KIND, WorkflowAction.EDIT, role, invoice)
        due_date = self.settings_manager.parse_date(due_date, "due date")

        if items_data is not None:
            invoice.items = build_line_items(items_data, self.product_manager)
        if discount_percent is not None:
            invoice.discount_percent = parse_percent(discount_percent)
        if due_date is not None:
            if due_date < invoice.invoice_date:
                raise ValidationError("Due date cannot be before the invoice date.")
            invoice.due_date = due_date
        if notes is not None:
            invoice.notes = notes
        if tax_ids is not None:
            invoice.tax_ids = [t.id for t in self.tax_manager.resolve_taxes(tax_ids)]

        totals = price_document(invoice, self.tax_manager.resolve_taxes(invoice.tax_ids))
        verify_submitted_totals(submitted_totals, totals)
        if invoice.total < invoice.paid_amount:
            raise ValidationError(
                f"New total {invoice.total} is below the amount already paid ({invoice.paid_amount}).")
        invoice.balance_amount = invoice.total - invoice.paid_amount
        _settle_payment_status(invoice)

        with self.db_manager.transaction():
            self.invoices_repository.update(invoice)
            save_children(invoice, self.invoice_items_repository, self.document_taxes_repository, KIND.value)
        logger.info(f"Invoice {invoice.invoice_number} updated, total {invoice.total}.")
        return invoice

    def _transition(self, invoice_id: int, action: WorkflowAction, role: Union[UserRole, str]) -> InvoiceEntity:
        invoice = self.get_invoice(invoice_id)
        workflow.apply(KIND, action, role, invoice)
        self.invoices_repository.update(invoice)
        logger.info(f"Invoice {invoice.invoice_number}: {action.value} by {workflow.to_role(role).value}.")
        return invoice

    def send_invoice(self, invoice_id: int, role: Union[UserRole, str]) -> InvoiceEntity:
        return self._transition(invoice_id, WorkflowAction.SEND, role)

    def cancel_invoice(self, invoice_id: int, role: Union[UserRole, str]) -> InvoiceEntity:
        return self._transition(invoice_id, WorkflowAction.CANCEL, role)

    def approve_invoice(self, invoice_id: int, role: Union[UserRole, str]) -> InvoiceEntity:
        return self._transition(invoice_id, WorkflowAction.APPROVE, role)

    def reject_invoice(self, invoice_id: int, role: Union[UserRole, str]) -> InvoiceEntity:
        return self._transition(invoice_id, WorkflowAction.REJECT, role)

    def register_payment(self, invoice: InvoiceEntity, amount: Decimal) -> InvoiceEntity:
        # paid never runs past the total, even inside the rounding tolerance
        invoice.paid_amount = min(invoice.paid_amount + amount, invoice.total)
        invoice.balance_amount = invoice.total - invoice.paid_amount
        _settle_payment_status(invoice)
        self.invoices_repository.update(invoice)
        return invoice

    def reverse_payment(self, invoice: InvoiceEntity, amount: Decimal) -> InvoiceEntity:
        invoice.paid_amount = max(invoice.paid_amount - amount, Decimal("0"))
        invoice.balance_amount = invoice.total - invoice.paid_amount
        if invoice.paid_amount > 0:
            _settle_payment_status(invoice)
        elif invoice.status != InvoiceStatus.CANCELLED:
            invoice.status = InvoiceStatus.SENT
        self.invoices_repository.update(invoice)
        return invoice

    def delete_invoice(self, invoice_id: int, role: Union[UserRole, str]) -> None:
        invoice = self.get_invoice(invoice_id)
        workflow.require(KIND, WorkflowAction.DELETE, role, invoice)
        if self.payments_repository.get_by_invoice_id(invoice_id):
            raise PreconditionFailed("Cannot delete an invoice that has payments.", guard="payments")
        with self.db_manager.transaction():
            delete_children(invoice, self.invoice_items_repository, self.document_taxes_repository, KIND.value)
            self.invoices_repository.delete(invoice_id)
        logger.info(f"Invoice {invoice.invoice_number} (ID: {invoice_id}) deleted.")

    def get_invoice(self, invoice_id: int) -> InvoiceEntity:
        invoice = self.invoices_repository.get_by_id(invoice_id)
        if invoice is None:
            logger.warning(f"Invoice with ID {invoice_id} not found.")
            raise NotFoundError(f"Invoice with ID {invoice_id} not found.")
        return load_children(invoice, self.invoice_items_repository, self.document_taxes_repository, KIND.value)

    def get_effective_status(self, invoice_id: int, today: Optional[date] = None) -> InvoiceStatus:
        return workflow.effective_invoice_status(self.get_invoice(invoice_id), today)

    def list_invoices(self, status: Optional[InvoiceStatus] = None,
                      customer_id: Optional[int] = None) -> List[InvoiceEntity]:
        criteria: Dict[str, Any] = {}
        if status is not None:
            criteria["status"] = status
        if customer_id is not None:
            criteria["customer_id"] = customer_id
        return self.invoices_repository.find_by_criteria(criteria, order_by="invoice_date DESC, id DESC")

    def list_overdue(self, today: Optional[date] = None) -> List[InvoiceEntity]:
        """Unpaid, non-cancelled invoices whose due date has passed."""
        return self.invoices_repository.get_past_due(today or date.today())
