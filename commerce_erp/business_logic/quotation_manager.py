# commerce_erp/business_logic/quotation_manager.py

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from commerce_erp.business_logic.document_converter import quotation_to_invoice
from commerce_erp.business_logic.entities.invoice_entity import InvoiceEntity
from commerce_erp.business_logic.entities.quotation_entity import QuotationEntity
from commerce_erp.business_logic.exceptions import NotFoundError, ValidationError
from commerce_erp.business_logic.invoice_manager import InvoiceManager
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
from commerce_erp.data_access.document_items_repository import QuotationItemsRepository
from commerce_erp.data_access.document_taxes_repository import DocumentTaxesRepository
from commerce_erp.data_access.quotations_repository import QuotationsRepository
from commerce_erp.constants import DocumentType, PersonType, QuotationStatus, UserRole
import logging

logger = logging.getLogger(__name__)

KIND = DocumentKind.QUOTATION


class QuotationManager:
    def __init__(self,
                 quotations_repository: QuotationsRepository,
                 quotation_items_repository: QuotationItemsRepository,
                 document_taxes_repository: DocumentTaxesRepository,
                 person_manager: PersonManager,
                 product_manager: ProductManager,
                 tax_manager: TaxManager,
                 sequence_manager: SequenceManager,
                 settings_manager: SettingsManager,
                 invoice_manager: InvoiceManager,
                 db_manager: DatabaseManager):
        if quotations_repository is None: raise ValueError("quotations_repository cannot be None")
        if quotation_items_repository is None: raise ValueError("quotation_items_repository cannot be None")
        if document_taxes_repository is None: raise ValueError("document_taxes_repository cannot be None")
        if person_manager is None: raise ValueError("person_manager cannot be None")
        if product_manager is None: raise ValueError("product_manager cannot be None")
        if tax_manager is None: raise ValueError("tax_manager cannot be None")
        if sequence_manager is None: raise ValueError("sequence_manager cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        if invoice_manager is None: raise ValueError("invoice_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.quotations_repository = quotations_repository
        self.quotation_items_repository = quotation_items_repository
        self.document_taxes_repository = document_taxes_repository
        self.person_manager = person_manager
        self.product_manager = product_manager
        self.tax_manager = tax_manager
        self.sequence_manager = sequence_manager
        self.settings_manager = settings_manager
        self.invoice_manager = invoice_manager
        self.db_manager = db_manager

    def create_quotation(self, customer_id: int, items_data: List[Dict[str, Any]],
                         quotation_date: Optional[date] = None,
                         valid_until: Optional[date] = None,
                         discount_percent: Any = 0,
                         tax_ids: Optional[List[int]] = None,
                         notes: Optional[str] = None,
                         submitted_totals: Optional[Dict[str, Any]] = None) -> QuotationEntity:
        """
        Validates and prices a new draft quotation. Omitting `tax_ids` applies
        the default taxes; pass an empty list for none.
        """
        logger.info(f"Creating quotation for customer {customer_id} with {len(items_data or [])} item(s).")
        if customer_id is None:
            raise ValidationError("Customer is required.")
        self.person_manager.require_person(customer_id, PersonType.CUSTOMER)

        quotation_date = self.settings_manager.parse_date(quotation_date, "quotation date") or date.today()
        valid_until = self.settings_manager.parse_date(valid_until, "valid-until date")
        if valid_until is not None and valid_until < quotation_date:
            raise ValidationError("Valid-until date cannot be before the quotation date.")

        taxes = (self.tax_manager.get_default_taxes() if tax_ids is None
                 else self.tax_manager.resolve_taxes(tax_ids))
        quotation = QuotationEntity(
            quotation_number="",
            customer_id=customer_id,
            quotation_date=quotation_date,
            valid_until=valid_until,
            discount_percent=parse_percent(discount_percent),
            notes=notes,
            created_at=datetime.now(),
            items=build_line_items(items_data, self.product_manager),
            tax_ids=[t.id for t in taxes],
        )
        totals = price_document(quotation, taxes)
        verify_submitted_totals(submitted_totals, totals)

        with self.db_manager.transaction():
            quotation.quotation_number = self.sequence_manager.next_number(DocumentType.QUOTATION)
            self.quotations_repository.add(quotation)
            save_children(quotation, self.quotation_items_repository, self.document_taxes_repository, KIND.value)

        logger.info(f"Quotation {quotation.quotation_number} (ID: {quotation.id}) created, total {quotation.total}.")
        return quotation

    def update_quotation(self, quotation_id: int, role: Union[UserRole, str],
                         items_data: Optional[List[Dict[str, Any]]] = None,
                         valid_until: Optional[date] = None,
                         discount_percent: Any = None,
                         tax_ids: Optional[List[int]] = None,
                         notes: Optional[str] = None,
                         submitted_totals: Optional[Dict[str, Any]] = None) -> QuotationEntity:
        quotation = self.get_quotation(quotation_id)
        workflow.require(KIND, WorkflowAction.EDIT, role, quotation)
        valid_until = self.settings_manager.parse_date(valid_until, "valid-until date")

        if items_data is not None:
            quotation.items = build_line_items(items_data, self.product_manager)
        if discount_percent is not None:
            quotation.discount_percent = parse_percent(discount_percent)
        if valid_until is not None:
            if valid_until < quotation.quotation_date:
                raise ValidationError("Valid-until date cannot be before the quotation date.")
            quotation.valid_until = valid_until
        if notes is not None:
            quotation.notes = notes
        if tax_ids is not None:
            quotation.tax_ids = [t.id for t in self.tax_manager.resolve_taxes(tax_ids)]

        totals = price_document(quotation, self.tax_manager.resolve_taxes(quotation.tax_ids))
        verify_submitted_totals(submitted_totals, totals)

        with self.db_manager.transaction():
            self.quotations_repository.update(quotation)
            save_children(quotation, self.quotation_items_repository, self.document_taxes_repository, KIND.value)
        logger.info(f"Quotation {quotation.quotation_number} updated, total {quotation.total}.")
        return quotation

    def _transition(self, quotation_id: int, action: WorkflowAction, role: Union[UserRole, str]) -> QuotationEntity:
        quotation = self.get_quotation(quotation_id)
        workflow.apply(KIND, action, role, quotation)
        self.quotations_repository.update(quotation)
        logger.info(f"Quotation {quotation.quotation_number}: {action.value} -> {quotation.status.value}.")
        return quotation

    def send_quotation(self, quotation_id: int, role: Union[UserRole, str]) -> QuotationEntity:
        return self._transition(quotation_id, WorkflowAction.SEND, role)

    def approve_quotation(self, quotation_id: int, role: Union[UserRole, str]) -> QuotationEntity:
        return self._transition(quotation_id, WorkflowAction.APPROVE, role)

    def reject_quotation(self, quotation_id: int, role: Union[UserRole, str]) -> QuotationEntity:
        return self._transition(quotation_id, WorkflowAction.REJECT, role)

    def expire_quotation(self, quotation_id: int, role: Union[UserRole, str]) -> QuotationEntity:
        return self._transition(quotation_id, WorkflowAction.EXPIRE, role)

    def expire_outdated(self, today: Optional[date] = None) -> List[QuotationEntity]:
        """Marks every open quotation whose valid-until date has passed as expired."""
        today = today or date.today()
        expired = []
        for status in (QuotationStatus.DRAFT, QuotationStatus.SENT, QuotationStatus.APPROVED):
            for quotation in self.quotations_repository.get_by_status(status):
                if quotation.valid_until is not None and quotation.valid_until < today:
                    workflow.apply(KIND, WorkflowAction.EXPIRE, UserRole.ADMIN, quotation)
                    self.quotations_repository.update(quotation)
                    expired.append(quotation)
        if expired:
            logger.info(f"{len(expired)} quotation(s) expired as of {today}.")
        return expired

    def convert_to_invoice(self, quotation_id: int, role: Union[UserRole, str],
                           invoice_date: Optional[date] = None) -> InvoiceEntity:
        """
        Creates a draft invoice from an approved quotation. The invoice and
        the quotation's converted flag are written in one transaction.
        """
        quotation = self.get_quotation(quotation_id)
        workflow.require(KIND, WorkflowAction.CONVERT, role, quotation)
        invoice_date = self.settings_manager.parse_date(invoice_date, "invoice date") or date.today()

        with self.db_manager.transaction():
            # re-read under the write lock; a concurrent conversion may have won
            quotation = self.get_quotation(quotation_id)
            workflow.apply(KIND, WorkflowAction.CONVERT, role, quotation)

            invoice_number = self.sequence_manager.next_number(DocumentType.INVOICE)
            invoice = quotation_to_invoice(quotation, invoice_number, invoice_date,
                                           self.settings_manager.get_invoice_due_days())
            self.invoice_manager.persist_new_invoice(invoice)

            quotation.converted_to_invoice = True
            quotation.invoice_id = invoice.id
            self.quotations_repository.update(quotation)

        logger.info(f"Quotation {quotation.quotation_number} converted to invoice {invoice.invoice_number}.")
        return invoice

    def delete_quotation(self, quotation_id: int, role: Union[UserRole, str]) -> None:
        quotation = self.get_quotation(quotation_id)
        workflow.require(KIND, WorkflowAction.DELETE, role, quotation)
        with self.db_manager.transaction():
            delete_children(quotation, self.quotation_items_repository, self.document_taxes_repository, KIND.value)
            self.quotations_repository.delete(quotation_id)
        logger.info(f"Quotation {quotation.quotation_number} (ID: {quotation_id}) deleted.")

    def get_quotation(self, quotation_id: int) -> QuotationEntity:
        quotation = self.quotations_repository.get_by_id(quotation_id)
        if quotation is None:
            logger.warning(f"Quotation with ID {quotation_id} not found.")
            raise NotFoundError(f"Quotation with ID {quotation_id} not found.")
        return load_children(quotation, self.quotation_items_repository, self.document_taxes_repository, KIND.value)

    def list_quotations(self, status: Optional[QuotationStatus] = None,
                        customer_id: Optional[int] = None) -> List[QuotationEntity]:
        criteria: Dict[str, Any] = {}
        if status is not None:
            criteria["status"] = status
        if customer_id is not None:
            criteria["customer_id"] = customer_id
        return self.quotations_repository.find_by_criteria(criteria, order_by="quotation_date DESC, id DESC")
