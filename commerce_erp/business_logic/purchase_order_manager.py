# commerce_erp/business_logic/purchase_order_manager.py

from typing import Optional, List, Dict, Any, Union
from datetime import date, datetime
from decimal import Decimal

from commerce_erp.business_logic.document_converter import purchase_order_to_grn
from commerce_erp.business_logic.entities.grn_entity import GRNEntity
from commerce_erp.business_logic.entities.purchase_order_entity import PurchaseOrderEntity
from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.business_logic.grn_manager import GRNManager
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
from commerce_erp.data_access.document_items_repository import PurchaseOrderItemsRepository
from commerce_erp.data_access.document_taxes_repository import DocumentTaxesRepository
from commerce_erp.data_access.purchase_orders_repository import PurchaseOrdersRepository

from commerce_erp.config import DEFAULT_STOCK_LOCATION
from commerce_erp.constants import DocumentType, PersonType, PurchaseOrderStatus, UserRole
import logging

logger = logging.getLogger(__name__)

KIND = DocumentKind.PURCHASE_ORDER


class PurchaseOrderManager:
    def __init__(self,
                 po_repository: PurchaseOrdersRepository,
                 po_items_repository: PurchaseOrderItemsRepository,
                 document_taxes_repository: DocumentTaxesRepository,
                 person_manager: PersonManager,
                 product_manager: ProductManager,
                 tax_manager: TaxManager,
                 sequence_manager: SequenceManager,
                 settings_manager: SettingsManager,
                 grn_manager: GRNManager,
                 db_manager: DatabaseManager):
        if po_repository is None: raise ValueError("po_repository cannot be None")
        if po_items_repository is None: raise ValueError("po_items_repository cannot be None")
        if document_taxes_repository is None: raise ValueError("document_taxes_repository cannot be None")
        if person_manager is None: raise ValueError("person_manager cannot be None")
        if product_manager is None: raise ValueError("product_manager cannot be None")
        if tax_manager is None: raise ValueError("tax_manager cannot be None")
        if sequence_manager is None: raise ValueError("sequence_manager cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        if grn_manager is None: raise ValueError("grn_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.po_repository = po_repository
        self.po_items_repository = po_items_repository
        self.document_taxes_repository = document_taxes_repository
        self.person_manager = person_manager
        self.product_manager = product_manager
        self.tax_manager = tax_manager
        self.sequence_manager = sequence_manager
        self.settings_manager = settings_manager
        self.grn_manager = grn_manager
        self.db_manager = db_manager

    def create_purchase_order(self,
                              supplier_id: int,
                              items_data: List[Dict[str, Any]],
                              expected_delivery_date: date,
                              po_date: Optional[date] = None,
                              discount_percent: Any = 0,
                              tax_ids: Optional[List[int]] = None,
                              notes: Optional[str] = None,
                              submitted_totals: Optional[Dict[str, Any]] = None
                              ) -> PurchaseOrderEntity:
        logger.info(f"Attempting to create PO. Supplier: {supplier_id}, Items: {len(items_data or [])}")
        if supplier_id is None:
            raise ValidationError("Supplier is required.")
        self.person_manager.require_person(supplier_id, PersonType.SUPPLIER)

        po_date = self.settings_manager.parse_date(po_date, "order date") or date.today()
        expected_delivery_date = self.settings_manager.parse_date(expected_delivery_date, "expected delivery date")
        if not isinstance(expected_delivery_date, date):
            raise ValidationError("Expected delivery date is required.")
        if expected_delivery_date < po_date:
            raise ValidationError("Expected delivery date cannot be before the order date.")

        # POs carry no tax unless asked to
        taxes = self.tax_manager.resolve_taxes(tax_ids)
        po = PurchaseOrderEntity(
            po_number="",
            supplier_id=supplier_id,
            po_date=po_date,
            expected_delivery_date=expected_delivery_date,
            discount_percent=parse_percent(discount_percent),
            notes=notes,
            created_at=datetime.now(),
            items=build_line_items(items_data, self.product_manager),
            tax_ids=[t.id for t in taxes],
        )
        for row, item in enumerate(po.items, start=1):
            if item.product_id is None:
                raise ValidationError(f"Item {row}: purchase order lines must reference a product.")
        totals = price_document(po, taxes)
        verify_submitted_totals(submitted_totals, totals)

        with self.db_manager.transaction():
            po.po_number = self.sequence_manager.next_number(DocumentType.PURCHASE_ORDER)
            self.po_repository.add(po)
            save_children(po, self.po_items_repository, self.document_taxes_repository, KIND.value)

        logger.info(f"PO {po.po_number} (ID: {po.id}) created, total {po.total}.")
        return po

    def update_purchase_order(self, po_id: int, role: Union[UserRole, str],
                              items_data: Optional[List[Dict[str, Any]]] = None,
                              expected_delivery_date: Optional[date] = None,
                              discount_percent: Any = None,
                              tax_ids: Optional[List[int]] = None,
                              notes: Optional[str] = None,
                              submitted_totals: Optional[Dict[str, Any]] = None) -> PurchaseOrderEntity:
        po = self.get_purchase_order(po_id)
        workflow.require(KIND, WorkflowAction.EDIT, role, po)
        expected_delivery_date = self.settings_manager.parse_date(expected_delivery_date, "expected delivery date")

        if items_data is not None:
            po.items = build_line_items(items_data, self.product_manager)
            for row, item in enumerate(po.items, start=1):
                if item.product_id is None:
                    raise ValidationError(f"Item {row}: purchase order lines must reference a product.")
        if expected_delivery_date is not None:
            if expected_delivery_date < po.po_date:
                raise ValidationError("Expected delivery date cannot be before the order date.")
            po.expected_delivery_date = expected_delivery_date
        if discount_percent is not None:
            po.discount_percent = parse_percent(discount_percent)
        if notes is not None:
            po.notes = notes
        if tax_ids is not None:
            po.tax_ids = [t.id for t in self.tax_manager.resolve_taxes(tax_ids)]

        totals = price_document(po, self.tax_manager.resolve_taxes(po.tax_ids))
        verify_submitted_totals(submitted_totals, totals)

        with self.db_manager.transaction():
            self.po_repository.update(po)
            save_children(po, self.po_items_repository, self.document_taxes_repository, KIND.value)
        logger.info(f"PO {po.po_number} updated, total {po.total}.")
        return po

    def _transition(self, po_id: int, action: WorkflowAction, role: Union[UserRole, str]) -> PurchaseOrderEntity:
        po = self.get_purchase_order(po_id)
        workflow.apply(KIND, action, role, po)
        self.po_repository.update(po)
        logger.info(f"PO {po.po_number}: {action.value} -> {po.status.value}.")
        return po

    def approve_purchase_order(self, po_id: int, role: Union[UserRole, str]) -> PurchaseOrderEntity:
        return self._transition(po_id, WorkflowAction.APPROVE, role)

    def send_purchase_order(self, po_id: int, role: Union[UserRole, str]) -> PurchaseOrderEntity:
        return self._transition(po_id, WorkflowAction.SEND, role)

    def complete_purchase_order(self, po_id: int, role: Union[UserRole, str]) -> PurchaseOrderEntity:
        return self._transition(po_id, WorkflowAction.COMPLETE, role)

    def cancel_purchase_order(self, po_id: int, role: Union[UserRole, str]) -> PurchaseOrderEntity:
        return self._transition(po_id, WorkflowAction.CANCEL, role)

    def convert_to_grn(self, po_id: int, role: Union[UserRole, str],
                       grn_date: Optional[date] = None,
                       location: str = DEFAULT_STOCK_LOCATION) -> GRNEntity:
        """
        Creates the one draft GRN of an approved or sent PO. The GRN, its
        items and the PO's converted flag are written in one transaction.
        """
        po = self.get_purchase_order(po_id)
        workflow.require(KIND, WorkflowAction.CONVERT, role, po)
        grn_date = self.settings_manager.parse_date(grn_date, "GRN date") or date.today()

        with self.db_manager.transaction():
            # re-read under the write lock; a concurrent conversion may have won
            po = self.get_purchase_order(po_id)
            workflow.apply(KIND, WorkflowAction.CONVERT, role, po)
            if self.grn_manager.grns_repository.get_by_purchase_order_id(po_id):
                raise PreconditionFailed(f"PO {po.po_number} already has a GRN.", guard="converted_to_grn")

            grn_number = self.sequence_manager.next_number(DocumentType.GRN, grn_date)
            grn = purchase_order_to_grn(po, grn_number, grn_date, location)
            self.grn_manager.persist_new_grn(grn)

            po.converted_to_grn = True
            po.grn_id = grn.id
            self.po_repository.update(po)

        logger.info(f"PO {po.po_number} converted to GRN {grn.grn_number}.")
        return grn

    def delete_purchase_order(self, po_id: int, role: Union[UserRole, str]) -> None:
        po = self.get_purchase_order(po_id)
        workflow.require(KIND, WorkflowAction.DELETE, role, po)
        with self.db_manager.transaction():
            delete_children(po, self.po_items_repository, self.document_taxes_repository, KIND.value)
            self.po_repository.delete(po_id)
        logger.info(f"PO {po.po_number} (ID: {po_id}) deleted.")

    def get_purchase_order(self, po_id: int) -> PurchaseOrderEntity:
        po = self.po_repository.get_by_id(po_id)
        if po is None:
            logger.warning(f"PO with ID {po_id} not found.")
            raise NotFoundError(f"Purchase order with ID {po_id} not found.")
        return load_children(po, self.po_items_repository, self.document_taxes_repository, KIND.value)

    def list_purchase_orders(self, status: Optional[PurchaseOrderStatus] = None,
                             supplier_id: Optional[int] = None) -> List[PurchaseOrderEntity]:
        criteria: Dict[str, Any] = {}
        if status is not None:
            criteria["status"] = status
        if supplier_id is not None:
            criteria["supplier_id"] = supplier_id
        return self.po_repository.find_by_criteria(criteria, order_by="po_date DESC, id DESC")

    def get_reports(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                    supplier_id: Optional[int] = None) -> Dict[str, Any]:
        """Counts and value by status, conversion progress and per-supplier totals."""
        criteria: Dict[str, Any] = {}
        conditions, params = [], []
        if start_date:
            criteria["po_date"] = (">=", start_date)
            conditions.append("po.po_date >= ?")
            params.append(start_date.isoformat())
        if end_date:
            if start_date:
                criteria["po_date"] = ("BETWEEN", (start_date, end_date))
            else:
                criteria["po_date"] = ("<=", end_date)
            conditions.append("po.po_date <= ?")
            params.append(end_date.isoformat())
        if supplier_id is not None:
            criteria["supplier_id"] = supplier_id
            conditions.append("po.supplier_id = ?")
            params.append(supplier_id)

        orders = self.po_repository.find_by_criteria(criteria)
        by_status = {status.value: 0 for status in PurchaseOrderStatus}
        for po in orders:
            by_status[po.status.value] += 1

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return {
            "total_orders": len(orders),
            "by_status": by_status,
            "total_value": sum((po.total for po in orders), Decimal("0")),
            "converted_to_grn": sum(1 for po in orders if po.converted_to_grn),
            "pending_conversion": sum(
                1 for po in orders
                if po.status in (PurchaseOrderStatus.APPROVED, PurchaseOrderStatus.SENT) and not po.converted_to_grn),
            "supplier_totals": self.po_repository.supplier_totals(where, tuple(params)),
        }
