# commerce_erp/business_logic/grn_manager.py

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from commerce_erp.business_logic.entities.grn_entity import GRNEntity
from commerce_erp.business_logic.entities.grn_item_entity import GRNItemEntity
from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.business_logic.person_manager import PersonManager
from commerce_erp.business_logic.product_manager import ProductManager
from commerce_erp.business_logic.sequence_manager import SequenceManager
from commerce_erp.business_logic.settings_manager import SettingsManager
from commerce_erp.business_logic.stock_manager import StockManager
from commerce_erp.business_logic.totals_calculator import to_decimal
from commerce_erp.business_logic import workflow
from commerce_erp.business_logic.workflow import DocumentKind, WorkflowAction
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.data_access.grns_repository import GRNsRepository, GRNItemsRepository
from commerce_erp.data_access.payments_repository import SupplierPaymentsRepository
from commerce_erp.config import DEFAULT_STOCK_LOCATION
from commerce_erp.constants import (
    DocumentType, GRNStatus, MONEY_TOLERANCE, PaymentStatus, PersonType, QualityStatus,
    ReferenceType, StockTransactionType, UserRole
)
import logging

logger = logging.getLogger(__name__)

KIND = DocumentKind.GRN


def _quantity(value: Any, label: str, row: int) -> Decimal:
    try:
        qty = Decimal(str(value if value is not None else 0))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Item {row}: invalid {label} {value!r}.") from None
    if qty < 0:
        raise ValidationError(f"Item {row}: {label} cannot be negative.")
    return qty


def validate_grn_item(item: GRNItemEntity, row: int = 1) -> None:
    """accepted <= received, nothing negative. Over-receipt is allowed but logged."""
    for label in ("ordered_quantity", "received_quantity", "accepted_quantity", "unit_price"):
        if getattr(item, label) < 0:
            raise ValidationError(f"Item {row}: {label.replace('_', ' ')} cannot be negative.")
    if item.accepted_quantity > item.received_quantity:
        raise ValidationError(
            f"Item {row}: accepted quantity ({item.accepted_quantity}) cannot exceed "
            f"received quantity ({item.received_quantity}).")
    if item.received_quantity > item.ordered_quantity:
        logger.warning(f"Item {row} (product {item.product_id}): received {item.received_quantity} "
                       f"exceeds ordered {item.ordered_quantity}.")


def derive_quality_status(items: List[GRNItemEntity]) -> QualityStatus:
    received = [i for i in items if i.received_quantity > 0]
    if not received:
        return QualityStatus.PENDING
    if all(i.accepted_quantity == i.received_quantity for i in received):
        return QualityStatus.PASSED
    if all(i.accepted_quantity == 0 for i in received):
        return QualityStatus.FAILED
    return QualityStatus.PARTIAL


class GRNManager:
    """
    Goods receipt notes: inspection, approval, the stock update and
    supplier invoice matching. Paid/balance amounts follow the GRN's
    approved and paid supplier payments.
    """

    def __init__(self,
                 grns_repository: GRNsRepository,
                 grn_items_repository: GRNItemsRepository,
                 supplier_payments_repository: SupplierPaymentsRepository,
                 person_manager: PersonManager,
                 product_manager: ProductManager,
                 stock_manager: StockManager,
                 sequence_manager: SequenceManager,
                 settings_manager: SettingsManager,
                 db_manager: DatabaseManager):
        if grns_repository is None: raise ValueError("grns_repository cannot be None")
        if grn_items_repository is None: raise ValueError("grn_items_repository cannot be None")
        if supplier_payments_repository is None: raise ValueError("supplier_payments_repository cannot be None")
        if person_manager is None: raise ValueError("person_manager cannot be None")
        if product_manager is None: raise ValueError("product_manager cannot be None")
        if stock_manager is None: raise ValueError("stock_manager cannot be None")
        if sequence_manager is None: raise ValueError("sequence_manager cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.grns_repository = grns_repository
        self.grn_items_repository = grn_items_repository
        self.supplier_payments_repository = supplier_payments_repository
        self.person_manager = person_manager
        self.product_manager = product_manager
        self.stock_manager = stock_manager
        self.sequence_manager = sequence_manager
        self.settings_manager = settings_manager
        self.db_manager = db_manager

    def _build_items(self, items_data: Optional[List[Dict[str, Any]]]) -> List[GRNItemEntity]:
        if not items_data:
            raise ValidationError("At least one item is required.")
        items = []
        for row, data in enumerate(items_data, start=1):
            product_id = data.get("product_id")
            if product_id is None:
                raise ValidationError(f"Item {row}: product is required.")
            product = self.product_manager.require_product(product_id)

            received = _quantity(data.get("received_quantity", data.get("quantity")), "received quantity", row)
            ordered = _quantity(data.get("ordered_quantity", received), "ordered quantity", row)
            accepted = _quantity(data.get("accepted_quantity", received), "accepted quantity", row)
            price = data.get("unit_price")
            item = GRNItemEntity(
                product_id=product_id,
                ordered_quantity=ordered,
                received_quantity=received,
                accepted_quantity=accepted,
                unit_price=_quantity(price if price is not None else product.unit_price, "unit price", row),
                batch_number=data.get("batch_number"),
                rejection_reason=data.get("rejection_reason"),
                inspection_notes=data.get("inspection_notes"),
            )
            validate_grn_item(item, row)
            items.append(item)
        return items

    def _recalculate(self, grn: GRNEntity) -> None:
        grn.total_value = sum((item.accepted_value for item in grn.items), Decimal("0"))
        self._apply_paid_amount(grn, grn.paid_amount)

    @staticmethod
    def _apply_paid_amount(grn: GRNEntity, paid: Decimal) -> None:
        grn.paid_amount = paid
        grn.balance_amount = grn.total_value - paid
        if paid > 0 and grn.balance_amount <= MONEY_TOLERANCE:
            grn.payment_status = PaymentStatus.PAID
        elif paid > 0:
            grn.payment_status = PaymentStatus.PARTIAL
        else:
            grn.payment_status = PaymentStatus.UNPAID

    def create_grn(self, items_data: List[Dict[str, Any]],
                   supplier_id: Optional[int] = None,
                   grn_date: Optional[date] = None,
                   location: str = DEFAULT_STOCK_LOCATION,
                   po_number: Optional[str] = None,
                   notes: Optional[str] = None) -> GRNEntity:
        """Direct receipt without a purchase order. Omitted accepted quantities default to received."""
        logger.info(f"Creating GRN with {len(items_data or [])} item(s) at '{location}'.")
        if supplier_id is not None:
            self.person_manager.require_person(supplier_id, PersonType.SUPPLIER)
        if not location:
            raise ValidationError("Location is required.")

        grn_date = self.settings_manager.parse_date(grn_date, "GRN date") or date.today()
        grn = GRNEntity(
            grn_number="",
            grn_date=grn_date,
            supplier_id=supplier_id,
            po_number=po_number,
            location=location,
            notes=notes,
            created_at=datetime.now(),
            items=self._build_items(items_data),
        )
        with self.db_manager.transaction():
            grn.grn_number = self.sequence_manager.next_number(DocumentType.GRN, grn_date)
            self.persist_new_grn(grn)
        logger.info(f"GRN {grn.grn_number} (ID: {grn.id}) created, value {grn.total_value}.")
        return grn

    def persist_new_grn(self, grn: GRNEntity) -> GRNEntity:
        """Inserts a GRN and its items. Also used by purchase order conversion."""
        self._recalculate(grn)
        with self.db_manager.transaction():
            self.grns_repository.add(grn)
            for item in grn.items:
                item.id = None
                item.grn_id = grn.id
                self.grn_items_repository.add(item)
        return grn

    def _save(self, grn: GRNEntity, replace_items: bool = False) -> GRNEntity:
        self._recalculate(grn)
        with self.db_manager.transaction():
            self.grns_repository.update(grn)
            if replace_items:
                self.grn_items_repository.delete_by_grn_id(grn.id)
                for item in grn.items:
                    item.id = None
                    item.grn_id = grn.id
                    self.grn_items_repository.add(item)
            else:
                for item in grn.items:
                    self.grn_items_repository.update(item)
        return grn

    def update_grn(self, grn_id: int, role: Union[UserRole, str],
                   items_data: Optional[List[Dict[str, Any]]] = None,
                   location: Optional[str] = None,
                   notes: Optional[str] = None) -> GRNEntity:
        grn = self.get_grn(grn_id)
        workflow.require(KIND, WorkflowAction.EDIT, role, grn)

        if items_data is not None:
            if grn.stock_updated:
                raise PreconditionFailed("Items of a GRN cannot change once stock has been updated.",
                                         guard="stock_updated")
            grn.items = self._build_items(items_data)
        if location is not None:
            if grn.stock_updated and location != grn.location:
                raise PreconditionFailed("Location cannot change once stock has been updated.",
                                         guard="stock_updated")
            grn.location = location
        if notes is not None:
            grn.notes = notes

        self._save(grn, replace_items=items_data is not None)
        logger.info(f"GRN {grn.grn_number} updated.")
        return grn

    def inspect_grn(self, grn_id: int, role: Union[UserRole, str],
                    item_updates: Optional[List[Dict[str, Any]]] = None,
                    quality_status: Optional[QualityStatus] = None,
                    notes: Optional[str] = None) -> GRNEntity:
        """
        Records inspection results. Each update names an item by `item_id`
        and may set received/accepted quantities, batch, rejection reason and
        notes. Without an explicit quality status one is derived from the items.
        """
        grn = self.get_grn(grn_id)
        workflow.require(KIND, WorkflowAction.INSPECT, role, grn)

        items_by_id = {item.id: item for item in grn.items}
        for row, update in enumerate(item_updates or [], start=1):
            item = items_by_id.get(update.get("item_id"))
            if item is None:
                raise ValidationError(f"Update {row}: item {update.get('item_id')!r} is not on GRN {grn.grn_number}.")
            if "received_quantity" in update:
                item.received_quantity = _quantity(update["received_quantity"], "received quantity", row)
            if "accepted_quantity" in update:
                item.accepted_quantity = _quantity(update["accepted_quantity"], "accepted quantity", row)
            for key in ("batch_number", "rejection_reason", "inspection_notes"):
                if key in update:
                    setattr(item, key, update[key])
            validate_grn_item(item, row)

        if quality_status is not None and not isinstance(quality_status, QualityStatus):
            raise ValidationError(f"Invalid quality status: {quality_status}")
        grn.quality_status = quality_status or derive_quality_status(grn.items)
        if notes:
            grn.notes = notes

        workflow.apply(KIND, WorkflowAction.INSPECT, role, grn)
        self._save(grn)
        logger.info(f"GRN {grn.grn_number} inspected: quality {grn.quality_status.value}, value {grn.total_value}.")
        return grn

    def approve_grn(self, grn_id: int, role: Union[UserRole, str]) -> GRNEntity:
        grn = self.get_grn(grn_id)
        workflow.apply(KIND, WorkflowAction.APPROVE, role, grn)
        self.grns_repository.update(grn)
        logger.info(f"GRN {grn.grn_number} approved.")
        return grn

    def reject_grn(self, grn_id: int, role: Union[UserRole, str], reason: Optional[str] = None) -> GRNEntity:
        grn = self.get_grn(grn_id)
        workflow.apply(KIND, WorkflowAction.REJECT, role, grn)
        if reason:
            grn.notes = f"{grn.notes}\nRejected: {reason}" if grn.notes else f"Rejected: {reason}"
        self.grns_repository.update(grn)
        logger.info(f"GRN {grn.grn_number} rejected.")
        return grn

    def update_stock(self, grn_id: int, role: Union[UserRole, str]) -> GRNEntity:
        """
        Posts the accepted quantities of an approved GRN into stock at its
        location and completes it. Runs at most once per GRN.
        """
        with self.db_manager.transaction():
            grn = self.get_grn(grn_id)
            workflow.apply(KIND, WorkflowAction.UPDATE_STOCK, role, grn)

            for item in grn.items:
                if item.accepted_quantity <= 0:
                    continue
                self.stock_manager.receive_stock(
                    item.product_id, item.accepted_quantity, grn.location,
                    transaction_type=StockTransactionType.GRN,
                    reference_type=ReferenceType.GRN,
                    reference_id=grn.id,
                    reference_number=grn.grn_number,
                    unit_price=item.unit_price,
                    reason=f"Goods received via {grn.grn_number}",
                )
            grn.stock_updated = True
            self.grns_repository.update(grn)

        logger.info(f"Stock updated from GRN {grn.grn_number} at '{grn.location}'.")
        return grn

    def match_invoice(self, grn_id: int, role: Union[UserRole, str], invoice_number: str,
                      invoice_date: Optional[date] = None, invoice_amount: Any = None) -> GRNEntity:
        """Links the supplier's invoice to the GRN; a differing amount is logged, not refused."""
        if not invoice_number or not str(invoice_number).strip():
            raise ValidationError("Supplier invoice number is required.")
        grn = self.get_grn(grn_id)
        workflow.require(KIND, WorkflowAction.MATCH_INVOICE, role, grn)

        grn.invoice_number = str(invoice_number).strip()
        grn.invoice_date = self.settings_manager.parse_date(invoice_date, "invoice date")
        grn.invoice_amount = to_decimal(invoice_amount) if invoice_amount is not None else None
        grn.invoice_matched = True
        if grn.invoice_amount is not None and abs(grn.invoice_amount - grn.total_value) > MONEY_TOLERANCE:
            logger.warning(f"GRN {grn.grn_number}: supplier invoice amount {grn.invoice_amount} "
                           f"differs from GRN value {grn.total_value}.")
        self.grns_repository.update(grn)
        logger.info(f"GRN {grn.grn_number} matched to supplier invoice {grn.invoice_number}.")
        return grn

    def refresh_payment_totals(self, grn_id: int) -> GRNEntity:
        """Recomputes paid/balance/payment status from approved and paid supplier payments."""
        grn = self.get_grn(grn_id)
        self._apply_paid_amount(grn, self.supplier_payments_repository.sum_counted_for_grn(grn_id))
        self.grns_repository.update(grn)
        logger.debug(f"GRN {grn.grn_number}: paid {grn.paid_amount}, balance {grn.balance_amount}.")
        return grn

    def delete_grn(self, grn_id: int, role: Union[UserRole, str]) -> None:
        grn = self.get_grn(grn_id)
        workflow.require(KIND, WorkflowAction.DELETE, role, grn)
        if self.supplier_payments_repository.get_by_grn_id(grn_id):
            raise PreconditionFailed("Cannot delete a GRN that has supplier payments.", guard="payments")
        with self.db_manager.transaction():
            self.grn_items_repository.delete_by_grn_id(grn_id)
            self.grns_repository.delete(grn_id)
        logger.info(f"GRN {grn.grn_number} (ID: {grn_id}) deleted.")

    def get_grn(self, grn_id: int) -> GRNEntity:
        grn = self.grns_repository.get_by_id(grn_id)
        if grn is None:
            logger.warning(f"GRN with ID {grn_id} not found.")
            raise NotFoundError(f"GRN with ID {grn_id} not found.")
        grn.items = self.grn_items_repository.get_by_grn_id(grn_id)
        return grn

    def list_grns(self, status: Optional[GRNStatus] = None,
                  supplier_id: Optional[int] = None) -> List[GRNEntity]:
        criteria: Dict[str, Any] = {}
        if status is not None:
            criteria["status"] = status
        if supplier_id is not None:
            criteria["supplier_id"] = supplier_id
        return self.grns_repository.find_by_criteria(criteria, order_by="grn_date DESC, id DESC")

    def get_reports(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                    supplier_id: Optional[int] = None) -> Dict[str, Any]:
        criteria: Dict[str, Any] = {}
        if start_date and end_date:
            criteria["grn_date"] = ("BETWEEN", (start_date, end_date))
        elif start_date:
            criteria["grn_date"] = (">=", start_date)
        elif end_date:
            criteria["grn_date"] = ("<=", end_date)
        if supplier_id is not None:
            criteria["supplier_id"] = supplier_id
        grns = self.grns_repository.find_by_criteria(criteria)

        by_status = {status.value: 0 for status in GRNStatus}
        by_quality = {quality.value: 0 for quality in QualityStatus}
        accepted = rejected = short = Decimal("0")
        for grn in grns:
            by_status[grn.status.value] += 1
            by_quality[grn.quality_status.value] += 1
            for item in self.grn_items_repository.get_by_grn_id(grn.id):
                accepted += item.accepted_quantity
                rejected += item.rejected_quantity
                short += item.short_quantity

        return {
            "total_grns": len(grns),
            "by_status": by_status,
            "by_quality": by_quality,
            "total_value": sum((g.total_value for g in grns), Decimal("0")),
            "stock_updated": sum(1 for g in grns if g.stock_updated),
            "invoice_matched": sum(1 for g in grns if g.invoice_matched),
            "total_accepted_quantity": accepted,
            "total_rejected_quantity": rejected,
            "total_short_quantity": short,
        }
