# commerce_erp/business_logic/supplier_payment_manager.py

from typing import Optional, List, Any, Union, TYPE_CHECKING
from datetime import date
from decimal import Decimal

from .entities.grn_entity import GRNEntity
from .entities.supplier_payment_entity import SupplierPaymentEntity
from .exceptions import ValidationError, NotFoundError, PreconditionFailed
from .payment_manager import parse_amount
from . import workflow
from .workflow import DocumentKind, WorkflowAction
from commerce_erp.constants import (
    PaymentMethod, DocumentType, GRNStatus, SupplierPaymentStatus, UserRole, MONEY_TOLERANCE
)

if TYPE_CHECKING:
    from .grn_manager import GRNManager
    from .sequence_manager import SequenceManager
    from .settings_manager import SettingsManager
    from ..data_access.payments_repository import SupplierPaymentsRepository
    from ..data_access.database_manager import DatabaseManager

import logging
logger = logging.getLogger(__name__)

KIND = DocumentKind.SUPPLIER_PAYMENT
PAYABLE_GRN_STATES = (GRNStatus.APPROVED, GRNStatus.COMPLETED)


class SupplierPaymentManager:
    """
    Payments to suppliers against GRNs: draft -> approved -> paid. Only
    approved and paid payments count towards the GRN's paid amount.
    """

    def __init__(self,
                 supplier_payments_repository: 'SupplierPaymentsRepository',
                 grn_manager: 'GRNManager',
                 sequence_manager: 'SequenceManager',
                 settings_manager: 'SettingsManager',
                 db_manager: 'DatabaseManager'):
        if supplier_payments_repository is None: raise ValueError("supplier_payments_repository cannot be None")
        if grn_manager is None: raise ValueError("grn_manager cannot be None")
        if sequence_manager is None: raise ValueError("sequence_manager cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.supplier_payments_repository = supplier_payments_repository
        self.grn_manager = grn_manager
        self.sequence_manager = sequence_manager
        self.settings_manager = settings_manager
        self.db_manager = db_manager

    def _check_within_balance(self, grn: GRNEntity, amount: Decimal, exclude_payment_id: Optional[int] = None) -> None:
        counted = sum((p.amount for p in self.supplier_payments_repository.get_by_grn_id(grn.id)
                       if p.status in (SupplierPaymentStatus.APPROVED, SupplierPaymentStatus.PAID)
                       and p.id != exclude_payment_id), Decimal("0"))
        if counted + amount > grn.total_value + MONEY_TOLERANCE:
            raise ValidationError(
                f"Payment of {amount} exceeds the remaining balance of GRN {grn.grn_number} "
                f"({grn.total_value - counted}).")

    def create_payment(self, grn_id: int, amount: Any, role: Union[UserRole, str],
                       payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
                       payment_date: Optional[date] = None,
                       reference: Optional[str] = None,
                       notes: Optional[str] = None) -> SupplierPaymentEntity:
        if workflow.to_role(role) not in workflow.SUPERVISORS:
            raise PreconditionFailed("Only admin/manager can create supplier payments.", guard="role")
        value = parse_amount(amount)
        if not isinstance(payment_method, PaymentMethod):
            raise ValidationError(f"Invalid payment method: {payment_method}")

        with self.db_manager.transaction():
            grn = self.grn_manager.get_grn(grn_id)
            if grn.status not in PAYABLE_GRN_STATES:
                raise PreconditionFailed(
                    f"GRN {grn.grn_number} must be approved or completed before payment "
                    f"(current: {grn.status.value}).", guard="state")
            self._check_within_balance(grn, value)

            payment = self.supplier_payments_repository.add(SupplierPaymentEntity(
                payment_number=self.sequence_manager.next_number(DocumentType.SUPPLIER_PAYMENT),
                grn_id=grn.id,
                supplier_id=grn.supplier_id,
                amount=value,
                payment_date=self.settings_manager.parse_date(payment_date, "payment date") or date.today(),
                payment_method=payment_method,
                reference=reference,
                notes=notes,
            ))

        logger.info(f"Supplier payment {payment.payment_number} of {value} drafted for GRN {grn.grn_number}.")
        return payment

    def update_payment(self, payment_id: int, role: Union[UserRole, str], amount: Any = None,
                       payment_method: Optional[PaymentMethod] = None,
                       payment_date: Optional[date] = None,
                       reference: Optional[str] = None,
                       notes: Optional[str] = None) -> SupplierPaymentEntity:
        payment = self.get_payment(payment_id)
        workflow.require(KIND, WorkflowAction.EDIT, role, payment)
        if amount is not None:
            payment.amount = parse_amount(amount)
            self._check_within_balance(self.grn_manager.get_grn(payment.grn_id), payment.amount, payment.id)
        if payment_method is not None:
            payment.payment_method = payment_method
        if payment_date is not None:
            payment.payment_date = self.settings_manager.parse_date(payment_date, "payment date")
        if reference is not None:
            payment.reference = reference
        if notes is not None:
            payment.notes = notes
        self.supplier_payments_repository.update(payment)
        return payment

    def _transition(self, payment_id: int, action: WorkflowAction, role: Union[UserRole, str]) -> SupplierPaymentEntity:
        with self.db_manager.transaction():
            payment = self.get_payment(payment_id)
            if action is WorkflowAction.APPROVE:
                self._check_within_balance(self.grn_manager.get_grn(payment.grn_id), payment.amount, payment.id)
            workflow.apply(KIND, action, role, payment)
            self.supplier_payments_repository.update(payment)
            grn = self.grn_manager.refresh_payment_totals(payment.grn_id)
        logger.info(f"Supplier payment {payment.payment_number} -> {payment.status.value}; "
                    f"GRN {grn.grn_number} balance {grn.balance_amount}.")
        return payment

    def approve_payment(self, payment_id: int, role: Union[UserRole, str]) -> SupplierPaymentEntity:
        return self._transition(payment_id, WorkflowAction.APPROVE, role)

    def mark_paid(self, payment_id: int, role: Union[UserRole, str]) -> SupplierPaymentEntity:
        return self._transition(payment_id, WorkflowAction.MARK_PAID, role)

    def delete_payment(self, payment_id: int, role: Union[UserRole, str]) -> None:
        payment = self.get_payment(payment_id)
        workflow.require(KIND, WorkflowAction.DELETE, role, payment)
        self.supplier_payments_repository.delete(payment_id)
        logger.info(f"Supplier payment {payment.payment_number} deleted.")

    def get_payment(self, payment_id: int) -> SupplierPaymentEntity:
        payment = self.supplier_payments_repository.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError(f"Supplier payment with ID {payment_id} not found.")
        return payment

    def get_payments_for_grn(self, grn_id: int) -> List[SupplierPaymentEntity]:
        return self.supplier_payments_repository.get_by_grn_id(grn_id)
