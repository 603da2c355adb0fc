# commerce_erp/business_logic/payment_manager.py

from typing import Optional, List, Any, Union, TYPE_CHECKING
from datetime import date
from decimal import Decimal, InvalidOperation

from .entities.payment_entity import PaymentEntity
from .exceptions import ValidationError, NotFoundError, PreconditionFailed
from . import workflow
from .workflow import DocumentKind, WorkflowAction, SUPERVISORS
from commerce_erp.constants import PaymentMethod, DocumentType, UserRole, MONEY_TOLERANCE

# --- Type Hinting Imports ---
if TYPE_CHECKING:
    from .invoice_manager import InvoiceManager
    from .sequence_manager import SequenceManager
    from .settings_manager import SettingsManager
    from ..data_access.payments_repository import PaymentsRepository
    from ..data_access.database_manager import DatabaseManager

import logging
logger = logging.getLogger(__name__)


def parse_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero.")
    return amount


class PaymentManager:
    """Customer payments. Each one moves its invoice's paid and balance amounts."""

    def __init__(self,
                 payments_repository: 'PaymentsRepository',
                 invoice_manager: 'InvoiceManager',
                 sequence_manager: 'SequenceManager',
                 settings_manager: 'SettingsManager',
                 db_manager: 'DatabaseManager'):
        if payments_repository is None: raise ValueError("payments_repository cannot be None")
        if invoice_manager is None: raise ValueError("invoice_manager cannot be None")
        if sequence_manager is None: raise ValueError("sequence_manager cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.payments_repository = payments_repository
        self.invoice_manager = invoice_manager
        self.sequence_manager = sequence_manager
        self.settings_manager = settings_manager
        self.db_manager = db_manager

    def record_payment(self, invoice_id: int, amount: Any,
                       role: Union[UserRole, str] = UserRole.USER,
                       payment_method: PaymentMethod = PaymentMethod.CASH,
                       payment_date: Optional[date] = None,
                       reference: Optional[str] = None,
                       notes: Optional[str] = None) -> PaymentEntity:
        """
        Records a payment against a sent, partially paid or overdue invoice.
        The amount may not exceed the outstanding balance.
        """
        value = parse_amount(amount)
        if not isinstance(payment_method, PaymentMethod):
            raise ValidationError(f"Invalid payment method: {payment_method}")

        with self.db_manager.transaction():
            invoice = self.invoice_manager.get_invoice(invoice_id)
            workflow.require(DocumentKind.INVOICE, WorkflowAction.RECORD_PAYMENT, role, invoice)
            if invoice.balance_amount <= 0:
                raise ValidationError(f"Invoice {invoice.invoice_number} has no outstanding balance.")
            if value > invoice.balance_amount + MONEY_TOLERANCE:
                raise ValidationError(
                    f"Payment of {value} exceeds the outstanding balance ({invoice.balance_amount}).")

            payment = self.payments_repository.add(PaymentEntity(
                payment_number=self.sequence_manager.next_number(DocumentType.PAYMENT),
                invoice_id=invoice.id,
                customer_id=invoice.customer_id,
                amount=value,
                payment_date=self.settings_manager.parse_date(payment_date, "payment date") or date.today(),
                payment_method=payment_method,
                reference=reference,
                notes=notes,
            ))
            self.invoice_manager.register_payment(invoice, value)

        logger.info(f"Payment {payment.payment_number} of {value} recorded on invoice {invoice.invoice_number}; "
                    f"balance {invoice.balance_amount}, status {invoice.status.value}.")
        return payment

    def update_payment(self, payment_id: int, role: Union[UserRole, str],
                       amount: Any = None,
                       payment_method: Optional[PaymentMethod] = None,
                       payment_date: Optional[date] = None,
                       reference: Optional[str] = None,
                       notes: Optional[str] = None) -> PaymentEntity:
        """
        Corrects a recorded payment. A new amount replaces the old one on the
        invoice: the old amount is reverted, the new one applied and the
        invoice status re-derived, all in one transaction.
        """
        if workflow.to_role(role) not in SUPERVISORS:
            raise PreconditionFailed("Only admin/manager can edit payments.", guard="role")
        value = parse_amount(amount) if amount is not None else None
        if payment_method is not None and not isinstance(payment_method, PaymentMethod):
            raise ValidationError(f"Invalid payment method: {payment_method}")
        new_date = self.settings_manager.parse_date(payment_date, "payment date")

        with self.db_manager.transaction():
            payment = self.get_payment(payment_id)
            old_amount = payment.amount
            if value is not None and value != old_amount:
                invoice = self.invoice_manager.get_invoice(payment.invoice_id)
                if invoice.paid_amount - old_amount + value > invoice.total + MONEY_TOLERANCE:
                    raise ValidationError(
                        f"Payment of {value} exceeds the invoice total ({invoice.total}).")
                self.invoice_manager.reverse_payment(invoice, old_amount)
                self.invoice_manager.register_payment(invoice, value)
                payment.amount = value
            if payment_method is not None:
                payment.payment_method = payment_method
            if new_date is not None:
                payment.payment_date = new_date
            if reference is not None:
                payment.reference = reference
            if notes is not None:
                payment.notes = notes
            self.payments_repository.update(payment)

        logger.info(f"Payment {payment.payment_number} updated (amount {old_amount} -> {payment.amount}).")
        return payment

    def delete_payment(self, payment_id: int, role: Union[UserRole, str]) -> None:
        if workflow.to_role(role) not in SUPERVISORS:
            raise PreconditionFailed("Only admin/manager can delete payments.", guard="role")
        payment = self.get_payment(payment_id)
        with self.db_manager.transaction():
            invoice = self.invoice_manager.get_invoice(payment.invoice_id)
            self.payments_repository.delete(payment_id)
            self.invoice_manager.reverse_payment(invoice, payment.amount)
        logger.info(f"Payment {payment.payment_number} deleted; invoice {invoice.invoice_number} balance {invoice.balance_amount}.")

    def get_payment(self, payment_id: int) -> PaymentEntity:
        payment = self.payments_repository.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment with ID {payment_id} not found.")
        return payment

    def get_payments_for_invoice(self, invoice_id: int) -> List[PaymentEntity]:
        return self.payments_repository.get_by_invoice_id(invoice_id)

    def list_payments(self) -> List[PaymentEntity]:
        return self.payments_repository.get_all(order_by="payment_date DESC, id DESC")
