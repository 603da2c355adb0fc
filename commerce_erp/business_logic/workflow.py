# commerce_erp/business_logic/workflow.py

"""
Status workflow of commercial documents.

Every legal transition is a row of TRANSITIONS, keyed by (document kind,
action). A rule lists the states it may start from, the state it leads to,
the roles allowed to perform it and the one-way flags that block it.
Managers call `require()` before touching anything and `apply()` to move the
in-memory document to its next state; persisting it is their job.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from commerce_erp.business_logic.exceptions import PreconditionFailed, ValidationError
from commerce_erp.constants import (
    UserRole, QuotationStatus, InvoiceStatus, ApprovalStatus, PurchaseOrderStatus,
    GRNStatus, SupplierPaymentStatus
)
import logging

logger = logging.getLogger(__name__)


class DocumentKind(Enum):
    QUOTATION = "quotation"
    INVOICE = "invoice"
    PURCHASE_ORDER = "purchase_order"
    GRN = "grn"
    SUPPLIER_PAYMENT = "supplier_payment"


class WorkflowAction(Enum):
    SEND = "send"
    APPROVE = "approve"
    REJECT = "reject"
    EXPIRE = "expire"
    CANCEL = "cancel"
    COMPLETE = "complete"
    CONVERT = "convert"
    INSPECT = "inspect"
    UPDATE_STOCK = "update_stock"
    RECORD_PAYMENT = "record_payment"
    MATCH_INVOICE = "match_invoice"
    MARK_PAID = "mark_paid"
    EDIT = "edit"
    DELETE = "delete"


ALL_ROLES = frozenset(UserRole)
SUPERVISORS = frozenset({UserRole.ADMIN, UserRole.MANAGER})
ADMIN_ONLY = frozenset({UserRole.ADMIN})


@dataclass(frozen=True)
class TransitionRule:
    from_states: FrozenSet[Enum]
    to_state: Optional[Enum] = None # None: state unchanged, or computed by the caller
    allowed_roles: FrozenSet[UserRole] = ALL_ROLES
    blocked_by_flags: Tuple[str, ...] = ()
    state_field: str = "status"
    # (field, value, roles): extra role restriction while `field == value`
    restricted_when: Optional[Tuple[str, Enum, FrozenSet[UserRole]]] = None
    side_effect: Optional[str] = None


def _states(*members: Enum) -> FrozenSet[Enum]:
    return frozenset(members)


Q, I, P, G, S = QuotationStatus, InvoiceStatus, PurchaseOrderStatus, GRNStatus, SupplierPaymentStatus
A = WorkflowAction

TRANSITIONS: Dict[Tuple[DocumentKind, WorkflowAction], TransitionRule] = {
    # --- Quotation ---
    (DocumentKind.QUOTATION, A.SEND): TransitionRule(_states(Q.DRAFT), Q.SENT),
    (DocumentKind.QUOTATION, A.APPROVE): TransitionRule(_states(Q.SENT), Q.APPROVED, SUPERVISORS),
    (DocumentKind.QUOTATION, A.REJECT): TransitionRule(_states(Q.SENT, Q.APPROVED), Q.REJECTED, SUPERVISORS),
    (DocumentKind.QUOTATION, A.EXPIRE): TransitionRule(_states(Q.DRAFT, Q.SENT, Q.APPROVED), Q.EXPIRED),
    (DocumentKind.QUOTATION, A.CONVERT): TransitionRule(
        _states(Q.APPROVED), Q.CONVERTED, SUPERVISORS,
        blocked_by_flags=("converted_to_invoice",), side_effect="create_invoice"),
    (DocumentKind.QUOTATION, A.EDIT): TransitionRule(_states(Q.DRAFT, Q.SENT)),
    (DocumentKind.QUOTATION, A.DELETE): TransitionRule(
        _states(Q.DRAFT, Q.SENT, Q.APPROVED, Q.REJECTED, Q.EXPIRED), None, ADMIN_ONLY,
        blocked_by_flags=("converted_to_invoice",)),

    # --- Invoice ---
    (DocumentKind.INVOICE, A.SEND): TransitionRule(_states(I.DRAFT), I.SENT),
    (DocumentKind.INVOICE, A.RECORD_PAYMENT): TransitionRule(_states(I.SENT, I.PARTIAL, I.OVERDUE)),
    (DocumentKind.INVOICE, A.CANCEL): TransitionRule(
        _states(I.DRAFT, I.SENT, I.PARTIAL, I.OVERDUE), I.CANCELLED, SUPERVISORS),
    (DocumentKind.INVOICE, A.APPROVE): TransitionRule(
        _states(ApprovalStatus.PENDING), ApprovalStatus.APPROVED, SUPERVISORS, state_field="approval_status"),
    (DocumentKind.INVOICE, A.REJECT): TransitionRule(
        _states(ApprovalStatus.PENDING), ApprovalStatus.REJECTED, SUPERVISORS, state_field="approval_status"),
    (DocumentKind.INVOICE, A.EDIT): TransitionRule(
        _states(I.DRAFT, I.SENT, I.PARTIAL, I.OVERDUE),
        restricted_when=("approval_status", ApprovalStatus.APPROVED, ADMIN_ONLY)),
    (DocumentKind.INVOICE, A.DELETE): TransitionRule(_states(I.DRAFT, I.CANCELLED), None, ADMIN_ONLY),

    # --- Purchase order ---
    (DocumentKind.PURCHASE_ORDER, A.APPROVE): TransitionRule(_states(P.DRAFT), P.APPROVED, SUPERVISORS),
    (DocumentKind.PURCHASE_ORDER, A.SEND): TransitionRule(_states(P.APPROVED), P.SENT),
    (DocumentKind.PURCHASE_ORDER, A.COMPLETE): TransitionRule(_states(P.APPROVED, P.SENT), P.COMPLETED),
    (DocumentKind.PURCHASE_ORDER, A.CANCEL): TransitionRule(
        _states(P.APPROVED, P.SENT), P.CANCELLED, SUPERVISORS, blocked_by_flags=("converted_to_grn",)),
    (DocumentKind.PURCHASE_ORDER, A.CONVERT): TransitionRule(
        _states(P.APPROVED, P.SENT), P.CONVERTED, SUPERVISORS,
        blocked_by_flags=("converted_to_grn",), side_effect="create_grn"),
    (DocumentKind.PURCHASE_ORDER, A.EDIT): TransitionRule(
        _states(P.DRAFT), blocked_by_flags=("converted_to_grn",)),
    (DocumentKind.PURCHASE_ORDER, A.DELETE): TransitionRule(
        _states(P.DRAFT), None, ADMIN_ONLY, blocked_by_flags=("converted_to_grn",)),

    # --- Goods receipt note ---
    (DocumentKind.GRN, A.INSPECT): TransitionRule(_states(G.DRAFT), G.INSPECTED),
    (DocumentKind.GRN, A.APPROVE): TransitionRule(_states(G.INSPECTED), G.APPROVED, SUPERVISORS),
    (DocumentKind.GRN, A.REJECT): TransitionRule(_states(G.DRAFT, G.INSPECTED), G.REJECTED, SUPERVISORS),
    (DocumentKind.GRN, A.UPDATE_STOCK): TransitionRule(
        _states(G.APPROVED), G.COMPLETED, blocked_by_flags=("stock_updated",), side_effect="update_stock"),
    (DocumentKind.GRN, A.MATCH_INVOICE): TransitionRule(_states(G.INSPECTED, G.APPROVED, G.COMPLETED)),
    (DocumentKind.GRN, A.EDIT): TransitionRule(
        _states(G.DRAFT, G.INSPECTED, G.APPROVED, G.COMPLETED),
        restricted_when=("status", G.COMPLETED, ADMIN_ONLY)),
    (DocumentKind.GRN, A.DELETE): TransitionRule(_states(G.DRAFT), None, ADMIN_ONLY),

    # --- Supplier payment ---
    (DocumentKind.SUPPLIER_PAYMENT, A.APPROVE): TransitionRule(_states(S.DRAFT), S.APPROVED, ADMIN_ONLY),
    (DocumentKind.SUPPLIER_PAYMENT, A.MARK_PAID): TransitionRule(_states(S.APPROVED), S.PAID, ADMIN_ONLY),
    (DocumentKind.SUPPLIER_PAYMENT, A.EDIT): TransitionRule(_states(S.DRAFT), None, ADMIN_ONLY),
    (DocumentKind.SUPPLIER_PAYMENT, A.DELETE): TransitionRule(_states(S.DRAFT), None, ADMIN_ONLY),
}

del Q, I, P, G, S, A


def to_role(role: Union[UserRole, str, None]) -> UserRole:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(r.value for r in UserRole)}") from None


def get_rule(kind: DocumentKind, action: WorkflowAction) -> TransitionRule:
    rule = TRANSITIONS.get((kind, action))
    if rule is None:
        raise PreconditionFailed(f"Action '{action.value}' is not defined for {kind.value} documents.", guard="action")
    return rule


def _check(kind: DocumentKind, action: WorkflowAction, role: UserRole,
           state: Enum, document: Any = None) -> Optional[PreconditionFailed]:
    rule = get_rule(kind, action)
    label = kind.value.replace("_", " ")

    if state not in rule.from_states:
        allowed = ", ".join(sorted(s.value for s in rule.from_states))
        return PreconditionFailed(
            f"Cannot {action.value} a {label} in '{state.value}' state (allowed: {allowed}).", guard="state")

    if role not in rule.allowed_roles:
        return PreconditionFailed(
            f"Role '{role.value}' is not allowed to {action.value} a {label}.", guard="role")

    if document is not None:
        if rule.restricted_when is not None:
            field_name, value, roles = rule.restricted_when
            if getattr(document, field_name, None) == value and role not in roles:
                return PreconditionFailed(
                    f"Only {'/'.join(sorted(r.value for r in roles))} can {action.value} a {label} "
                    f"whose {field_name} is '{value.value}'.", guard="role")
        for flag in rule.blocked_by_flags:
            if getattr(document, flag, False):
                return PreconditionFailed(
                    f"Cannot {action.value} this {label}: {flag.replace('_', ' ')} is already set.", guard=flag)
    return None


def can_perform(kind: DocumentKind, action: WorkflowAction, role: Union[UserRole, str],
                state: Enum, document: Any = None) -> bool:
    """Authorization check used instead of scattering role/state tests through callers."""
    if (kind, action) not in TRANSITIONS:
        return False
    return _check(kind, action, to_role(role), state, document) is None


def require(kind: DocumentKind, action: WorkflowAction, role: Union[UserRole, str], document: Any) -> TransitionRule:
    """Returns the rule if `document` may undergo `action`, raises PreconditionFailed otherwise."""
    rule = get_rule(kind, action)
    state = getattr(document, rule.state_field)
    failure = _check(kind, action, to_role(role), state, document)
    if failure is not None:
        logger.warning(f"Rejected {kind.value}.{action.value} on ID {getattr(document, 'id', None)}: {failure} (guard={failure.guard})")
        raise failure
    return rule


def apply(kind: DocumentKind, action: WorkflowAction, role: Union[UserRole, str], document: Any) -> Optional[Enum]:
    """Validates the transition and moves `document` to the rule's target state (in memory only)."""
    rule = require(kind, action, role, document)
    if rule.to_state is not None:
        previous = getattr(document, rule.state_field)
        setattr(document, rule.state_field, rule.to_state)
        logger.debug(f"{kind.value} ID {getattr(document, 'id', None)}: {rule.state_field} {previous.value} -> {rule.to_state.value}")
    return rule.to_state


def allowed_actions(kind: DocumentKind, role: Union[UserRole, str], document: Any) -> List[WorkflowAction]:
    """Actions the given role may perform on `document` right now."""
    actions = []
    for (rule_kind, action), rule in TRANSITIONS.items():
        if rule_kind is not kind:
            continue
        if _check(kind, action, to_role(role), getattr(document, rule.state_field), document) is None:
            actions.append(action)
    return actions


def effective_invoice_status(invoice: Any, today: Optional[date] = None) -> InvoiceStatus:
    """An unpaid invoice past its due date reads as overdue, whatever its stored status."""
    today = today or date.today()
    status = invoice.status
    if status in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED, InvoiceStatus.DRAFT):
        return status
    if invoice.due_date is not None and invoice.due_date < today:
        return InvoiceStatus.OVERDUE
    return status
