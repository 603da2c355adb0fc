# commerce_erp/business_logic/dashboard_manager.py

from calendar import monthrange
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from commerce_erp.business_logic.exceptions import PreconditionFailed
from commerce_erp.business_logic.person_manager import PersonManager
from commerce_erp.business_logic.product_manager import ProductManager
from commerce_erp.business_logic.workflow import to_role
from commerce_erp.data_access.grns_repository import GRNsRepository
from commerce_erp.data_access.invoices_repository import InvoicesRepository
from commerce_erp.data_access.payments_repository import PaymentsRepository
from commerce_erp.data_access.quotations_repository import QuotationsRepository
from commerce_erp.data_access.stock_repository import StockRepository
from commerce_erp.constants import GRNStatus, InvoiceStatus, PersonType, QuotationStatus, UserRole
import logging

logger = logging.getLogger(__name__)

UNPAID_STATES = (InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE)
PENDING_GRN_STATES = (GRNStatus.DRAFT, GRNStatus.INSPECTED)
TOP_CUSTOMERS_LIMIT = 10


def month_bounds(today: date) -> Tuple[date, date]:
    return today.replace(day=1), today.replace(day=monthrange(today.year, today.month)[1])


def _sum(values) -> Decimal:
    return sum(values, Decimal("0"))


class DashboardManager:
    """Company-wide figures for the admin dashboard. Read-only."""

    def __init__(self,
                 invoices_repository: InvoicesRepository,
                 quotations_repository: QuotationsRepository,
                 payments_repository: PaymentsRepository,
                 grns_repository: GRNsRepository,
                 stock_repository: StockRepository,
                 person_manager: PersonManager,
                 product_manager: ProductManager):
        if invoices_repository is None: raise ValueError("invoices_repository cannot be None")
        if quotations_repository is None: raise ValueError("quotations_repository cannot be None")
        if payments_repository is None: raise ValueError("payments_repository cannot be None")
        if grns_repository is None: raise ValueError("grns_repository cannot be None")
        if stock_repository is None: raise ValueError("stock_repository cannot be None")
        if person_manager is None: raise ValueError("person_manager cannot be None")
        if product_manager is None: raise ValueError("product_manager cannot be None")

        self.invoices_repository = invoices_repository
        self.quotations_repository = quotations_repository
        self.payments_repository = payments_repository
        self.grns_repository = grns_repository
        self.stock_repository = stock_repository
        self.person_manager = person_manager
        self.product_manager = product_manager

    def _require_admin(self, role: Union[UserRole, str]) -> None:
        if to_role(role) != UserRole.ADMIN:
            raise PreconditionFailed("Only admin can view dashboard statistics.", guard="role")

    def get_stats(self, role: Union[UserRole, str], today: Optional[date] = None) -> Dict[str, Any]:
        """
        Invoice and quotation totals, this month's activity, status
        breakdowns, stock alerts and value, and GRN progress. "This month"
        is the calendar month of `today`, judged by each document's own date.
        """
        self._require_admin(role)
        today = today or date.today()
        first_day, last_day = month_bounds(today)
        logger.info(f"Building dashboard stats for {first_day:%Y-%m}.")

        invoices = self.invoices_repository.get_all()
        quotations = self.quotations_repository.get_all()
        invoices_month = [i for i in invoices if first_day <= i.invoice_date <= last_day]
        quotes_month = [q for q in quotations if first_day <= q.quotation_date <= last_day]
        payments_month = self.payments_repository.find_by_criteria(
            {"payment_date": ("BETWEEN", (first_day, last_day))})

        stats: Dict[str, Any] = {
            "paid_invoice": _sum(i.total for i in invoices if i.status == InvoiceStatus.PAID),
            "unpaid_invoice": _sum(i.balance_amount for i in invoices if i.status in UNPAID_STATES),
            "draft_invoice": _sum(i.total for i in invoices if i.status == InvoiceStatus.DRAFT),
            "invoices_this_month": _sum(i.total for i in invoices_month),
            "invoices_this_month_count": len(invoices_month),
            "quotes_this_month": _sum(q.total for q in quotes_month),
            "quotes_this_month_count": len(quotes_month),
            "payments_this_month": _sum(p.amount for p in payments_month),
            "payments_this_month_count": len(payments_month),
            "invoices_by_status": self._by_status(invoices, InvoiceStatus),
            "quotes_by_status": self._by_status(quotations, QuotationStatus),
            "total_customers": len(self.person_manager.get_persons_by_type(PersonType.CUSTOMER)),
        }
        stats.update(self.get_stock_stats())
        stats.update(self._grn_stats(first_day, last_day))
        return stats

    @staticmethod
    def _by_status(documents: List[Any], status_enum) -> Dict[str, Dict[str, Any]]:
        breakdown = {status.value: {"count": 0, "total": Decimal("0")} for status in status_enum}
        for doc in documents:
            entry = breakdown[doc.status.value]
            entry["count"] += 1
            entry["total"] += doc.total
        return breakdown

    def get_stock_stats(self) -> Dict[str, Any]:
        rows = self.stock_repository.get_all()
        low = [s for s in rows if s.is_low_stock]
        reorder = [s for s in rows if s.needs_reorder and not s.is_low_stock]

        prices: Dict[int, Decimal] = {}
        for stock in rows:
            if stock.product_id not in prices:
                product = self.product_manager.get_product_by_id(stock.product_id)
                prices[stock.product_id] = product.unit_price if product else Decimal("0")

        return {
            "total_stock_items": len(rows),
            "low_stock_count": len(low),
            "reorder_count": len(reorder),
            "total_stock_value": _sum(s.quantity * prices[s.product_id] for s in rows),
        }

    def _grn_stats(self, first_day: date, last_day: date) -> Dict[str, Any]:
        grns = self.grns_repository.get_all()
        completed_month = [g for g in grns
                           if g.status == GRNStatus.COMPLETED and first_day <= g.grn_date <= last_day]
        return {
            "total_grns": len(grns),
            "pending_grns": sum(1 for g in grns if g.status in PENDING_GRN_STATES),
            "completed_grns_this_month": len(completed_month),
            "grn_value_this_month": _sum(g.total_value for g in completed_month),
        }

    def get_metrics(self, role: Union[UserRole, str],
                    start_date: Optional[date] = None,
                    end_date: Optional[date] = None) -> Dict[str, Any]:
        """Paid sales per day over a period (default: the last 30 days) and the top customers by paid revenue."""
        self._require_admin(role)
        end_date = end_date or date.today()
        start_date = start_date or end_date - timedelta(days=30)

        paid = self.invoices_repository.find_by_criteria({"status": InvoiceStatus.PAID})

        sales_by_day: Dict[str, Dict[str, Any]] = {}
        for invoice in sorted(paid, key=lambda i: i.invoice_date):
            if not start_date <= invoice.invoice_date <= end_date:
                continue
            day = sales_by_day.setdefault(invoice.invoice_date.isoformat(), {"total": Decimal("0"), "count": 0})
            day["total"] += invoice.total
            day["count"] += 1

        per_customer: Dict[int, Dict[str, Any]] = {}
        for invoice in paid:
            entry = per_customer.setdefault(invoice.customer_id, {"total": Decimal("0"), "count": 0})
            entry["total"] += invoice.total
            entry["count"] += 1
        top_customers = []
        for customer_id, entry in sorted(per_customer.items(), key=lambda kv: kv[1]["total"], reverse=True):
            customer = self.person_manager.get_person_by_id(customer_id)
            top_customers.append({"customer_id": customer_id,
                                  "name": customer.name if customer else None, **entry})
            if len(top_customers) == TOP_CUSTOMERS_LIMIT:
                break

        return {"sales_by_day": sales_by_day, "top_customers": top_customers}
