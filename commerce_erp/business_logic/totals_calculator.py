# commerce_erp/business_logic/totals_calculator.py

"""
Document totals for quotations, invoices and purchase orders.

The order of operations is fixed: per-line discounts first, then the
overall discount on what remains, then every tax on the same discounted
base (taxes are summed, not compounded).
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from commerce_erp.business_logic.exceptions import ValidationError
from commerce_erp.constants import HUNDRED, MONEY_TOLERANCE, ZERO
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    item_discounts_total: Decimal
    overall_discount_amount: Decimal
    discount_amount: Decimal
    final_subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    line_totals: tuple = ()


def to_decimal(value: Any) -> Decimal:
    """None, '' and unparsable values become 0."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        logger.debug(f"Coercing non-numeric value {value!r} to 0")
        return ZERO


def _non_negative(value: Any) -> Decimal:
    return max(to_decimal(value), ZERO)


def _percent(value: Any) -> Decimal:
    return min(max(to_decimal(value), ZERO), HUNDRED)


def _read(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def calculate_line_total(quantity: Any, unit_price: Any, discount_percent: Any) -> Decimal:
    item_total = _non_negative(quantity) * _non_negative(unit_price)
    return item_total - item_total * _percent(discount_percent) / HUNDRED


def calculate_totals(items: Optional[Iterable[Any]],
                     overall_discount_percent: Any = None,
                     taxes: Optional[Iterable[Any]] = None) -> DocumentTotals:
    """
    Computes the totals of a commercial document.

    `items` are LineItemEntity objects or dicts with quantity, unit_price and
    discount_percent. `taxes` are TaxEntity objects, dicts with a `value`, or
    bare percentages. Never raises: missing values count as 0, percentages are
    clamped to [0, 100] and negative amounts to 0.
    """
    subtotal = ZERO
    item_discounts_total = ZERO
    line_totals: List[Decimal] = []

    for item in items or []:
        item_total = _non_negative(_read(item, "quantity")) * _non_negative(_read(item, "unit_price"))
        item_discount = item_total * _percent(_read(item, "discount_percent")) / HUNDRED
        subtotal += item_total
        item_discounts_total += item_discount
        line_totals.append(item_total - item_discount)

    after_item_discount = max(subtotal - item_discounts_total, ZERO)
    overall_discount_amount = after_item_discount * _percent(overall_discount_percent) / HUNDRED
    final_subtotal = max(after_item_discount - overall_discount_amount, ZERO)

    tax_amount = ZERO
    for tax in taxes or []:
        rate = tax if isinstance(tax, (int, float, Decimal, str)) else _read(tax, "value")
        tax_amount += final_subtotal * _percent(rate) / HUNDRED

    return DocumentTotals(
        subtotal=subtotal,
        item_discounts_total=item_discounts_total,
        overall_discount_amount=overall_discount_amount,
        discount_amount=item_discounts_total + overall_discount_amount,
        final_subtotal=final_subtotal,
        tax_amount=tax_amount,
        total=final_subtotal + tax_amount,
        line_totals=tuple(line_totals),
    )


def verify_submitted_totals(submitted: Optional[dict], computed: DocumentTotals,
                            tolerance: Decimal = MONEY_TOLERANCE) -> None:
    """Rejects client-computed figures that disagree with the server-side totals."""
    if not submitted:
        return
    for key in ("subtotal", "discount_amount", "tax_amount", "total"):
        if submitted.get(key) is None:
            continue
        claimed = to_decimal(submitted[key])
        expected = getattr(computed, key)
        if abs(claimed - expected) > tolerance:
            logger.warning(f"Submitted {key}={claimed} disagrees with computed {expected}")
            raise ValidationError(
                f"Submitted {key} ({claimed}) does not match the calculated value ({expected})."
            )
