# commerce_erp/business_logic/line_items.py

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from commerce_erp.business_logic.entities.line_item_entity import LineItemEntity
from commerce_erp.business_logic.exceptions import ValidationError
from commerce_erp.business_logic.product_manager import ProductManager
from commerce_erp.business_logic.totals_calculator import DocumentTotals, calculate_totals
from commerce_erp.utils.date_converter import GREGORIAN, JALALI, parse_iso_date, to_gregorian_date


def _number(value: Any, label: str, row: int) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Item {row}: invalid {label} {value!r}.") from None


def parse_percent(value: Any, label: str = "discount") -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        percent = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid {label} {value!r}.") from None
    if percent < 0 or percent > 100:
        raise ValidationError(f"{label.capitalize()} must be between 0 and 100.")
    return percent


def parse_date(value: Any, label: str = "date", calendar: str = GREGORIAN) -> Optional[date]:
    """
    Accepts a date or an ISO string; None and '' stay None. YYYY/MM/DD strings
    are read in the given calendar, so they are Jalali only when asked for.
    """
    if isinstance(value, str) and "/" in value:
        text = value.strip()
        if calendar == JALALI:
            converted = to_gregorian_date(text)
        else:
            try:
                converted = datetime.strptime(text, "%Y/%m/%d").date()
            except ValueError:
                converted = None
        if converted is None:
            raise ValidationError(f"Invalid {label}: {value!r}")
        return converted
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value!r}") from None


def build_line_items(items_data: Optional[List[Dict[str, Any]]],
                     product_manager: ProductManager) -> List[LineItemEntity]:
    """
    Validates request rows into LineItemEntity objects. Rows reference a
    product (whose name and price fill in blanks) or carry a free-text
    description; quantity must be positive.
    """
    if not items_data:
        raise ValidationError("At least one item is required.")

    items = []
    for row, data in enumerate(items_data, start=1):
        product_id = data.get("product_id")
        description = data.get("description")
        unit_price = data.get("unit_price")

        if product_id is not None:
            product = product_manager.require_product(product_id)
            description = description or product.name
            if unit_price is None:
                unit_price = product.unit_price
        elif not description:
            raise ValidationError(f"Item {row}: a product or a description is required.")

        quantity = _number(data.get("quantity"), "quantity", row)
        if quantity <= 0:
            raise ValidationError(f"Item {row}: quantity must be greater than zero.")
        price = _number(unit_price if unit_price is not None else 0, "unit price", row)
        if price < 0:
            raise ValidationError(f"Item {row}: unit price cannot be negative.")
        discount = parse_percent(data.get("discount_percent", data.get("discount")), f"item {row} discount")

        items.append(LineItemEntity(product_id=product_id, description=description,
                                    quantity=quantity, unit_price=price, discount_percent=discount))
    return items


def apply_totals(document: Any, totals: DocumentTotals) -> None:
    """Copies computed totals onto a document and its items."""
    for item, line_total in zip(document.items, totals.line_totals):
        item.line_total = line_total
    document.subtotal = totals.subtotal
    document.discount_amount = totals.discount_amount
    document.tax_amount = totals.tax_amount
    document.total = totals.total


def price_document(document: Any, taxes: List[Any]) -> DocumentTotals:
    totals = calculate_totals(document.items, document.discount_percent, taxes)
    apply_totals(document, totals)
    return totals


def load_children(document: Any, items_repository: Any, taxes_repository: Any, document_type: str) -> Any:
    """Fills `items` and `tax_ids`, which live in their own tables."""
    document.items = items_repository.get_by_document_id(document.id)
    document.tax_ids = taxes_repository.get_tax_ids(document_type, document.id)
    return document


def save_children(document: Any, items_repository: Any, taxes_repository: Any, document_type: str) -> None:
    document.items = items_repository.replace_items(document.id, document.items)
    taxes_repository.set_tax_ids(document_type, document.id, document.tax_ids)


def delete_children(document: Any, items_repository: Any, taxes_repository: Any, document_type: str) -> None:
    items_repository.delete_by_document_id(document.id)
    taxes_repository.delete_for_document(document_type, document.id)
