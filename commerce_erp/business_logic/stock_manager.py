# commerce_erp/business_logic/stock_manager.py

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from commerce_erp.business_logic.entities.stock_entity import StockEntity
from commerce_erp.business_logic.entities.stock_transaction_entity import StockTransactionEntity
from commerce_erp.business_logic.exceptions import ValidationError, NotFoundError
from commerce_erp.business_logic.product_manager import ProductManager
from commerce_erp.data_access.database_manager import DatabaseManager
from commerce_erp.data_access.stock_repository import StockRepository, StockTransactionsRepository
from commerce_erp.config import DEFAULT_STOCK_LOCATION
from commerce_erp.constants import StockTransactionType, ReferenceType
import logging

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = (
    StockTransactionType.ADJUSTMENT, StockTransactionType.STOCK_IN, StockTransactionType.STOCK_OUT,
    StockTransactionType.DAMAGE, StockTransactionType.LOSS, StockTransactionType.EXPIRY,
)


def _quantity(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid quantity: {value!r}") from None


class StockManager:
    """Stock levels per (product, location); every change leaves a StockTransaction behind."""

    def __init__(self,
                 stock_repository: StockRepository,
                 stock_transactions_repository: StockTransactionsRepository,
                 product_manager: ProductManager,
                 db_manager: DatabaseManager):
        if stock_repository is None: raise ValueError("stock_repository cannot be None")
        if stock_transactions_repository is None: raise ValueError("stock_transactions_repository cannot be None")
        if product_manager is None: raise ValueError("product_manager cannot be None")
        if db_manager is None: raise ValueError("db_manager cannot be None")

        self.stock_repository = stock_repository
        self.stock_transactions_repository = stock_transactions_repository
        self.product_manager = product_manager
        self.db_manager = db_manager

    def get_or_create_stock(self, product_id: int, location: str = DEFAULT_STOCK_LOCATION) -> StockEntity:
        stock = self.stock_repository.get_by_product_and_location(product_id, location)
        if stock is None:
            self.product_manager.require_product(product_id)
            stock = self.stock_repository.add(StockEntity(product_id=product_id, location=location))
            logger.info(f"Stock record created for product {product_id} at '{location}'.")
        return stock

    def receive_stock(self, product_id: int, quantity: Any,
                      location: str = DEFAULT_STOCK_LOCATION,
                      transaction_type: StockTransactionType = StockTransactionType.STOCK_IN,
                      reference_type: Optional[ReferenceType] = None,
                      reference_id: Optional[int] = None,
                      reference_number: Optional[str] = None,
                      unit_price: Optional[Decimal] = None,
                      reason: Optional[str] = None) -> StockTransactionEntity:
        """Adds goods to a location, creating the stock row on first receipt."""
        qty = _quantity(quantity)
        if qty <= 0:
            raise ValidationError("Received quantity must be greater than zero.")

        with self.db_manager.transaction():
            stock = self.get_or_create_stock(product_id, location)
            balance_before = stock.quantity
            stock.quantity = balance_before + qty
            self.stock_repository.update(stock)

            transaction = StockTransactionEntity(
                transaction_type=transaction_type,
                product_id=product_id,
                quantity=qty,
                balance_before=balance_before,
                balance_after=stock.quantity,
                transaction_date=datetime.now(),
                to_location=location,
                reference_type=reference_type,
                reference_id=reference_id,
                reference_number=reference_number,
                unit_price=unit_price,
                total_value=qty * unit_price if unit_price is not None else None,
                reason=reason,
            )
            self.stock_transactions_repository.add(transaction)

        logger.info(f"Received {qty} of product {product_id} at '{location}' ({balance_before} -> {stock.quantity}).")
        return transaction

    def adjust_stock(self, product_id: int, quantity_change: Any,
                     location: str = DEFAULT_STOCK_LOCATION,
                     transaction_type: StockTransactionType = StockTransactionType.ADJUSTMENT,
                     reason: Optional[str] = None) -> Tuple[StockEntity, StockTransactionEntity]:
        """Manual correction, damage, loss or expiry. A negative change removes stock."""
        change = _quantity(quantity_change)
        if change == 0:
            raise ValidationError("Adjustment quantity cannot be zero.")
        if transaction_type not in ADJUSTMENT_TYPES:
            raise ValidationError(f"'{transaction_type.value}' is not an adjustment type.")

        with self.db_manager.transaction():
            stock = self.stock_repository.get_by_product_and_location(product_id, location)
            if stock is None:
                raise NotFoundError(f"Stock not found for product {product_id} at '{location}'.")

            balance_before = stock.quantity
            balance_after = balance_before + change
            if balance_after < 0:
                raise ValidationError(
                    f"Insufficient stock for this adjustment: {balance_before} available, {-change} requested.")

            stock.quantity = balance_after
            self.stock_repository.update(stock)
            transaction = self.stock_transactions_repository.add(StockTransactionEntity(
                transaction_type=transaction_type,
                product_id=product_id,
                quantity=abs(change),
                balance_before=balance_before,
                balance_after=balance_after,
                transaction_date=datetime.now(),
                to_location=location if change > 0 else None,
                from_location=location if change < 0 else None,
                reference_type=ReferenceType.ADJUSTMENT,
                reference_number=f"ADJ-{int(datetime.now().timestamp() * 1000)}",
                reason=reason,
            ))

        logger.info(f"Stock of product {product_id} at '{location}' adjusted by {change} ({transaction_type.value}).")
        return stock, transaction

    def transfer_stock(self, product_id: int, quantity: Any, from_location: str, to_location: str,
                       reason: Optional[str] = None) -> StockTransactionEntity:
        qty = _quantity(quantity)
        if qty <= 0:
            raise ValidationError("Transfer quantity must be greater than zero.")
        if not from_location or not to_location or from_location == to_location:
            raise ValidationError("Transfer needs two different locations.")

        with self.db_manager.transaction():
            source = self.stock_repository.get_by_product_and_location(product_id, from_location)
            if source is None:
                raise NotFoundError(f"Stock not found for product {product_id} at source location '{from_location}'.")
            if source.quantity < qty:
                raise ValidationError(
                    f"Insufficient stock for transfer: {source.quantity} available at '{from_location}'.")

            balance_before = source.quantity
            source.quantity = balance_before - qty
            self.stock_repository.update(source)

            destination = self.get_or_create_stock(product_id, to_location)
            destination.quantity = destination.quantity + qty
            self.stock_repository.update(destination)

            transaction = self.stock_transactions_repository.add(StockTransactionEntity(
                transaction_type=StockTransactionType.TRANSFER,
                product_id=product_id,
                quantity=qty,
                balance_before=balance_before,
                balance_after=source.quantity,
                transaction_date=datetime.now(),
                from_location=from_location,
                to_location=to_location,
                reference_type=ReferenceType.TRANSFER,
                reference_number=f"TRF-{int(datetime.now().timestamp() * 1000)}",
                reason=reason,
            ))

        logger.info(f"Transferred {qty} of product {product_id} from '{from_location}' to '{to_location}'.")
        return transaction

    def update_levels(self, product_id: int, location: str = DEFAULT_STOCK_LOCATION,
                      min_level: Any = None, reorder_level: Any = None) -> StockEntity:
        stock = self.get_or_create_stock(product_id, location)
        if min_level is not None:
            stock.min_level = _quantity(min_level)
        if reorder_level is not None:
            stock.reorder_level = _quantity(reorder_level)
        if stock.min_level < 0 or stock.reorder_level < 0:
            raise ValidationError("Stock levels cannot be negative.")
        return self.stock_repository.update(stock)

    def get_quantity(self, product_id: int, location: str = DEFAULT_STOCK_LOCATION) -> Decimal:
        stock = self.stock_repository.get_by_product_and_location(product_id, location)
        return stock.quantity if stock else Decimal("0")

    def get_stock_balance(self, product_id: int) -> Dict[str, Any]:
        self.product_manager.require_product(product_id)
        rows = self.stock_repository.get_by_product_id(product_id)
        return {
            "product_id": product_id,
            "total_quantity": sum((s.quantity for s in rows), Decimal("0")),
            "locations": [{"location": s.location, "quantity": s.quantity,
                           "is_low_stock": s.is_low_stock, "needs_reorder": s.needs_reorder} for s in rows],
        }

    def get_low_stock_alerts(self) -> List[StockEntity]:
        """Stock rows at or below their reorder level, lowest first."""
        return self.stock_repository.get_low_stock()

    def get_all_stock(self, location: Optional[str] = None) -> List[StockEntity]:
        if location:
            return self.stock_repository.find_by_criteria({"location": location}, order_by="product_id")
        return self.stock_repository.get_all(order_by="location, product_id")

    def get_transactions(self, product_id: int) -> List[StockTransactionEntity]:
        return self.stock_transactions_repository.get_by_product_id(product_id)
