# commerce_erp/business_logic/product_manager.py

from decimal import Decimal, InvalidOperation
from typing import Optional, List, Any
from commerce_erp.business_logic.entities.product_entity import ProductEntity
from commerce_erp.business_logic.exceptions import ValidationError, NotFoundError
from commerce_erp.data_access.products_repository import ProductsRepository
import logging

logger = logging.getLogger(__name__)

class ProductManager:
    def __init__(self, products_repository: ProductsRepository):
        if products_repository is None:
            raise ValueError("products_repository cannot be None")
        self.products_repository = products_repository

    def _price(self, value: Any) -> Decimal:
        try:
            price = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"Invalid unit price: {value!r}") from None
        if price < 0:
            raise ValidationError("Unit price cannot be negative.")
        return price

    def add_product(self, name: str, sku: Optional[str] = None, unit_price: Any = 0,
                    unit_of_measure: Optional[str] = None, description: Optional[str] = None) -> ProductEntity:
        if not name or not name.strip():
            raise ValidationError("Product name is required.")
        if sku and self.products_repository.get_by_sku(sku):
            raise ValidationError(f"A product with SKU '{sku}' already exists.")

        product = ProductEntity(name=name.strip(), sku=sku or None, unit_price=self._price(unit_price),
                                unit_of_measure=unit_of_measure, description=description)
        created = self.products_repository.add(product)
        logger.info(f"Product '{created.name}' (ID: {created.id}) added.")
        return created

    def update_product(self, product_id: int, **changes) -> ProductEntity:
        product = self.require_product(product_id)
        if "sku" in changes and changes["sku"] and changes["sku"] != product.sku:
            existing = self.products_repository.get_by_sku(changes["sku"])
            if existing and existing.id != product_id:
                raise ValidationError(f"A product with SKU '{changes['sku']}' already exists.")
        if "unit_price" in changes:
            changes["unit_price"] = self._price(changes["unit_price"])
        for key in ("name", "sku", "unit_price", "unit_of_measure", "description", "is_active"):
            if key in changes:
                setattr(product, key, changes[key])
        self.products_repository.update(product)
        logger.info(f"Product ID {product_id} updated.")
        return product

    def deactivate_product(self, product_id: int) -> ProductEntity:
        return self.update_product(product_id, is_active=False)

    def get_product_by_id(self, product_id: int) -> Optional[ProductEntity]:
        return self.products_repository.get_by_id(product_id)

    def require_product(self, product_id: int) -> ProductEntity:
        product = self.products_repository.get_by_id(product_id)
        if product is None:
            logger.warning(f"Product with ID {product_id} not found.")
            raise NotFoundError(f"Product with ID {product_id} not found.")
        return product

    def get_all_products(self, active_only: bool = False) -> List[ProductEntity]:
        if active_only:
            return self.products_repository.find_by_criteria({"is_active": True}, order_by="name")
        return self.products_repository.get_all(order_by="name")

    def search_products(self, name_query: str) -> List[ProductEntity]:
        return self.products_repository.search_by_name(name_query)
