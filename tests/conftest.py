"""Shared fixtures: a fresh application on a temporary database per test."""

from datetime import date

import pytest

from commerce_erp.constants import PersonType, TaxType, UserRole
from commerce_erp.main_app import ErpApplication


@pytest.fixture
def app(tmp_path):
    return ErpApplication(str(tmp_path / "erp_test.db"))


@pytest.fixture
def customer(app):
    return app.person_manager.add_person("Acme Retail", PersonType.CUSTOMER, email="buy@acme.test")


@pytest.fixture
def supplier(app):
    return app.person_manager.add_person("Lanka Supplies", PersonType.SUPPLIER, phone="0112345678")


@pytest.fixture
def product(app):
    return app.product_manager.add_product("Steel bolt", sku="BOLT-01", unit_price="100", unit_of_measure="pcs")


@pytest.fixture
def second_product(app):
    return app.product_manager.add_product("Washer", sku="WSH-01", unit_price="5")


@pytest.fixture
def vat(app):
    return app.tax_manager.add_tax("VAT", "18", TaxType.VAT)


@pytest.fixture
def approved_po(app, supplier, product):
    """A purchase order for 10 bolts at 100, approved by a manager."""
    po = app.po_manager.create_purchase_order(
        supplier_id=supplier.id,
        items_data=[{"product_id": product.id, "quantity": 10, "unit_price": 100}],
        po_date=date(2025, 3, 1),
        expected_delivery_date=date(2025, 3, 10),
    )
    return app.po_manager.approve_purchase_order(po.id, UserRole.MANAGER)
