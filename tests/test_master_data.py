"""Persons, products, taxes and company settings."""

from decimal import Decimal

import pytest

from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.constants import PersonType, TaxType, UserRole


def test_person_type_is_checked(app, customer, supplier):
    assert app.person_manager.require_person(customer.id, PersonType.CUSTOMER).name == "Acme Retail"
    with pytest.raises(ValidationError):
        app.person_manager.require_person(customer.id, PersonType.SUPPLIER)
    with pytest.raises(NotFoundError):
        app.person_manager.require_person(999)
    assert [p.id for p in app.person_manager.get_persons_by_type(PersonType.SUPPLIER)] == [supplier.id]


def test_deactivated_person_drops_from_active_list(app, customer):
    app.person_manager.deactivate_person(customer.id)
    assert app.person_manager.get_persons_by_type(PersonType.CUSTOMER, active_only=True) == []


def test_product_sku_is_unique(app, product):
    with pytest.raises(ValidationError, match="SKU"):
        app.product_manager.add_product("Other bolt", sku="BOLT-01")
    with pytest.raises(ValidationError):
        app.product_manager.add_product("Cheap bolt", unit_price=-1)
    assert app.product_manager.update_product(product.id, unit_price="120").unit_price == Decimal("120")


def test_only_one_default_tax(app):
    first = app.tax_manager.add_tax("VAT", 18, TaxType.VAT, is_default=True)
    second = app.tax_manager.add_tax("Local", 2, TaxType.LOCAL_TAX, is_default=True)
    assert [t.id for t in app.tax_manager.get_default_taxes()] == [second.id]
    assert app.tax_manager.require_tax(first.id).is_default is False


def test_tax_value_range_and_disabled_taxes(app):
    with pytest.raises(ValidationError):
        app.tax_manager.add_tax("Bad", 101)
    tax = app.tax_manager.add_tax("Old levy", 3, enabled=False)
    with pytest.raises(ValidationError, match="disabled"):
        app.tax_manager.resolve_taxes([tax.id])
    with pytest.raises(NotFoundError):
        app.tax_manager.resolve_taxes([999])


def test_company_settings(app):
    settings = app.settings_manager.get_company_settings()
    assert settings["currency"] == "LKR"
    assert settings["invoice_due_days"] == 30
    assert settings["prefixes"]["grn"] == "GRN-"

    with pytest.raises(PreconditionFailed):
        app.settings_manager.update_company_settings(UserRole.MANAGER, company_name="X")
    with pytest.raises(ValidationError):
        app.settings_manager.update_company_settings(UserRole.ADMIN, display_calendar="lunar")

    updated = app.settings_manager.update_company_settings(
        UserRole.ADMIN, company_name="Kandy Traders", display_calendar="jalali")
    assert updated["company_name"] == "Kandy Traders"
    assert updated["display_calendar"] == "jalali"


def test_default_terms_and_notes(app):
    assert app.settings_manager.get_default_terms() == {
        "default_terms": "Payment due within 30 days.",
        "default_notes": "Thank you for your business!",
    }
    with pytest.raises(PreconditionFailed) as exc_info:
        app.settings_manager.update_default_terms(UserRole.MANAGER, default_terms="Net 15")
    assert exc_info.value.guard == "role"

    updated = app.settings_manager.update_default_terms(UserRole.ADMIN, default_terms="Net 15")
    assert updated["default_terms"] == "Net 15"
    assert updated["default_notes"] == "Thank you for your business!"
    assert app.settings_manager.get_default_terms()["default_terms"] == "Net 15"
