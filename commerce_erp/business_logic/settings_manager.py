# commerce_erp/business_logic/settings_manager.py

from datetime import date
from typing import Any, Dict, Optional, Union
from commerce_erp.business_logic.entities.setting_entity import SettingEntity
from commerce_erp.business_logic.exceptions import PreconditionFailed, ValidationError
from commerce_erp.business_logic.line_items import parse_date as _parse_date
from commerce_erp.business_logic.workflow import to_role
from commerce_erp.data_access.settings_repository import SettingsRepository
from commerce_erp import config
from commerce_erp.constants import (
    UserRole, DocumentType, SETTING_COMPANY_NAME, SETTING_CURRENCY, SETTING_INVOICE_DUE_DAYS,
    SETTING_DISPLAY_CALENDAR, SETTING_PREFIX_TEMPLATE, SETTING_DEFAULT_TERMS, SETTING_DEFAULT_NOTES
)
from commerce_erp.utils.date_converter import GREGORIAN, JALALI
import logging

logger = logging.getLogger(__name__)

class SettingsManager:
    """Company settings stored as key/value rows, falling back to config defaults."""

    def __init__(self, settings_repository: SettingsRepository):
        if settings_repository is None:
            raise ValueError("settings_repository cannot be None")
        self.settings_repository = settings_repository

    def get(self, key: str, default: Any = None) -> Any:
        setting = self.settings_repository.get_setting(key)
        if setting is None or setting.value in (None, ""):
            return default
        return setting.value

    def set(self, key: str, value: Any) -> SettingEntity:
        logger.info(f"Setting '{key}' updated.")
        return self.settings_repository.set_setting(SettingEntity(key=key, value=value))

    def get_document_prefix(self, doc_type: DocumentType) -> str:
        return self.get(SETTING_PREFIX_TEMPLATE.format(doc_type.value),
                        config.DOCUMENT_NUMBER_PREFIXES[doc_type.value])

    def get_invoice_due_days(self) -> int:
        raw = self.get(SETTING_INVOICE_DUE_DAYS, config.DEFAULT_INVOICE_DUE_DAYS)
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid '{SETTING_INVOICE_DUE_DAYS}' setting {raw!r}; using default.")
            return config.DEFAULT_INVOICE_DUE_DAYS

    def get_display_calendar(self) -> str:
        return self.get(SETTING_DISPLAY_CALENDAR, config.DISPLAY_CALENDAR)

    def parse_date(self, value: Any, label: str = "date") -> Optional[date]:
        """Reads request dates; slash-separated ones follow the display calendar."""
        return _parse_date(value, label, self.get_display_calendar())

    def get_company_settings(self) -> Dict[str, Any]:
        return {
            "company_name": self.get(SETTING_COMPANY_NAME, config.COMPANY_NAME),
            "currency": self.get(SETTING_CURRENCY, config.DEFAULT_CURRENCY),
            "invoice_due_days": self.get_invoice_due_days(),
            "display_calendar": self.get_display_calendar(),
            "prefixes": {doc_type.value: self.get_document_prefix(doc_type) for doc_type in DocumentType},
        }

    def update_company_settings(self, role: Union[UserRole, str],
                                company_name: Optional[str] = None,
                                currency: Optional[str] = None,
                                invoice_due_days: Optional[int] = None,
                                display_calendar: Optional[str] = None,
                                prefixes: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        if to_role(role) != UserRole.ADMIN:
            raise PreconditionFailed("Only admin can change company settings.", guard="role")

        if invoice_due_days is not None and (not isinstance(invoice_due_days, int) or invoice_due_days < 0):
            raise ValidationError("invoice_due_days must be a non-negative integer.")
        if display_calendar is not None and display_calendar not in (GREGORIAN, JALALI):
            raise ValidationError(f"display_calendar must be '{GREGORIAN}' or '{JALALI}'.")

        valid_doc_types = {doc_type.value for doc_type in DocumentType}
        for doc_type, prefix in (prefixes or {}).items():
            if doc_type not in valid_doc_types:
                raise ValidationError(f"Unknown document type '{doc_type}' for prefix.")
            if not prefix or not isinstance(prefix, str):
                raise ValidationError(f"Prefix for '{doc_type}' cannot be empty.")

        if company_name is not None: self.set(SETTING_COMPANY_NAME, company_name)
        if currency is not None: self.set(SETTING_CURRENCY, currency)
        if invoice_due_days is not None: self.set(SETTING_INVOICE_DUE_DAYS, invoice_due_days)
        if display_calendar is not None: self.set(SETTING_DISPLAY_CALENDAR, display_calendar)
        for doc_type, prefix in (prefixes or {}).items():
            self.set(SETTING_PREFIX_TEMPLATE.format(doc_type), prefix)

        return self.get_company_settings()

    def get_default_terms(self) -> Dict[str, str]:
        """Terms and closing notes printed on new documents."""
        return {
            "default_terms": self.get(SETTING_DEFAULT_TERMS, config.DEFAULT_TERMS),
            "default_notes": self.get(SETTING_DEFAULT_NOTES, config.DEFAULT_NOTES),
        }

    def update_default_terms(self, role: Union[UserRole, str],
                             default_terms: Optional[str] = None,
                             default_notes: Optional[str] = None) -> Dict[str, str]:
        if to_role(role) != UserRole.ADMIN:
            raise PreconditionFailed("Only admin can change default terms.", guard="role")
        if default_terms is not None: self.set(SETTING_DEFAULT_TERMS, default_terms)
        if default_notes is not None: self.set(SETTING_DEFAULT_NOTES, default_notes)
        return self.get_default_terms()
