# commerce_erp/business_logic/sequence_manager.py

from datetime import date
from typing import Optional
from commerce_erp.business_logic.settings_manager import SettingsManager
from commerce_erp.data_access.sequences_repository import SequencesRepository
from commerce_erp.constants import DocumentType, DOCUMENT_NUMBER_PADDING
import logging

logger = logging.getLogger(__name__)

class SequenceManager:
    """
    Hands out document numbers such as SQ-00001, PO-0001 or GRN-2025-0001.
    Each number is allocated exactly once, even with concurrent creates.
    """

    def __init__(self, sequences_repository: SequencesRepository, settings_manager: SettingsManager):
        if sequences_repository is None: raise ValueError("sequences_repository cannot be None")
        if settings_manager is None: raise ValueError("settings_manager cannot be None")
        self.sequences_repository = sequences_repository
        self.settings_manager = settings_manager

    def next_number(self, doc_type: DocumentType, on_date: Optional[date] = None) -> str:
        prefix = self.settings_manager.get_document_prefix(doc_type)
        padding = DOCUMENT_NUMBER_PADDING[doc_type]

        if doc_type == DocumentType.GRN:
            # GRN counters restart every year
            year = (on_date or date.today()).year
            value = self.sequences_repository.next_value(f"{doc_type.value}-{year}")
            number = f"{prefix}{year}-{value:0{padding}d}"
        else:
            value = self.sequences_repository.next_value(doc_type.value)
            number = f"{prefix}{value:0{padding}d}"

        logger.debug(f"Allocated {doc_type.value} number {number}")
        return number
