# commerce_erp/business_logic/exceptions.py

from typing import Optional


class ErpError(Exception):
    """Base class of every business-rule error raised by the managers."""


class ValidationError(ErpError, ValueError):
    """Malformed or missing input: no items, zero quantity, accepted > received, ..."""


class PreconditionFailed(ErpError):
    """An action is not allowed for the document in its current state.

    `guard` names the check that failed: "state", "role", or one of the
    one-way flags ("converted_to_grn", "converted_to_invoice", "stock_updated").
    """

    def __init__(self, message: str, guard: Optional[str] = None):
        super().__init__(message)
        self.guard = guard


class NotFoundError(ErpError):
    """A referenced document, person, product or tax does not exist."""
